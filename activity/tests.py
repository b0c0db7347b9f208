from unittest import mock

from django.db import DatabaseError
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from account.models import CustomUser
from team.models import Team
from .events import ActivityEvent
from .models import Activity, ActivityType
from .recorder import record_activities, record_activity


class RecorderTests(TestCase):
    def setUp(self):
        self.actor = CustomUser.objects.create_user(email='ana@example.com')
        self.team = Team.objects.create(name='Sprint')

    def test_record_activity_appends_row(self):
        event = ActivityEvent.member_added(self.actor, self.team.pk, 'ana added ben to the team')

        activity = record_activity(event)

        self.assertEqual(ActivityType.MEMBER_ADDED, activity.type)
        self.assertEqual(self.actor, activity.actor)
        self.assertEqual(self.team, activity.team)
        self.assertEqual('ana added ben to the team', activity.description)

    def test_failed_write_is_swallowed(self):
        event = ActivityEvent.member_removed(self.actor, self.team.pk, 'ana removed ben from the team')

        with mock.patch.object(Activity.objects, 'create', side_effect=DatabaseError('down')):
            self.assertIsNone(record_activity(event))

        self.assertFalse(Activity.objects.exists())

    def test_record_activities_batch(self):
        events = [
            ActivityEvent.member_added(self.actor, self.team.pk, 'one'),
            ActivityEvent.member_removed(self.actor, self.team.pk, 'two'),
        ]
        record_activities(events)
        self.assertEqual(2, Activity.objects.filter(team=self.team).count())


class TeamActivityListViewTests(APITestCase):
    def setUp(self):
        self.actor = CustomUser.objects.create_user(email='ana@example.com', first_name='Ana')
        self.team = Team.objects.create(name='Sprint')
        self.client.force_authenticate(user=self.actor)

    def test_feed_is_newest_first(self):
        record_activity(ActivityEvent.member_added(self.actor, self.team.pk, 'first'))
        record_activity(ActivityEvent.member_removed(self.actor, self.team.pk, 'second'))

        response = self.client.get(reverse('team-activity', kwargs={'team_id': self.team.pk}))

        self.assertEqual(status.HTTP_200_OK, response.status_code)
        activities = response.data['data']['activities']
        self.assertEqual(['second', 'first'], [a['description'] for a in activities])
        self.assertEqual('Ana', activities[0]['actor_name'])

    def test_unknown_team(self):
        response = self.client.get(reverse('team-activity', kwargs={'team_id': 9999}))
        self.assertEqual(status.HTTP_404_NOT_FOUND, response.status_code)
        self.assertFalse(response.data['success'])
        self.assertEqual('not_found', response.data['code'])
