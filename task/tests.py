from django.test import TestCase

from team.models import Team
from .models import Task
from .utils import count_open_tasks


class CountOpenTasksTests(TestCase):

    def test_counts_pending_and_in_progress_of_the_team(self):
        team = Team.objects.create(name='Sprint')
        other = Team.objects.create(name='Other')
        Task.objects.create(team=team, title='a', status=Task.PENDING)
        Task.objects.create(team=team, title='b', status=Task.IN_PROGRESS)
        Task.objects.create(team=team, title='c', status=Task.DONE)
        Task.objects.create(team=team, title='d', status=Task.CANCELLED)
        Task.objects.create(team=other, title='e', status=Task.PENDING)

        self.assertEqual(2, count_open_tasks(team.pk))
        self.assertEqual(0, count_open_tasks(9999))

    def test_is_open(self):
        self.assertTrue(Task(status=Task.PENDING).is_open)
        self.assertFalse(Task(status=Task.DONE).is_open)
