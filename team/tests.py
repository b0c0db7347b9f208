from unittest import mock

from django.db import DatabaseError
from django.contrib.admin.sites import site
from django.test import RequestFactory, SimpleTestCase, TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from account.models import CustomUser
from activity.models import Activity, ActivityType
from core.exceptions import Conflict, NotFound, PersistenceError
from task.models import Task
from . import services
from .admin import TeamMembershipInline
from .membership import (
    NO_MEMBERSHIP, MembershipAction, MembershipState, MembershipStatus, active, inactive, transition,
)
from .models import Team, TeamMembership


def make_user(email, first_name='', last_name=''):
    return CustomUser.objects.create_user(email=email, first_name=first_name, last_name=last_name)


class MembershipTransitionTests(SimpleTestCase):

    def test_add_from_no_membership_becomes_active(self):
        self.assertEqual(active('member'), transition(NO_MEMBERSHIP, MembershipAction.ADD, 'member'))

    def test_add_reactivates_inactive_with_new_role(self):
        state = transition(inactive('member'), MembershipAction.ADD, 'admin')
        self.assertEqual(MembershipStatus.ACTIVE, state.status)
        self.assertEqual('admin', state.role)

    def test_add_on_active_is_conflict(self):
        with self.assertRaises(Conflict):
            transition(active('member'), MembershipAction.ADD, 'admin')

    def test_remove_keeps_role(self):
        self.assertEqual(inactive('admin'), transition(active('admin'), MembershipAction.REMOVE))

    def test_remove_requires_active(self):
        for state in (NO_MEMBERSHIP, inactive('member')):
            with self.assertRaises(NotFound):
                transition(state, MembershipAction.REMOVE)

    def test_change_role_requires_active(self):
        self.assertEqual(active('admin'), transition(active('member'), MembershipAction.CHANGE_ROLE, 'admin'))
        for state in (NO_MEMBERSHIP, inactive('member')):
            with self.assertRaises(NotFound):
                transition(state, MembershipAction.CHANGE_ROLE, 'admin')

    def test_state_of_missing_row(self):
        state = MembershipState.of(None)
        self.assertIs(NO_MEMBERSHIP, state)
        self.assertFalse(state.exists)


class TeamLifecycleTests(TestCase):
    def setUp(self):
        self.actor = make_user('ana@example.com', 'Ana', 'Admin')

    def test_create_team_grants_admin_membership(self):
        outcome = services.create_team(self.actor, 'Sprint', 'Weekly sprint', '#ff0000')
        team = outcome.result

        self.assertTrue(team.is_active)
        membership = TeamMembership.objects.get(team=team, user=self.actor)
        self.assertEqual(TeamMembership.ADMIN, membership.role)
        self.assertTrue(membership.is_active)

        [event] = outcome.events
        self.assertEqual(ActivityType.MEMBER_ADDED, event.type)
        self.assertEqual(self.actor.pk, event.actor_id)
        self.assertEqual(team.pk, event.team_id)
        self.assertEqual('Ana Admin created the team Sprint', event.description)

    def test_create_team_records_nothing_by_itself(self):
        services.create_team(self.actor, 'Sprint')
        self.assertFalse(Activity.objects.exists())

    def test_create_team_leaves_no_team_when_membership_write_fails(self):
        with mock.patch.object(TeamMembership.objects, 'create', side_effect=DatabaseError('disk full')):
            with self.assertRaises(PersistenceError):
                services.create_team(self.actor, 'Sprint')

        self.assertFalse(Team.objects.exists())
        self.assertFalse(TeamMembership.objects.exists())

    def test_update_only_changes_given_fields(self):
        team = services.create_team(self.actor, 'Sprint', 'Weekly sprint', '#ff0000').result

        services.update_team(team.pk, color='#00ff00')

        team.refresh_from_db()
        self.assertEqual('Sprint', team.name)
        self.assertEqual('Weekly sprint', team.description)
        self.assertEqual('#00ff00', team.color)

    def test_update_missing_or_inactive_team_is_not_found(self):
        team = Team.objects.create(name='Old', is_active=False)
        with self.assertRaises(NotFound):
            services.update_team(team.pk, name='New')
        with self.assertRaises(NotFound):
            services.update_team(9999, name='New')

        team.refresh_from_db()
        self.assertEqual('Old', team.name)

    def test_update_rejects_unknown_fields(self):
        team = Team.objects.create(name='Sprint')
        with self.assertRaises(TypeError):
            services.update_team(team.pk, is_active=False)

    def test_deactivate_refused_with_open_tasks(self):
        team = services.create_team(self.actor, 'Sprint').result
        Task.objects.create(team=team, title='a', status=Task.PENDING)
        Task.objects.create(team=team, title='b', status=Task.PENDING)

        with self.assertRaises(Conflict):
            services.deactivate_team(team.pk)

        team.refresh_from_db()
        self.assertTrue(team.is_active)

    def test_in_progress_task_also_blocks(self):
        team = Team.objects.create(name='Sprint')
        Task.objects.create(team=team, title='a', status=Task.IN_PROGRESS)
        with self.assertRaises(Conflict):
            services.deactivate_team(team.pk)

    def test_deactivate_with_only_closed_tasks(self):
        team = services.create_team(self.actor, 'Sprint', 'desc', 'blue').result
        Task.objects.create(team=team, title='a', status=Task.DONE)
        Task.objects.create(team=team, title='b', status=Task.CANCELLED)

        services.deactivate_team(team.pk)

        team.refresh_from_db()
        self.assertFalse(team.is_active)
        self.assertEqual(('Sprint', 'desc', 'blue'), (team.name, team.description, team.color))
        # Memberships stay as history
        self.assertTrue(TeamMembership.objects.get(team=team, user=self.actor).is_active)

    def test_deactivate_missing_or_already_inactive_team(self):
        team = Team.objects.create(name='Gone', is_active=False)
        with self.assertRaises(NotFound):
            services.deactivate_team(team.pk)
        with self.assertRaises(NotFound):
            services.deactivate_team(9999)


class MembershipServiceTests(TestCase):
    def setUp(self):
        self.actor = make_user('ana@example.com', 'Ana', 'Admin')
        self.user = make_user('ben@example.com', 'Ben', 'Member')
        self.team = services.create_team(self.actor, 'Sprint').result

    def test_add_by_id_creates_active_row(self):
        outcome = services.add_member(self.actor, self.team.pk, user_id=self.user.pk)

        membership = outcome.result
        self.assertTrue(membership.is_active)
        self.assertEqual(TeamMembership.MEMBER, membership.role)
        [event] = outcome.events
        self.assertEqual(ActivityType.MEMBER_ADDED, event.type)
        self.assertEqual('Ana Admin added Ben Member to the team', event.description)

    def test_add_by_email(self):
        services.add_member(self.actor, self.team.pk, email='BEN@example.com', role='admin')
        self.assertEqual('admin', TeamMembership.objects.get(team=self.team, user=self.user).role)

    def test_id_wins_over_email(self):
        other = make_user('cy@example.com')
        services.add_member(self.actor, self.team.pk, user_id=self.user.pk, email=other.email)

        self.assertTrue(TeamMembership.objects.filter(team=self.team, user=self.user).exists())
        self.assertFalse(TeamMembership.objects.filter(team=self.team, user=other).exists())

    def test_unknown_user_is_not_found(self):
        with self.assertRaises(NotFound):
            services.add_member(self.actor, self.team.pk, email='nobody@example.com')
        # An unknown id does not fall back to the email
        with self.assertRaises(NotFound):
            services.add_member(self.actor, self.team.pk, user_id=9999, email=self.user.email)

    def test_add_to_missing_or_inactive_team_is_not_found(self):
        self.team.is_active = False
        self.team.save()
        with self.assertRaises(NotFound):
            services.add_member(self.actor, self.team.pk, user_id=self.user.pk)
        with self.assertRaises(NotFound):
            services.add_member(self.actor, 9999, user_id=self.user.pk)

    def test_add_active_member_is_conflict_without_write(self):
        membership = services.add_member(self.actor, self.team.pk, user_id=self.user.pk).result

        with self.assertRaises(Conflict):
            services.add_member(self.actor, self.team.pk, user_id=self.user.pk, role='admin')

        fresh = TeamMembership.objects.get(pk=membership.pk)
        self.assertEqual(TeamMembership.MEMBER, fresh.role)
        self.assertEqual(membership.updated_at, fresh.updated_at)
        self.assertEqual(1, TeamMembership.objects.filter(team=self.team, user=self.user).count())

    def test_add_remove_add_reuses_row(self):
        first = services.add_member(self.actor, self.team.pk, user_id=self.user.pk, role='member').result
        services.remove_member(self.actor, self.team.pk, self.user.pk)
        again = services.add_member(self.actor, self.team.pk, user_id=self.user.pk, role='admin').result

        rows = TeamMembership.objects.filter(team=self.team, user=self.user)
        self.assertEqual(1, rows.count())
        row = rows.get()
        self.assertEqual(first.pk, again.pk)
        self.assertTrue(row.is_active)
        self.assertEqual('admin', row.role)
        # Reactivation keeps the original creation timestamp
        self.assertEqual(first.created_at, row.created_at)

    def test_concurrent_insert_is_reported_as_conflict(self):
        services.add_member(self.actor, self.team.pk, user_id=self.user.pk)

        # Simulate a second request that looked before the first one inserted
        with mock.patch('team.services._locked_membership', return_value=None):
            with self.assertRaises(Conflict):
                services.add_member(self.actor, self.team.pk, user_id=self.user.pk)

        self.assertEqual(1, TeamMembership.objects.filter(team=self.team, user=self.user).count())

    def test_role_is_stored_as_given(self):
        services.add_member(self.actor, self.team.pk, user_id=self.user.pk, role='reviewer')
        self.assertEqual('reviewer', TeamMembership.objects.get(team=self.team, user=self.user).role)

    def test_remove_deactivates_and_emits_event(self):
        services.add_member(self.actor, self.team.pk, user_id=self.user.pk)

        outcome = services.remove_member(self.actor, self.team.pk, self.user.pk)

        self.assertFalse(TeamMembership.objects.get(team=self.team, user=self.user).is_active)
        [event] = outcome.events
        self.assertEqual(ActivityType.MEMBER_REMOVED, event.type)
        self.assertEqual('Ana Admin removed Ben Member from the team', event.description)

    def test_remove_missing_or_inactive_is_not_found(self):
        with self.assertRaises(NotFound):
            services.remove_member(self.actor, self.team.pk, self.user.pk)

        services.add_member(self.actor, self.team.pk, user_id=self.user.pk)
        services.remove_member(self.actor, self.team.pk, self.user.pk)
        with self.assertRaises(NotFound):
            services.remove_member(self.actor, self.team.pk, self.user.pk)

    def test_change_role_without_event(self):
        services.add_member(self.actor, self.team.pk, user_id=self.user.pk)

        outcome = services.change_role(self.team.pk, self.user.pk, 'admin')

        self.assertEqual([], outcome.events)
        self.assertIsInstance(outcome.result, TeamMembership)
        self.assertEqual('admin', outcome.result.role)
        self.assertEqual('admin', TeamMembership.objects.get(team=self.team, user=self.user).role)

    def test_change_role_never_creates_a_row(self):
        with self.assertRaises(NotFound):
            services.change_role(self.team.pk, self.user.pk, 'admin')
        self.assertFalse(TeamMembership.objects.filter(team=self.team, user=self.user).exists())

        services.add_member(self.actor, self.team.pk, user_id=self.user.pk)
        services.remove_member(self.actor, self.team.pk, self.user.pk)
        with self.assertRaises(NotFound):
            services.change_role(self.team.pk, self.user.pk, 'admin')
        self.assertEqual(TeamMembership.MEMBER, TeamMembership.objects.get(team=self.team, user=self.user).role)


class TeamQueryTests(TestCase):
    def setUp(self):
        self.actor = make_user('ana@example.com', 'Ana', 'Admin')
        self.user = make_user('ben@example.com', 'Ben', 'Member')

    def test_creator_sees_new_team_as_admin(self):
        services.create_team(self.actor, 'Sprint')

        teams = services.list_teams(self.actor)

        self.assertEqual(['Sprint'], [team.name for team in teams])
        self.assertEqual('admin', teams[0].my_role)

    def test_list_is_ordered_by_name(self):
        for name in ('Gamma', 'Alpha', 'Beta'):
            services.create_team(self.actor, name)
        self.assertEqual(['Alpha', 'Beta', 'Gamma'], [team.name for team in services.list_teams(self.actor)])

    def test_list_skips_inactive_membership_and_inactive_team(self):
        left = services.create_team(self.actor, 'Left').result
        services.add_member(self.actor, left.pk, user_id=self.user.pk)
        services.remove_member(self.actor, left.pk, self.user.pk)

        closed = services.create_team(self.actor, 'Closed').result
        services.add_member(self.actor, closed.pk, user_id=self.user.pk)
        services.deactivate_team(closed.pk)

        kept = services.create_team(self.actor, 'Kept').result
        services.add_member(self.actor, kept.pk, user_id=self.user.pk, role='member')

        teams = services.list_teams(self.user)
        self.assertEqual(['Kept'], [team.name for team in teams])
        self.assertEqual('member', teams[0].my_role)

    def test_list_members_are_active_ones(self):
        team = services.create_team(self.actor, 'Sprint').result
        gone = make_user('gone@example.com')
        services.add_member(self.actor, team.pk, user_id=self.user.pk)
        services.add_member(self.actor, team.pk, user_id=gone.pk)
        services.remove_member(self.actor, team.pk, gone.pk)

        [listed] = services.list_teams(self.actor)

        self.assertEqual(
            {self.actor.pk, self.user.pk},
            {membership.user_id for membership in listed.active_memberships},
        )

    def test_get_returns_inactive_team_with_active_members(self):
        team = services.create_team(self.actor, 'Sprint').result
        services.add_member(self.actor, team.pk, user_id=self.user.pk)
        services.remove_member(self.actor, team.pk, self.user.pk)
        services.deactivate_team(team.pk)

        fetched = services.get_team(team.pk)

        self.assertFalse(fetched.is_active)
        self.assertEqual([self.actor.pk], [m.user_id for m in fetched.active_memberships])

    def test_get_missing_team(self):
        with self.assertRaises(NotFound):
            services.get_team(9999)


class TeamApiTests(APITestCase):
    def setUp(self):
        self.actor = make_user('ana@example.com', 'Ana', 'Admin')
        self.user = make_user('ben@example.com', 'Ben', 'Member')
        self.client.force_authenticate(user=self.actor)

    def _create_team(self, name='Sprint'):
        response = self.client.post(
            reverse('create-list-teams'), {'name': name, 'description': 'desc', 'color': '#123456'}, format='json'
        )
        self.assertEqual(status.HTTP_201_CREATED, response.status_code)
        return response.data['data']['team']['id']

    def test_requires_authentication(self):
        self.client.force_authenticate(user=None)
        response = self.client.get(reverse('create-list-teams'))
        self.assertEqual(status.HTTP_401_UNAUTHORIZED, response.status_code)

    def test_create_records_activity_and_lists_team(self):
        team_id = self._create_team()

        activity = Activity.objects.get(team_id=team_id)
        self.assertEqual(ActivityType.MEMBER_ADDED, activity.type)
        self.assertEqual(self.actor, activity.actor)

        response = self.client.get(reverse('create-list-teams'))
        teams = response.data['data']['teams']
        self.assertEqual(1, len(teams))
        self.assertEqual('Sprint', teams[0]['name'])
        self.assertEqual('admin', teams[0]['my_role'])
        self.assertEqual(
            [{'id': self.actor.pk, 'name': 'Ana Admin', 'email': 'ana@example.com', 'avatar': None, 'role': 'admin'}],
            teams[0]['members'],
        )

    def test_create_requires_name(self):
        response = self.client.post(reverse('create-list-teams'), {'color': 'red'}, format='json')
        self.assertEqual(status.HTTP_400_BAD_REQUEST, response.status_code)
        self.assertFalse(response.data['success'])
        self.assertEqual('invalid', response.data['code'])
        self.assertIn('name', response.data['errors'])

    def test_retrieve_shows_role_and_join_date(self):
        team_id = self._create_team()
        response = self.client.get(reverse('team-rud', kwargs={'team_id': team_id}))

        self.assertEqual(status.HTTP_200_OK, response.status_code)
        [member] = response.data['data']['team']['members']
        self.assertEqual('admin', member['role'])
        self.assertEqual('Ana Admin', member['name'])
        self.assertIn('joined_at', member)

    def test_retrieve_missing_team(self):
        response = self.client.get(reverse('team-rud', kwargs={'team_id': 9999}))
        self.assertEqual(status.HTTP_404_NOT_FOUND, response.status_code)
        self.assertEqual('not_found', response.data['code'])
        self.assertFalse(response.data['success'])

    def test_patch_updates_given_fields(self):
        team_id = self._create_team()
        response = self.client.patch(reverse('team-rud', kwargs={'team_id': team_id}), {'color': 'green'}, format='json')

        self.assertEqual(status.HTTP_200_OK, response.status_code)
        self.assertEqual('green', response.data['data']['team']['color'])
        self.assertEqual('Sprint', response.data['data']['team']['name'])

    def test_delete_with_open_tasks_is_conflict(self):
        team_id = self._create_team()
        Task.objects.create(team_id=team_id, title='open', status=Task.PENDING)

        response = self.client.delete(reverse('team-rud', kwargs={'team_id': team_id}))

        self.assertEqual(status.HTTP_409_CONFLICT, response.status_code)
        self.assertEqual('conflict', response.data['code'])
        self.assertTrue(Team.objects.get(pk=team_id).is_active)

    def test_delete_soft_deletes(self):
        team_id = self._create_team()
        response = self.client.delete(reverse('team-rud', kwargs={'team_id': team_id}))

        self.assertEqual(status.HTTP_200_OK, response.status_code)
        self.assertFalse(Team.objects.get(pk=team_id).is_active)

    def test_member_lifecycle_over_http(self):
        team_id = self._create_team()
        add_url = reverse('team-member-add', kwargs={'team_id': team_id})
        member_url = reverse('team-member-remove', kwargs={'team_id': team_id, 'user_id': self.user.pk})
        role_url = reverse('team-member-role', kwargs={'team_id': team_id, 'user_id': self.user.pk})

        response = self.client.post(add_url, {'email': 'ben@example.com'}, format='json')
        self.assertEqual(status.HTTP_200_OK, response.status_code)

        response = self.client.post(add_url, {'user_id': self.user.pk}, format='json')
        self.assertEqual(status.HTTP_409_CONFLICT, response.status_code)

        response = self.client.put(role_url, {'role': 'admin'}, format='json')
        self.assertEqual(status.HTTP_200_OK, response.status_code)

        response = self.client.delete(member_url)
        self.assertEqual(status.HTTP_200_OK, response.status_code)

        response = self.client.delete(member_url)
        self.assertEqual(status.HTTP_404_NOT_FOUND, response.status_code)

        types = list(Activity.objects.filter(team_id=team_id).order_by('id').values_list('type', flat=True))
        self.assertEqual(['member_added', 'member_added', 'member_removed'], types)

    def test_add_member_needs_an_identifier(self):
        team_id = self._create_team()
        response = self.client.post(reverse('team-member-add', kwargs={'team_id': team_id}), {'role': 'admin'}, format='json')
        self.assertEqual(status.HTTP_400_BAD_REQUEST, response.status_code)
        self.assertEqual('invalid', response.data['code'])

    def test_add_unknown_user(self):
        team_id = self._create_team()
        response = self.client.post(
            reverse('team-member-add', kwargs={'team_id': team_id}), {'email': 'nobody@example.com'}, format='json'
        )
        self.assertEqual(status.HTTP_404_NOT_FOUND, response.status_code)

    def test_audit_failure_does_not_fail_request(self):
        team_id = self._create_team()

        with mock.patch.object(Activity.objects, 'create', side_effect=DatabaseError('feed down')):
            response = self.client.post(
                reverse('team-member-add', kwargs={'team_id': team_id}), {'user_id': self.user.pk}, format='json'
            )

        self.assertEqual(status.HTTP_200_OK, response.status_code)
        self.assertTrue(TeamMembership.objects.get(team_id=team_id, user=self.user).is_active)

    def test_store_failure_is_normalized(self):
        with mock.patch.object(Team.objects, 'create', side_effect=DatabaseError('timeout')):
            response = self.client.post(reverse('create-list-teams'), {'name': 'Sprint'}, format='json')

        self.assertEqual(status.HTTP_500_INTERNAL_SERVER_ERROR, response.status_code)
        self.assertEqual('persistence_error', response.data['code'])


class TeamAdminTests(TestCase):

    def test_admin_cannot_hard_delete_teams_or_memberships(self):
        request = RequestFactory().get('/admin/team/team/')
        request.user = CustomUser.objects.create_superuser(email='root@example.com', password='pw-12345')
        team = Team.objects.create(name='Sprint')

        team_admin = site._registry[Team]
        self.assertFalse(team_admin.has_delete_permission(request))
        self.assertFalse(team_admin.has_delete_permission(request, team))
        self.assertNotIn('delete_selected', team_admin.get_actions(request))
        self.assertFalse(TeamMembershipInline(Team, site).has_delete_permission(request, team))
