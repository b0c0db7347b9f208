"""
Team lifecycle, membership transitions and team queries.

Every mutating function runs as one transaction and returns before any audit
write happens. Membership changes hand their feed events back in an
``Outcome`` so the caller can record them once the transaction has committed.
"""
from dataclasses import dataclass, field
from typing import Any, List

from django.db import IntegrityError, transaction
from django.db.models import OuterRef, Prefetch, Subquery
from loguru import logger

from account.utils import resolve_user
from activity.events import ActivityEvent
from core.exceptions import Conflict, NotFound, normalize_store_errors
from task.utils import count_open_tasks
from .membership import MembershipAction, MembershipState, transition
from .models import Team, TeamMembership

UPDATABLE_FIELDS = ('name', 'description', 'color')


@dataclass
class Outcome:
    result: Any
    events: List[ActivityEvent] = field(default_factory=list)


# TEAM LIFECYCLE

@normalize_store_errors
def create_team(actor, name, description='', color=''):
    """Create a team and make ``actor`` its admin, both or neither."""
    with transaction.atomic():
        team = Team.objects.create(name=name, description=description or '', color=color or '')
        TeamMembership.objects.create(team=team, user=actor, role=TeamMembership.ADMIN, is_active=True)

    logger.info(f"Team {team.pk} '{team.name}' created by user {actor.pk}")
    event = ActivityEvent.member_added(actor, team.pk, f"{actor.display_name} created the team {team.name}")
    return Outcome(team, [event])


@normalize_store_errors
def update_team(team_id, **changes):
    """Partial update of the display attributes of an active team."""
    unknown = set(changes) - set(UPDATABLE_FIELDS)
    if unknown:
        raise TypeError(f"Unsupported team fields: {', '.join(sorted(unknown))}")

    with transaction.atomic():
        team = Team.objects.select_for_update().filter(pk=team_id, is_active=True).first()
        if team is None:
            raise NotFound("Team not found.")

        fields = [name for name in UPDATABLE_FIELDS if name in changes]
        for name in fields:
            setattr(team, name, changes[name])
        if fields:
            team.save(update_fields=fields + ['updated_at'])

    logger.info(f"Team {team.pk} updated: {', '.join(fields) or 'no changes'}")
    return team


@normalize_store_errors
def deactivate_team(team_id):
    """Soft delete, refused while the team still has open tasks."""
    with transaction.atomic():
        team = Team.objects.select_for_update().filter(pk=team_id, is_active=True).first()
        if team is None:
            raise NotFound("Team not found.")

        open_tasks = count_open_tasks(team.pk)
        if open_tasks > 0:
            logger.warning(f"Refusing to deactivate team {team.pk}: {open_tasks} open task(s)")
            raise Conflict("A team with pending or in-progress tasks cannot be deleted.")

        team.is_active = False
        team.save(update_fields=['is_active', 'updated_at'])

    logger.info(f"Team {team.pk} deactivated")


# MEMBERSHIP

def _locked_membership(team_id, user_id):
    return TeamMembership.objects.select_for_update().filter(team_id=team_id, user_id=user_id).first()


def _insert_membership(team, user, role):
    try:
        with transaction.atomic():
            return TeamMembership.objects.create(team=team, user=user, role=role, is_active=True)
    except IntegrityError as exc:
        # Another request created the row between our lookup and this insert
        raise Conflict("The user is already a member of the team.") from exc


def _apply(membership, state):
    membership.is_active = state.is_active
    membership.role = state.role
    membership.save(update_fields=['is_active', 'role', 'updated_at'])
    return membership


@normalize_store_errors
def add_member(actor, team_id, user_id=None, email=None, role=TeamMembership.MEMBER):
    """
    Bring a user into the team with ``role``.

    The user is resolved by id when given, otherwise by email. A pair with no
    row gets a new one; an inactive row is reactivated in place with the new
    role (its ``created_at`` is kept); an active row is a conflict.
    """
    with transaction.atomic():
        team = Team.objects.filter(pk=team_id, is_active=True).first()
        if team is None:
            raise NotFound("Team not found.")

        user = resolve_user(user_id=user_id, email=email)
        if user is None:
            raise NotFound("User not found.")

        membership = _locked_membership(team.pk, user.pk)
        target = transition(MembershipState.of(membership), MembershipAction.ADD, role)
        if membership is None:
            membership = _insert_membership(team, user, target.role)
        else:
            _apply(membership, target)

    logger.info(f"User {user.pk} joined team {team.pk} as {membership.role}")
    event = ActivityEvent.member_added(
        actor, team.pk, f"{actor.display_name} added {user.display_name} to the team"
    )
    return Outcome(membership, [event])


@normalize_store_errors
def remove_member(actor, team_id, user_id):
    """Deactivate an active membership; the row stays for history."""
    with transaction.atomic():
        membership = _locked_membership(team_id, user_id)
        target = transition(MembershipState.of(membership), MembershipAction.REMOVE)
        _apply(membership, target)

    user = membership.user
    logger.info(f"User {user.pk} removed from team {membership.team_id}")
    event = ActivityEvent.member_removed(
        actor, membership.team_id, f"{actor.display_name} removed {user.display_name} from the team"
    )
    return Outcome(membership, [event])


@normalize_store_errors
def change_role(team_id, user_id, role):
    # No feed event for role changes
    with transaction.atomic():
        membership = _locked_membership(team_id, user_id)
        target = transition(MembershipState.of(membership), MembershipAction.CHANGE_ROLE, role)
        _apply(membership, target)

    logger.info(f"User {user_id} now has role {role} in team {team_id}")
    return Outcome(membership)


# QUERIES

def _active_memberships():
    return Prefetch(
        'memberships',
        queryset=TeamMembership.objects.filter(is_active=True).select_related('user').order_by('created_at', 'id'),
        to_attr='active_memberships',
    )


@normalize_store_errors
def list_teams(actor):
    """
    Active teams in which ``actor`` holds an active membership, by name.

    Each team carries ``my_role`` and ``active_memberships``.
    """
    my_role = TeamMembership.objects.filter(team=OuterRef('pk'), user=actor, is_active=True).values('role')[:1]
    teams = (
        Team.objects.filter(is_active=True, memberships__user=actor, memberships__is_active=True)
        .annotate(my_role=Subquery(my_role))
        .prefetch_related(_active_memberships())
        .order_by('name', 'id')
    )
    return list(teams)


@normalize_store_errors
def get_team(team_id):
    # Not filtered on the team's own is_active flag
    team = Team.objects.prefetch_related(_active_memberships()).filter(pk=team_id).first()
    if team is None:
        raise NotFound("Team not found.")
    return team
