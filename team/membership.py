"""
Membership lifecycle of a (user, team) pair.

A pair is in one of three states: it has no row at all, it has an active
row, or it has an inactive row. Both stored states carry the role. The
transition function below is pure: it decides the next state or raises,
and ``team.services`` writes the result back to the single row.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from core.exceptions import Conflict, NotFound


class MembershipStatus(Enum):
    NO_MEMBERSHIP = 'no_membership'
    ACTIVE = 'active'
    INACTIVE = 'inactive'


class MembershipAction(Enum):
    ADD = 'add'
    REMOVE = 'remove'
    CHANGE_ROLE = 'change_role'


@dataclass(frozen=True)
class MembershipState:
    status: MembershipStatus
    role: Optional[str] = None

    @classmethod
    def of(cls, membership):
        """State of a stored row, or NO_MEMBERSHIP for ``None``."""
        if membership is None:
            return NO_MEMBERSHIP
        status = MembershipStatus.ACTIVE if membership.is_active else MembershipStatus.INACTIVE
        return cls(status, membership.role)

    @property
    def is_active(self):
        return self.status is MembershipStatus.ACTIVE

    @property
    def exists(self):
        return self.status is not MembershipStatus.NO_MEMBERSHIP


NO_MEMBERSHIP = MembershipState(MembershipStatus.NO_MEMBERSHIP)


def active(role):
    return MembershipState(MembershipStatus.ACTIVE, role)


def inactive(role):
    return MembershipState(MembershipStatus.INACTIVE, role)


def transition(state, action, role=None):
    """Return the state reached by applying ``action`` to ``state``."""
    if action is MembershipAction.ADD:
        if state.is_active:
            raise Conflict("The user is already a member of the team.")
        # NO_MEMBERSHIP creates the row, INACTIVE reactivates it with the new role
        return active(role)

    if action is MembershipAction.REMOVE:
        if not state.is_active:
            raise NotFound("Membership not found.")
        return inactive(state.role)

    if action is MembershipAction.CHANGE_ROLE:
        if not state.is_active:
            raise NotFound("Membership not found.")
        return active(role)

    raise ValueError(f"Unknown membership action: {action!r}")
