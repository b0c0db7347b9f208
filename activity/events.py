from dataclasses import dataclass
from typing import Optional

from .models import ActivityType


@dataclass(frozen=True)
class ActivityEvent:
    """A membership-affecting action waiting to be written to the feed."""
    type: ActivityType
    description: str
    actor_id: Optional[int]
    team_id: int

    @classmethod
    def member_added(cls, actor, team_id, description):
        return cls(ActivityType.MEMBER_ADDED, description, getattr(actor, 'pk', None), team_id)

    @classmethod
    def member_removed(cls, actor, team_id, description):
        return cls(ActivityType.MEMBER_REMOVED, description, getattr(actor, 'pk', None), team_id)
