from django.db import DatabaseError, transaction
from loguru import logger

from .models import Activity


def record_activity(event):
    """
    Append one event to the activity feed.

    The state change that produced the event is already committed, so a
    failed write is logged and reported as ``None`` instead of raising.
    """
    try:
        with transaction.atomic():
            activity = Activity.objects.create(
                type=event.type,
                description=event.description,
                actor_id=event.actor_id,
                team_id=event.team_id,
            )
    except DatabaseError as exc:
        logger.error(f"Could not record activity '{event.type}' for team {event.team_id}: {exc}")
        return None
    logger.info(f"Activity recorded: {event.type} on team {event.team_id}")
    return activity


def record_activities(events):
    return [record_activity(event) for event in events]
