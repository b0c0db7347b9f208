from .models import Task


def count_open_tasks(team_id):
    """Number of tasks of the team that are still pending or in progress."""
    return Task.objects.filter(team_id=team_id, status__in=Task.OPEN_STATUSES).count()
