from django.db import models
from django.conf import settings


class Task(models.Model):
    PENDING = 'pending'
    IN_PROGRESS = 'in_progress'
    DONE = 'done'
    CANCELLED = 'cancelled'

    STATUS_CHOICES = [
        (PENDING, 'Pending'),
        (IN_PROGRESS, 'In Progress'),
        (DONE, 'Done'),
        (CANCELLED, 'Cancelled'),
    ]

    # Statuses that still block a team from being deactivated
    OPEN_STATUSES = (PENDING, IN_PROGRESS)

    team = models.ForeignKey('team.Team', on_delete=models.CASCADE, related_name='tasks')
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=PENDING, db_index=True)
    assigned_to = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='assigned_tasks'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def is_open(self):
        return self.status in self.OPEN_STATUSES

    def __str__(self):
        return f"{self.title} ({self.get_status_display()})"
