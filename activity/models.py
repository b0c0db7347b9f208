from django.db import models
from django.conf import settings


class ActivityType(models.TextChoices):
    MEMBER_ADDED = 'member_added', 'Member Added'
    MEMBER_REMOVED = 'member_removed', 'Member Removed'


class Activity(models.Model):
    # Append-only feed entry; rows are never updated after insert
    type = models.CharField(max_length=50, choices=ActivityType.choices)
    description = models.TextField()
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="activities"
    )
    team = models.ForeignKey('team.Team', on_delete=models.CASCADE, related_name="activities")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at', '-id']
        verbose_name_plural = 'activities'

    def __str__(self):
        return f"{self.type} on team {self.team_id} - {self.description[:50]}"
