from django.db import models
from django.conf import settings


# TEAM
class Team(models.Model):
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True, default='')
    color = models.CharField(max_length=30, blank=True, default='')
    # Soft delete flag; inactive teams keep their row and memberships
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name


# TEAM MEMBERS
class TeamMembership(models.Model):
    ADMIN = 'admin'
    MEMBER = 'member'

    ROLE_CHOICES = [
        (ADMIN, 'Admin'),
        (MEMBER, 'Member'),
    ]

    team = models.ForeignKey(Team, on_delete=models.CASCADE, related_name='memberships')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='team_memberships')
    # Choices are informative only, other role strings are stored as given
    role = models.CharField(max_length=50, choices=ROLE_CHOICES, default=MEMBER)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        state = "active" if self.is_active else "inactive"
        return f"{self.user} in {self.team} as {self.role} ({state})"

    class Meta:
        constraints = [
            # One row per (team, user), reused across deactivate/reactivate cycles
            models.UniqueConstraint(fields=['team', 'user'], name='unique_team_membership'),
        ]
