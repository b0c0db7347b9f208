from django.contrib import admin

from .models import Team, TeamMembership


class TeamMembershipInline(admin.TabularInline):
    model = TeamMembership
    extra = 0

    def has_delete_permission(self, request, obj=None):
        # Membership rows are history; deactivate them instead
        return False


@admin.register(Team)
class TeamAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'color', 'is_active', 'created_at')
    list_filter = ('is_active',)
    search_fields = ('name',)
    inlines = [TeamMembershipInline]

    def has_delete_permission(self, request, obj=None):
        # Teams are soft deleted through is_active only
        return False
