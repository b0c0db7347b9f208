from django.urls import path
from team import views


urlpatterns = [

    # List the caller's teams or create a new one
    path('', views.TeamListCreateView.as_view(), name='create-list-teams'),

    # Retrieve, update, or (soft) delete a team
    path('<int:team_id>', views.TeamRetrieveUpdateDeleteView.as_view(), name='team-rud'),

    # Add a member (by user id or email)
    path('<int:team_id>/members', views.TeamMemberCreateView.as_view(), name='team-member-add'),

    # Remove a member
    path('<int:team_id>/members/<int:user_id>', views.TeamMemberDeleteView.as_view(), name='team-member-remove'),

    # Change a member's role
    path('<int:team_id>/members/<int:user_id>/role', views.TeamMemberRoleView.as_view(), name='team-member-role'),
]
