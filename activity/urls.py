from django.urls import path
from . import views


urlpatterns = [

    # Membership activity feed of a team
    path('teams/<int:team_id>', views.TeamActivityListView.as_view(), name='team-activity'),
]
