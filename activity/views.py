from rest_framework import status
from rest_framework.response import Response
from core.exceptions import NotFound
from core.views import BaseAPIView
from team.models import Team
from .models import Activity
from .serializers import ActivitySerializer


class TeamActivityListView(BaseAPIView):

    def get(self, request, team_id):
        # Feed of membership events for one team, newest first
        team = Team.objects.filter(id=team_id).first()
        if team is None:
            raise NotFound("Team not found.")
        activities = Activity.objects.filter(team=team).select_related('actor')
        serializer = ActivitySerializer(activities, many=True)
        return Response({"success": True, "data": {"activities": serializer.data}}, status=status.HTTP_200_OK)
