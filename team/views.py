from rest_framework import status
from rest_framework.response import Response

from activity.recorder import record_activities
from core.views import BaseAPIView
from . import serializers, services


class BaseTeamView(BaseAPIView):

    def _commit_events(self, outcome):
        # The service transaction is already committed here
        record_activities(outcome.events)
        return outcome.result


class TeamListCreateView(BaseTeamView):

    def get(self, request):
        teams = services.list_teams(request.user)
        data = serializers.TeamListSerializer(teams, many=True).data
        return Response({"success": True, "data": {"teams": data}}, status=status.HTTP_200_OK)

    def post(self, request):
        payload = self._validated(serializers.TeamWriteSerializer)
        team = self._commit_events(services.create_team(
            request.user,
            payload['name'],
            payload.get('description', ''),
            payload.get('color', ''),
        ))
        return Response({
            "success": True,
            "data": {"team": serializers.TeamSerializer(team).data},
            "message": "Team created successfully."
        }, status=status.HTTP_201_CREATED)


class TeamRetrieveUpdateDeleteView(BaseTeamView):

    def get(self, request, team_id):
        team = services.get_team(team_id)
        data = serializers.TeamDetailSerializer(team).data
        return Response({"success": True, "data": {"team": data}}, status=status.HTTP_200_OK)

    def put(self, request, team_id):
        payload = self._validated(serializers.TeamWriteSerializer, partial=True)
        team = services.update_team(team_id, **payload)
        return Response({
            "success": True,
            "data": {"team": serializers.TeamSerializer(team).data},
            "message": "Team updated successfully."
        }, status=status.HTTP_200_OK)

    def patch(self, request, team_id):
        return self.put(request, team_id)

    def delete(self, request, team_id):
        services.deactivate_team(team_id)
        return Response({"success": True, "message": "Team deleted successfully."}, status=status.HTTP_200_OK)


class TeamMemberCreateView(BaseTeamView):

    def post(self, request, team_id):
        payload = self._validated(serializers.AddMemberSerializer)
        self._commit_events(services.add_member(
            request.user,
            team_id,
            user_id=payload.get('user_id'),
            email=payload.get('email'),
            role=payload['role'],
        ))
        return Response({"success": True, "message": "Member added successfully."}, status=status.HTTP_200_OK)


class TeamMemberDeleteView(BaseTeamView):

    def delete(self, request, team_id, user_id):
        self._commit_events(services.remove_member(request.user, team_id, user_id))
        return Response({"success": True, "message": "Member removed successfully."}, status=status.HTTP_200_OK)


class TeamMemberRoleView(BaseTeamView):

    def put(self, request, team_id, user_id):
        payload = self._validated(serializers.ChangeRoleSerializer)
        self._commit_events(services.change_role(team_id, user_id, payload['role']))
        return Response({"success": True, "message": "Role updated successfully."}, status=status.HTTP_200_OK)

    def patch(self, request, team_id, user_id):
        return self.put(request, team_id, user_id)
