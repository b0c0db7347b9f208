from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .exceptions import TeamServiceError


class BaseAPIView(APIView):
    # Base class for API views: every failure answers with the same envelope
    permission_classes = [IsAuthenticated]

    def handle_exception(self, exc):
        if isinstance(exc, TeamServiceError):
            return Response(exc.as_dict(), status=exc.status_code)
        if isinstance(exc, ValidationError):
            return Response({
                "success": False,
                "code": "invalid",
                "message": "Invalid request data.",
                "errors": exc.detail,
            }, status=status.HTTP_400_BAD_REQUEST)
        return super().handle_exception(exc)

    def _validated(self, serializer_class, **kwargs):
        serializer = serializer_class(data=self.request.data, **kwargs)
        serializer.is_valid(raise_exception=True)
        return serializer.validated_data
