from rest_framework import serializers
from .models import Activity


class ActivitySerializer(serializers.ModelSerializer):
    actor_id = serializers.IntegerField(source="actor.id", read_only=True, default=None)
    actor_name = serializers.CharField(source="actor.display_name", read_only=True, default=None)
    type_display = serializers.CharField(source="get_type_display", read_only=True)

    class Meta:
        model = Activity
        fields = ['id', 'type', 'type_display', 'description', 'actor_id', 'actor_name', 'team', 'created_at']
