from rest_framework import serializers
from . import models


class TeamSerializer(serializers.ModelSerializer):
    class Meta:
        model = models.Team
        fields = ['id', 'name', 'description', 'color', 'is_active', 'created_at', 'updated_at']
        read_only_fields = fields


class TeamWriteSerializer(serializers.Serializer):
    # Used with partial=True for updates, so only supplied keys reach the service
    name = serializers.CharField(max_length=100)
    description = serializers.CharField(required=False, allow_blank=True)
    color = serializers.CharField(required=False, allow_blank=True, max_length=30)


class MemberSerializer(serializers.Serializer):
    # Built from a TeamMembership row
    id = serializers.IntegerField(source='user.id')
    name = serializers.CharField(source='user.display_name')
    email = serializers.EmailField(source='user.email')
    avatar = serializers.SerializerMethodField()
    role = serializers.CharField()

    def get_avatar(self, membership):
        avatar = membership.user.avatar
        if not avatar:
            return None
        return avatar.url


class TeamMemberDetailSerializer(MemberSerializer):
    joined_at = serializers.DateTimeField(source='created_at')


class TeamListSerializer(TeamSerializer):
    my_role = serializers.CharField(read_only=True)
    members = MemberSerializer(source='active_memberships', many=True, read_only=True)

    class Meta(TeamSerializer.Meta):
        fields = TeamSerializer.Meta.fields + ['my_role', 'members']


class TeamDetailSerializer(TeamSerializer):
    members = TeamMemberDetailSerializer(source='active_memberships', many=True, read_only=True)

    class Meta(TeamSerializer.Meta):
        fields = TeamSerializer.Meta.fields + ['members']


class AddMemberSerializer(serializers.Serializer):
    user_id = serializers.IntegerField(required=False, allow_null=True)
    email = serializers.EmailField(required=False, allow_blank=True)
    role = serializers.CharField(required=False, default=models.TeamMembership.MEMBER, max_length=50)

    def validate(self, data):
        if not data.get('user_id') and not data.get('email'):
            raise serializers.ValidationError("Either 'user_id' or 'email' is required.")
        return data


class ChangeRoleSerializer(serializers.Serializer):
    role = serializers.CharField(max_length=50)
