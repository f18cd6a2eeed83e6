"""Serializers for permission administration payloads."""

from rest_framework import serializers

from .models import Action


class PermissionSerializer(serializers.Serializer):
    """Read-only view of a ``PermissionDto``."""

    id = serializers.UUIDField()
    name = serializers.CharField()
    description = serializers.CharField()
    category = serializers.CharField()
    is_active = serializers.BooleanField()
    action_id = serializers.UUIDField()
    controller = serializers.CharField()
    action = serializers.CharField()
    http_method = serializers.CharField()
    route = serializers.CharField()


class UserPermissionSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    permission = PermissionSerializer()
    state = serializers.CharField()
    expires_on = serializers.DateTimeField(allow_null=True)
    is_revoked = serializers.BooleanField()
    revoked_on = serializers.DateTimeField(allow_null=True)
    revoked_by = serializers.UUIDField(allow_null=True)
    granted_by = serializers.UUIDField(allow_null=True)
    granted_on = serializers.DateTimeField(allow_null=True)


class EffectivePermissionsSerializer(serializers.Serializer):
    user_id = serializers.UUIDField()
    username = serializers.CharField()
    roles = serializers.ListField(child=serializers.CharField())
    role_permissions = PermissionSerializer(many=True)
    user_permissions = PermissionSerializer(many=True)
    all_permissions = PermissionSerializer(many=True)


class GrantOutcomeSerializer(serializers.Serializer):
    permission_id = serializers.CharField()
    success = serializers.BooleanField()
    error = serializers.CharField(allow_null=True)


class ActionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Action
        fields = ["id", "controller", "action", "http_method", "route", "description", "is_active", "created_at"]
        read_only_fields = fields


class PermissionIdsSerializer(serializers.Serializer):
    """Batch grant request body."""

    permission_ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)


class UserPermissionGrantSerializer(PermissionIdsSerializer):
    expires_on = serializers.DateTimeField(required=False, allow_null=True)


class PermissionActivationSerializer(serializers.Serializer):
    is_active = serializers.BooleanField()


__all__ = [
    "ActionSerializer",
    "EffectivePermissionsSerializer",
    "GrantOutcomeSerializer",
    "PermissionActivationSerializer",
    "PermissionIdsSerializer",
    "PermissionSerializer",
    "UserPermissionGrantSerializer",
    "UserPermissionSerializer",
]
