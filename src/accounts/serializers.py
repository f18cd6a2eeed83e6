"""Serializers for user and role administration."""

from rest_framework import serializers

from authentication.models import Gender, Role, User, UserType


class RoleSerializer(serializers.ModelSerializer):
    user_count = serializers.SerializerMethodField()

    class Meta:
        model = Role
        fields = ["id", "name", "description", "is_system_role", "user_count", "created_at", "updated_at"]
        read_only_fields = ["id", "is_system_role", "user_count", "created_at", "updated_at"]

    @staticmethod
    def get_user_count(obj) -> int:
        count = getattr(obj, "user_count", None)
        if count is None:
            count = obj.users.filter(is_deleted=False).count()
        return count


class RoleWriteSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    description = serializers.CharField(required=False, allow_blank=True, max_length=500)


class UserAdminSerializer(serializers.ModelSerializer):
    roles = serializers.SlugRelatedField(many=True, read_only=True, slug_field="name")
    user_type = serializers.CharField(source="get_user_type_display")

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "email",
            "full_name",
            "gender",
            "user_type",
            "roles",
            "is_active",
            "is_verified",
            "date_joined",
            "updated_at",
        ]
        read_only_fields = fields


class UserCreateSerializer(serializers.Serializer):
    username = serializers.CharField(max_length=150)
    email = serializers.EmailField(required=False, allow_blank=True)
    password = serializers.CharField(write_only=True, min_length=8)
    full_name = serializers.CharField(required=False, allow_blank=True, max_length=255)
    gender = serializers.ChoiceField(choices=Gender.choices, required=False, allow_blank=True)
    user_type = serializers.ChoiceField(choices=UserType.choices, default=UserType.USER)
    roles = serializers.ListField(child=serializers.CharField(), required=False)


class UserUpdateSerializer(serializers.Serializer):
    email = serializers.EmailField(required=False, allow_blank=True)
    full_name = serializers.CharField(required=False, allow_blank=True, max_length=255)
    gender = serializers.ChoiceField(choices=Gender.choices, required=False, allow_blank=True)
    user_type = serializers.ChoiceField(choices=UserType.choices, required=False)
    is_active = serializers.BooleanField(required=False)
    is_verified = serializers.BooleanField(required=False)
    roles = serializers.ListField(child=serializers.CharField(), required=False)


class RoleAssignSerializer(serializers.Serializer):
    roles = serializers.ListField(child=serializers.CharField(), allow_empty=False)


__all__ = [
    "RoleAssignSerializer",
    "RoleSerializer",
    "RoleWriteSerializer",
    "UserAdminSerializer",
    "UserCreateSerializer",
    "UserUpdateSerializer",
]
