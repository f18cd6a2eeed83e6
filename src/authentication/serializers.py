"""Serializers for authentication flows (register, login, profile)."""

from typing import cast

from django.contrib.auth import get_user_model
from django.db import transaction
from rest_framework import serializers
from rest_framework.exceptions import AuthenticationFailed

from .managers import UserManager
from .models import Gender, Role, UserType

User = get_user_model()

SELF_REGISTRABLE_TYPES = (UserType.ADMIN, UserType.USER, UserType.STAFF)


class RegisterSerializer(serializers.Serializer):
    """Create a user and assign the role named after the chosen user type."""

    username = serializers.CharField(max_length=150)
    email = serializers.EmailField(required=False, allow_blank=True)
    password = serializers.CharField(write_only=True, min_length=8)
    repeat_password = serializers.CharField(write_only=True, min_length=8)
    full_name = serializers.CharField(required=False, allow_blank=True, max_length=255)
    gender = serializers.ChoiceField(choices=Gender.choices, required=False, allow_blank=True)
    user_type = serializers.ChoiceField(
        choices=[(choice.value, choice.label) for choice in SELF_REGISTRABLE_TYPES],
        default=UserType.USER,
    )

    @staticmethod
    def validate_username(value):
        if User.objects.filter(username__iexact=value).exists():
            raise serializers.ValidationError("Username already in use")
        return value

    def validate(self, attrs):
        if attrs.get("password") != attrs.get("repeat_password"):
            raise serializers.ValidationError("Passwords do not match")
        return attrs

    def create(self, validated_data):
        validated_data.pop("repeat_password")
        role_name = UserType(validated_data["user_type"]).label
        role = Role.objects.filter(name__iexact=role_name).first()
        if role is None:
            raise serializers.ValidationError(f"Role '{role_name}' not configured")
        manager = cast(UserManager, User.objects)
        with transaction.atomic():
            user = manager.create_user(**validated_data)
            user.roles.add(role)
        return user


class LoginSerializer(serializers.Serializer):
    """Authenticate a user via username/password using bcrypt verification."""

    username = serializers.CharField()
    password = serializers.CharField(write_only=True)

    def validate(self, attrs):
        user = User.objects.filter(username__iexact=attrs.get("username"), is_deleted=False).first()
        if user is None:
            raise AuthenticationFailed("Invalid credentials")

        if not user.is_active:
            raise AuthenticationFailed("User is inactive")

        if not UserManager.verify_password(user, attrs.get("password")):
            raise AuthenticationFailed("Invalid credentials")

        attrs["user"] = user
        return attrs


class UserDetailSerializer(serializers.ModelSerializer):
    """Read-only user profile payload for responses."""

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
        ]
        read_only_fields = fields
