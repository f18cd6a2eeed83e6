"""Identity models: users with bcrypt passwords and the roles they hold.

Django's built-in groups/permissions are not used (no PermissionsMixin);
authorization is answered by the access_control permission engine, which only
consumes role membership from here.
"""

import uuid
from typing import ClassVar, Optional

from django.contrib.auth.models import AbstractBaseUser
from django.db import models

from .managers import UserManager


class UserType(models.IntegerChoices):
    DEVELOPER = 1, "Developer"
    SUPER_ADMIN = 2, "SuperAdmin"
    ADMIN = 3, "Admin"
    USER = 4, "User"
    STAFF = 5, "Staff"


class Gender(models.TextChoices):
    MALE = "male", "Male"
    FEMALE = "female", "Female"
    OTHER = "other", "Other"


class Role(models.Model):
    """Named role; users hold any number of roles."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100, unique=True)
    description = models.CharField(max_length=500, blank=True)
    is_system_role = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.name


class User(AbstractBaseUser):
    """Custom user identified by username with bcrypt password hashes."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    username = models.CharField(max_length=150, unique=True)
    email = models.EmailField(blank=True)
    password_hash = models.CharField(max_length=128)
    full_name = models.CharField(max_length=255, blank=True)
    gender = models.CharField(max_length=10, choices=Gender.choices, blank=True)
    user_type = models.PositiveSmallIntegerField(choices=UserType.choices, default=UserType.USER)
    roles = models.ManyToManyField(Role, related_name="users", blank=True)
    is_active = models.BooleanField(default=True)
    is_verified = models.BooleanField(default=False)
    is_deleted = models.BooleanField(default=False)
    is_staff = models.BooleanField(default=False)
    is_superuser = models.BooleanField(default=False)
    date_joined = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    token_version = models.PositiveIntegerField(default=1)

    USERNAME_FIELD = "username"
    REQUIRED_FIELDS: ClassVar[list[str]] = []

    objects = UserManager()

    class Meta:
        ordering = ["-date_joined"]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.username

    def set_password(self, raw_password: Optional[str]) -> None:  # type: ignore[override]
        """Hash with bcrypt through the manager helper."""

        if raw_password is None:
            self.password_hash = ""
        else:
            self.password_hash = UserManager.hash_password(raw_password)

    def check_password(self, raw_password: Optional[str]) -> bool:  # type: ignore[override]
        if raw_password is None:
            return False
        return UserManager.verify_password(self, raw_password)

    @property
    def role_names(self) -> list[str]:
        return [role.name for role in self.roles.all()]


__all__ = ["Gender", "Role", "User", "UserType"]
