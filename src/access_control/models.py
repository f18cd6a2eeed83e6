"""Permission engine tables: action catalog, permissions, grants and audit log.

Discovery owns ``Action`` and ``Permission`` rows; administrative grant
operations own ``RolePermission`` and ``UserPermission``. All four are
soft-deletable and never physically removed by the application.
"""

import enum
import uuid

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from core.models import AuditedModel, AuditedQuerySet, LiveManager


class Action(AuditedModel):
    """A discovered endpoint identity: (controller, action, HTTP verb)."""

    controller = models.CharField(max_length=100)
    action = models.CharField(max_length=100)
    http_method = models.CharField(max_length=10)
    route = models.CharField(max_length=500, blank=True)
    description = models.CharField(max_length=500, blank=True)

    class Meta:
        ordering = ["controller", "action", "http_method"]
        constraints = [
            models.UniqueConstraint(
                fields=["controller", "action", "http_method"],
                condition=Q(is_deleted=False),
                name="uniq_live_action_triple",
            )
        ]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.controller}.{self.action} [{self.http_method}]"


class Permission(AuditedModel):
    """Named, grantable capability bound to exactly one Action.

    Created inactive by discovery; an administrator opts it in.
    """

    name = models.CharField(max_length=200)
    action = models.ForeignKey(Action, on_delete=models.PROTECT, related_name="permissions")
    category = models.CharField(max_length=100, blank=True)
    description = models.CharField(max_length=500, blank=True)
    is_active = models.BooleanField(default=False)

    class Meta:
        ordering = ["category", "name"]
        constraints = [
            models.UniqueConstraint(
                fields=["name"], condition=Q(is_deleted=False), name="uniq_live_permission_name"
            ),
            models.UniqueConstraint(
                fields=["action"], condition=Q(is_deleted=False), name="uniq_live_permission_action"
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.name


class RolePermission(AuditedModel):
    """A role holding a permission; one row per (role, permission) pair."""

    role = models.ForeignKey("authentication.Role", on_delete=models.CASCADE, related_name="permission_grants")
    permission = models.ForeignKey(Permission, on_delete=models.CASCADE, related_name="role_grants")

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["role", "permission"], name="uniq_role_permission"),
        ]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.role_id} -> {self.permission_id}"


class GrantState(str, enum.Enum):
    """Lifecycle state of a direct user grant at a given instant."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    REVOKED = "revoked"
    EXPIRED = "expired"
    DELETED = "deleted"


class UserPermissionQuerySet(AuditedQuerySet):
    """Direct grant queries aware of revocation and expiry."""

    def effective(self, now=None):
        """Grants that currently confer the permission (expiry boundary inclusive)."""
        now = now or timezone.now()
        return self.filter(is_active=True, is_deleted=False, is_revoked=False).filter(
            Q(expires_on__isnull=True) | Q(expires_on__gte=now)
        )


class UserPermission(AuditedModel):
    """A direct grant to a user, with optional expiry and an explicit revoked state."""

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="permission_grants")
    permission = models.ForeignKey(Permission, on_delete=models.CASCADE, related_name="user_grants")
    expires_on = models.DateTimeField(null=True, blank=True)
    is_revoked = models.BooleanField(default=False)
    revoked_on = models.DateTimeField(null=True, blank=True)
    revoked_by = models.UUIDField(null=True, blank=True)

    objects = LiveManager.from_queryset(UserPermissionQuerySet)()
    all_objects = models.Manager.from_queryset(UserPermissionQuerySet)()

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["user", "permission"], name="uniq_user_permission"),
        ]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.user_id} -> {self.permission_id}"

    def state_at(self, now) -> GrantState:
        if self.is_deleted:
            return GrantState.DELETED
        if self.is_revoked:
            return GrantState.REVOKED
        if not self.is_active:
            return GrantState.INACTIVE
        if self.expires_on is not None and self.expires_on < now:
            return GrantState.EXPIRED
        return GrantState.ACTIVE

    @property
    def state(self) -> GrantState:
        return self.state_at(timezone.now())


class AuditAction(models.TextChoices):
    GRANT = "GRANT"
    REVOKE = "REVOKE"
    UPDATE = "UPDATE"


class AuditEntity(models.TextChoices):
    USER_PERMISSION = "USER_PERMISSION"
    ROLE_PERMISSION = "ROLE_PERMISSION"
    PERMISSION = "PERMISSION"


class PermissionAuditLog(models.Model):
    """Append-only trail of permission and grant mutations."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    action = models.CharField(max_length=20, choices=AuditAction.choices)
    entity_type = models.CharField(max_length=30, choices=AuditEntity.choices)
    entity_id = models.UUIDField()
    actor_id = models.UUIDField(null=True, blank=True)
    details = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-created_at"]


__all__ = [
    "Action",
    "AuditAction",
    "AuditEntity",
    "GrantState",
    "Permission",
    "PermissionAuditLog",
    "RolePermission",
    "UserPermission",
]
