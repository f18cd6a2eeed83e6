"""Plain data carriers returned by the permission engine."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field


@dataclass(frozen=True)
class PermissionDto:
    """A permission joined with the action it is bound to."""

    id: uuid.UUID
    name: str
    description: str
    category: str
    is_active: bool
    action_id: uuid.UUID
    controller: str
    action: str
    http_method: str
    route: str

    @classmethod
    def from_model(cls, permission) -> "PermissionDto":
        """Build from a Permission whose ``action`` is already loaded."""
        action = permission.action
        return cls(
            id=permission.id,
            name=permission.name,
            description=permission.description,
            category=permission.category,
            is_active=permission.is_active,
            action_id=action.id,
            controller=action.controller,
            action=action.action,
            http_method=action.http_method,
            route=action.route,
        )


@dataclass(frozen=True)
class UserPermissionDto:
    """A direct user grant with its lifecycle state."""

    id: uuid.UUID
    permission: PermissionDto
    state: str
    expires_on: object = None
    is_revoked: bool = False
    revoked_on: object = None
    revoked_by: uuid.UUID | None = None
    granted_by: uuid.UUID | None = None
    granted_on: object = None


@dataclass
class EffectivePermissionsReport:
    user_id: uuid.UUID
    username: str
    roles: list[str] = field(default_factory=list)
    role_permissions: list[PermissionDto] = field(default_factory=list)
    user_permissions: list[PermissionDto] = field(default_factory=list)
    all_permissions: list[PermissionDto] = field(default_factory=list)


@dataclass(frozen=True)
class GrantOutcome:
    """Result of one item of a batch grant."""

    permission_id: uuid.UUID
    success: bool
    error: str | None = None


def merge_permissions(*groups: list[PermissionDto]) -> list[PermissionDto]:
    """Concatenate groups keeping the first occurrence of each permission id."""
    seen: set[uuid.UUID] = set()
    merged: list[PermissionDto] = []
    for group in groups:
        for dto in group:
            if dto.id in seen:
                continue
            seen.add(dto.id)
            merged.append(dto)
    return merged


__all__ = [
    "EffectivePermissionsReport",
    "GrantOutcome",
    "PermissionDto",
    "UserPermissionDto",
    "merge_permissions",
]
