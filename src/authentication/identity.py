"""Async identity lookups consumed by the permission engine and admin services.

Unknown users and roles resolve to ``None`` (or an empty list) rather than
raising, so callers on the authorization path can fail closed.
"""

import uuid
from typing import Iterable

from django.core.exceptions import ValidationError

from .models import Role, User


def parse_uuid(value) -> uuid.UUID | None:
    """Return ``value`` as a UUID, or ``None`` when it is not one."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None


async def find_user_by_id(user_id) -> User | None:
    """Live (not soft-deleted) user with the given id."""
    parsed = parse_uuid(user_id)
    if parsed is None:
        return None
    return await User.objects.filter(id=parsed, is_deleted=False).afirst()


async def find_user_by_name(username: str) -> User | None:
    if not username:
        return None
    return await User.objects.filter(username__iexact=username, is_deleted=False).afirst()


async def get_roles_for_user(user: User) -> list[str]:
    """Names of every role the user currently holds."""
    return [name async for name in user.roles.order_by("name").values_list("name", flat=True)]


async def find_role_by_name(name: str) -> Role | None:
    if not name:
        return None
    return await Role.objects.filter(name__iexact=name).afirst()


async def find_role_by_id(role_id) -> Role | None:
    parsed = parse_uuid(role_id)
    if parsed is None:
        return None
    try:
        return await Role.objects.aget(id=parsed)
    except (Role.DoesNotExist, ValidationError):
        return None


async def find_role(id_or_name) -> Role | None:
    """Resolve a role from either its id or its name."""
    if parse_uuid(id_or_name) is not None:
        role = await find_role_by_id(id_or_name)
        if role is not None:
            return role
    return await find_role_by_name(str(id_or_name))


async def find_roles_by_names(names: Iterable[str]) -> list[Role]:
    wanted = {name.lower() for name in names if name}
    if not wanted:
        return []
    return [role async for role in Role.objects.all() if role.name.lower() in wanted]


__all__ = [
    "find_role",
    "find_role_by_id",
    "find_role_by_name",
    "find_roles_by_names",
    "find_user_by_id",
    "find_user_by_name",
    "get_roles_for_user",
    "parse_uuid",
]
