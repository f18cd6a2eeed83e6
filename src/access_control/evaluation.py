"""Permission evaluation: who holds what, right now.

A user's effective permission set is the union of

* every permission granted to any role the user holds, where the role grant is
  active and not deleted, and
* every direct grant to the user that is currently effective (active, not
  deleted, not revoked, and not past its expiry; the expiry instant itself
  still counts).

The set is cached per user. Point checks resolve the permission first and fail
closed when it is missing, deleted or inactive; any error on the evaluation
path is logged and answered with "not held".
"""

import logging
import uuid

from django.utils import timezone

from authentication.identity import find_user_by_id, get_roles_for_user, parse_uuid
from core.errors import NotFoundError

from .cache import PermissionCache, permission_cache
from .dtos import EffectivePermissionsReport, PermissionDto, merge_permissions
from .models import Action, Permission, RolePermission, UserPermission

logger = logging.getLogger(__name__)


class PermissionEvaluator:
    """Answers authorization queries against grants, backed by the permission cache."""

    def __init__(self, cache: PermissionCache | None = None):
        self.cache = cache or permission_cache

    async def has_permission(self, user_id, permission_name: str) -> bool:
        """True when ``user_id`` holds the active permission named ``permission_name``."""
        try:
            if parse_uuid(user_id) is None or not permission_name:
                return False
            permission = await Permission.objects.filter(name=permission_name).afirst()
            if permission is None or not permission.is_active:
                logger.debug("Permission %s missing or inactive; denying", permission_name)
                return False
            return await self._holds(user_id, permission.id)
        except Exception:
            logger.exception("Permission check %s for user %s failed; denying", permission_name, user_id)
            return False

    async def has_action_permission(self, user_id, controller: str, action: str, http_method: str) -> bool:
        """Route-shape check: resolve the action triple, then its bound permission."""
        try:
            if parse_uuid(user_id) is None:
                return False
            catalog_action = await Action.objects.filter(
                controller=controller, action=action, http_method=http_method.upper()
            ).afirst()
            if catalog_action is None:
                logger.debug("No action %s.%s [%s]; denying", controller, action, http_method)
                return False
            permission = await Permission.objects.filter(action=catalog_action).afirst()
            if permission is None or not permission.is_active:
                return False
            return await self._holds(user_id, permission.id)
        except Exception:
            logger.exception(
                "Permission check %s.%s [%s] for user %s failed; denying", controller, action, http_method, user_id
            )
            return False

    async def _holds(self, user_id, permission_id: uuid.UUID) -> bool:
        return permission_id in await self.get_effective_permission_ids(user_id)

    async def get_effective_permission_ids(self, user_id) -> frozenset[uuid.UUID]:
        parsed = parse_uuid(user_id)
        if parsed is None:
            return frozenset()

        cached = await self.cache.get_permission_ids(parsed)
        if cached is not None:
            return cached

        permission_ids = await self._compute_permission_ids(parsed)
        await self.cache.set_permission_ids(parsed, permission_ids)
        return permission_ids

    async def _compute_permission_ids(self, user_id: uuid.UUID) -> frozenset[uuid.UUID]:
        user = await find_user_by_id(user_id)
        if user is None:
            return frozenset()

        role_grants = RolePermission.objects.filter(role__users=user).active()
        user_grants = UserPermission.objects.filter(user=user).effective(timezone.now())

        permission_ids = {pid async for pid in role_grants.values_list("permission_id", flat=True)}
        permission_ids.update([pid async for pid in user_grants.values_list("permission_id", flat=True)])
        return frozenset(permission_ids)

    async def get_effective_permissions(self, user_id) -> EffectivePermissionsReport:
        """Full report: role-derived, direct, and their union deduplicated by id.

        Raises ``NotFoundError`` for an unknown user.
        """
        user = await find_user_by_id(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")

        cached = await self.cache.get_effective_permissions(user.id)
        if cached is not None:
            return cached

        role_grants = RolePermission.objects.filter(role__users=user).active()
        user_grants = UserPermission.objects.filter(user=user).effective(timezone.now())

        role_permissions = await self._permission_dtos(role_grants)
        user_permissions = await self._permission_dtos(user_grants)

        report = EffectivePermissionsReport(
            user_id=user.id,
            username=user.username,
            roles=await get_roles_for_user(user),
            role_permissions=role_permissions,
            user_permissions=user_permissions,
            all_permissions=merge_permissions(role_permissions, user_permissions),
        )
        await self.cache.set_effective_permissions(user.id, report)
        return report

    @staticmethod
    async def _permission_dtos(grants) -> list[PermissionDto]:
        queryset = Permission.objects.filter(id__in=grants.values("permission_id")).select_related("action")
        return [PermissionDto.from_model(permission) async for permission in queryset]


evaluator = PermissionEvaluator()


__all__ = ["PermissionEvaluator", "evaluator"]
