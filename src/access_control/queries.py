"""Read-side queries over the permission catalog and grant tables."""

from django.utils import timezone

from authentication.identity import find_role, find_user_by_id, parse_uuid
from core.errors import NotFoundError

from .dtos import PermissionDto, UserPermissionDto
from .models import Permission, RolePermission, UserPermission


class PermissionQueryService:
    @staticmethod
    def _permissions():
        return Permission.objects.select_related("action").order_by("category", "name")

    async def list_permissions(self) -> list[PermissionDto]:
        return [PermissionDto.from_model(permission) async for permission in self._permissions()]

    async def get_permission(self, permission_id) -> PermissionDto:
        parsed = parse_uuid(permission_id)
        permission = await self._permissions().filter(id=parsed).afirst() if parsed else None
        if permission is None:
            raise NotFoundError(f"Permission {permission_id} not found")
        return PermissionDto.from_model(permission)

    async def get_permissions_by_category(self, category: str) -> list[PermissionDto]:
        queryset = self._permissions().filter(category__iexact=category)
        return [PermissionDto.from_model(permission) async for permission in queryset]

    async def get_role_permissions(self, role_id_or_name) -> list[PermissionDto]:
        """Permissions the role currently holds through an active grant."""
        role = await find_role(role_id_or_name)
        if role is None:
            raise NotFoundError(f"Role {role_id_or_name} not found")
        grants = RolePermission.objects.filter(role=role).active()
        queryset = self._permissions().filter(id__in=grants.values("permission_id"))
        return [PermissionDto.from_model(permission) async for permission in queryset]

    async def get_user_permissions(self, user_id) -> list[UserPermissionDto]:
        """Direct grants of the user in every state except deleted."""
        user = await find_user_by_id(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")

        now = timezone.now()
        queryset = (
            UserPermission.objects.filter(user=user, permission__is_deleted=False)
            .select_related("permission__action")
            .order_by("permission__category", "permission__name")
        )
        return [
            UserPermissionDto(
                id=grant.id,
                permission=PermissionDto.from_model(grant.permission),
                state=grant.state_at(now).value,
                expires_on=grant.expires_on,
                is_revoked=grant.is_revoked,
                revoked_on=grant.revoked_on,
                revoked_by=grant.revoked_by,
                granted_by=grant.created_by,
                granted_on=grant.created_at,
            )
            async for grant in queryset
        ]


permission_queries = PermissionQueryService()


__all__ = ["PermissionQueryService", "permission_queries"]
