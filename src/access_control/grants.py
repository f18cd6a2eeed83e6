"""Grant and revoke operations for role and user permissions.

Each (role, permission) and (user, permission) pair owns at most one row.
Granting walks that row through its states instead of inserting twins:

    absent   -> insert
    deleted  -> restore (un-delete, reactivate, fresh created stamps)
    revoked  -> clear the revocation, reapply expiry, reactivate (user grants)
    inactive -> reactivate
    active   -> update expiry in place (user grants), otherwise nothing

Direct user grant changes invalidate that user's cached permissions. Role
grant changes do not fan out to the role's members; their cached sets pick up
the change when their entry expires or is invalidated for another reason.

Batch assignment is a sequence of independent grants: earlier items stay
committed when a later one fails, and every item reports its own outcome.
"""

import logging
from datetime import datetime, timezone as dt_timezone

from asgiref.sync import sync_to_async
from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from authentication.identity import find_role, find_user_by_id, parse_uuid
from core.errors import NotFoundError

from .cache import PermissionCache, permission_cache
from .dtos import GrantOutcome, PermissionDto
from .models import AuditAction, AuditEntity, Permission, PermissionAuditLog, RolePermission, UserPermission

logger = logging.getLogger(__name__)


def _normalize_expiry(expires_on: datetime | None) -> datetime | None:
    if expires_on is not None and timezone.is_naive(expires_on):
        return timezone.make_aware(expires_on, dt_timezone.utc)
    return expires_on


def _insert_or_fetch(model, lookup: dict, values: dict):
    """Insert a grant row, or fetch the row a concurrent writer inserted first."""
    try:
        with transaction.atomic():
            return model.all_objects.create(**lookup, **values), True
    except IntegrityError:
        existing = model.all_objects.filter(**lookup).first()
        if existing is None:
            # Some other constraint failed; report it as the item's error.
            raise
        return existing, False


class GrantService:
    def __init__(self, cache: PermissionCache | None = None):
        self.cache = cache or permission_cache

    # Role grants

    async def assign_permission_to_role(self, role_id_or_name, permission_id, actor_id=None) -> bool:
        role = await self._get_role(role_id_or_name)
        return await self._grant_role(role, permission_id, actor_id)

    async def assign_permissions_to_role(self, role_id_or_name, permission_ids, actor_id=None) -> list[GrantOutcome]:
        role = await self._get_role(role_id_or_name)
        outcomes = []
        for permission_id in permission_ids:
            try:
                await self._grant_role(role, permission_id, actor_id)
                outcomes.append(GrantOutcome(permission_id, True))
            except (NotFoundError, DatabaseError) as exc:
                logger.warning("Granting %s to role %s failed: %s", permission_id, role.name, exc)
                outcomes.append(GrantOutcome(permission_id, False, str(exc)))
        return outcomes

    async def revoke_permission_from_role(self, role_id_or_name, permission_id, actor_id=None) -> bool:
        """Deactivate the role's grant; False when there is no active grant."""
        role = await self._get_role(role_id_or_name)
        grant = await RolePermission.objects.filter(
            role=role, permission_id=parse_uuid(permission_id), is_active=True
        ).afirst()
        if grant is None:
            return False

        grant.is_active = False
        grant.stamp(actor_id)
        await grant.asave(update_fields=["is_active", "modified_by", "updated_at"])
        await self._audit(AuditAction.REVOKE, AuditEntity.ROLE_PERMISSION, grant.id, actor_id, role=role.name,
                          permission_id=str(grant.permission_id))
        logger.info("Revoked permission %s from role %s by %s", grant.permission_id, role.name, actor_id)
        return True

    async def _grant_role(self, role, permission_id, actor_id) -> bool:
        permission = await self._get_permission(permission_id)
        lookup = {"role": role, "permission": permission}

        grant = await RolePermission.all_objects.filter(**lookup).afirst()
        if grant is None:
            grant, created = await sync_to_async(_insert_or_fetch)(
                RolePermission, lookup, {"created_by": actor_id, "modified_by": actor_id}
            )
            if created:
                await self._audit(AuditAction.GRANT, AuditEntity.ROLE_PERMISSION, grant.id, actor_id,
                                  role=role.name, permission=permission.name)
                logger.info("Granted %s to role %s by %s", permission.name, role.name, actor_id)
                return True

        transition = self._reactivate(grant, actor_id)
        if transition:
            await grant.asave()
            await self._audit(AuditAction.GRANT, AuditEntity.ROLE_PERMISSION, grant.id, actor_id,
                              role=role.name, permission=permission.name, transition=transition)
            logger.info("Granted %s to role %s by %s (%s)", permission.name, role.name, actor_id, transition)
        return True

    # User grants

    async def assign_permission_to_user(self, user_id, permission_id, actor_id=None, expires_on=None) -> bool:
        user = await self._get_user(user_id)
        try:
            return await self._grant_user(user, permission_id, actor_id, _normalize_expiry(expires_on))
        finally:
            await self.cache.invalidate_user(user.id)

    async def assign_permissions_to_user(
        self, user_id, permission_ids, actor_id=None, expires_on=None
    ) -> list[GrantOutcome]:
        user = await self._get_user(user_id)
        expires_on = _normalize_expiry(expires_on)
        outcomes = []
        try:
            for permission_id in permission_ids:
                try:
                    await self._grant_user(user, permission_id, actor_id, expires_on)
                    outcomes.append(GrantOutcome(permission_id, True))
                except (NotFoundError, DatabaseError) as exc:
                    logger.warning("Granting %s to user %s failed: %s", permission_id, user.id, exc)
                    outcomes.append(GrantOutcome(permission_id, False, str(exc)))
        finally:
            await self.cache.invalidate_user(user.id)
        return outcomes

    async def revoke_permission_from_user(self, user_id, permission_id, actor_id=None) -> bool:
        """Mark the user's grant revoked; False when nothing was left to revoke."""
        user = await self._get_user(user_id)
        try:
            grant = await UserPermission.objects.filter(
                user=user, permission_id=parse_uuid(permission_id), is_revoked=False
            ).afirst()
            if grant is None:
                return False

            grant.is_active = False
            grant.is_revoked = True
            grant.revoked_on = timezone.now()
            grant.revoked_by = actor_id
            grant.stamp(actor_id)
            await grant.asave()
            await self._audit(AuditAction.REVOKE, AuditEntity.USER_PERMISSION, grant.id, actor_id,
                              user=str(user.id), permission_id=str(grant.permission_id))
            logger.info("Revoked permission %s from user %s by %s", grant.permission_id, user.id, actor_id)
            return True
        finally:
            await self.cache.invalidate_user(user.id)

    async def _grant_user(self, user, permission_id, actor_id, expires_on) -> bool:
        permission = await self._get_permission(permission_id)
        lookup = {"user": user, "permission": permission}
        details = {
            "user": str(user.id),
            "permission": permission.name,
            "expires_on": expires_on.isoformat() if expires_on else None,
        }

        grant = await UserPermission.all_objects.filter(**lookup).afirst()
        if grant is None:
            grant, created = await sync_to_async(_insert_or_fetch)(
                UserPermission,
                lookup,
                {"expires_on": expires_on, "created_by": actor_id, "modified_by": actor_id},
            )
            if created:
                await self._audit(AuditAction.GRANT, AuditEntity.USER_PERMISSION, grant.id, actor_id, **details)
                logger.info("Granted %s to user %s by %s", permission.name, user.id, actor_id)
                return True

        was_revoked = grant.is_revoked
        if was_revoked:
            grant.is_revoked = False
            grant.revoked_on = None
            grant.revoked_by = None
        transition = self._reactivate(grant, actor_id)
        if was_revoked and transition == "reactivated":
            transition = "unrevoked"
        audit_action = AuditAction.GRANT
        if transition is None:
            if grant.expires_on == expires_on:
                return True
            transition = "expiry updated"
            audit_action = AuditAction.UPDATE

        grant.expires_on = expires_on
        grant.stamp(actor_id)
        await grant.asave()
        await self._audit(audit_action, AuditEntity.USER_PERMISSION, grant.id, actor_id,
                          transition=transition, **details)
        logger.info("Granted %s to user %s by %s (%s)", permission.name, user.id, actor_id, transition)
        return True

    # Permission switch

    async def set_permission_active(self, permission_id, is_active: bool, actor_id=None) -> PermissionDto:
        permission = await self._get_permission(permission_id)
        if permission.is_active != is_active:
            permission.is_active = is_active
            permission.stamp(actor_id)
            await permission.asave(update_fields=["is_active", "modified_by", "updated_at"])
            await self._audit(AuditAction.UPDATE, AuditEntity.PERMISSION, permission.id, actor_id,
                              permission=permission.name, is_active=is_active)
            logger.info("Permission %s set active=%s by %s", permission.name, is_active, actor_id)
        return PermissionDto.from_model(permission)

    # Helpers

    @staticmethod
    def _reactivate(grant, actor_id) -> str | None:
        """Move a deleted or inactive grant back to active; returns the transition taken."""
        if grant.is_deleted:
            now = timezone.now()
            grant.is_deleted = False
            grant.is_active = True
            grant.created_at = now
            grant.created_by = actor_id
            grant.stamp(actor_id)
            return "restored"
        if not grant.is_active:
            grant.is_active = True
            grant.stamp(actor_id)
            return "reactivated"
        return None

    @staticmethod
    async def _get_role(role_id_or_name):
        role = await find_role(role_id_or_name)
        if role is None:
            raise NotFoundError(f"Role {role_id_or_name} not found")
        return role

    @staticmethod
    async def _get_user(user_id):
        user = await find_user_by_id(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return user

    @staticmethod
    async def _get_permission(permission_id) -> Permission:
        parsed = parse_uuid(permission_id)
        permission = None
        if parsed is not None:
            permission = await Permission.objects.select_related("action").filter(id=parsed).afirst()
        if permission is None:
            raise NotFoundError(f"Permission {permission_id} not found")
        return permission

    @staticmethod
    async def _audit(action, entity_type, entity_id, actor_id, **details) -> None:
        await PermissionAuditLog.objects.acreate(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            actor_id=actor_id,
            details=details,
        )


grant_service = GrantService()


__all__ = ["GrantService", "grant_service"]
