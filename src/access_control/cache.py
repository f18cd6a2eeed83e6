"""Per-user memoization of effective permissions.

Two independent entries per user live in the ``permissions`` cache alias:
the raw permission-id set (``perm:<user_id>``) and the full report
(``effperm:<user_id>``). Both expire a fixed TTL after they were written.
The alias is in-process, so invalidation is only visible to the instance that
performed it; other instances converge within the TTL.
"""

import uuid

from django.conf import settings
from django.core.cache import caches

PERMISSION_IDS_PREFIX = "perm:"
EFFECTIVE_PERMISSIONS_PREFIX = "effperm:"


class PermissionCache:
    """Thin async wrapper over a Django cache alias."""

    def __init__(self, alias: str | None = None, ttl: int | None = None):
        self._alias = alias
        self._ttl = ttl

    @property
    def alias(self) -> str:
        return self._alias or settings.PERMISSION_CACHE_ALIAS

    @property
    def ttl(self) -> int:
        return self._ttl if self._ttl is not None else settings.PERMISSION_CACHE_TTL

    @property
    def backend(self):
        return caches[self.alias]

    @staticmethod
    def permission_ids_key(user_id) -> str:
        return f"{PERMISSION_IDS_PREFIX}{user_id}"

    @staticmethod
    def effective_permissions_key(user_id) -> str:
        return f"{EFFECTIVE_PERMISSIONS_PREFIX}{user_id}"

    async def get_permission_ids(self, user_id) -> frozenset[uuid.UUID] | None:
        return await self.backend.aget(self.permission_ids_key(user_id))

    async def set_permission_ids(self, user_id, permission_ids) -> None:
        await self.backend.aset(self.permission_ids_key(user_id), frozenset(permission_ids), self.ttl)

    async def get_effective_permissions(self, user_id):
        return await self.backend.aget(self.effective_permissions_key(user_id))

    async def set_effective_permissions(self, user_id, report) -> None:
        await self.backend.aset(self.effective_permissions_key(user_id), report, self.ttl)

    async def invalidate_user(self, user_id) -> None:
        """Drop both entries for ``user_id``."""
        await self.backend.adelete_many(
            [self.permission_ids_key(user_id), self.effective_permissions_key(user_id)]
        )

    def clear(self) -> None:
        self.backend.clear()


permission_cache = PermissionCache()


__all__ = ["PermissionCache", "permission_cache"]
