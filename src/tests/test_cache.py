"""Per-user permission cache: keys, expiry and invalidation."""

import time
from unittest import mock

from asgiref.sync import sync_to_async
from django.core.cache import caches
from django.test import TestCase

from access_control.cache import PermissionCache, permission_cache
from access_control.discovery import ActionDiscoveryService
from access_control.evaluation import evaluator
from access_control.grants import grant_service
from access_control.models import Permission, RolePermission, UserPermission
from authentication.models import Role
from tests.utils import create_permission, create_user


def clock_at(offset_seconds: float):
    """Patch the local-memory cache clock to read ``offset_seconds`` from now."""
    frozen = time.time() + offset_seconds
    fake_time = mock.Mock()
    fake_time.time.return_value = frozen
    return mock.patch("django.core.cache.backends.locmem.time", fake_time)


class PermissionCacheTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.role = Role.objects.create(name="Clerks")
        cls.user = create_user("clerk", roles=[cls.role])
        cls.read = create_permission("Ledgers", "GetAll")
        cls.write = create_permission("Ledgers", "Create", http_method="POST")

    def setUp(self):
        caches["permissions"].clear()

    async def test_ids_are_cached_under_user_key(self):
        await RolePermission.objects.acreate(role=self.role, permission=self.read)

        await evaluator.has_permission(self.user.id, "Ledgers.GetAll")

        cached = await caches["permissions"].aget(f"perm:{self.user.id}")
        self.assertEqual(cached, frozenset({self.read.id}))

    async def test_report_is_cached_under_separate_key(self):
        await evaluator.get_effective_permissions(self.user.id)

        self.assertIsNotNone(await caches["permissions"].aget(f"effperm:{self.user.id}"))
        self.assertIsNone(await caches["permissions"].aget(f"perm:{self.user.id}"))

    async def test_out_of_band_grant_is_visible_after_ttl(self):
        self.assertFalse(await evaluator.has_permission(self.user.id, "Ledgers.Create"))
        await UserPermission.objects.acreate(user=self.user, permission=self.write)

        self.assertFalse(await evaluator.has_permission(self.user.id, "Ledgers.Create"))
        with clock_at(599):
            self.assertFalse(await evaluator.has_permission(self.user.id, "Ledgers.Create"))
        with clock_at(601):
            self.assertTrue(await evaluator.has_permission(self.user.id, "Ledgers.Create"))

    async def test_role_revocation_is_bounded_by_ttl(self):
        await grant_service.assign_permission_to_role(self.role.id, self.read.id)
        self.assertTrue(await evaluator.has_permission(self.user.id, "Ledgers.GetAll"))

        await grant_service.revoke_permission_from_role(self.role.id, self.read.id)

        self.assertTrue(await evaluator.has_permission(self.user.id, "Ledgers.GetAll"))
        with clock_at(601):
            self.assertFalse(await evaluator.has_permission(self.user.id, "Ledgers.GetAll"))

    async def test_direct_grant_is_visible_immediately(self):
        self.assertFalse(await evaluator.has_permission(self.user.id, "Ledgers.Create"))

        await grant_service.assign_permission_to_user(self.user.id, self.write.id)

        self.assertTrue(await evaluator.has_permission(self.user.id, "Ledgers.Create"))

    async def test_cached_grant_survives_out_of_band_delete(self):
        await grant_service.assign_permission_to_user(self.user.id, self.write.id)
        self.assertTrue(await evaluator.has_permission(self.user.id, "Ledgers.Create"))

        await UserPermission.all_objects.filter(user=self.user).adelete()

        self.assertTrue(await evaluator.has_permission(self.user.id, "Ledgers.Create"))
        with clock_at(601):
            self.assertFalse(await evaluator.has_permission(self.user.id, "Ledgers.Create"))

    async def test_deactivation_is_visible_immediately(self):
        await RolePermission.objects.acreate(role=self.role, permission=self.read)
        self.assertTrue(await evaluator.has_permission(self.user.id, "Ledgers.GetAll"))

        await grant_service.set_permission_active(self.read.id, False)

        self.assertFalse(await evaluator.has_permission(self.user.id, "Ledgers.GetAll"))

    async def test_invalidate_user_drops_both_entries(self):
        cache = PermissionCache()
        await cache.set_permission_ids(self.user.id, [self.read.id])
        await cache.set_effective_permissions(self.user.id, {"stale": True})

        await cache.invalidate_user(self.user.id)

        self.assertIsNone(await cache.get_permission_ids(self.user.id))
        self.assertIsNone(await cache.get_effective_permissions(self.user.id))

    async def test_custom_ttl(self):
        cache = PermissionCache(ttl=5)
        await cache.set_permission_ids(self.user.id, [self.read.id])

        with clock_at(4):
            self.assertEqual(await cache.get_permission_ids(self.user.id), frozenset({self.read.id}))
        with clock_at(6):
            self.assertIsNone(await cache.get_permission_ids(self.user.id))


class DiscoveredPermissionFlowTests(TestCase):
    def setUp(self):
        caches["permissions"].clear()

    async def test_discovered_permission_must_be_activated_and_granted(self):
        role = await Role.objects.acreate(name="Staff")
        user = await sync_to_async(create_user)("operator", roles=[role])
        await ActionDiscoveryService().discover_and_register()
        permission = await Permission.objects.aget(name="Users.GetAll")

        self.assertFalse(await evaluator.has_action_permission(user.id, "Users", "GetAll", "GET"))

        await grant_service.assign_permission_to_role(role.id, permission.id)
        await caches["permissions"].aclear()
        self.assertFalse(await evaluator.has_action_permission(user.id, "Users", "GetAll", "GET"))

        await grant_service.set_permission_active(permission.id, True)
        self.assertTrue(await evaluator.has_action_permission(user.id, "Users", "GetAll", "GET"))
        self.assertTrue(await evaluator.has_permission(user.id, "Users.GetAll"))
        self.assertFalse(await evaluator.has_permission(user.id, "Users.Delete"))

        await grant_service.revoke_permission_from_role("Staff", permission.id)
        self.assertTrue(await evaluator.has_permission(user.id, "Users.GetAll"))
        await permission_cache.invalidate_user(user.id)
        self.assertFalse(await evaluator.has_permission(user.id, "Users.GetAll"))
