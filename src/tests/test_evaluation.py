"""Permission evaluation against role and direct grants."""

import uuid
from datetime import timedelta
from unittest import mock

from django.core.cache import caches
from django.test import TestCase
from django.utils import timezone

from access_control.evaluation import PermissionEvaluator, evaluator
from access_control.models import RolePermission, UserPermission
from authentication.models import Role
from core.errors import NotFoundError
from tests.utils import create_permission, create_user


class EvaluationTestCase(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.role = Role.objects.create(name="Auditors")
        cls.user = create_user("auditor", roles=[cls.role])
        cls.list_widgets = create_permission("Widgets", "GetAll")
        cls.create_widget = create_permission("Widgets", "Create", http_method="POST")
        cls.export_widgets = create_permission("Widgets", "Export")

    def setUp(self):
        caches["permissions"].clear()


class HasPermissionTests(EvaluationTestCase):
    async def test_never_granted_is_denied(self):
        self.assertFalse(await evaluator.has_permission(self.user.id, "Widgets.GetAll"))

    async def test_role_grant_is_allowed(self):
        await RolePermission.objects.acreate(role=self.role, permission=self.list_widgets)

        self.assertTrue(await evaluator.has_permission(self.user.id, "Widgets.GetAll"))
        self.assertTrue(await evaluator.has_permission(str(self.user.id), "Widgets.GetAll"))

    async def test_inactive_role_grant_is_denied(self):
        await RolePermission.objects.acreate(role=self.role, permission=self.list_widgets, is_active=False)

        self.assertFalse(await evaluator.has_permission(self.user.id, "Widgets.GetAll"))

    async def test_direct_grant_is_allowed(self):
        await UserPermission.objects.acreate(user=self.user, permission=self.create_widget)

        self.assertTrue(await evaluator.has_permission(self.user.id, "Widgets.Create"))

    async def test_expired_direct_grant_is_denied(self):
        await UserPermission.objects.acreate(
            user=self.user, permission=self.create_widget, expires_on=timezone.now() - timedelta(minutes=1)
        )

        self.assertFalse(await evaluator.has_permission(self.user.id, "Widgets.Create"))

    async def test_expiry_instant_still_counts(self):
        instant = timezone.now().replace(microsecond=0) + timedelta(hours=1)
        await UserPermission.objects.acreate(user=self.user, permission=self.create_widget, expires_on=instant)

        with mock.patch("django.utils.timezone.now", return_value=instant):
            self.assertTrue(await evaluator.has_permission(self.user.id, "Widgets.Create"))

        await caches["permissions"].aclear()
        with mock.patch("django.utils.timezone.now", return_value=instant + timedelta(seconds=1)):
            self.assertFalse(await evaluator.has_permission(self.user.id, "Widgets.Create"))

    async def test_revoked_direct_grant_is_denied(self):
        await UserPermission.objects.acreate(
            user=self.user, permission=self.create_widget, is_revoked=True, is_active=False
        )

        self.assertFalse(await evaluator.has_permission(self.user.id, "Widgets.Create"))

    async def test_inactive_permission_is_denied_despite_grant(self):
        await RolePermission.objects.acreate(role=self.role, permission=self.list_widgets)
        self.assertTrue(await evaluator.has_permission(self.user.id, "Widgets.GetAll"))

        self.list_widgets.is_active = False
        await self.list_widgets.asave(update_fields=["is_active"])

        self.assertFalse(await evaluator.has_permission(self.user.id, "Widgets.GetAll"))

    async def test_unknown_permission_is_denied(self):
        self.assertFalse(await evaluator.has_permission(self.user.id, "Widgets.Nope"))
        self.assertFalse(await evaluator.has_permission(self.user.id, ""))

    async def test_unknown_or_malformed_user_is_denied(self):
        await RolePermission.objects.acreate(role=self.role, permission=self.list_widgets)

        self.assertFalse(await evaluator.has_permission("not-a-uuid", "Widgets.GetAll"))
        self.assertFalse(await evaluator.has_permission(uuid.uuid4(), "Widgets.GetAll"))
        self.assertFalse(await evaluator.has_permission(None, "Widgets.GetAll"))

    async def test_deleted_user_is_denied(self):
        await RolePermission.objects.acreate(role=self.role, permission=self.list_widgets)
        self.user.is_deleted = True
        await self.user.asave(update_fields=["is_deleted"])

        self.assertFalse(await evaluator.has_permission(self.user.id, "Widgets.GetAll"))

    async def test_evaluation_error_is_denied(self):
        await RolePermission.objects.acreate(role=self.role, permission=self.list_widgets)

        with mock.patch.object(
            PermissionEvaluator, "get_effective_permission_ids", side_effect=RuntimeError("cache down")
        ):
            with self.assertLogs("access_control.evaluation", level="ERROR"):
                allowed = await evaluator.has_permission(self.user.id, "Widgets.GetAll")

        self.assertFalse(allowed)


class HasActionPermissionTests(EvaluationTestCase):
    async def test_route_shape_resolves_bound_permission(self):
        await RolePermission.objects.acreate(role=self.role, permission=self.create_widget)

        self.assertTrue(await evaluator.has_action_permission(self.user.id, "Widgets", "Create", "post"))
        self.assertFalse(await evaluator.has_action_permission(self.user.id, "Widgets", "Create", "GET"))

    async def test_unknown_action_is_denied(self):
        self.assertFalse(await evaluator.has_action_permission(self.user.id, "Gadgets", "List", "GET"))


class EffectivePermissionsTests(EvaluationTestCase):
    async def test_report_unions_role_and_direct_grants(self):
        await RolePermission.objects.acreate(role=self.role, permission=self.list_widgets)
        await RolePermission.objects.acreate(role=self.role, permission=self.create_widget)
        await UserPermission.objects.acreate(user=self.user, permission=self.create_widget)
        await UserPermission.objects.acreate(user=self.user, permission=self.export_widgets)

        report = await evaluator.get_effective_permissions(self.user.id)

        self.assertEqual(report.username, "auditor")
        self.assertEqual(report.roles, ["Auditors"])
        self.assertEqual({p.name for p in report.role_permissions}, {"Widgets.GetAll", "Widgets.Create"})
        self.assertEqual({p.name for p in report.user_permissions}, {"Widgets.Create", "Widgets.Export"})
        self.assertEqual(len(report.all_permissions), 3)
        self.assertEqual(
            {p.name for p in report.all_permissions}, {"Widgets.GetAll", "Widgets.Create", "Widgets.Export"}
        )

    async def test_report_skips_ineffective_direct_grants(self):
        await UserPermission.objects.acreate(
            user=self.user, permission=self.export_widgets, expires_on=timezone.now() - timedelta(days=1)
        )

        report = await evaluator.get_effective_permissions(self.user.id)

        self.assertEqual(report.user_permissions, [])
        self.assertEqual(report.all_permissions, [])

    async def test_effective_ids_for_unknown_user_are_empty(self):
        self.assertEqual(await evaluator.get_effective_permission_ids(uuid.uuid4()), frozenset())

    async def test_report_for_unknown_user_raises(self):
        with self.assertRaises(NotFoundError):
            await evaluator.get_effective_permissions(uuid.uuid4())
