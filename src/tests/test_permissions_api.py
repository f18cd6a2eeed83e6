"""Permission administration endpoints."""

import uuid

from django.core.cache import caches
from django.test import TestCase
from rest_framework.test import APIClient

from access_control.models import Action, Permission, RolePermission, UserPermission
from core.exceptions import FORBIDDEN_MESSAGE
from tests.utils import FakeRedisMixin, auth_client, create_permission, create_user, seed_roles

BASE_URL = "/api/v1/permissions/"


class PermissionApiTestCase(FakeRedisMixin, TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.roles = seed_roles()
        cls.admin = create_user("root", roles=[cls.roles["SuperAdmin"]])
        cls.member = create_user("member", roles=[cls.roles["User"]])

    def setUp(self):
        caches["permissions"].clear()
        self.client_admin = auth_client(self.admin)


class PermissionAccessTests(PermissionApiTestCase):
    def test_member_is_forbidden(self):
        response = auth_client(self.member).get(BASE_URL)

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["errors"], [FORBIDDEN_MESSAGE])

    def test_anonymous_is_forbidden(self):
        response = APIClient().get(BASE_URL)

        self.assertEqual(response.status_code, 403)

    def test_developer_is_allowed(self):
        developer = create_user("dev", roles=[self.roles["Developer"]])

        response = auth_client(developer).get(BASE_URL)

        self.assertEqual(response.status_code, 200)


class PermissionCatalogApiTests(PermissionApiTestCase):
    def test_sync_registers_routed_actions(self):
        response = self.client_admin.post(f"{BASE_URL}sync/")

        self.assertEqual(response.status_code, 200)
        report = response.json()["data"]
        self.assertIn("Pools.List [GET]", report["created"])
        self.assertEqual(report["failed"], {})
        self.assertFalse(Permission.objects.get(name="Pools.List").is_active)

    def test_sync_with_prune_deactivates_stale_actions(self):
        Action.objects.create(controller="Legacy", action="Export", http_method="GET")

        response = self.client_admin.post(f"{BASE_URL}sync/?prune=true")

        self.assertEqual(response.json()["data"]["deactivated"], ["Legacy.Export [GET]"])

    def test_list_detail_and_category(self):
        permission = create_permission("Reports", "GetAll")
        create_permission("Exports", "Run", is_active=False)

        listed = self.client_admin.get(BASE_URL).json()["data"]
        detail = self.client_admin.get(f"{BASE_URL}{permission.id}/").json()["data"]
        category = self.client_admin.get(f"{BASE_URL}category/reports/").json()["data"]

        self.assertEqual([p["name"] for p in listed], ["Exports.Run", "Reports.GetAll"])
        self.assertEqual(detail["controller"], "Reports")
        self.assertEqual(detail["http_method"], "GET")
        self.assertEqual([p["name"] for p in category], ["Reports.GetAll"])

    def test_unknown_permission_is_404(self):
        response = self.client_admin.get(f"{BASE_URL}{uuid.uuid4()}/")

        self.assertEqual(response.status_code, 404)
        self.assertIsNone(response.json()["data"])

    def test_patch_activates_permission(self):
        permission = create_permission("Reports", "GetAll", is_active=False)

        response = self.client_admin.patch(f"{BASE_URL}{permission.id}/", {"is_active": True}, format="json")

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["data"]["is_active"])
        permission.refresh_from_db()
        self.assertTrue(permission.is_active)
        self.assertEqual(permission.modified_by, self.admin.id)

    def test_actions_are_listed(self):
        create_permission("Reports", "GetAll")

        data = self.client_admin.get(f"{BASE_URL}actions/").json()["data"]

        self.assertEqual([(a["controller"], a["action"]) for a in data], [("Reports", "GetAll")])


class RoleGrantApiTests(PermissionApiTestCase):
    def test_batch_grant_reports_each_item(self):
        permission = create_permission("Reports", "GetAll")
        missing = uuid.uuid4()

        response = self.client_admin.post(
            f"{BASE_URL}roles/Staff/", {"permission_ids": [str(permission.id), str(missing)]}, format="json"
        )

        self.assertEqual(response.status_code, 200)
        outcomes = response.json()["data"]
        self.assertEqual([o["success"] for o in outcomes], [True, False])
        self.assertIsNone(outcomes[0]["error"])
        self.assertTrue(RolePermission.objects.filter(role=self.roles["Staff"], permission=permission).exists())

    def test_role_permissions_by_id_or_name(self):
        permission = create_permission("Reports", "GetAll")
        RolePermission.objects.create(role=self.roles["Staff"], permission=permission)

        by_name = self.client_admin.get(f"{BASE_URL}roles/staff/").json()["data"]
        by_id = self.client_admin.get(f"{BASE_URL}roles/{self.roles['Staff'].id}/").json()["data"]

        self.assertEqual([p["name"] for p in by_name], ["Reports.GetAll"])
        self.assertEqual(by_name, by_id)

    def test_unknown_role_is_404(self):
        response = self.client_admin.get(f"{BASE_URL}roles/Ghosts/")

        self.assertEqual(response.status_code, 404)

    def test_revoke_then_revoke_again(self):
        permission = create_permission("Reports", "GetAll")
        RolePermission.objects.create(role=self.roles["Staff"], permission=permission)
        url = f"{BASE_URL}roles/Staff/{permission.id}/"

        self.assertEqual(self.client_admin.delete(url).status_code, 204)
        self.assertEqual(self.client_admin.delete(url).status_code, 404)
        self.assertFalse(RolePermission.all_objects.get(permission=permission).is_active)


class UserGrantApiTests(PermissionApiTestCase):
    def test_grant_list_and_revoke(self):
        permission = create_permission("Reports", "GetAll")
        url = f"{BASE_URL}users/{self.member.id}/"

        granted = self.client_admin.post(
            url,
            {"permission_ids": [str(permission.id)], "expires_on": "2099-01-01T00:00:00Z"},
            format="json",
        )
        self.assertEqual(granted.status_code, 200)
        self.assertTrue(granted.json()["data"][0]["success"])

        listed = self.client_admin.get(url).json()["data"]
        self.assertEqual(listed[0]["state"], "active")
        self.assertEqual(listed[0]["granted_by"], str(self.admin.id))

        revoked = self.client_admin.delete(f"{url}{permission.id}/")
        self.assertEqual(revoked.status_code, 204)
        grant = UserPermission.all_objects.get(user=self.member)
        self.assertTrue(grant.is_revoked)
        self.assertEqual(grant.revoked_by, self.admin.id)

        listed = self.client_admin.get(url).json()["data"]
        self.assertEqual(listed[0]["state"], "revoked")

    def test_revoke_missing_grant_is_404(self):
        permission = create_permission("Reports", "GetAll")

        response = self.client_admin.delete(f"{BASE_URL}users/{self.member.id}/{permission.id}/")

        self.assertEqual(response.status_code, 404)

    def test_effective_permissions(self):
        role_permission = create_permission("Reports", "GetAll")
        direct_permission = create_permission("Reports", "Export")
        RolePermission.objects.create(role=self.roles["User"], permission=role_permission)
        UserPermission.objects.create(user=self.member, permission=direct_permission)

        data = self.client_admin.get(f"{BASE_URL}users/{self.member.id}/effective/").json()["data"]

        self.assertEqual(data["username"], "member")
        self.assertEqual(data["roles"], ["User"])
        self.assertEqual(
            sorted(p["name"] for p in data["all_permissions"]), ["Reports.Export", "Reports.GetAll"]
        )

    def test_effective_permissions_of_unknown_user_is_404(self):
        response = self.client_admin.get(f"{BASE_URL}users/{uuid.uuid4()}/effective/")

        self.assertEqual(response.status_code, 404)
