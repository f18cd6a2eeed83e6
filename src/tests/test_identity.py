"""Async identity lookups used by the permission engine."""

import uuid

from django.test import TestCase

from authentication import identity
from authentication.models import Role
from tests.utils import create_user


class IdentityLookupTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.staff = Role.objects.create(name="Staff")
        cls.admin = Role.objects.create(name="Admin")
        cls.user = create_user("Alice", roles=[cls.staff, cls.admin])
        cls.deleted = create_user("bob", is_deleted=True)

    def test_parse_uuid(self):
        value = uuid.uuid4()

        self.assertEqual(identity.parse_uuid(value), value)
        self.assertEqual(identity.parse_uuid(str(value)), value)
        self.assertIsNone(identity.parse_uuid("nope"))
        self.assertIsNone(identity.parse_uuid(None))

    async def test_find_user_by_id_skips_deleted(self):
        self.assertEqual((await identity.find_user_by_id(str(self.user.id))).username, "Alice")
        self.assertIsNone(await identity.find_user_by_id(self.deleted.id))
        self.assertIsNone(await identity.find_user_by_id("not-a-uuid"))

    async def test_find_user_by_name_is_case_insensitive(self):
        self.assertEqual((await identity.find_user_by_name("alice")).id, self.user.id)
        self.assertIsNone(await identity.find_user_by_name("bob"))
        self.assertIsNone(await identity.find_user_by_name(""))

    async def test_roles_for_user_are_sorted_names(self):
        self.assertEqual(await identity.get_roles_for_user(self.user), ["Admin", "Staff"])

    async def test_find_role_by_id_or_name(self):
        self.assertEqual((await identity.find_role(self.staff.id)).name, "Staff")
        self.assertEqual((await identity.find_role("staff")).id, self.staff.id)
        self.assertIsNone(await identity.find_role(uuid.uuid4()))
        self.assertIsNone(await identity.find_role_by_name(""))

    async def test_find_roles_by_names(self):
        roles = await identity.find_roles_by_names(["ADMIN", "staff", "ghost"])

        self.assertEqual(sorted(role.name for role in roles), ["Admin", "Staff"])
        self.assertEqual(await identity.find_roles_by_names([]), [])
