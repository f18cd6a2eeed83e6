"""Tests for authentication flows (register, login, refresh, logout, profile)."""

from __future__ import annotations

import time
from unittest import mock

import jwt
from django.conf import settings
from django.db import DatabaseError
from django.test import TestCase
from rest_framework.test import APIClient

from authentication.models import UserType
from authentication.services import BlocklistUnavailable, TokenService
from tests.utils import FakeRedisMixin, create_user, seed_roles

REGISTER_URL = "/api/v1/auth/register/"
LOGIN_URL = "/api/v1/auth/login/"
REFRESH_URL = "/api/v1/auth/refresh/"
LOGOUT_URL = "/api/v1/auth/logout/"
ME_URL = "/api/v1/auth/me/"


class AuthFlowTests(FakeRedisMixin, TestCase):
    """End-to-end tests covering auth endpoints and token revocation."""

    @classmethod
    def setUpTestData(cls):
        cls.roles = seed_roles()
        cls.password = "StrongPass123"
        cls.user = create_user("member", cls.password, roles=[cls.roles["User"]])

    def setUp(self):
        self.api_client: APIClient = APIClient()

    def _login(self, username=None, password=None):
        return self.api_client.post(
            LOGIN_URL,
            {"username": username or self.user.username, "password": password or self.password},
            format="json",
        )

    def test_register_assigns_role_for_user_type(self):
        payload = {
            "username": "newstaff",
            "password": "NewPass123!",
            "repeat_password": "NewPass123!",
            "full_name": "New Staff",
            "user_type": UserType.STAFF,
        }
        response = self.api_client.post(REGISTER_URL, payload, format="json")
        body = response.json()

        self.assertEqual(response.status_code, 201)
        self.assertEqual(body["errors"], [])
        self.assertEqual(body["data"]["username"], "newstaff")
        self.assertEqual(body["data"]["roles"], ["Staff"])
        self.assertEqual(body["data"]["user_type"], "Staff")

    def test_register_rejects_privileged_user_type(self):
        payload = {
            "username": "sneaky",
            "password": "NewPass123!",
            "repeat_password": "NewPass123!",
            "user_type": UserType.DEVELOPER,
        }
        response = self.api_client.post(REGISTER_URL, payload, format="json")

        self.assertEqual(response.status_code, 400)
        self.assertIsNone(response.json()["data"])

    def test_register_password_mismatch(self):
        payload = {"username": "other", "password": "Password123", "repeat_password": "Mismatch123"}
        response = self.api_client.post(REGISTER_URL, payload, format="json")
        body = response.json()

        self.assertEqual(response.status_code, 400)
        self.assertIsNone(body["data"])
        self.assertTrue(body["errors"])

    def test_register_duplicate_username(self):
        payload = {"username": "MEMBER", "password": "Password123", "repeat_password": "Password123"}
        response = self.api_client.post(REGISTER_URL, payload, format="json")
        self.assertEqual(response.status_code, 400)

    def test_login_success_returns_tokens_with_roles(self):
        response = self._login()
        body = response.json()

        self.assertEqual(response.status_code, 200)
        self.assertEqual(body["errors"], [])
        payload = TokenService.decode_token(body["data"]["access"], expected_type="access")
        self.assertEqual(payload["sub"], str(self.user.id))
        self.assertEqual(payload["roles"], ["User"])
        self.assertEqual(payload["ver"], self.user.token_version)

    def test_login_invalid_credentials_401(self):
        response = self._login(password="wrongpass")
        body = response.json()

        self.assertEqual(response.status_code, 401)
        self.assertIsNone(body["data"])
        self.assertTrue(body["errors"])

    def test_login_inactive_user_401(self):
        self.user.is_active = False
        self.user.save(update_fields=["is_active"])

        self.assertEqual(self._login().status_code, 401)

    def test_login_soft_deleted_user_401(self):
        self.user.is_deleted = True
        self.user.save(update_fields=["is_deleted"])

        self.assertEqual(self._login().status_code, 401)

    def test_me_returns_profile(self):
        access = self._login().json()["data"]["access"]
        self.api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")

        response = self.api_client.get(ME_URL)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["username"], "member")

    def test_me_without_token_is_401(self):
        self.assertEqual(self.api_client.get(ME_URL).status_code, 401)

    def test_refresh_with_valid_refresh_token(self):
        login = self._login().json()["data"]

        response = self.api_client.post(REFRESH_URL, {"refresh": login["refresh"]}, format="json")
        body = response.json()

        self.assertEqual(response.status_code, 200)
        self.assertIn("access", body["data"])
        self.assertNotEqual(body["data"]["refresh"], login["refresh"])

    def test_refresh_token_cannot_be_reused(self):
        refresh = self._login().json()["data"]["refresh"]

        first = self.api_client.post(REFRESH_URL, {"refresh": refresh}, format="json")
        second = self.api_client.post(REFRESH_URL, {"refresh": refresh}, format="json")

        self.assertEqual(first.status_code, 200)
        self.assertEqual(second.status_code, 401)

    def test_refresh_with_access_token_rejected(self):
        access = self._login().json()["data"]["access"]

        response = self.api_client.post(REFRESH_URL, {"refresh": access}, format="json")

        self.assertEqual(response.status_code, 401)
        self.assertIsNone(response.json()["data"])

    def test_refresh_rejected_after_token_version_bump(self):
        refresh = self._login().json()["data"]["refresh"]
        self.user.token_version += 1
        self.user.save(update_fields=["token_version"])

        response = self.api_client.post(REFRESH_URL, {"refresh": refresh}, format="json")

        self.assertEqual(response.status_code, 401)

    def test_access_token_rejected_after_token_version_bump(self):
        access = self._login().json()["data"]["access"]
        self.user.token_version += 1
        self.user.save(update_fields=["token_version"])
        self.api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")

        self.assertEqual(self.api_client.get(ME_URL).status_code, 401)

    def test_expired_refresh_token_returns_401(self):
        now = int(time.time())
        payload = {
            "sub": str(self.user.id),
            "jti": "expired-jti",
            "exp": now - 60,
            "iat": now - 120,
            "type": "refresh",
            "ver": self.user.token_version,
        }
        expired_refresh = jwt.encode(payload, settings.SECRET_KEY, algorithm=TokenService.ALGORITHM)

        response = self.api_client.post(REFRESH_URL, {"refresh": expired_refresh}, format="json")

        self.assertEqual(response.status_code, 401)
        self.assertTrue(response.json()["errors"])

    def test_logout_blocklists_token(self):
        access = self._login().json()["data"]["access"]
        self.api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")

        logout_response = self.api_client.post(LOGOUT_URL)
        self.assertEqual(logout_response.status_code, 204)

        self.assertEqual(self.api_client.get(ME_URL).status_code, 401)

    def test_logout_redis_down_returns_503(self):
        access = self._login().json()["data"]["access"]
        self.api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")

        with mock.patch.object(
            TokenService,
            "block_token",
            side_effect=BlocklistUnavailable("Redis unavailable while blocklisting"),
        ):
            response = self.api_client.post(LOGOUT_URL)

        body = response.json()
        self.assertEqual(response.status_code, 503)
        self.assertIsNone(body["data"])
        self.assertTrue(body["errors"])

    def test_blocklist_check_redis_down_returns_503(self):
        access = self._login().json()["data"]["access"]
        self.api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")

        with mock.patch.object(TokenService, "is_token_blocked", side_effect=BlocklistUnavailable("down")):
            response = self.api_client.get(ME_URL)

        self.assertEqual(response.status_code, 503)

    def test_refresh_when_database_unavailable_returns_503_with_envelope(self):
        refresh_token = self._login().json()["data"]["refresh"]

        with mock.patch("authentication.views._get_active_user", side_effect=DatabaseError("DB down")):
            response = self.api_client.post(REFRESH_URL, {"refresh": refresh_token}, format="json")

        body = response.json()
        self.assertEqual(response.status_code, 503)
        self.assertIsNone(body["data"])
        self.assertTrue(body["errors"])
