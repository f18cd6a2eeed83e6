"""Shared helpers for tests (role seeding, user creation, catalog rows, fake Redis)."""

from __future__ import annotations

from typing import Dict
from unittest import mock

from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from access_control.models import Action, Permission
from authentication.managers import UserManager
from authentication.models import Role
from authentication.services import TokenService
from scripts.management.commands.seed_rbac import create_seed_roles

User = get_user_model()


class FakeRedis:
    """Minimal Redis stand-in supporting the commands used by TokenService."""

    def __init__(self):
        self._store: Dict[str, str] = {}

    def setex(self, key: str, ttl_seconds: int, value: str) -> None:
        """Mimic SETEX; the TTL is ignored in tests."""
        self._store[key] = value

    def get(self, key: str):
        return self._store.get(key)


def seed_roles() -> dict[str, Role]:
    """Create the base roles through the same helper the seed command uses."""
    return create_seed_roles()


def create_user(username: str, password: str = "Password123", roles=(), **extra):
    """Create a user with a bcrypt-hashed password holding ``roles``."""

    user = User.objects.create(
        username=username,
        password_hash=UserManager.hash_password(password),
        **extra,
    )
    if roles:
        user.roles.set(roles)
    return user


def create_permission(controller: str, action: str, http_method: str = "GET", is_active: bool = True) -> Permission:
    """Insert an action and its bound permission, the way discovery would (but active by default)."""

    catalog_action = Action.objects.create(
        controller=controller,
        action=action,
        http_method=http_method,
        route=f"/api/v1/{controller.lower()}/",
    )
    return Permission.objects.create(
        name=f"{controller}.{action}",
        action=catalog_action,
        category=controller,
        is_active=is_active,
    )


def auth_client(user) -> APIClient:
    """APIClient authenticated with a fresh access token for ``user``."""
    token, _ = TokenService.generate_tokens(user)
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
    return client


class FakeRedisMixin:
    """Patch both Redis lookups with one in-memory FakeRedis per test class."""

    @classmethod
    def setUpClass(cls):
        super().setUpClass()
        cls.fake_redis = FakeRedis()
        cls.redis_patchers = [
            mock.patch("core.redis_client.get_redis_client", return_value=cls.fake_redis),
            mock.patch("authentication.services.get_redis_client", return_value=cls.fake_redis),
        ]
        for patcher in cls.redis_patchers:
            patcher.start()

    @classmethod
    def tearDownClass(cls):
        for patcher in cls.redis_patchers:
            patcher.stop()
        super().tearDownClass()


__all__ = [
    "FakeRedis",
    "FakeRedisMixin",
    "auth_client",
    "create_permission",
    "create_user",
    "seed_roles",
]
