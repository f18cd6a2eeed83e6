"""User and role administration on top of the identity models.

Role membership feeds permission evaluation, so every change to a user's
roles (or to the user's existence) invalidates that user's cached permissions.
"""

import logging

from asgiref.sync import async_to_sync
from django.db import transaction
from django.db.models import Count, Q

from access_control.cache import permission_cache
from authentication.managers import UserManager
from authentication.models import Role, User, UserType
from core.errors import ConflictError, NotFoundError

logger = logging.getLogger(__name__)


def _invalidate(user: User) -> None:
    async_to_sync(permission_cache.invalidate_user)(user.id)


class RoleService:
    @staticmethod
    def list_roles():
        return Role.objects.annotate(user_count=Count("users", filter=Q(users__is_deleted=False))).order_by("name")

    @staticmethod
    def get_role(role_id) -> Role:
        role = Role.objects.filter(id=role_id).first()
        if role is None:
            raise NotFoundError(f"Role {role_id} not found")
        return role

    @staticmethod
    def get_role_by_name(name: str) -> Role:
        role = Role.objects.filter(name__iexact=name).first()
        if role is None:
            raise NotFoundError(f"Role '{name}' not found")
        return role

    def create_role(self, name: str, description: str = "", actor_id=None) -> Role:
        if Role.objects.filter(name__iexact=name).exists():
            raise ConflictError(f"Role '{name}' already exists")
        role = Role.objects.create(name=name, description=description)
        logger.info("Role %s created by %s", name, actor_id)
        return role

    def update_role(self, role_id, name: str, description: str | None = None, actor_id=None) -> Role:
        role = self.get_role(role_id)
        if name.lower() != role.name.lower():
            if role.is_system_role:
                raise ConflictError(f"System role '{role.name}' cannot be renamed")
            if Role.objects.filter(name__iexact=name).exclude(id=role.id).exists():
                raise ConflictError(f"Role '{name}' already exists")
        role.name = name
        if description is not None:
            role.description = description
        role.save(update_fields=["name", "description", "updated_at"])
        logger.info("Role %s updated by %s", role.id, actor_id)
        return role

    def delete_role(self, role_id, actor_id=None) -> None:
        role = self.get_role(role_id)
        if role.is_system_role:
            raise ConflictError(f"System role '{role.name}' cannot be deleted")
        assigned = role.users.filter(is_deleted=False).count()
        if assigned:
            raise ConflictError(f"Cannot delete role. There are {assigned} users assigned to this role.")
        role.delete()
        logger.info("Role %s deleted by %s", role_id, actor_id)

    def users_in_role(self, role_name: str):
        role = self.get_role_by_name(role_name)
        return role.users.filter(is_deleted=False).prefetch_related("roles").order_by("username")


class UserAccountService:
    @staticmethod
    def list_users():
        return User.objects.filter(is_deleted=False).prefetch_related("roles")

    @staticmethod
    def get_user(user_id) -> User:
        user = User.objects.filter(id=user_id, is_deleted=False).prefetch_related("roles").first()
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return user

    @staticmethod
    def _resolve_roles(names) -> list[Role]:
        roles = []
        for name in names:
            role = Role.objects.filter(name__iexact=name).first()
            if role is None:
                raise NotFoundError(f"Role '{name}' not found")
            roles.append(role)
        return roles

    def create_user(self, data: dict, actor_id=None) -> User:
        """Create a user holding the role named after its type plus any extra roles."""
        data = dict(data)
        password = data.pop("password")
        extra_roles = data.pop("roles", None) or []
        if User.objects.filter(username__iexact=data["username"]).exists():
            raise ConflictError(f"Username '{data['username']}' already in use")

        type_role = UserType(data.get("user_type", UserType.USER)).label
        roles = self._resolve_roles([type_role, *extra_roles])
        with transaction.atomic():
            user = User.objects.create(password_hash=UserManager.hash_password(password), **data)
            user.roles.set(roles)
        logger.info("User %s created by %s", user.id, actor_id)
        return user

    def update_user(self, user_id, data: dict, actor_id=None) -> User:
        """Update profile fields; ``roles``, when given, replaces the membership."""
        user = self.get_user(user_id)
        data = dict(data)
        role_names = data.pop("roles", None)
        for field, value in data.items():
            setattr(user, field, value)
        with transaction.atomic():
            user.save()
            if role_names is not None:
                user.roles.set(self._resolve_roles(role_names))
        _invalidate(user)
        logger.info("User %s updated by %s", user.id, actor_id)
        return user

    def delete_user(self, user_id, actor_id=None) -> None:
        """Soft delete: the row stays, sign-in and existing tokens stop working."""
        user = self.get_user(user_id)
        user.is_deleted = True
        user.is_active = False
        user.token_version += 1
        user.save(update_fields=["is_deleted", "is_active", "token_version", "updated_at"])
        _invalidate(user)
        logger.info("User %s deleted by %s", user.id, actor_id)

    def assign_roles(self, user_id, role_names, actor_id=None) -> list[str]:
        user = self.get_user(user_id)
        user.roles.add(*self._resolve_roles(role_names))
        _invalidate(user)
        logger.info("Roles %s assigned to user %s by %s", role_names, user.id, actor_id)
        return self.get_user_roles(user.id)

    def get_user_roles(self, user_id) -> list[str]:
        return list(self.get_user(user_id).roles.order_by("name").values_list("name", flat=True))


role_service = RoleService()
user_account_service = UserAccountService()


__all__ = ["RoleService", "UserAccountService", "role_service", "user_account_service"]
