"""DRF permission classes backed by the dynamic permission engine.

* ``RequirePermission`` checks a permission name declared on the view
  (``required_permission``: a name, or a ``{method: name}`` mapping).
* ``RequireRoutePermission`` derives (controller, action, verb) from the
  matched URL's route-table entry and checks the permission bound to it.
* ``HasAnyRole`` admits holders of any role listed in ``allowed_roles``.

A request without an identity is denied exactly like a request whose identity
lacks the permission. If ``settings.ALLOW_SUPERUSER_BYPASS`` is True,
superusers skip all three checks.
"""

import logging

from asgiref.sync import async_to_sync
from django.conf import settings
from rest_framework import exceptions, permissions

from core.exceptions import FORBIDDEN_MESSAGE
from core.response import BaseAPIView
from core.routing import route_table

from .evaluation import evaluator

logger = logging.getLogger(__name__)

ADMIN_ROLES = ("Developer", "SuperAdmin")


def _subject_id(request):
    """Caller's user id, or None when the request carries no identity."""
    user = getattr(request, "user", None)
    if user is None or not getattr(user, "is_authenticated", False):
        return None
    return getattr(user, "id", None)


def _has_superuser_bypass(request) -> bool:
    user = getattr(request, "user", None)
    return (
        user is not None
        and getattr(user, "is_authenticated", False)
        and getattr(settings, "ALLOW_SUPERUSER_BYPASS", False)
        and getattr(user, "is_superuser", False)
    )


class RequirePermission(permissions.BasePermission):
    message = FORBIDDEN_MESSAGE

    def has_permission(self, request, view) -> bool:
        if _has_superuser_bypass(request):
            return True

        user_id = _subject_id(request)
        name = self.required_permission_for(view, request.method)
        if user_id is None or not name:
            return False
        return async_to_sync(evaluator.has_permission)(user_id, name)

    @staticmethod
    def required_permission_for(view, method: str) -> str | None:
        required = getattr(view, "required_permission", None)
        if isinstance(required, dict):
            return required.get(method.upper())
        return required


class RequireRoutePermission(permissions.BasePermission):
    message = FORBIDDEN_MESSAGE

    def has_permission(self, request, view) -> bool:
        if _has_superuser_bypass(request):
            return True

        user_id = _subject_id(request)
        if user_id is None:
            return False

        match = getattr(request, "resolver_match", None)
        entry = route_table.lookup(match.url_name if match else None)
        action = entry.action_for(request.method) if entry else None
        if action is None:
            logger.warning("No route-table action for %s %s; denying", request.method, request.path)
            return False
        return async_to_sync(evaluator.has_action_permission)(user_id, entry.controller, action, request.method)


class HasAnyRole(permissions.BasePermission):
    message = FORBIDDEN_MESSAGE

    def has_permission(self, request, view) -> bool:
        if _has_superuser_bypass(request):
            return True

        if _subject_id(request) is None:
            return False
        allowed = getattr(view, "allowed_roles", ADMIN_ROLES)
        return request.user.roles.filter(name__in=allowed).exists()


class GatedAPIView(BaseAPIView):
    """Envelope view whose permission failures are always 403.

    DRF would answer 401 for anonymous callers; gated endpoints do not reveal
    whether the identity was missing or merely lacked the permission.
    """

    def permission_denied(self, request, message=None, code=None):
        raise exceptions.PermissionDenied(detail=message, code=code)


__all__ = [
    "ADMIN_ROLES",
    "GatedAPIView",
    "HasAnyRole",
    "RequirePermission",
    "RequireRoutePermission",
]
