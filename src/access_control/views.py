"""Administrative endpoints for the permission catalog and grants.

All endpoints require the Developer or SuperAdmin role. Mutations stamp the
authenticated caller's id as the acting user.
"""

from asgiref.sync import async_to_sync
from rest_framework import status
from rest_framework.response import Response

from core.errors import NotFoundError
from core.response import api_response
from .discovery import ActionDiscoveryService
from .evaluation import evaluator
from .grants import grant_service
from .permissions import GatedAPIView, HasAnyRole
from .queries import permission_queries
from .serializers import (
    ActionSerializer,
    EffectivePermissionsSerializer,
    GrantOutcomeSerializer,
    PermissionActivationSerializer,
    PermissionIdsSerializer,
    PermissionSerializer,
    UserPermissionGrantSerializer,
    UserPermissionSerializer,
)


class PermissionAdminView(GatedAPIView):
    permission_classes = [HasAnyRole]


class PermissionListView(PermissionAdminView):
    # noinspection PyMethodMayBeStatic
    def get(self, request):
        """List every permission ordered by category and name."""
        permissions = async_to_sync(permission_queries.list_permissions)()
        return api_response(PermissionSerializer(permissions, many=True).data)


class PermissionDetailView(PermissionAdminView):
    # noinspection PyMethodMayBeStatic
    def get(self, request, pk):
        permission = async_to_sync(permission_queries.get_permission)(pk)
        return api_response(PermissionSerializer(permission).data)

    # noinspection PyMethodMayBeStatic
    def patch(self, request, pk):
        """Activate or deactivate a permission."""
        serializer = PermissionActivationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        permission = async_to_sync(grant_service.set_permission_active)(
            pk, serializer.validated_data["is_active"], request.user.id
        )
        return api_response(PermissionSerializer(permission).data)


class PermissionCategoryView(PermissionAdminView):
    # noinspection PyMethodMayBeStatic
    def get(self, request, category):
        permissions = async_to_sync(permission_queries.get_permissions_by_category)(category)
        return api_response(PermissionSerializer(permissions, many=True).data)


class PermissionSyncView(PermissionAdminView):
    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Run discovery now; ``?prune=true`` also deactivates vanished actions."""
        service = ActionDiscoveryService()
        prune = request.query_params.get("prune", "").lower() in ("1", "true", "yes")
        report = async_to_sync(service.sync if prune else service.discover_and_register)()
        return api_response(report.as_dict())


class ActionListView(PermissionAdminView):
    # noinspection PyMethodMayBeStatic
    def get(self, request):
        actions = async_to_sync(ActionDiscoveryService().get_registered_actions)()
        return api_response(ActionSerializer(actions, many=True).data)


class RolePermissionsView(PermissionAdminView):
    # noinspection PyMethodMayBeStatic
    def get(self, request, role):
        """Permissions held by a role, addressed by id or name."""
        permissions = async_to_sync(permission_queries.get_role_permissions)(role)
        return api_response(PermissionSerializer(permissions, many=True).data)

    # noinspection PyMethodMayBeStatic
    def post(self, request, role):
        serializer = PermissionIdsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        outcomes = async_to_sync(grant_service.assign_permissions_to_role)(
            role, serializer.validated_data["permission_ids"], request.user.id
        )
        return api_response(GrantOutcomeSerializer(outcomes, many=True).data)


class RolePermissionDetailView(PermissionAdminView):
    # noinspection PyMethodMayBeStatic
    def delete(self, request, role, permission_id):
        revoked = async_to_sync(grant_service.revoke_permission_from_role)(role, permission_id, request.user.id)
        if not revoked:
            raise NotFoundError("Role does not hold this permission")
        return Response(status=status.HTTP_204_NO_CONTENT)


class UserPermissionsView(PermissionAdminView):
    # noinspection PyMethodMayBeStatic
    def get(self, request, user_id):
        """Direct grants of a user, including revoked and expired ones."""
        grants = async_to_sync(permission_queries.get_user_permissions)(user_id)
        return api_response(UserPermissionSerializer(grants, many=True).data)

    # noinspection PyMethodMayBeStatic
    def post(self, request, user_id):
        serializer = UserPermissionGrantSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        outcomes = async_to_sync(grant_service.assign_permissions_to_user)(
            user_id,
            serializer.validated_data["permission_ids"],
            request.user.id,
            serializer.validated_data.get("expires_on"),
        )
        return api_response(GrantOutcomeSerializer(outcomes, many=True).data)


class UserPermissionDetailView(PermissionAdminView):
    # noinspection PyMethodMayBeStatic
    def delete(self, request, user_id, permission_id):
        revoked = async_to_sync(grant_service.revoke_permission_from_user)(user_id, permission_id, request.user.id)
        if not revoked:
            raise NotFoundError("User does not hold an unrevoked grant for this permission")
        return Response(status=status.HTTP_204_NO_CONTENT)


class UserEffectivePermissionsView(PermissionAdminView):
    # noinspection PyMethodMayBeStatic
    def get(self, request, user_id):
        report = async_to_sync(evaluator.get_effective_permissions)(user_id)
        return api_response(EffectivePermissionsSerializer(report).data)


__all__ = [
    "ActionListView",
    "PermissionCategoryView",
    "PermissionDetailView",
    "PermissionListView",
    "PermissionSyncView",
    "RolePermissionDetailView",
    "RolePermissionsView",
    "UserEffectivePermissionsView",
    "UserPermissionDetailView",
    "UserPermissionsView",
]
