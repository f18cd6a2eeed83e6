"""User and role administration endpoints (Developer / SuperAdmin only)."""

from rest_framework import status
from rest_framework.response import Response

from access_control.permissions import GatedAPIView, HasAnyRole
from core.response import api_response
from .serializers import (
    RoleAssignSerializer,
    RoleSerializer,
    RoleWriteSerializer,
    UserAdminSerializer,
    UserCreateSerializer,
    UserUpdateSerializer,
)
from .services import role_service, user_account_service


class AdminView(GatedAPIView):
    permission_classes = [HasAnyRole]


class RoleListView(AdminView):
    # noinspection PyMethodMayBeStatic
    def get(self, request):
        """List roles with the number of live users holding each."""
        return api_response(RoleSerializer(role_service.list_roles(), many=True).data)

    # noinspection PyMethodMayBeStatic
    def post(self, request):
        serializer = RoleWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        role = role_service.create_role(actor_id=request.user.id, **serializer.validated_data)
        return api_response(RoleSerializer(role).data, status=status.HTTP_201_CREATED)


class RoleDetailView(AdminView):
    # noinspection PyMethodMayBeStatic
    def get(self, request, pk):
        return api_response(RoleSerializer(role_service.get_role(pk)).data)

    # noinspection PyMethodMayBeStatic
    def put(self, request, pk):
        serializer = RoleWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        role = role_service.update_role(
            pk,
            serializer.validated_data["name"],
            serializer.validated_data.get("description"),
            actor_id=request.user.id,
        )
        return api_response(RoleSerializer(role).data)

    # noinspection PyMethodMayBeStatic
    def delete(self, request, pk):
        role_service.delete_role(pk, actor_id=request.user.id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class RoleByNameView(AdminView):
    # noinspection PyMethodMayBeStatic
    def get(self, request, name):
        return api_response(RoleSerializer(role_service.get_role_by_name(name)).data)


class RoleUsersView(AdminView):
    # noinspection PyMethodMayBeStatic
    def get(self, request, role_name):
        users = role_service.users_in_role(role_name)
        return api_response(UserAdminSerializer(users, many=True).data)


class UserListView(AdminView):
    # noinspection PyMethodMayBeStatic
    def get(self, request):
        return api_response(UserAdminSerializer(user_account_service.list_users(), many=True).data)

    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Create a user; the role matching its user type is assigned automatically."""
        serializer = UserCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = user_account_service.create_user(serializer.validated_data, actor_id=request.user.id)
        return api_response(UserAdminSerializer(user).data, status=status.HTTP_201_CREATED)


class UserDetailView(AdminView):
    # noinspection PyMethodMayBeStatic
    def get(self, request, pk):
        return api_response(UserAdminSerializer(user_account_service.get_user(pk)).data)

    # noinspection PyMethodMayBeStatic
    def put(self, request, pk):
        serializer = UserUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = user_account_service.update_user(pk, serializer.validated_data, actor_id=request.user.id)
        return api_response(UserAdminSerializer(user).data)

    # noinspection PyMethodMayBeStatic
    def delete(self, request, pk):
        user_account_service.delete_user(pk, actor_id=request.user.id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class UserRoleAssignView(AdminView):
    # noinspection PyMethodMayBeStatic
    def post(self, request, pk):
        serializer = RoleAssignSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        roles = user_account_service.assign_roles(pk, serializer.validated_data["roles"], actor_id=request.user.id)
        return api_response({"roles": roles})


class UserRolesView(AdminView):
    # noinspection PyMethodMayBeStatic
    def get(self, request, pk):
        return api_response({"roles": user_account_service.get_user_roles(pk)})
