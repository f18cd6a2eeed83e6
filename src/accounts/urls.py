"""Routing for user and role administration."""

from core.routing import RouteGroup

from .views import (
    RoleByNameView,
    RoleDetailView,
    RoleListView,
    RoleUsersView,
    UserDetailView,
    UserListView,
    UserRoleAssignView,
    UserRolesView,
)

roles = RouteGroup("api/v1/roles/", controller="Roles")
roles.add("", RoleListView, {"GET": "GetAll", "POST": "Create"}, name="role-list")
roles.add("name/<str:name>/", RoleByNameView, {"GET": "GetByName"}, name="role-by-name")
roles.add("<uuid:pk>/", RoleDetailView, {"GET": "GetById", "PUT": "Update", "DELETE": "Delete"}, name="role-detail")
roles.add("<str:role_name>/users/", RoleUsersView, {"GET": "GetUsersInRole"}, name="role-users")

users = RouteGroup("api/v1/users/", controller="Users")
users.add("", UserListView, {"GET": "GetAll", "POST": "Create"}, name="user-list")
users.add("<uuid:pk>/", UserDetailView, {"GET": "GetById", "PUT": "Update", "DELETE": "Delete"}, name="user-detail")
users.add("<uuid:pk>/roles/assign/", UserRoleAssignView, {"POST": "AssignRoles"}, name="user-roles-assign")
users.add("<uuid:pk>/roles/", UserRolesView, {"GET": "GetRoles"}, name="user-roles")

urlpatterns = roles.urlpatterns + users.urlpatterns
