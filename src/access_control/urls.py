"""Routing for permission administration endpoints."""

from core.routing import RouteGroup

from .views import (
    ActionListView,
    PermissionCategoryView,
    PermissionDetailView,
    PermissionListView,
    PermissionSyncView,
    RolePermissionDetailView,
    RolePermissionsView,
    UserEffectivePermissionsView,
    UserPermissionDetailView,
    UserPermissionsView,
)

routes = RouteGroup("api/v1/permissions/", controller="Permissions")
routes.add("", PermissionListView, {"GET": "GetAll"}, name="permission-list")
routes.add("sync/", PermissionSyncView, {"POST": "Sync"}, name="permission-sync")
routes.add("actions/", ActionListView, {"GET": "GetActions"}, name="permission-actions")
routes.add(
    "category/<str:category>/", PermissionCategoryView, {"GET": "GetByCategory"}, name="permission-category"
)
routes.add(
    "roles/<str:role>/",
    RolePermissionsView,
    {"GET": "GetRolePermissions", "POST": "AssignToRole"},
    name="permission-role",
)
routes.add(
    "roles/<str:role>/<uuid:permission_id>/",
    RolePermissionDetailView,
    {"DELETE": "RevokeFromRole"},
    name="permission-role-detail",
)
routes.add(
    "users/<uuid:user_id>/",
    UserPermissionsView,
    {"GET": "GetUserPermissions", "POST": "AssignToUser"},
    name="permission-user",
)
routes.add(
    "users/<uuid:user_id>/effective/",
    UserEffectivePermissionsView,
    {"GET": "GetEffectivePermissions"},
    name="permission-user-effective",
)
routes.add(
    "users/<uuid:user_id>/<uuid:permission_id>/",
    UserPermissionDetailView,
    {"DELETE": "RevokeFromUser"},
    name="permission-user-detail",
)
routes.add(
    "<uuid:pk>/", PermissionDetailView, {"GET": "GetById", "PATCH": "SetActive"}, name="permission-detail"
)

urlpatterns = routes.urlpatterns
