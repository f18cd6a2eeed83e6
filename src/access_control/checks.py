"""System checks for permission-gated views registered in the route table."""

from collections import defaultdict

from django.core.checks import Error, Warning, register

from core.routing import HTTP_METHODS, route_table

from .permissions import RequirePermission, RequireRoutePermission


@register()
def gated_views_are_declared(app_configs, **kwargs):
    """Gated views must say which permission guards them.

    * RequirePermission views need ``required_permission``.
    * RequireRoutePermission views need a route-table action for every verb
      they handle.
    * One controller action routed under several verbs yields clashing
      permission names, so discovery could only register one of them.
    """
    errors = []
    verbs_by_action = defaultdict(set)

    for entry in route_table.load():
        view = entry.view
        permission_classes = getattr(view, "permission_classes", [])

        if RequirePermission in permission_classes and not getattr(view, "required_permission", None):
            errors.append(
                Error(
                    f"{view.__name__} uses RequirePermission but does not define required_permission.",
                    obj=view,
                    id="access_control.E001",
                )
            )

        if RequireRoutePermission in permission_classes:
            handled = {m.upper() for m in view.http_method_names if hasattr(view, m)}
            missing = sorted((handled & set(HTTP_METHODS)) - set(entry.actions))
            if missing:
                errors.append(
                    Error(
                        f"Route '{entry.name}' has no action for {', '.join(missing)} on {view.__name__}.",
                        obj=view,
                        id="access_control.E002",
                    )
                )

        for method, action in entry.actions.items():
            verbs_by_action[(entry.controller, action)].add(method)

    for (controller, action), verbs in sorted(verbs_by_action.items()):
        if len(verbs) > 1:
            errors.append(
                Warning(
                    f"{controller}.{action} is routed for {', '.join(sorted(verbs))}; "
                    f"only one verb can own the permission name.",
                    id="access_control.W001",
                )
            )

    return errors
