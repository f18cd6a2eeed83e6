"""Routing for pool endpoints."""

from core.routing import RouteGroup

from .views import PoolDetailView, PoolListView

routes = RouteGroup("api/v1/pools/", controller="Pools")
routes.add("", PoolListView, {"GET": "List", "POST": "Create"}, name="pool-list")
routes.add("<uuid:pk>/", PoolDetailView, {"GET": "GetById"}, name="pool-detail")

urlpatterns = routes.urlpatterns
