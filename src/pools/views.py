"""Pool endpoints, each guarded by the permission bound to its route."""

from rest_framework import status

from access_control.permissions import GatedAPIView, RequireRoutePermission
from core.response import api_response
from .serializers import PoolCreateSerializer, PoolListQuerySerializer, PoolSerializer
from .services import pool_service


class PoolListView(GatedAPIView):
    permission_classes = [RequireRoutePermission]

    # noinspection PyMethodMayBeStatic
    def get(self, request):
        """Paged pools of one tenant, optionally filtered by name or code."""
        query = PoolListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        result = pool_service.list_pools(**query.validated_data)
        result["items"] = PoolSerializer(result["items"], many=True).data
        return api_response(result)

    # noinspection PyMethodMayBeStatic
    def post(self, request):
        serializer = PoolCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        pool = pool_service.create_pool(actor_id=request.user.id, **serializer.validated_data)
        return api_response(PoolSerializer(pool).data, status=status.HTTP_201_CREATED)


class PoolDetailView(GatedAPIView):
    permission_classes = [RequireRoutePermission]

    # noinspection PyMethodMayBeStatic
    def get(self, request, pk):
        return api_response(PoolSerializer(pool_service.get_pool(pk)).data)
