"""Pool listing and creation."""

import logging

from django.db import IntegrityError, transaction
from django.db.models import Q

from core.errors import ConflictError, NotFoundError
from .models import Pool

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 200


class PoolService:
    @staticmethod
    def list_pools(tenant_id, page: int = 1, page_size: int = 25, search: str | None = None) -> dict:
        """One page of a tenant's pools; out-of-range paging values are clamped."""
        page = max(1, page)
        page_size = min(max(1, page_size), MAX_PAGE_SIZE)

        queryset = Pool.objects.filter(tenant_id=tenant_id)
        if search:
            queryset = queryset.filter(Q(name__icontains=search) | Q(code__icontains=search))

        offset = (page - 1) * page_size
        return {
            "items": list(queryset.order_by("name")[offset : offset + page_size]),
            "total_count": queryset.count(),
            "page": page,
            "page_size": page_size,
        }

    @staticmethod
    def get_pool(pool_id) -> Pool:
        pool = Pool.objects.filter(id=pool_id).first()
        if pool is None:
            raise NotFoundError("Pool not found.")
        return pool

    @staticmethod
    def create_pool(tenant_id, name: str, code: str, time_zone: str | None = None, actor_id=None) -> Pool:
        code = code.strip()
        if Pool.objects.filter(tenant_id=tenant_id, code__iexact=code).exists():
            raise ConflictError(f"A pool with code '{code}' already exists for this tenant.")
        try:
            with transaction.atomic():
                pool = Pool.objects.create(
                    tenant_id=tenant_id,
                    name=name.strip(),
                    code=code,
                    time_zone=(time_zone or "").strip() or None,
                    created_by=actor_id,
                    modified_by=actor_id,
                )
        except IntegrityError as exc:
            raise ConflictError(f"A pool with code '{code}' already exists for this tenant.") from exc
        logger.info("Pool %s created for tenant %s by %s", pool.code, tenant_id, actor_id)
        return pool


pool_service = PoolService()


__all__ = ["PoolService", "pool_service"]
