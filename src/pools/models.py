"""Savings committee pools, scoped to a tenant."""

from django.db import models
from django.db.models import Q

from core.models import AuditedModel


class Pool(AuditedModel):
    tenant_id = models.UUIDField(db_index=True)
    name = models.CharField(max_length=150, db_index=True)
    code = models.CharField(max_length=50)
    time_zone = models.CharField(max_length=80, null=True, blank=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(
                fields=["tenant_id", "code"], condition=Q(is_deleted=False), name="uniq_live_pool_tenant_code"
            )
        ]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.code} ({self.name})"


__all__ = ["Pool"]
