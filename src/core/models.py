"""Shared model base classes and the exception log table.

Every catalog, grant and resource table carries the same audit columns:
who created and last modified the row, an ``is_active`` switch and an
``is_deleted`` soft-delete flag. Rows are never physically removed by the
application; ``objects`` hides soft-deleted rows while ``all_objects`` sees
everything (needed to restore a deleted grant instead of inserting a twin).
"""

import uuid

from django.db import models
from django.utils import timezone


class AuditedQuerySet(models.QuerySet):
    """QuerySet helpers for the active flag."""

    def active(self):
        return self.filter(is_active=True)


class LiveManager(models.Manager):
    """Default manager excluding soft-deleted rows."""

    def get_queryset(self):
        return super().get_queryset().filter(is_deleted=False)


class AuditedModel(models.Model):
    """Abstract base with UUID key, audit stamps, active flag and soft delete."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created_at = models.DateTimeField(default=timezone.now)
    created_by = models.UUIDField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)
    modified_by = models.UUIDField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    is_deleted = models.BooleanField(default=False, db_index=True)

    objects = LiveManager.from_queryset(AuditedQuerySet)()
    all_objects = models.Manager.from_queryset(AuditedQuerySet)()

    class Meta:
        abstract = True

    def stamp(self, actor_id=None) -> None:
        """Record a modification by ``actor_id`` (saved by the caller)."""
        self.modified_by = actor_id
        self.updated_at = timezone.now()


class ExceptionLog(models.Model):
    """Unhandled exception captured by the API exception handler."""

    type = models.CharField(max_length=255)
    message = models.TextField()
    stack_trace = models.TextField(blank=True)
    url = models.CharField(max_length=2048, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.type}: {self.message[:80]}"


__all__ = ["AuditedModel", "AuditedQuerySet", "LiveManager", "ExceptionLog"]
