"""Action discovery: reconcile the route table with the action catalog.

The route table (``core.routing``) is the single source of discoverable
endpoints. Every (controller, action, verb) it declares becomes an ``Action``
row plus a companion ``Permission`` named ``"<Controller>.<Action>"`` that
starts inactive. Items are processed one at a time, each in its own
transaction, so a failing item never undoes or blocks the others, and a
cancelled run keeps whatever it already committed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from asgiref.sync import sync_to_async
from django.db import IntegrityError, transaction
from django.utils import timezone

from core.routing import HTTP_METHODS, RouteTable, route_table as default_route_table

from .models import Action, Permission

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActionDescriptor:
    controller: str
    action: str
    http_method: str
    route: str

    @property
    def key(self) -> tuple[str, str, str]:
        return self.controller, self.action, self.http_method

    @property
    def permission_name(self) -> str:
        return f"{self.controller}.{self.action}"

    def __str__(self) -> str:
        return f"{self.permission_name} [{self.http_method}]"


@dataclass
class DiscoveryReport:
    """What a discovery run changed, item by item."""

    discovered: int = 0
    created: list[str] = field(default_factory=list)
    deactivated: list[str] = field(default_factory=list)
    reactivated: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed

    def as_dict(self) -> dict:
        return {
            "discovered": self.discovered,
            "created": self.created,
            "deactivated": self.deactivated,
            "reactivated": self.reactivated,
            "failed": self.failed,
        }


class ActionDiscoveryService:
    def __init__(self, route_table: RouteTable | None = None):
        self._route_table = route_table

    @property
    def route_table(self) -> RouteTable:
        if self._route_table is not None:
            return self._route_table
        return default_route_table.load()

    def discover(self) -> list[ActionDescriptor]:
        """Every (controller, action, verb) declared in the route table.

        Verbs outside the recognized set are skipped rather than guessed. When
        the same triple is routed twice the first route wins.
        """
        descriptors: dict[tuple[str, str, str], ActionDescriptor] = {}
        for entry in self.route_table:
            for method, action in entry.actions.items():
                if method not in HTTP_METHODS:
                    logger.debug("Skipping %s.%s: unrecognized verb %s", entry.controller, action, method)
                    continue
                descriptor = ActionDescriptor(entry.controller, action, method, entry.route)
                descriptors.setdefault(descriptor.key, descriptor)
        return list(descriptors.values())

    async def discover_and_register(self, descriptors: list[ActionDescriptor] | None = None) -> DiscoveryReport:
        """Insert catalog rows for descriptors not yet registered. Never removes rows."""
        if descriptors is None:
            descriptors = self.discover()
        report = DiscoveryReport(discovered=len(descriptors))

        for descriptor in descriptors:
            try:
                if await self._register(descriptor):
                    report.created.append(str(descriptor))
            except Exception as exc:
                logger.warning("Failed to register action %s: %s", descriptor, exc)
                report.failed[str(descriptor)] = str(exc)

        logger.info(
            "Action discovery: %d discovered, %d created, %d failed",
            report.discovered,
            len(report.created),
            len(report.failed),
        )
        return report

    async def sync(self) -> DiscoveryReport:
        """Register new actions, deactivate vanished ones, reactivate returning ones."""
        descriptors = self.discover()
        report = await self.discover_and_register(descriptors)
        present = {descriptor.key for descriptor in descriptors}

        async for action in Action.objects.all():
            key = (action.controller, action.action, action.http_method)
            label = f"{action.controller}.{action.action} [{action.http_method}]"
            if (key in present) == action.is_active:
                continue
            try:
                action.is_active = key in present
                await action.asave(update_fields=["is_active", "updated_at"])
            except Exception as exc:
                logger.warning("Failed to update action %s: %s", label, exc)
                report.failed[label] = str(exc)
                continue
            if action.is_active:
                report.reactivated.append(label)
            else:
                report.deactivated.append(label)

        logger.info(
            "Action sync: %d deactivated, %d reactivated", len(report.deactivated), len(report.reactivated)
        )
        return report

    async def get_registered_actions(self) -> list[Action]:
        return [action async for action in Action.objects.order_by("controller", "action", "http_method")]

    async def _register(self, descriptor: ActionDescriptor) -> bool:
        if await self._is_registered(descriptor):
            return False
        try:
            await sync_to_async(self._insert)(descriptor)
        except IntegrityError:
            # A concurrent run inserted the same triple first.
            if await self._is_registered(descriptor):
                return False
            raise
        return True

    @staticmethod
    async def _is_registered(descriptor: ActionDescriptor) -> bool:
        return await Action.objects.filter(
            controller=descriptor.controller,
            action=descriptor.action,
            http_method=descriptor.http_method,
        ).aexists()

    @staticmethod
    def _insert(descriptor: ActionDescriptor) -> None:
        with transaction.atomic():
            # A live permission left behind by a soft-deleted action would
            # block the new companion on the unique name.
            orphaned = Permission.objects.filter(name=descriptor.permission_name, action__is_deleted=True).update(
                is_deleted=True, updated_at=timezone.now()
            )
            if orphaned:
                logger.info("Retired permission %s bound to a deleted action", descriptor.permission_name)
            action = Action.objects.create(
                controller=descriptor.controller,
                action=descriptor.action,
                http_method=descriptor.http_method,
                route=descriptor.route,
                description=f"{descriptor.http_method} {descriptor.route}",
            )
            Permission.objects.create(
                name=descriptor.permission_name,
                action=action,
                category=descriptor.controller,
                description=f"Allows {descriptor.action} on {descriptor.controller}",
                is_active=False,
            )


__all__ = ["ActionDescriptor", "ActionDiscoveryService", "DiscoveryReport"]
