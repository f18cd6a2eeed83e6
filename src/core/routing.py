"""Explicit route table shared by URL configuration and action discovery.

Apps declare their endpoints through a :class:`RouteGroup` instead of writing
``urlpatterns`` by hand. Each entry names the controller, the view, and the
action bound to every HTTP verb the view answers. The group builds the app's
``urlpatterns`` and records the entries in the process-wide :data:`route_table`,
which the discovery engine reads to populate the action catalog. Nothing is
introspected at runtime: what is registered here is exactly what gets
discovered.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterator, Mapping

from django.urls import URLPattern, path

CONTROLLER_SUFFIXES = ("ViewSet", "View", "Controller")
HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE")


def controller_name_for(view) -> str:
    """Return the view class name without its conventional suffix."""
    name = getattr(view, "__name__", type(view).__name__)
    for suffix in CONTROLLER_SUFFIXES:
        if name.endswith(suffix) and len(name) > len(suffix):
            return name[: -len(suffix)]
    return name


def combine_route(*parts: str) -> str:
    """Join route fragments into a single ``/``-rooted template."""
    return re.sub(r"/{2,}", "/", "/" + "/".join(part for part in parts if part))


@dataclass(frozen=True)
class RouteEntry:
    """One registered URL with the controller action bound to each verb."""

    controller: str
    route: str
    name: str
    view: type
    actions: Mapping[str, str] = field(default_factory=dict)

    def action_for(self, method: str) -> str | None:
        return self.actions.get(method.upper())


class RouteTable:
    """Process-wide registry of route entries keyed by URL name."""

    def __init__(self):
        self._entries: dict[str, RouteEntry] = {}

    def add(self, entry: RouteEntry) -> None:
        existing = self._entries.get(entry.name)
        if existing is not None and existing != entry:
            raise ValueError(f"Route name '{entry.name}' is already registered")
        self._entries[entry.name] = entry

    def lookup(self, name: str | None) -> RouteEntry | None:
        if not name:
            return None
        return self._entries.get(name)

    def entries(self) -> list[RouteEntry]:
        return list(self._entries.values())

    def __iter__(self) -> Iterator[RouteEntry]:
        return iter(self.entries())

    def __len__(self) -> int:
        return len(self._entries)

    def load(self) -> "RouteTable":
        """Import the root URLconf so every app has registered its routes."""
        from django.urls import get_resolver

        get_resolver().url_patterns
        return self


route_table = RouteTable()


class RouteGroup:
    """Builds one app's urlpatterns while registering them in a route table."""

    def __init__(self, prefix: str = "", controller: str | None = None, table: RouteTable | None = None):
        self.prefix = prefix
        self.controller = controller
        self.table = table if table is not None else route_table
        self.urlpatterns: list[URLPattern] = []

    def add(
        self,
        route: str,
        view: type,
        actions: Mapping[str, str],
        name: str,
        controller: str | None = None,
    ) -> RouteEntry:
        entry = RouteEntry(
            controller=controller or self.controller or controller_name_for(view),
            route=combine_route(self.prefix, route),
            name=name,
            view=view,
            actions={method.upper(): action for method, action in actions.items()},
        )
        self.table.add(entry)
        self.urlpatterns.append(path(f"{self.prefix}{route}", view.as_view(), name=name))
        return entry


__all__ = [
    "HTTP_METHODS",
    "RouteEntry",
    "RouteGroup",
    "RouteTable",
    "combine_route",
    "controller_name_for",
    "route_table",
]
