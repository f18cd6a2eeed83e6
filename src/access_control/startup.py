"""Best-effort action discovery when a server process starts.

Discovery runs in a daemon thread so a slow or unavailable database never
delays serving requests. Missing tables (migrations not applied yet) are
logged; ``manage.py sync_permissions`` or the sync endpoint re-run it later.
"""

import logging
import threading

from asgiref.sync import async_to_sync
from django.conf import settings
from django.db import DatabaseError, connection

from .discovery import ActionDiscoveryService
from .models import Action

logger = logging.getLogger(__name__)


def run_startup_discovery(service: ActionDiscoveryService | None = None):
    """Register newly routed actions; returns the report, or None when skipped."""
    service = service or ActionDiscoveryService()
    try:
        Action.objects.exists()
    except DatabaseError as exc:
        logger.warning(
            "Skipping action discovery, catalog tables unavailable (%s). "
            "Run 'manage.py migrate' then 'manage.py sync_permissions'.",
            exc,
        )
        return None

    try:
        report = async_to_sync(service.discover_and_register)()
    except Exception:
        logger.exception("Action discovery failed during startup")
        return None

    if report.failed:
        logger.warning("Startup discovery could not register %d action(s)", len(report.failed))
    return report


def _discover_in_thread() -> None:
    try:
        run_startup_discovery()
    finally:
        connection.close()


def start_discovery_in_background() -> threading.Thread | None:
    if not getattr(settings, "PERMISSION_DISCOVERY_ON_STARTUP", False):
        return None
    thread = threading.Thread(target=_discover_in_thread, name="permission-discovery", daemon=True)
    thread.start()
    return thread


__all__ = ["run_startup_discovery", "start_discovery_in_background"]
