"""Exception handling that keeps every error inside the API envelope."""

import logging
import traceback
from typing import Any

from django.conf import settings
from django.db import DatabaseError
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed, NotAuthenticated
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from authentication.services import BlocklistUnavailable
from core.errors import ConflictError, NotFoundError

logger = logging.getLogger(__name__)

UNAUTHORIZED_MESSAGE = (
    "Authentication credentials were not provided or are invalid, "
    "token revoked, or user is inactive."
)
FORBIDDEN_MESSAGE = "You do not have permission to perform this action on this resource."


def _normalize_errors(payload: Any) -> list[Any]:
    """Convert DRF's response.data into a list for the envelope."""

    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and "detail" in payload:
        return [payload["detail"]]
    return [payload]


def _envelope(message: Any, status_code: int) -> Response:
    return Response({"data": None, "errors": [message]}, status=status_code)


def _record_exception(exc: Exception, context: dict[str, Any]) -> None:
    """Persist an unhandled exception; never lets logging failures escape."""
    from core.models import ExceptionLog

    request = context.get("request")
    url = request.get_full_path() if request is not None else ""
    try:
        ExceptionLog.objects.create(
            type=type(exc).__name__,
            message=str(exc),
            stack_trace="".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
            url=url[:2048],
        )
    except DatabaseError:
        logger.warning("Could not persist exception log for %s", url)


def custom_exception_handler(exc: Exception, context: dict[str, Any]) -> Response | None:
    """Wrap errors in the `{ "data": null, "errors": [...] }` shape.

    - Domain errors map to 404 (missing) and 400 (conflict).
    - Blocklist and database outages fail closed with 503.
    - DRF errors go through the default handler, then 401/403 messages are normalized.
    - Anything else is logged, stored in the exception log and answered with 500.
    """

    if isinstance(exc, NotFoundError):
        return _envelope(exc.message, status.HTTP_404_NOT_FOUND)
    if isinstance(exc, ConflictError):
        return _envelope(exc.message, status.HTTP_400_BAD_REQUEST)

    if isinstance(exc, BlocklistUnavailable):
        return _envelope(
            "Authentication service unavailable (blocklist).",
            status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    if isinstance(exc, DatabaseError):
        logger.error("Database error while handling request: %s", exc)
        return _envelope("Service temporarily unavailable.", status.HTTP_503_SERVICE_UNAVAILABLE)

    response = drf_exception_handler(exc, context)

    if response is None:
        logger.exception("Unhandled exception", exc_info=exc)
        _record_exception(exc, context)
        message = str(exc) if settings.DEBUG else "An unexpected error occurred."
        return _envelope(message, status.HTTP_500_INTERNAL_SERVER_ERROR)

    if isinstance(exc, (AuthenticationFailed, NotAuthenticated)):
        response.status_code = status.HTTP_401_UNAUTHORIZED

    if response.status_code >= 400:
        if response.status_code == status.HTTP_401_UNAUTHORIZED:
            if getattr(settings, "DEBUG_AUTH_ERRORS", False):
                errors = _normalize_errors(response.data)
            else:
                errors = [UNAUTHORIZED_MESSAGE]
        elif response.status_code == status.HTTP_403_FORBIDDEN:
            errors = [FORBIDDEN_MESSAGE]
        else:
            errors = _normalize_errors(response.data)

        response.data = {"data": None, "errors": errors}

    return response


__all__ = ["custom_exception_handler", "FORBIDDEN_MESSAGE", "UNAUTHORIZED_MESSAGE"]
