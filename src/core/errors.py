"""Domain errors raised by services and mapped to HTTP responses by the exception handler."""


class DomainError(Exception):
    """Base class for recoverable, caller-facing service errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(DomainError):
    """A referenced user, role, permission or resource does not exist."""


class ConflictError(DomainError):
    """The resource being created already exists or cannot change state."""


__all__ = ["DomainError", "NotFoundError", "ConflictError"]
