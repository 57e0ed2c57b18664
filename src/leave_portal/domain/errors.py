"""Error taxonomy shared by services and the HTTP layer."""

from collections.abc import Iterator
from contextlib import contextmanager


class PortalError(Exception):
    """Base class for errors surfaced to callers."""


class Unauthenticated(PortalError):
    """Raised when a call carries no caller identity."""


class Forbidden(PortalError):
    """Raised when the caller lacks ownership or the required role."""


class InvalidInput(PortalError):
    """Raised when arguments fail validation."""


class PayloadTooLarge(PortalError):
    """Raised when an upload exceeds the configured size limit."""


class NotFound(PortalError):
    """Raised when a referenced record does not exist."""


class InvalidTransition(PortalError):
    """Raised when a status change is not permitted from the current state."""


class StorageFailure(PortalError):
    """Raised when the record or blob store is unavailable. Retryable."""


class NotificationFailure(PortalError):
    """Raised by notification clients. Never propagated to callers."""


@contextmanager
def storage_errors(action: str) -> Iterator[None]:
    """Wrap non-domain exceptions raised by a store call as StorageFailure."""
    try:
        yield
    except PortalError:
        raise
    except Exception as exc:
        raise StorageFailure(f"{action} failed") from exc
