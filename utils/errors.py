"""Error taxonomy shared by the egg pool packages.

Every failure the core can report is an :class:`EggPoolError` subclass with a
``kind`` discriminant.  Callers branch on ``kind`` (or the class), never on
the message text.

    TransportError        network failure or non-2xx response; not retried
    ConflictError         version token mismatch on write; the only retryable kind
    NotFoundError         lookup miss; a valid negative result, not a fault
    ValidationError       caller input rejected before any network call
    CacheCorruptionError  unparsable cache entry; handled as a miss internally
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    CONFLICT = "conflict"
    TRANSPORT = "transport"
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    CACHE_CORRUPTION = "cache_corruption"


class EggPoolError(Exception):
    """Base error carrying an explicit ``kind`` and optional HTTP status."""

    kind: ErrorKind = ErrorKind.TRANSPORT

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status

    def __str__(self) -> str:
        return self.message


class TransportError(EggPoolError):
    kind = ErrorKind.TRANSPORT


class ConflictError(TransportError):
    """The submitted version token no longer matches the store's."""

    kind = ErrorKind.CONFLICT


class NotFoundError(EggPoolError):
    kind = ErrorKind.NOT_FOUND


class ValidationError(EggPoolError):
    kind = ErrorKind.VALIDATION


class CacheCorruptionError(EggPoolError):
    kind = ErrorKind.CACHE_CORRUPTION


# GitHub answers 409 for a stale sha and 422 when the ref moved underneath us.
CONFLICT_STATUSES = frozenset({409, 422})


def error_for_status(status: int, message: str) -> TransportError:
    """Classify a non-2xx write response."""
    if status in CONFLICT_STATUSES:
        return ConflictError(message, status=status)
    return TransportError(message, status=status)


def is_retryable(err: BaseException) -> bool:
    return isinstance(err, EggPoolError) and err.kind is ErrorKind.CONFLICT
