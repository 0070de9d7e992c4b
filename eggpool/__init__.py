"""
Egg pool -- a shared, append-only egg list for Pokemon Egglocke runs.

Trainers append egg records to one JSON document kept in a GitHub repository.
Writes use optimistic concurrency (read the version token, write against it,
retry on conflict); there are no locks.

Re-exports the data model and error taxonomy so callers can do::

    from eggpool import EggRecord, Document, ConflictError

Components that talk to the network live in their own modules:
``eggpool.store``, ``eggpool.coordinator``, ``eggpool.reference``,
``eggpool.lookup``, ``eggpool.search_select``, ``eggpool.submission`` and
``eggpool.gallery``.
"""

from utils.errors import (
    CacheCorruptionError,
    ConflictError,
    EggPoolError,
    ErrorKind,
    NotFoundError,
    TransportError,
    ValidationError,
    is_retryable,
)
from eggpool.records import Document, EggRecord, new_record_id

__version__ = "1.0.0"

__all__ = [
    # Errors
    "CacheCorruptionError",
    "ConflictError",
    "EggPoolError",
    "ErrorKind",
    "NotFoundError",
    "TransportError",
    "ValidationError",
    "is_retryable",
    # Data model
    "Document",
    "EggRecord",
    "new_record_id",
]
