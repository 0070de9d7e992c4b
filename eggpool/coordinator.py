"""
Append one record to the shared egg document without locks.

Each attempt is a full read-modify-write: read the document and its version
token, append the record to a copy, and submit the copy with the token.  If
another trainer committed in between, the store rejects the write as a
conflict; the coordinator waits a little longer each time and starts over
from a fresh read.  Any other failure ends the attempt loop immediately.

    IDLE -> READING -> WRITING -> SUCCESS
                          |
                          +-> RETRYING -> READING ...
                          +-> FAILED

A single ``append`` call writes successfully at most once, and a retry never
resubmits the stale copy, so a lost race cannot double-append.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

from eggpool.records import Document, EggRecord
from eggpool.store import VersionedDocumentStore
from utils.errors import ConflictError, EggPoolError

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BACKOFF_SECONDS = 0.5


class AppendState(str, Enum):
    IDLE = "idle"
    READING = "reading"
    WRITING = "writing"
    RETRYING = "retrying"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class AppendResult:
    """Outcome of one ``append`` call."""

    ok: bool
    attempts: int
    reads: int
    writes: int
    document: Optional[Document] = None
    token: Optional[str] = None
    error: Optional[EggPoolError] = None

    @property
    def message(self) -> str:
        """The underlying error text, verbatim; empty on success."""
        return str(self.error) if self.error is not None else ""


class AppendCoordinator:
    """Client-side compare-and-swap loop over a versioned store.

    Args:
        store: Authority holding the shared document.
        max_attempts: Read-modify-write attempts before giving up (default 3).
        backoff_seconds: Linear back-off unit; attempt ``n`` waits
            ``backoff_seconds * n`` before its read (default 0.5).
        sleep: Awaitable sleep, replaceable in tests.
        on_state: Optional ``callback(state, attempt)`` for progress display.
    """

    def __init__(self, store: VersionedDocumentStore,
                 max_attempts: int = DEFAULT_MAX_ATTEMPTS,
                 backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
                 on_state: Optional[Callable[[AppendState, int], None]] = None) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.store = store
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self._sleep = sleep
        self._on_state = on_state
        self.state = AppendState.IDLE

    def _set_state(self, state: AppendState, attempt: int,
                   observer: Optional[Callable[[AppendState, int], None]] = None) -> None:
        self.state = state
        for callback in (self._on_state, observer):
            if callback is not None:
                callback(state, attempt)

    def backoff_for(self, attempt: int) -> float:
        """Delay before *attempt* (1-based); the first attempt never waits."""
        return 0.0 if attempt <= 1 else self.backoff_seconds * attempt

    async def append(self, record: EggRecord, description: str,
                     on_state: Optional[Callable[[AppendState, int], None]] = None
                     ) -> AppendResult:
        """Append *record*, retrying only on version conflicts.

        *on_state* observes transitions for this call only.
        """
        reads = writes = 0
        last_error: Optional[EggPoolError] = None

        for attempt in range(1, self.max_attempts + 1):
            if attempt > 1:
                self._set_state(AppendState.RETRYING, attempt, on_state)
                await self._sleep(self.backoff_for(attempt))

            try:
                self._set_state(AppendState.READING, attempt, on_state)
                reads += 1
                current = await self.store.read()

                self._set_state(AppendState.WRITING, attempt, on_state)
                updated = current.appended(record)
                writes += 1
                token = await self.store.write(updated, current.token, description)
            except ConflictError as e:
                last_error = e
                logger.warning(
                    "Write conflict for record %s (attempt %d/%d): %s",
                    record.id, attempt, self.max_attempts, e,
                    extra={"attempt": attempt, "record_id": record.id,
                           "status": e.status},
                )
                continue
            except EggPoolError as e:
                last_error = e
                logger.error(
                    "Append of record %s failed without retry: %s", record.id, e,
                    extra={"attempt": attempt, "record_id": record.id,
                           "kind": e.kind.value, "status": e.status},
                )
                break

            self._set_state(AppendState.SUCCESS, attempt, on_state)
            logger.info("Appended record %s on attempt %d", record.id, attempt,
                        extra={"attempt": attempt, "record_id": record.id})
            return AppendResult(
                ok=True, attempts=attempt, reads=reads, writes=writes,
                document=Document(records=updated.records, token=token),
                token=token,
            )
        else:
            logger.error("Giving up on record %s after %d conflicting attempts",
                         record.id, self.max_attempts,
                         extra={"record_id": record.id})

        self._set_state(AppendState.FAILED, attempt, on_state)
        return AppendResult(ok=False, attempts=attempt, reads=reads,
                            writes=writes, error=last_error)
