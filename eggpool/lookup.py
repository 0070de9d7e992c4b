"""
Debounced validation of a free-text field against a remote lookup.

Each input change replaces the field's single task handle: the previous
handle is cancelled, the displayed result resets at once, and a new task
sleeps through the quiet period before issuing the lookup.  Typing again
during the quiet period throws the old timer away entirely.

A request that has already been sent is not aborted when the input changes.
It runs to completion under ``asyncio.shield`` while its handle is cancelled,
so the outcome is simply never published.  Only the live handle may publish,
which keeps results from an abandoned keystroke sequence out of the display
without any sequence numbers.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from utils.errors import EggPoolError, NotFoundError

logger = logging.getLogger(__name__)

DEFAULT_DELAY_SECONDS = 0.6


class LookupStatus(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    MATCHED = "matched"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass(frozen=True)
class LookupResult:
    status: LookupStatus = LookupStatus.IDLE
    query: str = ""
    entity: Any = None
    label: str = ""
    error: str = ""

    @property
    def matched(self) -> bool:
        return self.status is LookupStatus.MATCHED

    @property
    def feedback(self) -> str:
        """Short status line for display next to the field."""
        if self.status is LookupStatus.PENDING:
            return "Looking up…"
        if self.status is LookupStatus.MATCHED:
            return f"✓ {self.label}"
        if self.status is LookupStatus.NOT_FOUND:
            return "✗ Pokemon not found"
        if self.status is LookupStatus.ERROR:
            return f"✗ {self.error}"
        return ""


def _default_label(entity: Any) -> str:
    return getattr(entity, "label", None) or str(entity)


def _consume(future: asyncio.Future) -> None:
    # A discarded request may still fail; retrieve it so asyncio stays quiet.
    if not future.cancelled():
        future.exception()


class DebouncedLookup:
    """One debounced lookup channel for one input field.

    Args:
        lookup_fn: Coroutine function ``lookup_fn(text) -> entity``; raises
            ``NotFoundError`` for a miss.
        delay_seconds: Quiet period before a lookup fires (default 0.6).
        on_result: Optional callback receiving every published LookupResult.
        label_fn: Turns an entity into its display label.
    """

    def __init__(self, lookup_fn: Callable[[str], Awaitable[Any]],
                 delay_seconds: float = DEFAULT_DELAY_SECONDS,
                 on_result: Optional[Callable[[LookupResult], None]] = None,
                 label_fn: Callable[[Any], str] = _default_label) -> None:
        self._lookup_fn = lookup_fn
        self.delay_seconds = delay_seconds
        self._on_result = on_result
        self._label_fn = label_fn
        self._handle: Optional[asyncio.Task] = None
        self.result = LookupResult()
        self.lookups_started = 0

    @property
    def confirmed(self) -> Any:
        """The matched entity, or ``None`` unless the last lookup matched."""
        return self.result.entity if self.result.matched else None

    def _publish(self, result: LookupResult) -> None:
        self.result = result
        if self._on_result is not None:
            self._on_result(result)

    def cancel(self) -> None:
        """Discard the pending handle without touching the displayed result."""
        if self._handle is not None and not self._handle.done():
            self._handle.cancel()
        self._handle = None

    def on_input_change(self, text: str) -> None:
        """Supersede any pending lookup with one for *text*.

        Must be called from within a running event loop.
        """
        self.cancel()
        query = text.strip()
        if not query:
            self._publish(LookupResult())
            return
        self._publish(LookupResult(status=LookupStatus.PENDING, query=query))
        handle = asyncio.get_running_loop().create_task(self._run(query))
        self._handle = handle

    async def _run(self, query: str) -> None:
        await asyncio.sleep(self.delay_seconds)

        self.lookups_started += 1
        logger.debug("Looking up %r", query)
        request = asyncio.ensure_future(self._lookup_fn(query))
        request.add_done_callback(_consume)
        try:
            entity = await asyncio.shield(request)
        except NotFoundError:
            result = LookupResult(status=LookupStatus.NOT_FOUND, query=query)
        except EggPoolError as e:
            logger.warning("Lookup for %r failed: %s", query, e)
            result = LookupResult(status=LookupStatus.ERROR, query=query, error=str(e))
        else:
            result = LookupResult(status=LookupStatus.MATCHED, query=query,
                                  entity=entity, label=self._label_fn(entity))

        if asyncio.current_task() is self._handle:
            self._publish(result)

    async def wait(self) -> LookupResult:
        """Wait for the live handle (if any) and return the current result."""
        handle = self._handle
        if handle is not None:
            await asyncio.wait({handle})
            if not handle.cancelled() and handle.exception() is not None:
                raise handle.exception()
        return self.result
