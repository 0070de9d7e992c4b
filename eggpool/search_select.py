"""
Searchable selection over a fixed candidate list.

The view model behind a type-to-filter picker: it narrows the candidates by
case-insensitive substring, keeps a keyboard highlight inside the filtered
list, and notifies listeners when a candidate is committed.  Where the
candidates came from (a cached reference list, a literal list in a test) is
not its concern.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Iterable, Optional, Sequence

logger = logging.getLogger(__name__)

MAX_RESULTS = 150
BLUR_GRACE_SECONDS = 0.15


def filter_candidates(candidates: Sequence[str], query: str,
                      limit: int = MAX_RESULTS) -> list[str]:
    """Candidates containing *query* (case-insensitive), in original order.

    An empty query matches everything.  At most *limit* results are returned.

    Example:
        filter_candidates(["Vine Whip", "Whirlwind", "Will-O-Wisp"], "whi")
        -> ["Vine Whip", "Whirlwind"]
    """
    q = query.strip().lower()
    if not q:
        return list(candidates[:limit])
    matches: list[str] = []
    for candidate in candidates:
        if q in candidate.lower():
            matches.append(candidate)
            if len(matches) >= limit:
                break
    return matches


class IncrementalSearchSelect:
    """Filter, highlight and confirm over one candidate list.

    ``highlighted`` is ``-1`` when nothing is highlighted.  Listeners are
    called with the confirmed candidate after the view has closed.
    """

    def __init__(self, candidates: Iterable[str],
                 on_select: Optional[Callable[[str], None]] = None,
                 max_results: int = MAX_RESULTS,
                 blur_grace_seconds: float = BLUR_GRACE_SECONDS) -> None:
        self.candidates: tuple[str, ...] = tuple(candidates)
        self.max_results = max_results
        self.blur_grace_seconds = blur_grace_seconds
        self._listeners: list[Callable[[str], None]] = []
        if on_select is not None:
            self._listeners.append(on_select)
        self._close_timer: Optional[asyncio.TimerHandle] = None
        self.query = ""
        self.value = ""
        self.filtered: list[str] = []
        self.highlighted = -1
        self.is_open = False
        self.detached = False

    def add_listener(self, fn: Callable[[str], None]) -> None:
        self._listeners.append(fn)

    @property
    def highlighted_candidate(self) -> Optional[str]:
        if 0 <= self.highlighted < len(self.filtered):
            return self.filtered[self.highlighted]
        return None

    def set_query(self, query: str) -> list[str]:
        """Recompute the filtered list for *query* and open the view."""
        self.query = query
        self.filtered = filter_candidates(self.candidates, query, self.max_results)
        self.highlighted = -1
        self.is_open = True
        return self.filtered

    def open(self) -> None:
        self.set_query(self.query)

    def close(self) -> None:
        self.is_open = False
        self.highlighted = -1

    def move_highlight(self, delta: int) -> int:
        """Move the highlight by *delta*, clamped to the filtered list."""
        if not self.filtered:
            self.highlighted = -1
            return self.highlighted
        target = self.highlighted + delta
        self.highlighted = max(0, min(target, len(self.filtered) - 1))
        return self.highlighted

    def confirm(self, candidate: Optional[str] = None) -> Optional[str]:
        """Commit *candidate*, or the highlighted one when none is given.

        Returns the committed value, or ``None`` (and changes nothing) when
        there is neither an explicit nor a highlighted candidate.
        """
        chosen = candidate if candidate is not None else self.highlighted_candidate
        if chosen is None:
            return None
        self.value = chosen
        self.query = chosen
        self.close()
        for listener in list(self._listeners):
            listener(chosen)
        return chosen

    def handle_key(self, key: str) -> bool:
        """Apply a navigation key; returns True when the key was consumed.

        While closed, any key just opens the view.
        """
        if not self.is_open:
            self.open()
            return False
        if key == "ArrowDown":
            self.move_highlight(1)
        elif key == "ArrowUp":
            self.move_highlight(-1)
        elif key == "Enter":
            return self.confirm() is not None
        elif key == "Escape":
            self.close()
        else:
            return False
        return True

    def _cancel_close(self) -> None:
        if self._close_timer is not None:
            self._close_timer.cancel()
            self._close_timer = None

    def on_focus(self) -> None:
        self._cancel_close()
        self.open()

    def on_blur(self) -> None:
        """Close after a grace delay so an in-flight pointer pick lands first.

        Must be called from within a running event loop.
        """
        self._cancel_close()
        loop = asyncio.get_running_loop()
        self._close_timer = loop.call_later(self.blur_grace_seconds, self._close_after_blur)

    def _close_after_blur(self) -> None:
        self._close_timer = None
        self.close()

    def detach(self) -> None:
        """Drop timers, listeners and view state."""
        self._cancel_close()
        self._listeners.clear()
        self.filtered = []
        self.close()
        self.detached = True
