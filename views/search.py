"""Debounced search over an in-memory list.

Each keystroke updates the query; the filtered view is recomputed once, a
fixed delay after the last keystroke, so typing "venue" costs one filter pass
rather than five.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Optional, Sequence, Union

from utils.debounce import DEFAULT_DELAY_SECONDS, Debouncer

Source = Union[Sequence[Any], Callable[[], Optional[Sequence[Any]]]]


class DebouncedSearch:
    """Applies ``filter_fn(items, query)`` to ``source`` after input settles.

    Args:
        source: The list to search, or a callable returning the current list
            (e.g. ``lambda: cache.get_data(key)``) so recomputation sees the
            latest cached data.
        filter_fn: Pure function producing the filtered view.
        delay: Seconds of quiet before recomputing (default 0.3).
        on_results: Called with each recomputed view.
        timer_factory: ``threading.Timer``-compatible factory.
    """

    def __init__(self, source: Source, filter_fn: Callable[[Sequence[Any], str], list],
                 delay: float = DEFAULT_DELAY_SECONDS,
                 on_results: Optional[Callable[[list], None]] = None,
                 timer_factory: Callable[..., Any] = threading.Timer) -> None:
        self._source = source
        self._filter_fn = filter_fn
        self._on_results = on_results
        self._lock = threading.Lock()
        self.query = ""
        self.recomputations = 0
        self._results: list = self._compute("")
        self._debouncer = Debouncer(self._apply, delay=delay, timer_factory=timer_factory)

    def _items(self) -> Sequence[Any]:
        items = self._source() if callable(self._source) else self._source
        return list(items or [])

    def _compute(self, query: str) -> list:
        return list(self._filter_fn(self._items(), query))

    def _apply(self, query: str) -> None:
        results = self._compute(query)
        with self._lock:
            self._results = results
            self.recomputations += 1
        if self._on_results is not None:
            self._on_results(results)

    def set_query(self, text: str) -> None:
        """Record a keystroke; recomputation is deferred."""
        self.query = text
        self._debouncer(text)

    def type_text(self, text: str) -> None:
        """Feed ``text`` one character at a time, like a user typing it."""
        for ch in text:
            self.set_query(self.query + ch)

    @property
    def results(self) -> list:
        """The most recently computed view (a copy)."""
        with self._lock:
            return list(self._results)

    @property
    def pending(self) -> bool:
        return self._debouncer.pending

    def flush(self) -> None:
        """Recompute now if a query change is waiting."""
        self._debouncer.flush()

    def cancel(self) -> None:
        self._debouncer.cancel()
