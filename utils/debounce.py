"""Trailing-edge debouncing for keystroke-rate input.

A Debouncer wraps a callable so that a burst of calls results in a single
invocation, ``delay`` seconds after the last call in the burst, with the
arguments of that last call.

Usage::

    recompute = Debouncer(apply_filter, delay=0.3)
    for ch in "venue":
        recompute(current_text + ch)   # only the final text is applied
"""

import threading
from typing import Any, Callable, Optional

DEFAULT_DELAY_SECONDS = 0.3


class Debouncer:
    """Thread-safe trailing-edge debouncer backed by ``threading.Timer``.

    ``timer_factory`` must accept ``(interval, function, args, kwargs)`` like
    ``threading.Timer``; tests swap in a manually fired timer.
    """

    def __init__(self, fn: Callable[..., Any], delay: float = DEFAULT_DELAY_SECONDS,
                 timer_factory: Callable[..., Any] = threading.Timer) -> None:
        self._fn = fn
        self.delay = delay
        self._timer_factory = timer_factory
        self._timer: Optional[Any] = None
        self._pending: Optional[tuple[tuple, dict]] = None
        self._generation = 0
        self._lock = threading.Lock()
        self.calls = 0

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._pending = (args, kwargs)
            self._generation += 1
            timer = self._timer_factory(self.delay, self._fire, args=(self._generation,), kwargs={})
            if isinstance(timer, threading.Thread):
                timer.daemon = True
            self._timer = timer
            timer.start()

    def _fire(self, generation: Optional[int] = None) -> None:
        with self._lock:
            # A timer cancelled too late must not run a newer call early
            if generation is not None and generation != self._generation:
                return
            pending = self._pending
            self._pending = None
            self._timer = None
        if pending is None:
            return
        args, kwargs = pending
        self.calls += 1
        self._fn(*args, **kwargs)

    @property
    def pending(self) -> bool:
        """True while a call is scheduled but has not run yet."""
        with self._lock:
            return self._pending is not None

    def flush(self) -> None:
        """Run the scheduled call immediately, if any."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        self._fire()

    def cancel(self) -> None:
        """Drop the scheduled call without running it."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self._pending = None
