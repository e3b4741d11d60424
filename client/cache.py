"""In-memory query cache with request deduplication for the PlanHaus client.

Entries are keyed by QueryKey, a tuple of strings. A read for a fresh entry
returns cached data without calling the fetcher. Concurrent reads for a stale
or missing key share one in-flight ``Future``, so N simultaneous readers cause
exactly one fetch. Retryable failures are retried with exponential backoff.

One cache is constructed per process (see ``client.factory``) and passed to
everything that reads through it; tests build a fresh one each.

Usage::

    cache = QueryCache()
    key = make_key(["/api/projects", 7, "budget"])
    items = cache.read(key, client.query_fn(), CachePolicy(300, 900))
    cache.invalidate(["/api/projects", 7])   # prefix match marks it stale
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

from client.errors import ApiError, RequestCancelledError

logger = logging.getLogger(__name__)

QueryKey = tuple[str, ...]

DEFAULT_STALE_TIME = 300.0
DEFAULT_GC_TIME = 900.0


def make_key(key: Any) -> QueryKey:
    """Normalize a key to a tuple of strings.

    A bare string is a one-element key; every other part goes through ``str``,
    so ``["/api/projects", 1]`` equals ``("/api/projects", "1")``.
    """
    if isinstance(key, str):
        return (key,)
    return tuple(str(part) for part in key)


def key_matches(key: QueryKey, prefix: QueryKey, exact: bool = False) -> bool:
    if exact:
        return key == prefix
    return key[:len(prefix)] == prefix


class QueryStatus(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class CachePolicy:
    """Staleness and retention windows for one query, in seconds."""
    stale_time: float = DEFAULT_STALE_TIME
    gc_time: float = DEFAULT_GC_TIME


class RetryStrategy:
    """Defines retry behavior for cache reads."""

    def __init__(self, max_retries: int = 2, backoff_factor: float = 1.0,
                 max_delay: float = 30.0):
        """Initialize retry strategy.

        Args:
            max_retries: Retries after the first attempt (default: 2, so 3
                attempts in total)
            backoff_factor: First delay in seconds; doubles per attempt
                (default: 1.0 -> 1s, 2s, 4s, ...)
            max_delay: Ceiling for a single delay (default: 30s)
        """
        self.max_retries = max_retries
        self.backoff_factor = backoff_factor
        self.max_delay = max_delay

    def get_delay(self, attempt: int) -> float:
        """Delay before retry number ``attempt + 1`` (``attempt`` is 0-based)."""
        return min(self.backoff_factor * (2 ** attempt), self.max_delay)

    def should_retry(self, error: BaseException, attempt: int) -> bool:
        """Only errors flagged retryable get another attempt, within budget."""
        if attempt >= self.max_retries:
            return False
        return isinstance(error, ApiError) and error.retryable


@dataclass
class QueryEntry:
    """Mutable cache record. Only QueryCache touches it, under its lock."""
    key: QueryKey
    stale_time: float
    gc_time: float
    created_at: float
    data: Any = None
    status: QueryStatus = QueryStatus.IDLE
    error: Optional[BaseException] = None
    updated_at: Optional[float] = None
    retry_count: int = 0
    invalidated: bool = False
    generation: int = 0
    future: Optional[Future] = None
    listeners: list = field(default_factory=list)

    @property
    def has_data(self) -> bool:
        return self.updated_at is not None

    def is_stale(self, now: float) -> bool:
        if not self.has_data or self.invalidated:
            return True
        return now - self.updated_at >= self.stale_time


@dataclass(frozen=True)
class QueryState:
    """Immutable snapshot of an entry, handed to callers and listeners."""
    key: QueryKey
    data: Any
    status: QueryStatus
    error: Optional[BaseException]
    updated_at: Optional[float]
    retry_count: int
    is_stale: bool

    @property
    def is_fetching(self) -> bool:
        return self.status == QueryStatus.FETCHING


class QueryCache:
    """Thread-safe query cache with deduplicated, retried fetches.

    Fetchers are called as ``fetcher(key, cancel)`` and return the data to
    store. Errors they raise propagate to every waiting reader.
    """

    def __init__(self, retry: Optional[RetryStrategy] = None,
                 default_policy: Optional[CachePolicy] = None,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep,
                 max_workers: int = 4) -> None:
        """Initialise the cache.

        Args:
            retry: Retry strategy for reads (default: 2 retries, 1s base).
            default_policy: Stale/gc windows for reads without a policy.
            clock: Monotonic clock in seconds; tests pass a fake.
            sleep: Backoff sleep; tests pass a recorder.
            max_workers: Worker threads for prefetch.
        """
        self.retry = retry or RetryStrategy()
        self.default_policy = default_policy or CachePolicy()
        self._clock = clock
        self._sleep = sleep
        self._entries: dict[QueryKey, QueryEntry] = {}
        self._lock = threading.RLock()
        self._executor = ThreadPoolExecutor(max_workers=max_workers,
                                            thread_name_prefix="query-cache")
        self._gc_stops: list[threading.Event] = []
        self._hits = 0
        self._misses = 0
        self._fetches = 0

    # ── Internals ─────────────────────────────────────────────────────────────

    def _entry(self, key: QueryKey, policy: Optional[CachePolicy]) -> QueryEntry:
        entry = self._entries.get(key)
        if entry is None:
            p = policy or self.default_policy
            entry = QueryEntry(key=key, stale_time=p.stale_time, gc_time=p.gc_time,
                               created_at=self._clock())
            self._entries[key] = entry
        elif policy is not None:
            entry.stale_time = policy.stale_time
            entry.gc_time = policy.gc_time
        return entry

    def _snapshot(self, entry: QueryEntry) -> QueryState:
        return QueryState(
            key=entry.key,
            data=entry.data,
            status=entry.status,
            error=entry.error,
            updated_at=entry.updated_at,
            retry_count=entry.retry_count,
            is_stale=entry.is_stale(self._clock()),
        )

    def _notify(self, entry: QueryEntry) -> None:
        with self._lock:
            state = self._snapshot(entry)
            listeners = list(entry.listeners)
        for listener in listeners:
            try:
                listener(state)
            except Exception:
                logger.exception("Query listener failed for %s", entry.key)

    def _is_current(self, entry: QueryEntry) -> bool:
        return self._entries.get(entry.key) is entry

    def _run_fetch(self, entry: QueryEntry, fetcher, future: Future,
                   generation: int, cancel) -> None:
        attempt = 0
        while True:
            try:
                if cancel is not None:
                    cancel.raise_if_cancelled()
                with self._lock:
                    self._fetches += 1
                data = fetcher(entry.key, cancel)
            except RequestCancelledError as exc:
                self._settle_cancelled(entry, future, exc)
                return
            except Exception as exc:
                if self.retry.should_retry(exc, attempt):
                    delay = self.retry.get_delay(attempt)
                    attempt += 1
                    with self._lock:
                        entry.retry_count = attempt
                    logger.info("Retrying %s in %.1fs after: %s", "/".join(entry.key), delay, exc,
                                extra={"query_key": list(entry.key), "attempt": attempt})
                    if cancel is not None:
                        cancel.wait(delay)
                    else:
                        self._sleep(delay)
                    continue
                self._settle_error(entry, future, exc)
                return
            self._settle_success(entry, future, data, generation)
            return

    def _settle_success(self, entry: QueryEntry, future: Future, data: Any,
                        generation: int) -> None:
        with self._lock:
            entry.future = None
            if self._is_current(entry):
                entry.data = data
                entry.status = QueryStatus.SUCCESS
                entry.error = None
                entry.updated_at = self._clock()
                entry.retry_count = 0
                # Invalidated while in flight: the landed data is already stale
                entry.invalidated = entry.generation != generation
        future.set_result(data)
        self._notify(entry)

    def _settle_error(self, entry: QueryEntry, future: Future, exc: BaseException) -> None:
        with self._lock:
            entry.future = None
            entry.status = QueryStatus.ERROR
            entry.error = exc
        logger.warning("Query %s failed: %s", "/".join(entry.key), exc,
                       extra={"query_key": list(entry.key), "attempt": entry.retry_count})
        future.set_exception(exc)
        self._notify(entry)

    def _settle_cancelled(self, entry: QueryEntry, future: Future, exc: BaseException) -> None:
        with self._lock:
            entry.future = None
            entry.status = QueryStatus.SUCCESS if entry.has_data else QueryStatus.IDLE
            entry.retry_count = 0
        future.set_exception(exc)
        self._notify(entry)

    # ── Reads ─────────────────────────────────────────────────────────────────

    def read(self, key: Any, fetcher: Callable, policy: Optional[CachePolicy] = None,
             cancel=None) -> Any:
        """Return data for ``key``, fetching only when missing or stale.

        Blocks until data is available. If another thread is already fetching
        the key, waits on that fetch instead of starting a second one. When
        that fetch is cancelled by the reader that started it, a waiting
        reader starts a new fetch under its own ``cancel`` token.

        Raises:
            Whatever the fetch finally raised after retries.
        """
        key = make_key(key)
        while True:
            with self._lock:
                entry = self._entry(key, policy)
                if not entry.is_stale(self._clock()):
                    self._hits += 1
                    return entry.data
                self._misses += 1
                future = entry.future
                leader = future is None
                if leader:
                    future = Future()
                    entry.future = future
                    entry.status = QueryStatus.FETCHING
                    generation = entry.generation

            if leader:
                self._notify(entry)
                self._run_fetch(entry, fetcher, future, generation, cancel)
                return future.result()
            try:
                return future.result()
            except RequestCancelledError:
                if cancel is not None and cancel.cancelled:
                    raise
                logger.debug("Shared fetch of %s was cancelled, retrying", "/".join(key))

    def prefetch(self, key: Any, fetcher: Callable,
                 policy: Optional[CachePolicy] = None) -> Future:
        """Warm ``key`` on the worker pool without blocking the caller.

        Returns:
            A future resolving to the data, or None if the fetch failed. It
            never raises.
        """

        def run():
            try:
                return self.read(key, fetcher, policy)
            except Exception as e:
                logger.debug("Prefetch of %s failed: %s", make_key(key), e)
                return None

        try:
            return self._executor.submit(run)
        except RuntimeError:
            # Pool already shut down
            done: Future = Future()
            done.set_result(None)
            return done

    def set_data(self, key: Any, data: Any) -> None:
        """Store ``data`` for ``key`` as freshly fetched."""
        key = make_key(key)
        with self._lock:
            entry = self._entry(key, None)
            entry.data = data
            entry.status = QueryStatus.SUCCESS
            entry.error = None
            entry.updated_at = self._clock()
            entry.invalidated = False
        self._notify(entry)

    def get_state(self, key: Any) -> Optional[QueryState]:
        with self._lock:
            entry = self._entries.get(make_key(key))
            return self._snapshot(entry) if entry is not None else None

    def get_data(self, key: Any) -> Any:
        """Cached data for ``key`` (possibly stale), or None."""
        with self._lock:
            entry = self._entries.get(make_key(key))
            return entry.data if entry is not None else None

    def keys(self) -> list[QueryKey]:
        with self._lock:
            return list(self._entries)

    # ── Invalidation ──────────────────────────────────────────────────────────

    def invalidate(self, key: Any, exact: bool = False, remove: bool = False) -> int:
        """Mark matching entries stale, or drop them with ``remove=True``.

        Matching is by prefix unless ``exact``. Returns the number of entries
        affected.
        """
        prefix = make_key(key)
        return self.invalidate_where(lambda k: key_matches(k, prefix, exact), remove=remove)

    def invalidate_where(self, predicate: Callable[[QueryKey], bool],
                         remove: bool = False) -> int:
        """Invalidate every entry whose key satisfies ``predicate``."""
        touched: list[QueryEntry] = []
        with self._lock:
            for key, entry in list(self._entries.items()):
                try:
                    matched = predicate(key)
                except Exception:
                    logger.exception("Invalidation predicate failed for %s", key)
                    continue
                if not matched:
                    continue
                if remove:
                    del self._entries[key]
                else:
                    entry.invalidated = True
                    entry.generation += 1
                touched.append(entry)
        if not remove:
            for entry in touched:
                self._notify(entry)
        if touched:
            logger.debug("%s %d cached queries", "Removed" if remove else "Invalidated",
                         len(touched))
        return len(touched)

    # ── Subscriptions ─────────────────────────────────────────────────────────

    def subscribe(self, key: Any, listener: Callable[[QueryState], None]) -> Callable[[], None]:
        """Call ``listener`` with a QueryState after every change to ``key``.

        Subscribed entries are never garbage collected.

        Returns:
            A function that removes the listener.
        """
        key = make_key(key)
        with self._lock:
            entry = self._entry(key, None)
            entry.listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in entry.listeners:
                    entry.listeners.remove(listener)

        return unsubscribe

    # ── Garbage collection ────────────────────────────────────────────────────

    def collect_garbage(self, max_age: Optional[float] = None) -> int:
        """Remove idle, unobserved entries last updated more than ``max_age`` ago.

        Without ``max_age`` each entry's own ``gc_time`` applies. Entries with
        a fetch in flight or with listeners are kept.

        Returns:
            Number of entries removed.
        """
        now = self._clock()
        removed = 0
        with self._lock:
            for key, entry in list(self._entries.items()):
                if entry.future is not None or entry.listeners:
                    continue
                last = entry.updated_at if entry.updated_at is not None else entry.created_at
                limit = entry.gc_time if max_age is None else max_age
                if now - last > limit:
                    del self._entries[key]
                    removed += 1
        if removed:
            logger.debug("Garbage collected %d cached queries", removed)
        return removed

    def start_gc(self, interval: float = 60.0, max_age: Optional[float] = None) -> threading.Event:
        """Run ``collect_garbage`` every ``interval`` seconds on a daemon thread.

        Returns:
            An Event; set it to stop the collector.
        """
        stop = threading.Event()

        def loop() -> None:
            while not stop.wait(interval):
                self.collect_garbage(max_age)

        thread = threading.Thread(target=loop, name="query-cache-gc", daemon=True)
        thread.start()
        with self._lock:
            self._gc_stops.append(stop)
        return stop

    # ── Housekeeping ──────────────────────────────────────────────────────────

    def clear(self) -> None:
        """Remove all entries and reset statistics."""
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0
            self._fetches = 0

    def stats(self) -> dict[str, int]:
        """Return cache statistics.

        Returns:
            Dict with keys ``hits``, ``misses``, ``fetches``, ``size`` and
            ``in_flight``.
        """
        with self._lock:
            return {
                "hits": self._hits,
                "misses": self._misses,
                "fetches": self._fetches,
                "size": len(self._entries),
                "in_flight": sum(1 for e in self._entries.values() if e.future is not None),
            }

    def shutdown(self, wait: bool = False) -> None:
        """Stop background collectors and the prefetch pool."""
        with self._lock:
            stops = list(self._gc_stops)
            self._gc_stops.clear()
        for stop in stops:
            stop.set()
        self._executor.shutdown(wait=wait)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

