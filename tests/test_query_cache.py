"""Tests for client/cache.py: deduplicating query cache with retry and GC."""

import threading
import time

import pytest

from client.cache import (
    CachePolicy,
    QueryStatus,
    RetryStrategy,
    key_matches,
    make_key,
)
from client.errors import (
    AuthenticationError,
    ClientError,
    NetworkError,
    RequestCancelledError,
    ServerError,
)
from client.http import CancelToken


class CountingFetcher:
    """Fetcher that returns successive values (or raises queued errors)."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes) or ["data"]
        self.calls = 0
        self._lock = threading.Lock()

    def __call__(self, key, cancel=None):
        with self._lock:
            self.calls += 1
            outcome = self.outcomes[min(self.calls, len(self.outcomes)) - 1]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


# ── Keys ──────────────────────────────────────────────────────────────────────

class TestKeys:
    def test_parts_are_stringified(self):
        assert make_key(["/api/projects", 1, "budget"]) == ("/api/projects", "1", "budget")

    def test_bare_string_is_one_part(self):
        assert make_key("/api/projects") == ("/api/projects",)

    def test_prefix_match(self):
        key = ("/api/projects", "1", "budget")
        assert key_matches(key, ("/api/projects", "1"))
        assert not key_matches(key, ("/api/projects", "2"))
        assert not key_matches(key, ("/api/projects", "1"), exact=True)


# ── Reads ─────────────────────────────────────────────────────────────────────

class TestRead:
    def test_fresh_entry_served_from_cache(self, cache):
        fetch = CountingFetcher([1, 2])
        assert cache.read(["k"], fetch) == [1, 2]
        assert cache.read(["k"], fetch) == [1, 2]
        assert fetch.calls == 1
        assert cache.stats()["hits"] == 1

    def test_stale_entry_refetched(self, cache, clock):
        fetch = CountingFetcher("a", "b")
        policy = CachePolicy(stale_time=30, gc_time=120)
        assert cache.read("k", fetch, policy) == "a"
        clock.advance(31)
        assert cache.get_state("k").is_stale
        assert cache.read("k", fetch, policy) == "b"
        assert fetch.calls == 2

    def test_concurrent_readers_share_one_fetch(self, cache):
        started = threading.Event()
        release = threading.Event()
        calls = []

        def slow_fetch(key, cancel=None):
            calls.append(key)
            started.set()
            release.wait(5)
            return {"value": 42}

        results = []
        leader = threading.Thread(target=lambda: results.append(cache.read("shared", slow_fetch)))
        leader.start()
        assert started.wait(5)
        followers = [threading.Thread(target=lambda: results.append(cache.read("shared", slow_fetch)))
                     for _ in range(4)]
        for t in followers:
            t.start()
        release.set()
        for t in [leader, *followers]:
            t.join(timeout=5)

        assert len(calls) == 1
        assert results == [{"value": 42}] * 5

    def test_failure_keeps_previous_data(self, cache):
        cache.set_data("k", ["old"])
        cache.invalidate("k")
        with pytest.raises(ClientError):
            cache.read("k", CountingFetcher(ClientError(404, "gone")))
        state = cache.get_state("k")
        assert state.status is QueryStatus.ERROR
        assert state.data == ["old"]
        assert isinstance(state.error, ClientError)

    def test_set_data_marks_fresh(self, cache):
        cache.set_data(["/api/auth/me"], {"id": "1"})
        fetch = CountingFetcher()
        assert cache.read(["/api/auth/me"], fetch) == {"id": "1"}
        assert fetch.calls == 0


# ── Retry ─────────────────────────────────────────────────────────────────────

class TestRetry:
    def test_three_attempts_with_backoff(self, cache, sleeps):
        fetch = CountingFetcher(ServerError(500, "boom"))
        with pytest.raises(ServerError):
            cache.read("k", fetch)
        assert fetch.calls == 3
        assert sleeps.delays == [1.0, 2.0]

    def test_recovers_and_resets_retry_count(self, cache):
        fetch = CountingFetcher(NetworkError("offline"), NetworkError("offline"), "ok")
        assert cache.read("k", fetch) == "ok"
        state = cache.get_state("k")
        assert state.retry_count == 0
        assert state.status is QueryStatus.SUCCESS

    @pytest.mark.parametrize("error", [
        ClientError(404, "missing"),
        AuthenticationError(),
        RequestCancelledError(),
    ])
    def test_terminal_errors_not_retried(self, cache, sleeps, error):
        fetch = CountingFetcher(error)
        with pytest.raises(type(error)):
            cache.read("k", fetch)
        assert fetch.calls == 1
        assert sleeps.delays == []

    def test_delay_capped(self):
        strategy = RetryStrategy(max_retries=10, backoff_factor=1.0, max_delay=30.0)
        assert [strategy.get_delay(a) for a in range(6)] == [1, 2, 4, 8, 16, 30]

    def test_non_api_errors_not_retried(self):
        assert not RetryStrategy().should_retry(ValueError("x"), 0)


# ── Cancellation ──────────────────────────────────────────────────────────────

class TestCancellation:
    def test_cancelled_read_without_data_goes_idle(self, cache):
        token = CancelToken()
        token.cancel()
        with pytest.raises(RequestCancelledError):
            cache.read("k", CountingFetcher(), cancel=token)
        assert cache.get_state("k").status is QueryStatus.IDLE

    def test_other_readers_survive_leader_cancel(self, cache):
        started = threading.Event()
        calls = []

        def fetch(key, cancel=None):
            calls.append(cancel)
            if cancel is not None:
                started.set()
                cancel.wait(5)
                cancel.raise_if_cancelled()
            return "data"

        token = CancelToken()
        outcomes = {}

        def lead():
            try:
                outcomes["leader"] = cache.read("k", fetch, cancel=token)
            except RequestCancelledError as e:
                outcomes["leader"] = e

        leader = threading.Thread(target=lead)
        leader.start()
        assert started.wait(5)
        follower = threading.Thread(target=lambda: outcomes.setdefault("follower", cache.read("k", fetch)))
        follower.start()
        for _ in range(500):
            if cache.stats()["misses"] >= 2:
                break
            time.sleep(0.01)
        token.cancel()
        leader.join(timeout=5)
        follower.join(timeout=5)

        assert isinstance(outcomes["leader"], RequestCancelledError)
        assert outcomes["follower"] == "data"
        assert calls == [token, None]
        assert cache.get_data("k") == "data"

    def test_cancelled_refetch_keeps_success(self, cache):
        cache.set_data("k", "cached")
        cache.invalidate("k")
        with pytest.raises(RequestCancelledError):
            cache.read("k", CountingFetcher(RequestCancelledError()))
        state = cache.get_state("k")
        assert state.status is QueryStatus.SUCCESS
        assert state.data == "cached"


# ── Invalidation ──────────────────────────────────────────────────────────────

class TestInvalidation:
    def _populate(self, cache):
        for key in (("/api/projects", "1", "budget"), ("/api/projects", "1", "tasks"),
                    ("/api/projects", "2", "budget"), ("/api/dashboard/stats",)):
            cache.set_data(key, list(key))

    def test_prefix_invalidation_refetches_exactly_once(self, cache):
        self._populate(cache)
        assert cache.invalidate(["/api/projects", 1]) == 2

        fetch = CountingFetcher(["fresh"])
        assert cache.read(["/api/projects", 1, "budget"], fetch) == ["fresh"]
        assert cache.read(["/api/projects", 1, "budget"], fetch) == ["fresh"]
        assert fetch.calls == 1

        untouched = CountingFetcher()
        cache.read(["/api/projects", 2, "budget"], untouched)
        assert untouched.calls == 0

    def test_exact_invalidation(self, cache):
        self._populate(cache)
        assert cache.invalidate(["/api/projects", "1"], exact=True) == 0
        assert cache.invalidate(["/api/projects", "1", "tasks"], exact=True) == 1
        assert not cache.get_state(["/api/projects", "1", "budget"]).is_stale

    def test_remove_drops_entries(self, cache):
        self._populate(cache)
        assert cache.invalidate(["/api/projects"], remove=True) == 3
        assert cache.keys() == [("/api/dashboard/stats",)]

    def test_invalidate_where_predicate(self, cache):
        self._populate(cache)
        assert cache.invalidate_where(lambda k: k[-1] == "budget") == 2

    def test_missing_key_is_noop(self, cache):
        assert cache.invalidate(["/api/nothing"]) == 0

    def test_invalidated_during_fetch_stays_stale(self, cache):
        def fetch(key, cancel=None):
            cache.invalidate(key)
            return "landed"

        assert cache.read("k", fetch) == "landed"
        state = cache.get_state("k")
        assert state.data == "landed"
        assert state.is_stale


# ── Prefetch ──────────────────────────────────────────────────────────────────

class TestPrefetch:
    def test_prefetch_warms_cache(self, cache):
        future = cache.prefetch("k", CountingFetcher("warm"))
        assert future.result(timeout=5) == "warm"
        assert cache.get_data("k") == "warm"

    def test_prefetch_never_raises(self, cache):
        future = cache.prefetch("k", CountingFetcher(ClientError(400, "bad")))
        assert future.result(timeout=5) is None

    def test_prefetch_after_shutdown(self, cache):
        cache.shutdown()
        assert cache.prefetch("k", CountingFetcher()).result(timeout=1) is None


# ── Subscriptions & GC ────────────────────────────────────────────────────────

class TestSubscriptions:
    def test_listener_sees_fetch_lifecycle(self, cache):
        seen = []
        unsubscribe = cache.subscribe("k", lambda state: seen.append(state.status))
        cache.read("k", CountingFetcher("v"))
        assert seen == [QueryStatus.FETCHING, QueryStatus.SUCCESS]
        unsubscribe()
        cache.set_data("k", "w")
        assert len(seen) == 2

    def test_failing_listener_does_not_break_read(self, cache):
        def broken(state):
            raise RuntimeError("listener bug")

        cache.subscribe("k", broken)
        assert cache.read("k", CountingFetcher("v")) == "v"


class TestGarbageCollection:
    def test_old_entries_collected(self, cache, clock):
        cache.set_data("old", 1)
        clock.advance(1000)
        cache.set_data("new", 2)
        assert cache.collect_garbage() == 1
        assert cache.keys() == [("new",)]

    def test_explicit_max_age(self, cache, clock):
        cache.set_data("a", 1)
        clock.advance(61)
        assert cache.collect_garbage(max_age=60) == 1

    def test_subscribed_entries_kept(self, cache, clock):
        cache.set_data("watched", 1)
        cache.subscribe("watched", lambda s: None)
        clock.advance(10_000)
        assert cache.collect_garbage() == 0

    def test_start_gc_returns_stop_event(self, cache):
        stop = cache.start_gc(interval=3600)
        assert not stop.is_set()
        cache.shutdown()
        assert stop.is_set()

    def test_clear_resets_stats(self, cache):
        cache.set_data("a", 1)
        cache.read("a", CountingFetcher())
        cache.clear()
        assert cache.stats() == {"hits": 0, "misses": 0, "fetches": 0, "size": 0, "in_flight": 0}
        assert len(cache) == 0
