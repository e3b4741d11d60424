"""
Pytest fixtures for PlanHaus tests.

Provides reusable test doubles for the client sync layer:

- FakeResponse / FakeTransport: a scripted, requests.Session-compatible
  transport that records every call
- RecordingNotifier: collects notifications instead of logging them
- FakeClock / FakeTimer: deterministic time for cache staleness and debounce
- backend / services: the dev FastAPI app behind a TestClient, and the full
  client stack wired to it
"""

import json as jsonlib
import threading
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

import pytest

from client.cache import QueryCache, RetryStrategy
from client.factory import build_services
from client.http import ApiClient
from client.storage import MemoryStorage, SessionStore
from client.ui import Navigator
from utils.config import ClientConfig, ServerConfig

BASE_URL = "http://test"

DEMO_USER = {"id": 1, "username": "demo", "hasCompletedIntake": True}


# ── Transport doubles ─────────────────────────────────────────────────────────

class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, status_code: int = 200, body: Any = None, *, text: Optional[str] = None,
                 reason: str = ""):
        self.status_code = status_code
        self._body = body
        if text is None:
            text = "" if body is None else jsonlib.dumps(body)
        self.text = text
        self.reason = reason

    def json(self):
        return jsonlib.loads(self.text)


@dataclass
class Call:
    method: str
    path: str
    headers: dict
    json: Any = None
    files: Any = None
    params: Any = None


class FakeTransport:
    """Scripted transport: responses are queued per ``(method, path)``.

    Each queued item is a FakeResponse, an exception to raise, or a callable
    taking the Call and returning either. The last item in a queue is
    reused for every further call.
    """

    def __init__(self, base_url: str = BASE_URL):
        self.base_url = base_url
        self.routes: dict[tuple[str, str], list] = {}
        self.calls: list[Call] = []
        self._lock = threading.Lock()

    def add(self, method: str, path: str, *responses) -> "FakeTransport":
        self.routes.setdefault((method.upper(), path), []).extend(responses)
        return self

    def calls_to(self, method: str, path: str) -> list[Call]:
        return [c for c in self.calls if c.method == method.upper() and c.path == path]

    def request(self, method, url, headers=None, json=None, data=None, files=None,
                params=None, timeout=None):
        path = url[len(self.base_url):] if url.startswith(self.base_url) else url
        call = Call(method=method.upper(), path=path, headers=dict(headers or {}),
                    json=json, files=files, params=params)
        with self._lock:
            self.calls.append(call)
            queue = self.routes.get((call.method, path))
            if not queue:
                return FakeResponse(404, {"message": f"No route for {call.method} {path}"})
            item = queue.pop(0) if len(queue) > 1 else queue[0]
        if callable(item) and not isinstance(item, (FakeResponse, BaseException)):
            item = item(call)
        if isinstance(item, BaseException):
            raise item
        return item


class RecordingNotifier:
    def __init__(self):
        self.notifications = []

    def notify(self, notification):
        self.notifications.append(notification)

    @property
    def titles(self) -> list[str]:
        return [n.title for n in self.notifications]


# ── Time doubles ──────────────────────────────────────────────────────────────

class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTimer:
    """threading.Timer replacement fired by hand; tracks every instance."""

    instances: list = []

    def __init__(self, interval, function, args=None, kwargs=None):
        self.interval = interval
        self.function = function
        self.args = args or ()
        self.kwargs = kwargs or {}
        self.started = False
        self.cancelled = False
        FakeTimer.instances.append(self)

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if not self.cancelled:
            self.function(*self.args, **self.kwargs)

    @classmethod
    def live(cls) -> list:
        return [t for t in cls.instances if t.started and not t.cancelled]


@dataclass
class SleepRecorder:
    delays: list = field(default_factory=list)

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


# ── Client fixtures ───────────────────────────────────────────────────────────

@pytest.fixture()
def config():
    cfg = ClientConfig()
    cfg.base_url = BASE_URL
    cfg.demo_fallback = True
    cfg.timeout_seconds = 5.0
    return cfg


@pytest.fixture()
def storage():
    return MemoryStorage()


@pytest.fixture()
def store(storage):
    return SessionStore(storage)


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def navigator():
    return Navigator("/budget?tab=items")


@pytest.fixture()
def transport():
    return FakeTransport()


@pytest.fixture()
def api_client(config, store, transport, notifier, navigator):
    return ApiClient(config, store, transport=transport, notifier=notifier, navigator=navigator)


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def sleeps():
    return SleepRecorder()


@pytest.fixture()
def cache(clock, sleeps):
    c = QueryCache(retry=RetryStrategy(max_retries=2, backoff_factor=1.0),
                   clock=clock, sleep=sleeps)
    yield c
    c.shutdown()


@pytest.fixture()
def fake_timer():
    FakeTimer.instances = []
    yield FakeTimer
    FakeTimer.instances = []


# ── Dev backend fixtures ──────────────────────────────────────────────────────

@pytest.fixture()
def demo_store():
    from api.store import DemoStore
    return DemoStore(today=date(2026, 6, 1))


@pytest.fixture()
def backend(demo_store):
    """TestClient over a fresh app and seeded store."""
    from fastapi.testclient import TestClient
    from api.app import create_app

    server_cfg = ServerConfig()
    server_cfg.upload_max_mb = 1
    app = create_app(store=demo_store, config=server_cfg)
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client


@pytest.fixture()
def services(backend, notifier, navigator, clock, sleeps):
    """The full client stack talking to the dev backend."""
    cfg = ClientConfig()
    cfg.base_url = "http://testserver"
    cfg.demo_fallback = True
    svc = build_services(cfg, transport=backend, storage=MemoryStorage(), notifier=notifier,
                         navigator=navigator, clock=clock, sleep=sleeps)
    yield svc
    svc.close()
