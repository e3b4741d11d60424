"""HTTP request core for the PlanHaus sync layer.

Every client-to-server call goes through ``ApiClient.request``. It owns:

- Header construction (bearer token from the session store, JSON content type)
- Error normalization into the ``client.errors`` hierarchy
- Response validation against pydantic schemas at the boundary
- The 401 recovery protocol (clear session, optional demo login, one retry)

The transport is anything with a ``requests.Session``-compatible
``request(method, url, headers=, json=, data=, files=, params=, timeout=)``
method. Production uses a pooled ``requests.Session`` from ``SessionManager``;
tests pass a scripted fake or FastAPI's ``TestClient``.
"""

from __future__ import annotations

import logging
import threading
import time
from enum import Enum
from functools import lru_cache
from typing import Any, Callable, Optional, Sequence

import requests
from pydantic import TypeAdapter, ValidationError
from requests.adapters import HTTPAdapter

from client.errors import (
    ApiError,
    AuthenticationError,
    ClientError,
    InvalidResponseError,
    NetworkError,
    RequestCancelledError,
    ServerError,
)
from client.models import SessionPayload
from client.storage import SessionStore
from client.ui import LogNotifier, Navigator, Notification, login_redirect

logger = logging.getLogger(__name__)

ON_401_THROW = "throw"
ON_401_RETURN_NONE = "return_none"


class AuthState(str, Enum):
    NORMAL = "normal"
    RECOVERING = "recovering"


class CancelToken:
    """Cooperative cancellation handle for a request or a read.

    The token is checked before a request is sent and again when its
    response arrives; a cancelled call raises ``RequestCancelledError``.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self.reason = "Request cancelled"

    def cancel(self, reason: Optional[str] = None) -> None:
        if reason:
            self.reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        """Sleep up to ``timeout`` seconds; return True early if cancelled."""
        return self._event.wait(timeout)

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RequestCancelledError(self.reason)


class SessionManager:
    """Manages the pooled HTTP session the client sends through.

    Retries are not configured on the adapter: read retries belong to the
    query cache and mutations are never retried.
    """

    def __init__(self, pool_connections: int = 10, pool_maxsize: int = 20):
        """Initialize session manager.

        Args:
            pool_connections: Number of connection pools to cache
            pool_maxsize: Maximum number of connections per pool
        """
        self.pool_connections = pool_connections
        self.pool_maxsize = pool_maxsize
        self._session: Optional[requests.Session] = None

    @property
    def session(self) -> requests.Session:
        """Get or create the pooled HTTP session.

        Returns:
            requests.Session object. Cookies set by the server persist on it.
        """
        if self._session is None:
            self._session = requests.Session()
            adapter = HTTPAdapter(
                max_retries=0,
                pool_connections=self.pool_connections,
                pool_maxsize=self.pool_maxsize,
            )
            self._session.mount("http://", adapter)
            self._session.mount("https://", adapter)
        return self._session

    def close(self) -> None:
        """Close the session and release resources."""
        if self._session:
            self._session.close()
            self._session = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


@lru_cache(maxsize=128)
def _adapter_for(model: Any) -> TypeAdapter:
    return TypeAdapter(model)


def validate_payload(body: Any, response_model: Any) -> Any:
    """Validate a decoded JSON body against ``response_model``.

    Raises:
        InvalidResponseError: If the body does not match the schema.
    """
    try:
        return _adapter_for(response_model).validate_python(body)
    except ValidationError as e:
        raise InvalidResponseError(
            f"Invalid API response format: {e.error_count()} validation error(s)"
        ) from e


def _status_text(resp) -> str:
    return getattr(resp, "reason", None) or getattr(resp, "reason_phrase", "") or ""


def _is_success(resp) -> bool:
    return 200 <= resp.status_code < 300


def error_message(resp) -> str:
    """Human-readable message for a non-2xx response.

    JSON ``message`` or ``error`` field first, then the HTTP status text, then
    the raw body.
    """
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for field in ("message", "error"):
            value = body.get(field)
            if isinstance(value, str) and value:
                return value
    reason = _status_text(resp)
    if reason:
        return reason
    text = (resp.text or "").strip()
    return text or f"HTTP {resp.status_code}"


class ApiClient:
    """Single chokepoint for PlanHaus API calls."""

    def __init__(self, config, store: SessionStore, transport=None,
                 notifier=None, navigator: Optional[Navigator] = None) -> None:
        """Initialize the client.

        Args:
            config: ClientConfig (base_url, timeout_seconds, demo_fallback,
                login_path, demo_login_path).
            store: Session store holding the bearer token.
            transport: requests.Session-compatible object. Defaults to a
                pooled session owned by this client.
            notifier: Object with ``notify(Notification)``.
            navigator: Navigator that receives login redirects.
        """
        self.config = config
        self.store = store
        self._session_manager: Optional[SessionManager] = None
        if transport is None:
            self._session_manager = SessionManager()
            transport = self._session_manager.session
        self.transport = transport
        self.notifier = notifier or LogNotifier()
        self.navigator = navigator or Navigator()
        self._recovery_lock = threading.Lock()
        self._state = AuthState.NORMAL

    @property
    def state(self) -> AuthState:
        return self._state

    def url_for(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.config.base_url}/{path.lstrip('/')}"

    # ── Sending ───────────────────────────────────────────────────────────────

    def _send(self, method: str, path: str, token: Optional[str], *, json=None,
              data=None, files=None, params=None, headers=None,
              cancel: Optional[CancelToken] = None):
        if cancel is not None:
            cancel.raise_if_cancelled()
        send_headers: dict[str, str] = {}
        if files is None:
            send_headers["Content-Type"] = "application/json"
        if token:
            send_headers["Authorization"] = f"Bearer {token}"
        if headers:
            send_headers.update(headers)

        start = time.monotonic()
        try:
            resp = self.transport.request(
                method, self.url_for(path), headers=send_headers, json=json,
                data=data, files=files, params=params,
                timeout=self.config.timeout_seconds,
            )
        except (requests.RequestException, OSError) as e:
            if cancel is not None and cancel.cancelled:
                raise RequestCancelledError(cancel.reason) from e
            logger.warning("%s %s failed: %s", method, path, e,
                           extra={"method": method, "path": path})
            raise NetworkError(f"Network error: {e}") from e

        duration_ms = round((time.monotonic() - start) * 1000, 1)
        logger.debug("%s %s -> %d (%.1f ms)", method, path, resp.status_code, duration_ms,
                     extra={"method": method, "path": path,
                            "status": resp.status_code, "duration_ms": duration_ms})
        if cancel is not None:
            cancel.raise_if_cancelled()
        return resp

    def _parse(self, resp, response_model=None, notify: bool = True) -> Any:
        status = resp.status_code
        if not _is_success(resp):
            message = error_message(resp)
            if 400 <= status < 500:
                if notify:
                    self.notifier.notify(Notification("Error", message, "destructive"))
                raise ClientError(status, message)
            raise ServerError(status, message)

        if status == 204:
            return None
        try:
            body = resp.json()
        except ValueError as e:
            raise InvalidResponseError("Response body is not valid JSON") from e
        if body is None:
            raise InvalidResponseError("Invalid API response format")
        if response_model is not None:
            return validate_payload(body, response_model)
        return body

    # ── Public API ────────────────────────────────────────────────────────────

    def request(self, path: str, method: str = "GET", *, json=None, files=None,
                data=None, params=None, headers=None,
                cancel: Optional[CancelToken] = None, response_model=None,
                on_401: str = ON_401_THROW, recover: bool = True) -> Any:
        """Perform one API call.

        Args:
            path: API path (``/api/...``) or absolute URL.
            method: HTTP method.
            json: JSON-serializable body.
            files: Multipart files mapping; disables the JSON content type.
            data: Form fields sent alongside ``files``.
            params: Query string parameters.
            headers: Extra headers; override the defaults.
            cancel: Optional CancelToken.
            response_model: Type to validate the body against.
            on_401: ``"throw"`` or ``"return_none"`` when recovery fails.
            recover: Run the 401 recovery protocol; when False a 401 is
                handled by ``on_401`` straight away.

        Returns:
            The parsed (and validated, if ``response_model``) body, or None for
            204 responses and unrecoverable 401s with ``on_401="return_none"``.

        Raises:
            ApiError subclasses; see ``client.errors``.
        """
        method = method.upper()

        def send(token: Optional[str]):
            return self._send(method, path, token, json=json, data=data, files=files,
                              params=params, headers=headers, cancel=cancel)

        sent_token = self.store.token
        resp = send(sent_token)
        if resp.status_code == 401:
            if not recover:
                logger.info("401 from %s; recovery skipped", path)
                if on_401 == ON_401_RETURN_NONE:
                    return None
                raise AuthenticationError("Not authenticated")
            resp = self._recover(path, sent_token, send, on_401)
            if resp is None:
                return None
        return self._parse(resp, response_model)

    def query_fn(self, response_model=None, on_401: str = ON_401_THROW) -> Callable:
        """Build a cache fetcher that requests the URL formed by the key.

        The key parts are joined with ``/``, so ``("/api/projects", "1", "budget")``
        fetches ``/api/projects/1/budget``.
        """

        def fetch(key: Sequence[str], cancel: Optional[CancelToken] = None):
            path = "/".join(str(part) for part in key)
            return self.request(path, cancel=cancel, response_model=response_model,
                                on_401=on_401)

        return fetch

    def demo_login(self) -> SessionPayload:
        """Log in as the demo user and persist the new session.

        Raises:
            ApiError: If the endpoint fails or returns an invalid payload.
        """
        resp = self._send("POST", self.config.demo_login_path, None)
        payload = self._parse(resp, SessionPayload, notify=False)
        self.store.save(payload.session_id, payload.user)
        logger.info("Demo login succeeded for user %s", payload.user.id)
        return payload

    def close(self) -> None:
        if self._session_manager is not None:
            self._session_manager.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    # ── 401 recovery ──────────────────────────────────────────────────────────

    def _recover(self, path: str, sent_token: Optional[str], send, on_401: str):
        """Run the 401 recovery protocol for one failing call.

        Returns the retried response, or None when recovery failed and
        ``on_401`` is ``"return_none"``. Raises AuthenticationError otherwise.
        """
        with self._recovery_lock:
            self._state = AuthState.RECOVERING
            try:
                current = self.store.token
                if current is not None and current != sent_token:
                    # Another call already recovered; reuse its session.
                    logger.info("Retrying %s with session installed by a concurrent recovery", path)
                    resp = self._retry(send, current)
                    if resp is not None:
                        return resp

                self.store.clear()
                new_token = self._fallback_login()
                if new_token is not None:
                    resp = self._retry(send, new_token)
                    if resp is not None:
                        return resp
                self.store.clear()
            finally:
                self._state = AuthState.NORMAL

        logger.warning("Session recovery failed for %s", path, extra={"path": path, "status": 401})
        if on_401 == ON_401_RETURN_NONE:
            return None
        self.notifier.notify(Notification(
            "Session expired", "Please log in again to continue.", "destructive",
        ))
        self.navigator.navigate(login_redirect(self.config.login_path, self.navigator.location))
        raise AuthenticationError("Session expired")

    def _fallback_login(self) -> Optional[str]:
        if not self.config.demo_fallback:
            return None
        try:
            return self.demo_login().session_id
        except RequestCancelledError:
            raise
        except ApiError as e:
            logger.warning("Demo login fallback failed: %s", e)
            return None

    @staticmethod
    def _retry(send, token: str):
        """Resend with ``token``; None if the retry did not succeed."""
        try:
            resp = send(token)
        except NetworkError as e:
            logger.warning("Retry after session recovery failed: %s", e)
            return None
        if not _is_success(resp):
            logger.warning("Retry after session recovery returned %d", resp.status_code)
            return None
        return resp


__all__ = [
    "ApiClient",
    "AuthState",
    "CancelToken",
    "SessionManager",
    "error_message",
    "validate_payload",
    "ON_401_THROW",
    "ON_401_RETURN_NONE",
]
