"""Durable key/value storage and the session store built on it.

``FileStorage`` keeps every key in a single JSON file so a CLI session
survives restarts; ``MemoryStorage`` is the in-process equivalent used by
tests. ``SessionStore`` owns the two session keys and keeps them in step:
they are always written together and always cleared together.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Any, Optional

from client.models import User

logger = logging.getLogger(__name__)

SESSION_ID_KEY = "sessionId"
USER_KEY = "user"


class MemoryStorage:
    """Dict-backed storage with the same interface as FileStorage."""

    def __init__(self, initial: Optional[dict[str, Any]] = None) -> None:
        self._data: dict[str, Any] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Any:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value

    def set_many(self, values: dict[str, Any]) -> None:
        with self._lock:
            self._data.update(values)

    def delete(self, *keys: str) -> None:
        with self._lock:
            for key in keys:
                self._data.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()


class FileStorage:
    """JSON-file storage.

    The whole file is rewritten on every change; the volume is a handful of
    keys. A missing or corrupt file reads as empty.
    """

    def __init__(self, path: Path) -> None:
        """Initialize file storage.

        Args:
            path: JSON file to read and write. Parent directories are created
                on first write.
        """
        self.path = Path(path)
        self._lock = threading.Lock()

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError, ValueError) as e:
            logger.warning("Ignoring unreadable storage file %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w") as f:
            json.dump(data, f, indent=2)
        tmp.replace(self.path)

    def get(self, key: str) -> Any:
        with self._lock:
            return self._load().get(key)

    def set(self, key: str, value: Any) -> None:
        self.set_many({key: value})

    def set_many(self, values: dict[str, Any]) -> None:
        with self._lock:
            data = self._load()
            data.update(values)
            self._save(data)

    def delete(self, *keys: str) -> None:
        with self._lock:
            data = self._load()
            if not any(k in data for k in keys):
                return
            for key in keys:
                data.pop(key, None)
            self._save(data)

    def clear(self) -> None:
        with self._lock:
            if self.path.exists():
                self.path.unlink()


class SessionStore:
    """Reads and writes the session token and user on durable storage."""

    def __init__(self, storage) -> None:
        self.storage = storage

    @property
    def token(self) -> Optional[str]:
        token = self.storage.get(SESSION_ID_KEY)
        return token or None

    @property
    def user(self) -> Optional[User]:
        raw = self.storage.get(USER_KEY)
        if not raw:
            return None
        try:
            return User.model_validate(raw)
        except ValueError:
            logger.warning("Discarding malformed stored user record")
            return None

    def save(self, session_id: str, user: User | dict) -> None:
        """Persist both session keys in one write."""
        if isinstance(user, User):
            user = user.to_wire()
        self.storage.set_many({SESSION_ID_KEY: session_id, USER_KEY: user})

    def update_user(self, user: User | dict) -> None:
        """Replace the stored user, keeping the token. No-op without a session."""
        token = self.token
        if token is None:
            return
        self.save(token, user)

    def clear(self) -> None:
        """Remove both session keys."""
        self.storage.delete(SESSION_ID_KEY, USER_KEY)
