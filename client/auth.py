"""Session lifecycle on top of the HTTP core: restore, login, logout, intake."""

from __future__ import annotations

import logging
from typing import Optional

from client.cache import QueryCache
from client.errors import ApiError
from client.http import ON_401_RETURN_NONE, ApiClient
from client.models import User
from client.query_keys import QueryKeys
from client.ui import Notification

logger = logging.getLogger(__name__)


class AuthSession:
    """Holds the signed-in user and keeps storage and cache consistent with it."""

    def __init__(self, client: ApiClient, cache: QueryCache) -> None:
        self.client = client
        self.cache = cache
        self.store = client.store
        self.is_new_user = False

    @property
    def user(self) -> Optional[User]:
        return self.store.user

    @property
    def session_id(self) -> Optional[str]:
        return self.store.token

    @property
    def is_authenticated(self) -> bool:
        return self.store.token is not None

    def _notify(self, title: str, description: str, variant: str = "default") -> None:
        self.client.notifier.notify(Notification(title, description, variant))

    def restore(self) -> Optional[User]:
        """Bring up a session at startup.

        A stored session is verified against ``/api/auth/me`` and the
        server's intake flag merged into the stored user. Without a usable
        session the demo login is tried when enabled.

        Returns:
            The signed-in user, or None if no session could be established.
        """
        if self.store.token is not None:
            try:
                server_user = self.client.request("/api/auth/me", response_model=User,
                                                  on_401=ON_401_RETURN_NONE)
            except ApiError as e:
                logger.warning("Session verification failed: %s", e)
                server_user = None
            if server_user is not None:
                return self._merge_server_user(server_user)
            self.store.clear()

        if not self.client.config.demo_fallback:
            return None
        try:
            payload = self.client.demo_login()
        except ApiError as e:
            logger.warning("Demo login failed: %s", e)
            self._notify("Connection Issue",
                         "Unable to connect automatically. Please log in manually.",
                         "destructive")
            return None
        self.is_new_user = False
        self.cache.set_data(QueryKeys.auth_me(), payload.user)
        self._notify("Welcome to PlanHaus!", "You're now logged in as the demo user.")
        return payload.user

    def _merge_server_user(self, server_user: User) -> User:
        stored = self.store.user
        if stored is not None and stored.id == server_user.id:
            user = stored.model_copy(update={"has_completed_intake": server_user.has_completed_intake})
        else:
            user = server_user
        self.store.update_user(user)
        self.cache.set_data(QueryKeys.auth_me(), user)
        return user

    def handle_auth(self, user: User | dict, session_id: str, is_registration: bool = False) -> User:
        """Install a session obtained from a login or registration form."""
        if not isinstance(user, User):
            user = User.model_validate(user)
        self.store.save(session_id, user)
        self.is_new_user = is_registration and not user.has_completed_intake
        self.cache.set_data(QueryKeys.auth_me(), user)
        if is_registration:
            self._notify("Account Created!", "Your account has been created successfully.")
        else:
            self._notify("Welcome Back!", "You've been logged in successfully.")
        return user

    def logout(self) -> None:
        """End the session on the server if possible, then locally."""
        if self.store.token is not None:
            try:
                self.client.request("/api/auth/logout", "POST", on_401=ON_401_RETURN_NONE,
                                    recover=False)
            except ApiError as e:
                logger.info("Server logout failed, clearing local session anyway: %s", e)
        self.store.clear()
        self.cache.clear()
        self.is_new_user = False

    def force_clear(self) -> None:
        """Wipe all durable storage and cached data."""
        self.store.storage.clear()
        self.cache.clear()
        self.is_new_user = False

    def complete_intake(self) -> Optional[User]:
        user = self.store.user
        if user is None:
            return None
        user = user.model_copy(update={"has_completed_intake": True})
        self.store.update_user(user)
        self.is_new_user = False
        self.cache.invalidate(QueryKeys.auth_me(), exact=True)
        return user
