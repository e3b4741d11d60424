"""Tests for client/auth.py: session restore and logout."""

import pytest

from client.auth import AuthSession
from client.models import User
from client.query_keys import QueryKeys
from conftest import DEMO_USER, FakeResponse


@pytest.fixture()
def auth(api_client, cache):
    return AuthSession(api_client, cache)


class TestRestore:
    def test_verifies_stored_session_and_merges_intake(self, auth, store, transport, cache):
        store.save("tok", {"id": 1, "username": "demo", "hasCompletedIntake": False})
        transport.add("GET", "/api/auth/me", FakeResponse(200, {"id": 1, "hasCompletedIntake": True}))

        user = auth.restore()
        assert user.has_completed_intake
        assert user.username == "demo"
        assert store.user.has_completed_intake
        assert store.token == "tok"
        assert cache.get_data(QueryKeys.auth_me()) == user

    def test_invalid_session_cleared_without_fallback(self, auth, config, store, transport, notifier):
        config.demo_fallback = False
        store.save("stale", DEMO_USER)
        transport.add("GET", "/api/auth/me", FakeResponse(401))
        assert auth.restore() is None
        assert store.token is None
        assert notifier.notifications == []

    def test_demo_login_when_no_session(self, auth, store, transport, notifier):
        transport.add("POST", "/api/auth/demo-login",
                      FakeResponse(200, {"sessionId": "demo-tok", "user": DEMO_USER}))
        user = auth.restore()
        assert user.id == "1"
        assert store.token == "demo-tok"
        assert auth.is_authenticated
        assert notifier.titles == ["Welcome to PlanHaus!"]

    def test_demo_login_failure_notifies(self, auth, transport, notifier):
        transport.add("POST", "/api/auth/demo-login", FakeResponse(503, {"message": "down"}))
        assert auth.restore() is None
        assert notifier.titles == ["Connection Issue"]
        assert notifier.notifications[0].variant == "destructive"


class TestHandleAuth:
    def test_login(self, auth, store, notifier):
        user = auth.handle_auth({"id": 5, "hasCompletedIntake": True}, "s-5")
        assert isinstance(user, User)
        assert store.token == "s-5"
        assert not auth.is_new_user
        assert notifier.titles == ["Welcome Back!"]

    def test_registration_marks_new_user(self, auth, notifier):
        auth.handle_auth({"id": 6}, "s-6", is_registration=True)
        assert auth.is_new_user
        assert notifier.titles == ["Account Created!"]

    def test_complete_intake(self, auth, store):
        auth.handle_auth({"id": 6}, "s-6", is_registration=True)
        user = auth.complete_intake()
        assert user.has_completed_intake
        assert store.user.has_completed_intake
        assert not auth.is_new_user


class TestLogout:
    def test_clears_storage_and_cache(self, auth, store, cache, transport):
        store.save("tok", DEMO_USER)
        cache.set_data(QueryKeys.projects(), [])
        transport.add("POST", "/api/auth/logout", FakeResponse(200, {"message": "Logged out"}))
        auth.logout()
        assert store.token is None
        assert len(cache) == 0
        assert len(transport.calls_to("POST", "/api/auth/logout")) == 1

    def test_server_failure_still_logs_out_locally(self, auth, store, transport):
        store.save("tok", DEMO_USER)
        transport.add("POST", "/api/auth/logout", FakeResponse(500, {"message": "oops"}))
        auth.logout()
        assert store.token is None

    def test_expired_session_logs_out_without_demo_login(self, auth, store, transport):
        store.save("expired", DEMO_USER)
        transport.add("POST", "/api/auth/logout", FakeResponse(401))
        transport.add("POST", "/api/auth/demo-login",
                      FakeResponse(200, {"sessionId": "demo-tok", "user": DEMO_USER}))
        auth.logout()
        assert store.token is None
        assert transport.calls_to("POST", "/api/auth/demo-login") == []
        assert len(transport.calls_to("POST", "/api/auth/logout")) == 1

    def test_force_clear_wipes_everything(self, auth, storage, cache):
        storage.set("unrelated", 1)
        cache.set_data("k", 1)
        auth.force_clear()
        assert storage.get("unrelated") is None
        assert len(cache) == 0
