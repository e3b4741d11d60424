"""
Session authentication dependency for the development backend.

A request is authenticated by ``Authorization: Bearer <sessionId>`` or, when
the header is absent, by the ``sessionId`` cookie set at login.
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request

from api.store import DemoStore, get_store

SESSION_COOKIE = "sessionId"


def session_token(request: Request) -> Optional[str]:
    """Return the bearer token or session cookie of *request*, if any."""
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return request.cookies.get(SESSION_COOKIE)


def current_user(request: Request, store: DemoStore = Depends(get_store)) -> dict:
    """Resolve the signed-in user or fail with 401."""
    user = store.user_for_token(session_token(request))
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def user_project_ids(user: dict, store: DemoStore) -> list[int]:
    return [p["id"] for p in store.projects_for(user["id"])]
