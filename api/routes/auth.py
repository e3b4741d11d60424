"""Session endpoints: demo login, current user, logout."""

import logging

from fastapi import APIRouter, Depends, Request, Response

from api.auth import SESSION_COOKIE, current_user, session_token
from api.models import MessageResponse, SessionResponse
from api.store import DemoStore, get_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/demo-login",
    response_model=SessionResponse,
    summary="Sign in as the demo user",
)
def demo_login(response: Response, store: DemoStore = Depends(get_store)) -> dict:
    """Create a session for the seeded demo account.

    The token is returned in the body and also set as the ``sessionId``
    cookie so cookie-only clients stay signed in.
    """
    user = store.demo_user()
    token = store.create_session(user["id"])
    response.set_cookie(SESSION_COOKIE, token, httponly=True, samesite="lax")
    logger.info("Demo session created for user %s", user["id"])
    return {"sessionId": token, "user": user}


@router.get("/me", summary="Current user")
def me(user: dict = Depends(current_user)) -> dict:
    return user


@router.post("/logout", response_model=MessageResponse, summary="End the current session")
def logout(request: Request, response: Response,
           store: DemoStore = Depends(get_store),
           user: dict = Depends(current_user)) -> dict:
    store.end_session(session_token(request))
    response.delete_cookie(SESSION_COOKIE)
    return {"message": "Logged out"}
