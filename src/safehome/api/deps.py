"""
API dependencies

The client is created by the application lifespan and stored on app.state;
routes receive it (and the caller's session) through Depends().
"""

from typing import Optional

from fastapi import Depends, Header, Request

from ..client import SafeHomeClient
from ..errors import NotAuthenticated
from ..services import Session


def get_client(request: Request) -> SafeHomeClient:
    client = getattr(request.app.state, "client", None)
    if client is None or not client.started:
        raise RuntimeError("SafeHome client not initialized")
    return client


def bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        return ""
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return ""
    return token.strip()


def get_session(
    authorization: Optional[str] = Header(default=None),
    client: SafeHomeClient = Depends(get_client),
) -> Session:
    """Resolve the session from `Authorization: Bearer <token>`."""
    token = bearer_token(authorization)
    if not token:
        raise NotAuthenticated("Sign in required")
    return client.sessions.get(token)
