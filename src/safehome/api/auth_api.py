"""
Auth API - 登录 / 会话

Sign in with a role and an active home, inspect or close the session, and
submit home registrations (the only unauthenticated write).
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header
from pydantic import BaseModel, Field

from ..client import SafeHomeClient
from ..domain import Role
from ..services import Session
from .deps import bearer_token, get_client, get_session


auth_router = APIRouter(prefix="/api", tags=["auth"])


# =============================================================================
# Request Models
# =============================================================================

class LoginRequest(BaseModel):
    role: Role = Field(default=Role.OWNER, description="Console operator role")
    home_id: Optional[str] = Field(default=None, description="Active home; blank → default home")


class RegistrationRequest(BaseModel):
    owner_name: str
    owner_email: str
    home_name: str
    preferred_home_id: str = ""
    description: str = ""


# =============================================================================
# Endpoints
# =============================================================================

@auth_router.post("/auth/login")
async def login(request: LoginRequest, client: SafeHomeClient = Depends(get_client)):
    session = await client.sessions.login(request.role, request.home_id)
    return {"token": session.token, "session": session.to_dict()}


@auth_router.post("/auth/logout")
async def logout(
    authorization: Optional[str] = Header(default=None),
    client: SafeHomeClient = Depends(get_client),
):
    token = bearer_token(authorization)
    if token:
        await client.sessions.logout(token)
    return {"status": "signed_out"}


@auth_router.get("/session")
async def current_session(session: Session = Depends(get_session)):
    return session.to_dict()


@auth_router.post("/registrations", status_code=201)
async def register_home(request: RegistrationRequest, client: SafeHomeClient = Depends(get_client)):
    """Submit a pending home registration. No session required."""
    registration = await client.registrations.register_home(
        owner_name=request.owner_name,
        owner_email=request.owner_email,
        home_name=request.home_name,
        preferred_home_id=request.preferred_home_id,
        description=request.description,
    )
    return registration.to_dict()
