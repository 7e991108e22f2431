"""
Settings API - 联系人 / 静默时段 / 模型阈值

Notification contacts, the quiet-hours policy and per-class detection
thresholds for the session's home.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..client import SafeHomeClient
from ..domain import ALERT_CATALOG, ContactChannel, HomeModelConfig
from ..services import Session
from .deps import get_client, get_session


settings_router = APIRouter(prefix="/api", tags=["settings"])


# =============================================================================
# Request Models
# =============================================================================

class ContactRequest(BaseModel):
    name: str = ""
    channel: ContactChannel = ContactChannel.SMS
    value: str = Field(default="", description="Phone number or email address")


class QuietHoursRequest(BaseModel):
    enabled: bool
    start: str = Field(..., description="HH:MM")
    end: str = Field(..., description="HH:MM")


class ThresholdsRequest(BaseModel):
    """{alert_type: threshold} or {alert_type: {"threshold": x}}"""
    thresholds: Dict[str, Any]


def _model_payload(config: HomeModelConfig) -> dict:
    payload = config.to_dict()
    payload["effective"] = {
        entry.type.value: {"label": entry.label, "threshold": config.threshold_for(entry.type)}
        for entry in ALERT_CATALOG
    }
    return payload


# =============================================================================
# Contacts
# =============================================================================

@settings_router.get("/contacts")
async def list_contacts(
    session: Session = Depends(get_session),
    client: SafeHomeClient = Depends(get_client),
):
    contacts = await client.contacts.list_contacts(session.home_id)
    return {"contacts": [c.to_dict() for c in contacts]}


@settings_router.post("/contacts", status_code=201)
async def add_contact(
    request: ContactRequest,
    session: Session = Depends(get_session),
    client: SafeHomeClient = Depends(get_client),
):
    contact = await client.contacts.add(session.home_id, request.name, request.channel, request.value)
    return contact.to_dict()


@settings_router.delete("/contacts/{contact_id}")
async def delete_contact(
    contact_id: str,
    session: Session = Depends(get_session),
    client: SafeHomeClient = Depends(get_client),
):
    await client.contacts.delete(session.home_id, contact_id)
    return {"status": "deleted", "contact_id": contact_id}


# =============================================================================
# Quiet hours
# =============================================================================

@settings_router.get("/policy/quiet-hours")
async def get_quiet_hours(
    session: Session = Depends(get_session),
    client: SafeHomeClient = Depends(get_client),
):
    policy = await client.policies.get_quiet_hours(session.home_id)
    return policy.to_dict()


@settings_router.put("/policy/quiet-hours")
async def save_quiet_hours(
    request: QuietHoursRequest,
    session: Session = Depends(get_session),
    client: SafeHomeClient = Depends(get_client),
):
    policy = await client.policies.save_quiet_hours(
        session.home_id, request.enabled, request.start, request.end
    )
    return policy.to_dict()


# =============================================================================
# Model thresholds
# =============================================================================

@settings_router.get("/models/thresholds")
async def get_thresholds(
    session: Session = Depends(get_session),
    client: SafeHomeClient = Depends(get_client),
):
    config = await client.policies.get_model_config(session.home_id)
    return _model_payload(config)


@settings_router.put("/models/thresholds")
async def save_thresholds(
    request: ThresholdsRequest,
    session: Session = Depends(get_session),
    client: SafeHomeClient = Depends(get_client),
):
    config = await client.policies.save_model_config(session.home_id, request.thresholds, editor=session.role)
    return _model_payload(config)
