"""
Alerts API - 告警处理

Alerts for the session's home (newest first) with the actions a console
offers for each, and the Ack / Escalate / Close transitions.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..client import SafeHomeClient
from ..domain import AlertStatus
from ..services import Session, actions_for
from .deps import get_client, get_session


alerts_router = APIRouter(prefix="/api/alerts", tags=["alerts"])


class TransitionRequest(BaseModel):
    target: AlertStatus


@alerts_router.get("")
async def list_alerts(
    session: Session = Depends(get_session),
    client: SafeHomeClient = Depends(get_client),
):
    alerts = await client.alerts.list_alerts(session.home_id)
    return {
        "alerts": [
            {**a.to_dict(), "actions": [x.to_dict() for x in actions_for(a, client.busy)]}
            for a in alerts
        ],
        "active_count": sum(1 for a in alerts if a.is_active()),
    }


@alerts_router.post("/{alert_id}/transition")
async def transition_alert(
    alert_id: str,
    request: TransitionRequest,
    session: Session = Depends(get_session),
    client: SafeHomeClient = Depends(get_client),
):
    alert = await client.alerts.transition(session.home_id, alert_id, request.target)
    return alert.to_dict()
