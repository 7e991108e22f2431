"""
Alert Lifecycle State Machine

Manages alert status transitions:
open → acked | escalated
acked → closed
escalated → acked | closed
closed is terminal

Key rules:
1. Only the transitions above are offered or accepted
2. At most one in-flight transition per alert id
3. A transition writes {status, updated_at} and nothing else
4. Successful transitions fan out to contacts, fire-and-forget
"""

import logging
from dataclasses import dataclass
from typing import Optional

from ..domain import Alert, AlertStatus, Contact, HomePolicy
from ..errors import DocumentNotFound, InvalidTransition, StoreWriteError
from ..store import ALERTS, CONTACTS, HOME_POLICIES, SERVER_TIMESTAMP, DocumentStore
from .busy import BusyTracker
from .notices import NoticeBoard
from .notifications import NotificationDispatcher, action_label


logger = logging.getLogger(__name__)

ALERT_ACTION = "alert"

TRANSITIONS: dict[AlertStatus, tuple[AlertStatus, ...]] = {
    AlertStatus.OPEN: (AlertStatus.ACKED, AlertStatus.ESCALATED),
    AlertStatus.ACKED: (AlertStatus.CLOSED,),
    AlertStatus.ESCALATED: (AlertStatus.ACKED, AlertStatus.CLOSED),
    AlertStatus.CLOSED: (),
}

BUTTON_LABELS: dict[AlertStatus, str] = {
    AlertStatus.ACKED: "Ack",
    AlertStatus.ESCALATED: "Escalate",
    AlertStatus.CLOSED: "Close",
}


@dataclass(frozen=True)
class AlertAction:
    """One action a view offers for an alert."""
    target: AlertStatus
    label: str
    enabled: bool = True

    def to_dict(self) -> dict:
        return {"target": self.target.value, "label": self.label, "enabled": self.enabled}


def allowed_transitions(status: AlertStatus) -> tuple[AlertStatus, ...]:
    return TRANSITIONS[AlertStatus(status)]


def can_transition(current: AlertStatus, target: AlertStatus) -> bool:
    return AlertStatus(target) in allowed_transitions(current)


def actions_for(alert: Alert, busy: Optional[BusyTracker] = None) -> list[AlertAction]:
    """Exact action set for the alert's status; disabled while in flight."""
    in_flight = busy is not None and alert.id is not None and busy.is_busy(ALERT_ACTION, alert.id)
    return [
        AlertAction(target=target, label=BUTTON_LABELS[target], enabled=not in_flight)
        for target in allowed_transitions(alert.status)
    ]


class AlertLifecycle:
    """Applies validated status transitions to stored alerts."""

    def __init__(
        self,
        store: DocumentStore,
        busy: BusyTracker,
        notices: NoticeBoard,
        dispatcher: Optional[NotificationDispatcher] = None,
    ):
        self.store = store
        self.busy = busy
        self.notices = notices
        self.dispatcher = dispatcher

    async def list_alerts(self, home_id: str) -> list[Alert]:
        snapshot = await self.store.run_query(
            self.store.query(ALERTS).where("home_id", home_id).order_by("created_at", descending=True)
        )
        return [Alert.from_snapshot(doc) for doc in snapshot.docs]

    async def load(self, home_id: str, alert_id: str) -> Alert:
        snapshot = await self.store.get(ALERTS, alert_id)
        if not snapshot.exists or snapshot.get("home_id") != home_id:
            raise DocumentNotFound(ALERTS, alert_id)
        return Alert.from_snapshot(snapshot)

    async def transition(self, home_id: str, alert_id: str, target: AlertStatus) -> Alert:
        """Move an alert to `target`.

        Raises:
            OperationInProgress: another transition for this alert is in flight
            DocumentNotFound: alert missing or owned by another home
            InvalidTransition: target not reachable from the current status
            StoreWriteError: the store rejected the update
        """
        target = AlertStatus(target)
        async with self.busy.hold(ALERT_ACTION, alert_id):
            alert = await self.load(home_id, alert_id)
            if not can_transition(alert.status, target):
                raise InvalidTransition(
                    f"Cannot move alert {alert_id} from {alert.status.value} to {target.value}"
                )

            try:
                await self.store.update(ALERTS, alert_id, {
                    "status": target.value,
                    "updated_at": SERVER_TIMESTAMP,
                })
            except DocumentNotFound:
                raise
            except Exception as e:
                self.notices.error(home_id, "Alert update failed", str(e))
                raise StoreWriteError(str(e), title="Alert update failed", cause=e) from e

            label = action_label(target)
            logger.info("[NOTIFY] %s alert %s", label, alert_id)
            self.notices.success(home_id, f"{label} alert", f"{alert.type_label or alert.type.value} updated")

            updated = await self.load(home_id, alert_id)
            await self._fan_out(home_id, updated, target)
            return updated

    async def _fan_out(self, home_id: str, alert: Alert, target: AlertStatus) -> None:
        if self.dispatcher is None:
            return
        try:
            contact_snap = await self.store.run_query(
                self.store.query(CONTACTS).where("home_id", home_id).order_by("name")
            )
            policy_snap = await self.store.get(HOME_POLICIES, home_id)
        except Exception as e:
            logger.warning("[NOTIFY] Could not load recipients for %s: %s", home_id, e)
            return
        contacts = [Contact.from_snapshot(doc) for doc in contact_snap.docs]
        policy = HomePolicy.from_snapshot(policy_snap) if policy_snap.exists else None
        self.dispatcher.notify(contacts, alert, target, policy)
