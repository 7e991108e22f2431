"""
Console View - live, home-scoped collections

Subscribes to the five live queries a console screen renders and keeps the
latest snapshot of each. The subscribed result is the only source of truth:
every push replaces the list and derived counts are recomputed from it.
A failing subscription clears its list and loading flag instead of raising.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from ..domain import (
    Alert,
    Contact,
    Device,
    AlertStatus,
    HomeModelConfig,
    HomePolicy,
)
from ..store import (
    ALERTS,
    CONTACTS,
    DEVICES,
    HOME_MODELS,
    HOME_POLICIES,
    DocumentStore,
    QuerySnapshot,
    Subscription,
)
from .alert_lifecycle import actions_for
from .busy import BusyTracker


logger = logging.getLogger(__name__)

DASHBOARD_PREVIEW = 4

ChangeListener = Callable[[str], None]


class ConsoleView:
    """Live view of one home's data."""

    def __init__(
        self,
        store: DocumentStore,
        home_id: str,
        busy: Optional[BusyTracker] = None,
        on_change: Optional[ChangeListener] = None,
    ):
        self.store = store
        self.home_id = home_id
        self.busy = busy
        self.on_change = on_change

        self.devices: List[Device] = []
        self.alerts: List[Alert] = []
        self.contacts: List[Contact] = []
        self.quiet_hours = HomePolicy(home_id=home_id)
        self.model_config = HomeModelConfig(home_id=home_id)

        self.loading: Dict[str, bool] = {DEVICES: False, ALERTS: False, CONTACTS: False}
        self.errors: Dict[str, str] = {}
        self.version = 0
        self._subscriptions: List[Subscription] = []

    @property
    def is_open(self) -> bool:
        return bool(self._subscriptions)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def open(self) -> "ConsoleView":
        if self.is_open:
            return self
        store = self.store
        home = self.home_id

        for name in (DEVICES, ALERTS, CONTACTS):
            self.loading[name] = True
        self.errors.clear()

        self._subscriptions = [
            store.watch(store.query(DEVICES).where("home_id", home).order_by("name")).listen(
                self._on_devices, lambda e: self._on_list_error(DEVICES, e)),
            store.watch(store.query(ALERTS).where("home_id", home).order_by("created_at", descending=True)).listen(
                self._on_alerts, lambda e: self._on_list_error(ALERTS, e)),
            store.watch(store.query(CONTACTS).where("home_id", home).order_by("name")).listen(
                self._on_contacts, lambda e: self._on_list_error(CONTACTS, e)),
            store.watch(store.document(HOME_POLICIES, home)).listen(
                self._on_policy, lambda e: self._on_doc_error(HOME_POLICIES, e)),
            store.watch(store.document(HOME_MODELS, home)).listen(
                self._on_model, lambda e: self._on_doc_error(HOME_MODELS, e)),
        ]
        logger.debug("[VIEW] Opened console view for %s", home)
        return self

    def close(self) -> None:
        for sub in self._subscriptions:
            sub.unsubscribe()
        self._subscriptions = []
        logger.debug("[VIEW] Closed console view for %s", self.home_id)

    def __enter__(self) -> "ConsoleView":
        return self.open()

    def __exit__(self, *exc) -> None:
        self.close()

    # =========================================================================
    # Snapshot handlers
    # =========================================================================

    def _changed(self, what: str) -> None:
        self.version += 1
        if self.on_change:
            self.on_change(what)

    def _on_devices(self, snapshot: QuerySnapshot) -> None:
        self.devices = [Device.from_snapshot(doc) for doc in snapshot.docs]
        self.loading[DEVICES] = False
        self._changed(DEVICES)

    def _on_alerts(self, snapshot: QuerySnapshot) -> None:
        self.alerts = [Alert.from_snapshot(doc) for doc in snapshot.docs]
        self.loading[ALERTS] = False
        self._changed(ALERTS)

    def _on_contacts(self, snapshot: QuerySnapshot) -> None:
        self.contacts = [Contact.from_snapshot(doc) for doc in snapshot.docs]
        self.loading[CONTACTS] = False
        self._changed(CONTACTS)

    def _on_policy(self, snapshot: QuerySnapshot) -> None:
        if snapshot.docs:
            self.quiet_hours = HomePolicy.from_snapshot(snapshot.docs[0])
            self._changed(HOME_POLICIES)

    def _on_model(self, snapshot: QuerySnapshot) -> None:
        if snapshot.docs:
            self.model_config = HomeModelConfig.from_snapshot(snapshot.docs[0])
            self._changed(HOME_MODELS)

    def _on_list_error(self, name: str, error: Exception) -> None:
        logger.warning("[VIEW] %s subscription for %s failed: %s", name, self.home_id, error)
        setattr(self, name, [])
        self.loading[name] = False
        self.errors[name] = str(error)
        self._changed(name)

    def _on_doc_error(self, name: str, error: Exception) -> None:
        logger.warning("[VIEW] %s subscription for %s failed: %s", name, self.home_id, error)
        self.errors[name] = str(error)

    # =========================================================================
    # Derived state
    # =========================================================================

    @property
    def active_alert_count(self) -> int:
        return sum(1 for alert in self.alerts if alert.status != AlertStatus.CLOSED)

    @property
    def online_device_count(self) -> int:
        return sum(1 for device in self.devices if device.is_online())

    def alert_rows(self) -> List[Dict[str, Any]]:
        return [
            {
                **alert.to_dict(),
                "actions": [action.to_dict() for action in actions_for(alert, self.busy)],
            }
            for alert in self.alerts
        ]

    def dashboard(self) -> Dict[str, Any]:
        return {
            "home_id": self.home_id,
            "active_alert_count": self.active_alert_count,
            "online_device_count": self.online_device_count,
            "recent_alerts": [a.to_dict() for a in self.alerts[:DASHBOARD_PREVIEW]],
            "devices": [d.to_dict() for d in self.devices[:DASHBOARD_PREVIEW]],
        }

    def snapshot(self) -> Dict[str, Any]:
        """Full serializable state (WebSocket feed payload)."""
        return {
            "version": self.version,
            "home_id": self.home_id,
            "devices": [d.to_dict() for d in self.devices],
            "alerts": self.alert_rows(),
            "contacts": [c.to_dict() for c in self.contacts],
            "quiet_hours": self.quiet_hours.to_dict(),
            "model_config": self.model_config.to_dict(),
            "active_alert_count": self.active_alert_count,
            "online_device_count": self.online_device_count,
            "loading": dict(self.loading),
            "errors": dict(self.errors),
        }
