"""
Notification Channels - 告警通知扇出

Alert transitions fan out to the home's contacts. Delivery is
fire-and-forget: the transition never waits on (or fails because of) a
channel.

- LogNotificationChannel: records the intent in the log (default sms/email)
- WebhookNotificationChannel: HTTP POST per delivery (aiohttp)
- NotificationDispatcher: routes by contact channel, honours quiet hours
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
import asyncio
import logging

import aiohttp

from ..clock import Clock, SystemClock
from ..domain import Alert, AlertStatus, Contact, ContactChannel, HomePolicy


logger = logging.getLogger(__name__)


ACTION_LABELS: dict[AlertStatus, str] = {
    AlertStatus.ACKED: "Acknowledged",
    AlertStatus.ESCALATED: "Escalated",
    AlertStatus.CLOSED: "Closed",
}


def action_label(status: AlertStatus) -> str:
    return ACTION_LABELS.get(AlertStatus(status), AlertStatus(status).value.title())


# =============================================================================
# Notification Channel 抽象基类
# =============================================================================

class NotificationChannel(ABC):
    """Delivery channel for one contact medium."""

    def __init__(self, name: str, enabled: bool = True):
        self.name = name
        self.enabled = enabled
        self.success_count = 0
        self.failure_count = 0
        self.last_send_time: Optional[datetime] = None
        self.last_error: Optional[str] = None

    @abstractmethod
    async def send(self, contact: Contact, alert: Alert, new_status: AlertStatus) -> bool:
        """
        Deliver one notification.

        Returns:
            True if success, False otherwise
        """
        pass

    def get_status(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "enabled": self.enabled,
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "last_send_time": self.last_send_time.isoformat() if self.last_send_time else None,
            "last_error": self.last_error,
        }

    def _record_success(self):
        self.success_count += 1
        self.last_send_time = datetime.now(timezone.utc)
        self.last_error = None

    def _record_failure(self, error: str):
        self.failure_count += 1
        self.last_error = error


# =============================================================================
# Log Channel (mock delivery)
# =============================================================================

class LogNotificationChannel(NotificationChannel):
    """Logs the delivery intent instead of contacting a provider."""

    def __init__(self, name: str, enabled: bool = True):
        super().__init__(name, enabled)
        self.sent: List[Dict[str, str]] = []

    async def send(self, contact: Contact, alert: Alert, new_status: AlertStatus) -> bool:
        if not self.enabled:
            return False
        logger.info(
            "[NOTIFY] %s -> %s (%s): %s alert %s",
            self.name, contact.name, contact.value, action_label(new_status), alert.id,
        )
        self.sent.append({
            "contact_id": contact.id or "",
            "alert_id": alert.id or "",
            "status": AlertStatus(new_status).value,
        })
        self._record_success()
        return True


# =============================================================================
# Webhook Channel (HTTP)
# =============================================================================

class WebhookNotificationChannel(NotificationChannel):
    """
    POSTs each delivery to a webhook (e.g. an SMS/email relay).

    No retries: a failed delivery is recorded and dropped.
    """

    def __init__(
        self,
        name: str,
        endpoint_url: str,
        api_key: Optional[str] = None,
        timeout: int = 5,
        enabled: bool = True,
    ):
        super().__init__(name, enabled)
        self.endpoint_url = endpoint_url
        self.api_key = api_key
        self.timeout = timeout

    async def send(self, contact: Contact, alert: Alert, new_status: AlertStatus) -> bool:
        if not self.enabled:
            return False

        payload = self._prepare_payload(contact, alert, new_status)
        headers = self._prepare_headers()

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    self.endpoint_url,
                    json=payload,
                    headers=headers,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    if response.status in (200, 201, 202):
                        self._record_success()
                        return True
                    error_text = await response.text()
                    self._record_failure(f"HTTP {response.status}: {error_text[:100]}")
                    return False
        except asyncio.TimeoutError:
            self._record_failure(f"Timeout after {self.timeout}s")
            return False
        except aiohttp.ClientError as e:
            self._record_failure(f"Webhook error: {e}")
            return False

    def _prepare_payload(self, contact: Contact, alert: Alert, new_status: AlertStatus) -> Dict[str, Any]:
        return {
            "channel": ContactChannel(contact.channel).value,
            "to": contact.value,
            "contact_name": contact.name,
            "home_id": alert.home_id,
            "alert_id": alert.id,
            "alert_type": alert.type.value,
            "alert_label": alert.type_label,
            "severity": alert.severity.value,
            "status": AlertStatus(new_status).value,
            "message": f"{action_label(new_status)}: {alert.type_label} on {alert.device_name}",
        }

    def _prepare_headers(self) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "User-Agent": "SafeHome-Console/1.0",
        }
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def get_status(self) -> Dict[str, Any]:
        status = super().get_status()
        status.update({
            "endpoint_url": self.endpoint_url,
            "timeout": self.timeout,
            "has_api_key": self.api_key is not None,
        })
        return status


# =============================================================================
# Dispatcher
# =============================================================================

class NotificationDispatcher:
    """
    Routes alert transitions to contacts.

    notify() schedules delivery and returns immediately. Channels are
    selected by the contact's channel name; deliveries inside the home's
    quiet-hours window are suppressed.
    """

    def __init__(self, clock: Optional[Clock] = None, local_time: Optional[Callable[[], datetime]] = None):
        self.clock = clock or SystemClock()
        self._local_time = local_time
        self.channels: Dict[str, NotificationChannel] = {}
        self.total_delivered = 0
        self.total_failed = 0
        self.total_suppressed = 0
        self._inflight: set[asyncio.Task] = set()

    def register_channel(self, channel: NotificationChannel):
        self.channels[channel.name] = channel
        logger.info("[NOTIFY] Registered channel: %s", channel.name)

    def unregister_channel(self, name: str):
        if name in self.channels:
            del self.channels[name]
            logger.info("[NOTIFY] Unregistered channel: %s", name)

    def get_channel(self, name: str) -> Optional[NotificationChannel]:
        return self.channels.get(name)

    def _now_local(self) -> datetime:
        if self._local_time is not None:
            return self._local_time()
        return self.clock.now().astimezone()

    def notify(
        self,
        contacts: List[Contact],
        alert: Alert,
        new_status: AlertStatus,
        policy: Optional[HomePolicy] = None,
    ) -> Optional[asyncio.Task]:
        """Fire-and-forget fan-out. Returns the background task (or None)."""
        if not contacts:
            logger.info("[NOTIFY] No contacts for %s; %s alert %s",
                        alert.home_id, action_label(new_status), alert.id)
            return None

        if policy is not None and policy.is_quiet_at(self._now_local().time()):
            self.total_suppressed += len(contacts)
            logger.info("[NOTIFY] Quiet hours active for %s (%s-%s); suppressed %d delivery(ies)",
                        alert.home_id, policy.start, policy.end, len(contacts))
            return None

        task = asyncio.get_running_loop().create_task(self._fan_out(contacts, alert, new_status))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        return task

    async def _fan_out(self, contacts: List[Contact], alert: Alert, new_status: AlertStatus) -> Dict[str, bool]:
        jobs = []
        keys = []
        for contact in contacts:
            channel = self.channels.get(ContactChannel(contact.channel).value)
            if channel is None or not channel.enabled:
                logger.warning("[NOTIFY] No enabled channel for %s (%s)", contact.name, contact.channel)
                continue
            jobs.append(channel.send(contact, alert, new_status))
            keys.append(contact.id or contact.name)

        results = await asyncio.gather(*jobs, return_exceptions=True)

        outcome: Dict[str, bool] = {}
        for key, result in zip(keys, results):
            if isinstance(result, Exception):
                logger.error("[NOTIFY] Delivery to %s raised: %s", key, result)
                outcome[key] = False
            else:
                outcome[key] = bool(result)
            if outcome[key]:
                self.total_delivered += 1
            else:
                self.total_failed += 1
        return outcome

    async def drain(self) -> None:
        """Wait for in-flight deliveries (used on shutdown and in tests)."""
        if self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    def get_status(self) -> Dict[str, Any]:
        return {
            "total_delivered": self.total_delivered,
            "total_failed": self.total_failed,
            "total_suppressed": self.total_suppressed,
            "channels": {name: ch.get_status() for name, ch in self.channels.items()},
        }
