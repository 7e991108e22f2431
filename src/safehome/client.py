"""
SafeHome Client

Explicitly constructed owner of the store handle, auth gateway and every
service built on them. Components receive the client (or one of its
services) instead of importing module-level singletons.

Usage:
    async with SafeHomeClient(settings) as client:
        session = await client.sessions.login(Role.OWNER, "home-alpha")
        view = client.open_view(session.home_id)
"""

import logging
import random
from typing import Optional

from .clock import Clock, SystemClock
from .config import Settings
from .domain import ContactChannel
from .services import (
    AlertLifecycle,
    AuthGateway,
    BusyTracker,
    ConsoleView,
    ContactService,
    DeferredScheduler,
    DeviceService,
    IngestionSimulator,
    LocalAuthGateway,
    LogNotificationChannel,
    NoticeBoard,
    NotificationDispatcher,
    PolicyService,
    RegistrationService,
    SessionManager,
    WebhookNotificationChannel,
)
from .services.console_view import ChangeListener
from .store import DocumentStore, MemoryDocumentStore


logger = logging.getLogger(__name__)


class SafeHomeClient:
    """Lifecycle: construct → start() → ... → close()."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        store: Optional[DocumentStore] = None,
        auth: Optional[AuthGateway] = None,
        clock: Optional[Clock] = None,
        rng: Optional[random.Random] = None,
    ):
        self.settings = settings or Settings()
        self.clock = clock or SystemClock()
        self.store = store or MemoryDocumentStore(clock=self.clock, namespace=self.settings.store_namespace)
        self.auth = auth or LocalAuthGateway(provisioned_tokens=[self.settings.custom_token])

        self.busy = BusyTracker()
        self.notices = NoticeBoard(clock=self.clock)
        self.scheduler = DeferredScheduler(clock=self.clock)
        self.dispatcher = NotificationDispatcher(clock=self.clock)
        self._register_channels()

        self.sessions = SessionManager(
            self.store,
            self.auth,
            self.notices,
            custom_token=self.settings.custom_token,
            default_home_id=self.settings.default_home_id,
        )
        self.devices = DeviceService(self.store, self.busy, self.notices)
        self.contacts = ContactService(self.store, self.busy, self.notices)
        self.policies = PolicyService(self.store, self.notices)
        self.registrations = RegistrationService(self.store, clock=self.clock)
        self.alerts = AlertLifecycle(self.store, self.busy, self.notices, self.dispatcher)
        self.ingestion = IngestionSimulator(
            self.store,
            self.scheduler,
            self.notices,
            self.busy,
            rng=rng,
            delay_sec=self.settings.ingestion_delay_sec,
        )

        self._views: list[ConsoleView] = []
        self._started = False
        self._closed = False

    def _register_channels(self) -> None:
        url = self.settings.notify_webhook_url
        for channel in ContactChannel:
            if url:
                self.dispatcher.register_channel(WebhookNotificationChannel(
                    name=channel.value,
                    endpoint_url=url,
                    api_key=self.settings.notify_webhook_key,
                ))
            else:
                self.dispatcher.register_channel(LogNotificationChannel(name=channel.value))

    @property
    def started(self) -> bool:
        return self._started and not self._closed

    async def start(self) -> "SafeHomeClient":
        if self._closed:
            raise RuntimeError("SafeHomeClient cannot be restarted after close()")
        if not self._started:
            self._started = True
            logger.info("[STARTUP] SafeHome client ready (store=%s, custom_token=%s)",
                        self.settings.store_namespace, "yes" if self.settings.custom_token else "no")
        return self

    def open_view(self, home_id: str, on_change: Optional[ChangeListener] = None) -> ConsoleView:
        if not self.started:
            raise RuntimeError("SafeHomeClient is not started")
        view = ConsoleView(self.store, home_id, busy=self.busy, on_change=on_change).open()
        self._views.append(view)
        return view

    def close_view(self, view: ConsoleView) -> None:
        view.close()
        if view in self._views:
            self._views.remove(view)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        cancelled = await self.ingestion.shutdown()
        if cancelled:
            logger.warning("[SHUTDOWN] Dropped %d pending inference write(s)", cancelled)
        for view in list(self._views):
            self.close_view(view)
        await self.dispatcher.drain()
        await self.store.close()
        logger.info("[SHUTDOWN] SafeHome client closed")

    async def __aenter__(self) -> "SafeHomeClient":
        return await self.start()

    async def __aexit__(self, *exc) -> None:
        await self.close()
