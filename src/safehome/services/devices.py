"""
Device registry

Registration, edits and manual heartbeats. Devices are never hard-deleted.
"""

import logging
from typing import Optional

from ..domain import Device, DeviceStatus, DeviceType
from ..errors import DocumentNotFound, StoreWriteError, ValidationFailed
from ..store import DEVICES, SERVER_TIMESTAMP, DocumentStore
from .busy import BusyTracker
from .notices import NoticeBoard


logger = logging.getLogger(__name__)

HEARTBEAT_ACTION = "heartbeat"
DEVICE_SAVE_ACTION = "device_save"


class DeviceService:

    def __init__(self, store: DocumentStore, busy: BusyTracker, notices: NoticeBoard):
        self.store = store
        self.busy = busy
        self.notices = notices

    async def list_devices(self, home_id: str) -> list[Device]:
        snapshot = await self.store.run_query(
            self.store.query(DEVICES).where("home_id", home_id).order_by("name")
        )
        return [Device.from_snapshot(doc) for doc in snapshot.docs]

    async def load(self, home_id: str, device_id: str) -> Device:
        snapshot = await self.store.get(DEVICES, device_id)
        if not snapshot.exists or snapshot.get("home_id") != home_id:
            raise DocumentNotFound(DEVICES, device_id)
        return Device.from_snapshot(snapshot)

    @staticmethod
    def _parse_type(device_type) -> DeviceType:
        try:
            return DeviceType(device_type)
        except ValueError as e:
            raise ValidationFailed(f"Unknown device type: {device_type}", title="Invalid device type") from e

    @staticmethod
    def _clean_name(name: Optional[str]) -> str:
        cleaned = (name or "").strip()
        if not cleaned:
            raise ValidationFailed("Please provide a friendly name.", title="Device name required")
        return cleaned

    async def register(self, home_id: str, name: str, device_type: DeviceType) -> Device:
        """Register a new device; it starts online with last_seen_at = now."""
        cleaned = self._clean_name(name)
        device_type = self._parse_type(device_type)
        async with self.busy.hold(DEVICE_SAVE_ACTION, f"{home_id}:new"):
            try:
                device_id = await self.store.add(DEVICES, {
                    "home_id": home_id,
                    "name": cleaned,
                    "type": device_type.value,
                    "status": DeviceStatus.ONLINE.value,
                    "last_seen_at": SERVER_TIMESTAMP,
                    "created_at": SERVER_TIMESTAMP,
                })
            except Exception as e:
                self.notices.error(home_id, "Device save failed", str(e))
                raise StoreWriteError(str(e), title="Device save failed", cause=e) from e

        logger.info("[DEVICE] Registered %s (%s) for %s", cleaned, device_type.value, home_id)
        self.notices.success(home_id, "Device saved", f"{cleaned} synced to {home_id}")
        return await self.load(home_id, device_id)

    async def edit(self, home_id: str, device_id: str, name: str, device_type: DeviceType) -> Device:
        cleaned = self._clean_name(name)
        device_type = self._parse_type(device_type)
        async with self.busy.hold(DEVICE_SAVE_ACTION, device_id):
            await self.load(home_id, device_id)
            try:
                await self.store.update(DEVICES, device_id, {
                    "name": cleaned,
                    "type": device_type.value,
                    "updated_at": SERVER_TIMESTAMP,
                })
            except DocumentNotFound:
                raise
            except Exception as e:
                self.notices.error(home_id, "Device save failed", str(e))
                raise StoreWriteError(str(e), title="Device save failed", cause=e) from e

        self.notices.success(home_id, "Device saved", f"{cleaned} synced to {home_id}")
        return await self.load(home_id, device_id)

    async def heartbeat(self, home_id: str, device_id: str) -> Device:
        """Mark the device online and refresh last_seen_at.

        A second heartbeat for the same device while one is in flight is
        rejected with OperationInProgress before any store request.
        """
        async with self.busy.hold(HEARTBEAT_ACTION, device_id):
            device = await self.load(home_id, device_id)
            try:
                await self.store.update(DEVICES, device_id, {
                    "status": DeviceStatus.ONLINE.value,
                    "last_seen_at": SERVER_TIMESTAMP,
                })
            except DocumentNotFound:
                raise
            except Exception as e:
                self.notices.error(home_id, "Heartbeat failed", str(e))
                raise StoreWriteError(str(e), title="Heartbeat failed", cause=e) from e

        self.notices.success(home_id, "Heartbeat sent", f"{device.name} is online")
        return await self.load(home_id, device_id)
