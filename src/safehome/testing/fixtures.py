"""
Seed data helpers

seed_home() writes a small, known home straight into a store so tests and
local demos start from the same data the console would have created.
"""

from dataclasses import dataclass, field
from typing import Optional, Sequence

from ..domain import (
    AlertStatus,
    AlertType,
    ContactChannel,
    DeviceStatus,
    DeviceType,
    Severity,
    catalog_entry,
)
from ..store import ALERTS, CONTACTS, DEVICES, EVENTS, SERVER_TIMESTAMP, DocumentStore


DEFAULT_DEVICES = (
    ("Hallway Mic", DeviceType.AUDIO_SENSOR, DeviceStatus.ONLINE),
    ("Kitchen Smoke", DeviceType.SMOKE_COMBO, DeviceStatus.OFFLINE),
)

DEFAULT_CONTACTS = (
    ("Alex", ContactChannel.SMS, "+15550100"),
    ("Sam", ContactChannel.EMAIL, "sam@example.com"),
)


@dataclass
class SeededHome:
    home_id: str
    device_ids: list[str] = field(default_factory=list)
    contact_ids: list[str] = field(default_factory=list)
    alert_ids: list[str] = field(default_factory=list)


async def seed_home(
    store: DocumentStore,
    home_id: str = "home-alpha",
    devices: Sequence[tuple] = DEFAULT_DEVICES,
    contacts: Sequence[tuple] = DEFAULT_CONTACTS,
    alerts: Sequence[tuple[AlertType, Severity, AlertStatus]] = (),
    alert_device: Optional[int] = 0,
) -> SeededHome:
    """Write devices, contacts and (optionally) alerts for `home_id`.

    Alerts are attached to devices[alert_device] together with a matching
    ingestion event.
    """
    seeded = SeededHome(home_id=home_id)

    for name, device_type, status in devices:
        seeded.device_ids.append(await store.add(DEVICES, {
            "home_id": home_id,
            "name": name,
            "type": DeviceType(device_type).value,
            "status": DeviceStatus(status).value,
            "last_seen_at": SERVER_TIMESTAMP,
            "created_at": SERVER_TIMESTAMP,
        }))

    for name, channel, value in contacts:
        seeded.contact_ids.append(await store.add(CONTACTS, {
            "home_id": home_id,
            "name": name,
            "channel": ContactChannel(channel).value,
            "value": value,
            "created_at": SERVER_TIMESTAMP,
        }))

    if alerts:
        if alert_device is None or not seeded.device_ids:
            raise ValueError("seeding alerts requires at least one device")
        device_id = seeded.device_ids[alert_device]
        device_name = devices[alert_device][0]
        for alert_type, severity, status in alerts:
            entry = catalog_entry(alert_type)
            event_id = await store.add(EVENTS, {
                "home_id": home_id,
                "device_id": device_id,
                "device_name": device_name,
                "timestamp": SERVER_TIMESTAMP,
                "storage_key": f"audio/{device_id}/seed.wav",
            })
            seeded.alert_ids.append(await store.add(ALERTS, {
                "home_id": home_id,
                "device_id": device_id,
                "device_name": device_name,
                "type": entry.type.value,
                "type_label": entry.label,
                "severity": Severity(severity).value,
                "status": AlertStatus(status).value,
                "created_at": SERVER_TIMESTAMP,
                "event_id": event_id,
            }))

    return seeded
