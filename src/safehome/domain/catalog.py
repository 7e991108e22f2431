"""
Detection & device catalogs

The mock classifier picks uniformly from ALERT_CATALOG, then uniformly
from the chosen entry's severity pool.
"""

from dataclasses import dataclass

from .enums import AlertType, DeviceType, Severity


@dataclass(frozen=True)
class CatalogEntry:
    """One detection class the classifier can emit."""
    type: AlertType
    label: str
    severity_pool: tuple[Severity, ...]


ALERT_CATALOG: tuple[CatalogEntry, ...] = (
    CatalogEntry(AlertType.SCREAM, "Scream Detected", (Severity.HIGH,)),
    CatalogEntry(AlertType.SMOKE_ALARM, "Smoke Alarm", (Severity.HIGH,)),
    CatalogEntry(AlertType.GLASS_BREAK, "Glass Break", (Severity.MEDIUM, Severity.HIGH)),
    CatalogEntry(AlertType.DISTRESS_CALL, "Distress Call", (Severity.MEDIUM,)),
    CatalogEntry(AlertType.AMBIENT_NOISE, "Noise Spike", (Severity.LOW, Severity.MEDIUM)),
)

CATALOG_BY_TYPE: dict[AlertType, CatalogEntry] = {entry.type: entry for entry in ALERT_CATALOG}

DEVICE_TYPE_LABELS: dict[DeviceType, str] = {
    DeviceType.AUDIO_SENSOR: "Audio Sensor",
    DeviceType.DOORWAY_ARRAY: "Doorway Array",
    DeviceType.SMOKE_COMBO: "Smoke + CO Combo",
    DeviceType.GLASS_SENSOR: "Glass Break Sensor",
}


def catalog_entry(alert_type: AlertType) -> CatalogEntry:
    return CATALOG_BY_TYPE[AlertType(alert_type)]
