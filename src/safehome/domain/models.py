"""
SafeHome Core Models

Document shapes for devices, ingestion events, alerts, contacts,
per-home policy/model singletons, registrations and user profiles.
Uses Pydantic for validation and serialization.
"""

from datetime import datetime, time
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from .enums import (
    AlertStatus,
    AlertType,
    ContactChannel,
    DeviceStatus,
    DeviceType,
    NoticeTone,
    RegistrationStatus,
    Role,
    Severity,
)


HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"

DEFAULT_QUIET_START = "22:00"
DEFAULT_QUIET_END = "07:00"
DEFAULT_THRESHOLD = 0.5
MIN_THRESHOLD = 0.1
MAX_THRESHOLD = 0.95


class StoredDocument(BaseModel):
    """Base for models read back from the document store."""
    model_config = ConfigDict(extra="ignore", use_enum_values=False)

    id: Optional[str] = None

    @classmethod
    def from_snapshot(cls, snapshot) -> "StoredDocument":
        return cls(id=snapshot.id, **snapshot.data)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


# =============================================================================
# Devices & Ingestion
# =============================================================================

class Device(StoredDocument):
    home_id: str
    name: str
    type: DeviceType
    status: DeviceStatus = DeviceStatus.OFFLINE
    last_seen_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def is_online(self) -> bool:
        return self.status == DeviceStatus.ONLINE


class IngestionEvent(StoredDocument):
    """Simulated audio-clip upload. Immutable once written."""
    home_id: str
    device_id: str
    device_name: str
    timestamp: Optional[datetime] = None
    storage_key: str


# =============================================================================
# Alerts
# =============================================================================

class Alert(StoredDocument):
    home_id: str
    device_id: str
    device_name: str
    type: AlertType
    type_label: str
    severity: Severity
    status: AlertStatus = AlertStatus.OPEN
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    event_id: str

    def is_active(self) -> bool:
        return self.status != AlertStatus.CLOSED


# =============================================================================
# Contacts
# =============================================================================

class Contact(StoredDocument):
    home_id: str
    name: str
    channel: ContactChannel
    value: str
    created_at: Optional[datetime] = None


# =============================================================================
# Per-home singletons
# =============================================================================

class HomePolicy(StoredDocument):
    """Quiet-hours window for a home (document id = home id)."""
    home_id: str
    enabled: bool = False
    start: str = Field(default=DEFAULT_QUIET_START, pattern=HHMM_PATTERN)
    end: str = Field(default=DEFAULT_QUIET_END, pattern=HHMM_PATTERN)
    updated_at: Optional[datetime] = None

    @staticmethod
    def _parse(value: str) -> time:
        hours, minutes = value.split(":")
        return time(int(hours), int(minutes))

    def is_quiet_at(self, moment: time) -> bool:
        """Check whether `moment` falls inside the window.

        The window is half-open [start, end) and may wrap past midnight
        (e.g. 23:00 → 06:00). start == end means an empty window.
        """
        if not self.enabled:
            return False
        start = self._parse(self.start)
        end = self._parse(self.end)
        moment = moment.replace(second=0, microsecond=0, tzinfo=None)
        if start == end:
            return False
        if start < end:
            return start <= moment < end
        return moment >= start or moment < end


class ClassThreshold(BaseModel):
    threshold: float = Field(ge=MIN_THRESHOLD, le=MAX_THRESHOLD)
    last_editor: Optional[Role] = None


class HomeModelConfig(StoredDocument):
    """Per-class detection thresholds (document id = home id)."""
    home_id: str
    classes: dict[AlertType, ClassThreshold] = Field(default_factory=dict)
    updated_at: Optional[datetime] = None

    def threshold_for(self, alert_type: AlertType) -> float:
        entry = self.classes.get(AlertType(alert_type))
        return entry.threshold if entry else DEFAULT_THRESHOLD


# =============================================================================
# Registrations & Identity
# =============================================================================

class HomeRegistration(StoredDocument):
    """Append-only intake record; reviewed out of band."""
    owner_name: str
    owner_email: EmailStr
    home_name: str
    preferred_home_id: str
    description: str = ""
    status: RegistrationStatus = RegistrationStatus.PENDING
    created_at: Optional[datetime] = None


class UserProfile(StoredDocument):
    role: Role
    home_id: str
    updated_at: Optional[datetime] = None


# =============================================================================
# User-visible notices
# =============================================================================

class Notice(BaseModel):
    """Transient on-screen notification."""
    title: str
    description: str = ""
    tone: NoticeTone = NoticeTone.INFO
    created_at: datetime

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Notice title must not be blank")
        return v
