"""
SafeHome Core Enums

All enumerations stored in documents or exchanged over the console API.
Values are the literal strings persisted in the document store.
"""

from enum import Enum


# =============================================================================
# Devices
# =============================================================================

class DeviceType(str, Enum):
    """Registered device hardware class."""
    AUDIO_SENSOR = "audio_sensor"
    DOORWAY_ARRAY = "doorway_array"
    SMOKE_COMBO = "smoke_combo"
    GLASS_SENSOR = "glass_sensor"


class DeviceStatus(str, Enum):
    ONLINE = "online"
    OFFLINE = "offline"


# =============================================================================
# Detections & Alerts
# =============================================================================

class AlertType(str, Enum):
    """Detection classes produced by the audio classifier (closed set)."""
    SCREAM = "scream"
    SMOKE_ALARM = "smoke_alarm"
    GLASS_BREAK = "glass_break"
    DISTRESS_CALL = "distress_call"
    AMBIENT_NOISE = "ambient_noise"


class Severity(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class AlertStatus(str, Enum):
    """Alert lifecycle states.

    open → acked | escalated
    acked → closed
    escalated → acked | closed
    closed is terminal
    """
    OPEN = "open"
    ACKED = "acked"
    ESCALATED = "escalated"
    CLOSED = "closed"


# =============================================================================
# Contacts, Roles, Registrations
# =============================================================================

class ContactChannel(str, Enum):
    SMS = "sms"
    EMAIL = "email"


class Role(str, Enum):
    """Console operator role recorded against the signed-in identity."""
    OWNER = "Owner"
    ADMIN = "Admin"
    TECH = "Tech"


class RegistrationStatus(str, Enum):
    PENDING = "pending"


class NoticeTone(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"
