"""SafeHome Domain Models"""

from .enums import (
    # Devices
    DeviceType,
    DeviceStatus,

    # Detections & alerts
    AlertType,
    Severity,
    AlertStatus,

    # Contacts & identity
    ContactChannel,
    Role,
    RegistrationStatus,
    NoticeTone,
)

from .models import (
    Device,
    IngestionEvent,
    Alert,
    Contact,
    HomePolicy,
    ClassThreshold,
    HomeModelConfig,
    HomeRegistration,
    UserProfile,
    Notice,
    DEFAULT_THRESHOLD,
)

from .catalog import (
    CatalogEntry,
    ALERT_CATALOG,
    DEVICE_TYPE_LABELS,
    catalog_entry,
)

__all__ = [
    # Enums
    'DeviceType',
    'DeviceStatus',
    'AlertType',
    'Severity',
    'AlertStatus',
    'ContactChannel',
    'Role',
    'RegistrationStatus',
    'NoticeTone',

    # Models
    'Device',
    'IngestionEvent',
    'Alert',
    'Contact',
    'HomePolicy',
    'ClassThreshold',
    'HomeModelConfig',
    'HomeRegistration',
    'UserProfile',
    'Notice',
    'DEFAULT_THRESHOLD',

    # Catalog
    'CatalogEntry',
    'ALERT_CATALOG',
    'DEVICE_TYPE_LABELS',
    'catalog_entry',
]
