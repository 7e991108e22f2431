"""SafeHome Document Store"""

from .base import (
    SERVER_TIMESTAMP,
    DocumentSnapshot,
    DocumentStore,
    LiveQuery,
    QuerySnapshot,
    QuerySpec,
    Subscription,
)
from .memory import MemoryDocumentStore

# Collection names
DEVICES = "devices"
ALERTS = "alerts"
EVENTS = "events"
CONTACTS = "contacts"
HOME_POLICIES = "home_policies"
HOME_MODELS = "home_models"
HOME_REGISTRATIONS = "home_registrations"
USERS = "users"

__all__ = [
    'SERVER_TIMESTAMP',
    'DocumentSnapshot',
    'DocumentStore',
    'LiveQuery',
    'QuerySnapshot',
    'QuerySpec',
    'Subscription',
    'MemoryDocumentStore',
    'DEVICES',
    'ALERTS',
    'EVENTS',
    'CONTACTS',
    'HOME_POLICIES',
    'HOME_MODELS',
    'HOME_REGISTRATIONS',
    'USERS',
]
