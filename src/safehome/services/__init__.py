"""SafeHome Services"""

from .busy import BusyTracker
from .deferred import DeferredTask, DeferredScheduler
from .notices import NoticeBoard
from .notifications import (
    NotificationChannel,
    LogNotificationChannel,
    WebhookNotificationChannel,
    NotificationDispatcher,
    action_label,
)
from .alert_lifecycle import (
    AlertLifecycle,
    AlertAction,
    TRANSITIONS,
    allowed_transitions,
    can_transition,
    actions_for,
)
from .ingestion import (
    IngestionSimulator,
    ClipSubmission,
    DEFAULT_INFERENCE_DELAY_SEC,
)
from .devices import DeviceService
from .contacts import ContactService
from .policies import PolicyService
from .registration import RegistrationService
from .auth import (
    AuthGateway,
    LocalAuthGateway,
    AuthUser,
    Session,
    SessionManager,
    DEFAULT_HOME_ID,
)
from .console_view import ConsoleView

__all__ = [
    # Primitives
    'BusyTracker',
    'DeferredTask',
    'DeferredScheduler',
    'NoticeBoard',
    # Notifications
    'NotificationChannel',
    'LogNotificationChannel',
    'WebhookNotificationChannel',
    'NotificationDispatcher',
    'action_label',
    # Alert lifecycle
    'AlertLifecycle',
    'AlertAction',
    'TRANSITIONS',
    'allowed_transitions',
    'can_transition',
    'actions_for',
    # Ingestion
    'IngestionSimulator',
    'ClipSubmission',
    'DEFAULT_INFERENCE_DELAY_SEC',
    # CRUD services
    'DeviceService',
    'ContactService',
    'PolicyService',
    'RegistrationService',
    # Auth
    'AuthGateway',
    'LocalAuthGateway',
    'AuthUser',
    'Session',
    'SessionManager',
    'DEFAULT_HOME_ID',
    # View
    'ConsoleView',
]
