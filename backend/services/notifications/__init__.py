"""Notification registration, admission and queue resolution."""

from .admission import QueueContext, admit, is_admissible
from .constants import (
    DEFAULT_PRIORITY,
    GROUP_DEFAULT,
    GROUP_SETUP_CTAS,
    NOTIFICATION_AREAS,
    NOTIFICATION_GROUPS,
    VIEW_CONTEXTS,
)
from .dismissals import (
    MAX_DISMISSED_NOTIFICATIONS,
    DismissalLedger,
    DismissalRecord,
    SqlDismissalLedger,
    delete_expired_dismissed_notifications,
    dismiss_notification_for_user,
    list_dismissed_notification_ids,
    load_dismissal_records,
)
from .errors import (
    DismissalsNotLoadedError,
    DuplicateRegistrationWarning,
    InvalidAreaError,
    InvalidGroupError,
    InvalidViewContextError,
    NotificationRegistrationError,
    ValidationError,
)
from .feature_flags import (
    FeatureFlagSource,
    SettingsFeatureFlagSource,
    StaticFeatureFlagSource,
)
from .queue import NotificationQueue, QueuePhase, QueueResolution, QueueStatus
from .registry import (
    NotificationDescriptor,
    NotificationProducer,
    NotificationRegistry,
    RequirementCheck,
)
from .requirements import RequirementContext, evaluate_requirements

__all__ = [
    "DEFAULT_PRIORITY",
    "GROUP_DEFAULT",
    "GROUP_SETUP_CTAS",
    "NOTIFICATION_AREAS",
    "NOTIFICATION_GROUPS",
    "VIEW_CONTEXTS",
    "MAX_DISMISSED_NOTIFICATIONS",
    "NotificationDescriptor",
    "NotificationProducer",
    "NotificationRegistry",
    "RequirementCheck",
    "QueueContext",
    "admit",
    "is_admissible",
    "RequirementContext",
    "evaluate_requirements",
    "NotificationQueue",
    "QueuePhase",
    "QueueResolution",
    "QueueStatus",
    "DismissalLedger",
    "DismissalRecord",
    "SqlDismissalLedger",
    "load_dismissal_records",
    "list_dismissed_notification_ids",
    "dismiss_notification_for_user",
    "delete_expired_dismissed_notifications",
    "FeatureFlagSource",
    "SettingsFeatureFlagSource",
    "StaticFeatureFlagSource",
    "NotificationRegistrationError",
    "ValidationError",
    "InvalidAreaError",
    "InvalidGroupError",
    "InvalidViewContextError",
    "DuplicateRegistrationWarning",
    "DismissalsNotLoadedError",
]
