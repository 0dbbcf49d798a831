#Marks notifications as a package.
#Re-exports the capability contract and its implementations.
#No business logic.

from .service import (
    NotificationError,
    NotificationMessage,
    NotificationService,
    NullNotificationService,
)
from .fcm import FcmNotificationService

__all__ = [
    "NotificationError",
    "NotificationMessage",
    "NotificationService",
    "NullNotificationService",
    "FcmNotificationService",
]
