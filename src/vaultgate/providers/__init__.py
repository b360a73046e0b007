"""External Key Service and Notification Service adapters."""

from vaultgate.providers.base import GeneratedWallet, KeyService, NotificationService
from vaultgate.providers.factory import get_key_service, get_notification_service

__all__ = [
    "GeneratedWallet",
    "KeyService",
    "NotificationService",
    "get_key_service",
    "get_notification_service",
]
