"""Deposit notification subscriptions."""

from vaultgate.notifications.gate import SUPPORTED_NOTIFICATION_CHAINS, NotificationGate

__all__ = ["NotificationGate", "SUPPORTED_NOTIFICATION_CHAINS"]
