"""Factory for the configured Key Service and Notification Service."""

from typing import Optional

from vaultgate.config import get_settings
from vaultgate.errors import ConfigurationError
from vaultgate.providers.base import KeyService, NotificationService
from vaultgate.providers.dryrun import DryRunKeyService, DryRunNotificationService
from vaultgate.providers.tatum import TatumClient

# Singleton instances
_key_service: Optional[KeyService] = None
_notification_service: Optional[NotificationService] = None


def _build_tatum_client() -> TatumClient:
    settings = get_settings()
    if not settings.tatum_api_key:
        raise ConfigurationError("TATUM_API_KEY is required when KEY_SERVICE=tatum")
    return TatumClient(
        api_key=settings.tatum_api_key,
        base_url=settings.tatum_base_url,
        net_type=settings.tatum_net_type,
        timeout=settings.request_timeout,
    )


def get_key_service() -> KeyService:
    """Get the configured Key Service.

    Selected by the KEY_SERVICE environment variable:
    - dryrun (default): simulated wallets for development and tests
    - tatum: Tatum REST API

    Raises:
        ConfigurationError: If the backend is unknown or lacks credentials
    """
    global _key_service, _notification_service

    if _key_service is not None:
        return _key_service

    backend = get_settings().key_service.lower()
    if backend == "tatum":
        client = _build_tatum_client()
        _key_service = client
        _notification_service = _notification_service or client
    elif backend == "dryrun":
        _key_service = DryRunKeyService()
    else:
        raise ConfigurationError(f"Unknown KEY_SERVICE backend: {backend}")

    return _key_service


def get_notification_service() -> NotificationService:
    """Get the configured Notification Service (same backend as the Key Service)."""
    global _notification_service

    if _notification_service is not None:
        return _notification_service

    backend = get_settings().key_service.lower()
    if backend == "tatum":
        get_key_service()
    elif backend == "dryrun":
        _notification_service = DryRunNotificationService()
    else:
        raise ConfigurationError(f"Unknown KEY_SERVICE backend: {backend}")

    return _notification_service


def reset_services() -> None:
    """Reset service instances (useful for testing)."""
    global _key_service, _notification_service
    _key_service = None
    _notification_service = None
