"""Deposit address allocation endpoint."""

from typing import Optional

from fastapi import APIRouter, Depends, Path
from pydantic import BaseModel, Field

from vaultgate.allocation.engine import AllocationEngine
from vaultgate.config import get_settings
from vaultgate.crypto import SecretEnvelope, get_envelope
from vaultgate.ledger.database import get_db
from vaultgate.notifications.gate import NotificationGate
from vaultgate.providers.base import KeyService, NotificationService
from vaultgate.providers.factory import get_key_service, get_notification_service

router = APIRouter()


class DepositAddressResponse(BaseModel):
    """Allocated deposit target."""

    network: str
    address: str
    address_extra: Optional[str] = Field(None, description="Memo/tag for shared addresses")
    derivation_index: Optional[int] = None
    strategy: str
    encrypted_secret: Optional[str] = Field(
        None, description="Envelope of a per-deposit wallet secret, for the ledger to store"
    )
    subscription_id: Optional[str] = None


def envelope_dependency() -> SecretEnvelope:
    return get_envelope()


def key_service_dependency() -> KeyService:
    return get_key_service()


def notification_service_dependency() -> NotificationService:
    return get_notification_service()


@router.post("/networks/{code}/deposit-address", response_model=DepositAddressResponse)
async def allocate_deposit_address(
    code: str = Path(..., min_length=1, max_length=64),
    envelope: SecretEnvelope = Depends(envelope_dependency),
    key_service: KeyService = Depends(key_service_dependency),
    notification_service: NotificationService = Depends(notification_service_dependency),
):
    """Allocate a deposit address on a network and subscribe it for webhooks."""
    settings = get_settings()

    async with get_db() as session:
        engine = AllocationEngine(session, key_service, envelope)
        network = await engine.load_network(code)
        target = await engine.allocate(network)

    subscription_id = None
    if settings.notifications_enabled:
        gate = NotificationGate(notification_service)
        subscription_id = await gate.maybe_subscribe(
            network.notification_chain_id, target.address, settings.webhook_url
        )

    return DepositAddressResponse(
        network=network.code,
        address=target.address,
        address_extra=target.address_extra,
        derivation_index=target.derivation_index,
        strategy=target.strategy.value,
        encrypted_secret=target.encrypted_secret,
        subscription_id=subscription_id,
    )
