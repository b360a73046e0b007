"""Entry points: one-shot allocation and the API server."""

import asyncio
import logging
import sys

import uvicorn

from vaultgate.allocation.engine import AllocationEngine
from vaultgate.config import get_settings
from vaultgate.crypto import get_envelope
from vaultgate.errors import ExternalServiceError, VaultgateError
from vaultgate.ledger.database import close_db, get_db, init_db
from vaultgate.notifications.gate import NotificationGate
from vaultgate.providers.factory import get_key_service, get_notification_service

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


async def run_allocation(network_code: str) -> None:
    """Allocate one deposit address for a network and report it.

    Flow: load network, allocate, best-effort balance check, then an
    optional webhook subscription.
    """
    settings = get_settings()

    # Fails on a bad key before anything touches the database
    envelope = get_envelope()
    key_service = get_key_service()

    await init_db()
    try:
        async with get_db() as session:
            engine = AllocationEngine(session, key_service, envelope)
            network = await engine.load_network(network_code)
            target = await engine.allocate(network)

        logger.info(f"[network] {network.code}")
        logger.info(f"[deposit.strategy] {target.strategy.value}")
        if target.derivation_index is not None:
            logger.info(f"[deposit.index] {target.derivation_index}")
        logger.info(f"[deposit.address] {target.address}")
        if target.address_extra is not None:
            logger.info(f"[deposit.tag] {target.address_extra}")

        try:
            balance = await key_service.get_balance(network.addressing_scheme, target.address)
            logger.info(f"[deposit.balance] {balance}")
        except ExternalServiceError as e:
            logger.warning(f"Balance check failed: {e}")

        if settings.notifications_enabled:
            gate = NotificationGate(get_notification_service())
            subscription_id = await gate.maybe_subscribe(
                network.notification_chain_id, target.address, settings.webhook_url
            )
            logger.info(f"[subscription.id] {subscription_id}")
        else:
            logger.info("WEBHOOK_URL not set - subscription skipped")
    finally:
        await close_db()


def main() -> None:
    """Allocate one address for NETWORK_CODE."""
    configure_logging()
    settings = get_settings()
    logger.info(f"Environment: {settings.environment}")

    try:
        asyncio.run(run_allocation(settings.network_code))
    except VaultgateError as e:
        logger.error(f"Allocation failed: {e}")
        sys.exit(1)


def serve() -> None:
    """Run the HTTP API."""
    configure_logging()
    settings = get_settings()

    from vaultgate.api.app import create_app

    logger.info(f"Starting API server on {settings.api_host}:{settings.api_port}")
    uvicorn.run(
        create_app(),
        host=settings.api_host,
        port=settings.api_port,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
