"""Health check endpoints."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from vaultgate import __version__
from vaultgate.api.routes.deposits import key_service_dependency
from vaultgate.config import get_settings
from vaultgate.crypto import parse_key
from vaultgate.errors import ConfigurationError
from vaultgate.ledger.database import get_db
from vaultgate.providers.base import KeyService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check():
    """Basic liveness check."""
    return {"status": "healthy", "service": "vaultgate"}


async def _database_ok() -> bool:
    try:
        async with get_db() as session:
            await session.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning(f"Database health check failed: {e}")
        return False
    return True


def _encryption_key_ok() -> bool:
    try:
        parse_key(get_settings().mnemonic_enc_key)
    except ConfigurationError:
        return False
    return True


@router.get("/health/detailed")
async def detailed_health(key_service: KeyService = Depends(key_service_dependency)):
    """Readiness of the pieces an allocation needs.

    The key service is reported by backend name only.
    """
    checks = {
        "database": await _database_ok(),
        "encryption_key": _encryption_key_ok(),
    }

    return {
        "status": "healthy" if all(checks.values()) else "degraded",
        "service": "vaultgate",
        "version": __version__,
        "checks": checks,
        "key_service": key_service.name,
        "config": get_settings().get_safe_dict(),
    }
