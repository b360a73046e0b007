"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from vaultgate.config import get_settings
from vaultgate.crypto import get_envelope
from vaultgate.errors import (
    AllocationError,
    ConfigurationError,
    EncryptionError,
    ExternalServiceError,
    NotFoundError,
    VaultgateError,
)
from vaultgate.ledger.database import close_db, init_db

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    NotFoundError: 404,
    AllocationError: 409,
    ExternalServiceError: 502,
    ConfigurationError: 500,
    EncryptionError: 500,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Fail before serving if the encryption key is unusable
    get_envelope()
    await init_db()
    yield
    await close_db()


async def handle_vaultgate_error(request: Request, exc: VaultgateError) -> JSONResponse:
    """Translate allocation errors into HTTP responses."""
    status_code = next(
        (code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)), 500
    )
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status_code,
        content={"error": type(exc).__name__, "detail": str(exc)},
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Vaultgate API",
        description="Deposit address allocation for a custodial multi-chain ledger",
        version="0.1.0",
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.add_exception_handler(VaultgateError, handle_vaultgate_error)

    from vaultgate.api.routes import deposits, health

    app.include_router(health.router, tags=["Health"])
    app.include_router(deposits.router, prefix="/api/v1", tags=["Deposits"])

    return app
