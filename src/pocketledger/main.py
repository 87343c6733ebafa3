import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError

from pocketledger.api.middleware.error_handler import (
    handle_generic_error,
    handle_integrity_error,
    handle_ledger_error,
    handle_validation_error,
)
from pocketledger.api.middleware.logging import RequestLoggingMiddleware, configure_logging
from pocketledger.api.v1 import router as v1_router
from pocketledger.api.v1.health import router as health_router
from pocketledger.config import Settings, settings
from pocketledger.core.crypto import CredentialCipher
from pocketledger.core.exceptions import LedgerError
from pocketledger.providers import build_registry

logger = logging.getLogger(__name__)


def build_cipher(config: Settings) -> CredentialCipher:
    """Credential cipher from the configured key.

    Outside development a key is required. In development a throwaway key
    is generated, so credentials stored by one run cannot be read by the next.
    """
    if config.encryption_key:
        return CredentialCipher(config.encryption_key)
    if config.app_env.lower() != "development":
        raise RuntimeError("ENCRYPTION_KEY must be set outside development")
    logger.warning("ENCRYPTION_KEY not set; using an ephemeral development key")
    return CredentialCipher(CredentialCipher.generate_key())


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    configure_logging(settings.log_level, json_output=not settings.debug)
    app.state.cipher = build_cipher(settings)
    app.state.providers = build_registry(settings)
    logger.info(
        "Application started",
        extra={"provider": ",".join(app.state.providers.names())},
    )
    yield
    # Shutdown
    await app.state.providers.close()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Pocket Ledger API",
        description="Wallet linking, transaction import and monthly budgets",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    # Add request logging middleware
    app.add_middleware(RequestLoggingMiddleware)

    # Register exception handlers (order matters - most specific first)
    app.add_exception_handler(LedgerError, handle_ledger_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(IntegrityError, handle_integrity_error)
    app.add_exception_handler(Exception, handle_generic_error)

    # Register routers
    app.include_router(health_router)
    app.include_router(v1_router)

    return app


app = create_app()
