"""FastAPI application entrypoint. No business logic; only wiring and middleware."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import router as api_router
from app.core.config import Settings, get_settings
from app.core.errors import register_exception_handlers
from app.core.logging import configure_logging
from app.repositories import init_backend
from app.services.audit import register_audit_middleware
from app.services.backup import ReservationBackup
from app.services.login_attempts import InMemoryAttemptStore, LoginThrottle
from app.services.mailer import Mailer

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the application.

    The storage backend is selected in the lifespan hook, before the server
    accepts connections, and stays fixed until shutdown.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.backend = init_backend(settings)
        logger.info("Storage backend: %s", app.state.backend.kind)
        try:
            yield
        finally:
            app.state.backend.close()

    app = FastAPI(
        title="Tablebook API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.login_throttle = LoginThrottle(
        InMemoryAttemptStore(),
        max_attempts=settings.LOGIN_RATE_LIMIT_ATTEMPTS,
        window_seconds=settings.LOGIN_RATE_LIMIT_WINDOW_MINUTES * 60,
    )
    app.state.backup = ReservationBackup(settings.RESERVATION_BACKUP_PATH)
    app.state.mailer = Mailer.from_settings(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.APP_ENV == "dev" else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_audit_middleware(app)
    register_exception_handlers(app)
    app.include_router(api_router, prefix=settings.API_PREFIX)

    @app.get("/")
    def root() -> dict[str, str]:
        """Root route; minimal payload for discovery."""
        return {"message": "Tablebook API"}

    return app
