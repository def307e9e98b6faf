"""FastAPI application wiring for the mailauth service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from psycopg_pool import ConnectionPool

from .api.errors import register_error_handlers
from .api.routes import router
from .config import Settings
from .domain.service import RegistrationService, VerificationService
from .errors import ConfigError
from .notifications import NotificationSender
from .repository import AccountRepository

logger = logging.getLogger(__name__)


def open_pool(settings: Settings) -> ConnectionPool:
    """Open the Postgres pool with checkout and statement timeouts applied."""
    statement_timeout_ms = int(settings.db_timeout_seconds * 1000)
    pool = ConnectionPool(
        settings.database_url,
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
        timeout=settings.db_timeout_seconds,
        kwargs={"options": f"-c statement_timeout={statement_timeout_ms}"},
        open=False,
    )
    pool.open()
    return pool


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application; settings are loaded from the environment when omitted."""
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Initialise shared resources (Postgres pool, services) for the app lifecycle."""
        pool = open_pool(settings)
        repository = AccountRepository(pool)
        repository.create_schema()
        app.state.pool = pool
        app.state.registration_service = RegistrationService(
            repository,
            NotificationSender.from_settings(settings),
            settings.site_base,
        )
        app.state.verification_service = VerificationService(repository)
        logger.info("%s %s ready", settings.app_name, settings.version)
        try:
            yield
        finally:
            pool.close()

    app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)
    app.state.settings = settings
    register_error_handlers(app)

    @app.get("/healthz", tags=["health"])
    def healthz() -> dict[str, str]:
        """Return a minimal readiness indicator used by orchestration systems."""
        return {"status": "ok"}

    @app.get("/metrics", tags=["health"])
    def metrics() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(router)
    return app


def run() -> None:
    """Console entry point: load configuration, then serve until interrupted."""
    try:
        settings = Settings.from_env()
    except ConfigError as exc:
        logging.basicConfig()
        logger.critical("cannot start: %s", exc)
        raise SystemExit(2) from exc
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    uvicorn.run(create_app(settings), host=settings.http_host, port=settings.http_port)


if __name__ == "__main__":
    run()
