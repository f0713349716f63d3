"""FastAPI app entry point."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
import uvicorn
from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from channel_intake.core.config import Settings, get_settings
from channel_intake.core.logging import setup_logging
from channel_intake.db.init_db import check_database, init_models
from channel_intake.db.session import create_engine, create_session_factory
from channel_intake.dependencies import enforce_rate_limit
from channel_intake.routers import channels
from channel_intake.services.channel_resolver import ChannelResolver
from channel_intake.services.identity import GoogleIdentityVerifier
from channel_intake.services.rate_limit import SlidingWindowRateLimiter

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the long-lived clients once and release them on shutdown."""

    settings: Settings = app.state.settings
    logger.info("Starting with configuration: %s", settings.masked())

    engine = create_engine(settings.database_url)
    if settings.auto_create_tables:
        await init_models(engine)
    await check_database(engine)

    http_client = httpx.AsyncClient()
    app.state.session_factory = create_session_factory(engine)
    app.state.channel_resolver = ChannelResolver(
        http_client,
        api_key=settings.youtube_api_key,
        api_base=settings.youtube_api_base,
        timeout=settings.youtube_timeout_seconds,
    )
    app.state.identity_verifier = GoogleIdentityVerifier(settings.google_client_id)
    try:
        yield
    finally:
        await http_client.aclose()
        await engine.dispose()
        logger.info("Shutdown complete")


def _install_error_handlers(app: FastAPI) -> None:
    """Render every error as ``{"message": ...}`` for the extension."""

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning("Invalid request body for %s: %s", request.url.path, exc.errors())
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"message": channels.INVALID_URL},
        )

    @app.exception_handler(Exception)
    async def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Internal server error."},
        )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build FastAPI application."""

    settings = settings or get_settings()

    app = FastAPI(
        title="Channel Intake",
        version="0.1.0",
        lifespan=lifespan,
        dependencies=[Depends(enforce_rate_limit)],
    )
    app.state.settings = settings
    app.state.rate_limiter = SlidingWindowRateLimiter(
        max_requests=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _install_error_handlers(app)
    app.include_router(channels.router)

    @app.get("/healthz", tags=["health"])
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return app


setup_logging(get_settings())
app = create_app()


def serve() -> None:
    """Run the API with uvicorn on the configured host and port."""

    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    serve()
