"""lifequest - gamified productivity progression engine."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from src.core.config import settings
from src.core.logging import configure_logfire, instrument_fastapi, instrument_pydantic_ai
from src.interface import api_router
from src.interface.api_router import router as api_routes


logger = logging.getLogger(__name__)


async def check_store_connectivity() -> None:
    """Verify the session store is reachable.

    Redis is optional: an unreachable store is logged, and saves will fail
    softly until it recovers.
    """
    store = api_router.get_session_service().store
    try:
        if await store.ping():
            logger.info("startup_validation", extra={"service": "session_store", "status": "ok"})
        else:
            logger.warning("startup_validation", extra={"service": "session_store", "status": "unavailable"})
    except Exception as e:
        logger.warning(
            "startup_validation", extra={"service": "session_store", "status": "unavailable", "error": str(e)}
        )


async def validate_startup_configuration() -> None:
    """Validate configuration and external service connectivity.

    Raises:
        SystemExit: If the configured timezone is unknown
    """
    logger.info("startup_validation_begin")

    try:
        ZoneInfo(settings.timezone)
    except (ZoneInfoNotFoundError, ValueError) as e:
        logger.error("startup_validation_failed", extra={"error": str(e)})
        print(f"\n❌ Startup validation failed: unknown timezone {settings.timezone!r}\n", file=sys.stderr)  # noqa: T201
        sys.exit(1)

    if not settings.openrouter_api_key:
        logger.warning("startup_validation", extra={"service": "openrouter", "status": "disabled"})

    await check_store_connectivity()
    logger.info("startup_validation_complete", extra={"status": "ok"})


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    # Configure logging first so validation logs are captured
    configure_logfire()
    await validate_startup_configuration()
    instrument_pydantic_ai()
    yield
    await api_router.shutdown()


app = FastAPI(
    title="lifequest",
    description="Gamified productivity progression and reward engine",
    version="0.1.0",
    lifespan=lifespan,
)

# Instrument FastAPI with Logfire
instrument_fastapi(app)

app.include_router(api_routes)


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint including session store reachability."""
    store_ok = await api_router.get_session_service().store.ping()
    return JSONResponse(
        content={"status": "healthy" if store_ok else "degraded", "session_store": "ok" if store_ok else "unavailable"},
        status_code=200 if store_ok else 503,
    )
