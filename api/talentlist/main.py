from contextlib import asynccontextmanager
import logging
import time

from fastapi import FastAPI
from starlette.requests import Request

from talentlist.api.router import api_router
from talentlist.core.config import get_settings
from talentlist.core.telemetry import configure_api_logging, setup_api_telemetry, shutdown_api_telemetry
from talentlist.services.cursors import get_cursor_codec
from talentlist.services.repository import get_repository

settings = get_settings()
configure_api_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    logger.info(
        "api startup app=%s environment=%s store_backend=%s",
        settings.app_name,
        settings.environment,
        settings.store_backend,
    )
    try:
        yield
    finally:
        shutdown_api_telemetry(app, _tracer_provider)
        # The asyncpg pool is created lazily and must be closed with the app.
        await get_repository().close()
        get_repository.cache_clear()
        get_cursor_codec.cache_clear()


app = FastAPI(title=settings.app_name, lifespan=lifespan)
_tracer_provider = setup_api_telemetry(app, settings)


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next):
    started_at = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started_at) * 1000.0
    logger.info(
        "http request method=%s path=%s status=%s duration_ms=%.2f",
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
    )
    return response


app.include_router(api_router)
