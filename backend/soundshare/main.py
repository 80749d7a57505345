"""FastAPI application entrypoint."""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from loguru import logger

from soundshare import __version__
from soundshare.api.v1 import api_router
from soundshare.core.config import get_settings
from soundshare.core.database import dispose_engine
from soundshare.core.errors import ServiceError
from soundshare.core.health import build_health_payload
from soundshare.core.logging import RequestLoggingMiddleware, configure_logging, record_validation_error
from soundshare.core.metrics import CONTENT_TYPE_LATEST, render_metrics
from soundshare.services.background import notification_tasks
from soundshare.services.dispatcher import shutdown_dispatcher

settings = get_settings()
configure_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.bind(env=settings.env, push_provider=settings.push_provider).info("service_starting")
    yield
    await notification_tasks.drain(timeout=settings.notification_drain_seconds)
    await shutdown_dispatcher()
    await dispose_engine()
    logger.info("service_stopped")


app = FastAPI(title="Soundshare Backend", version=__version__, lifespan=lifespan)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    detail = exc.detail
    if isinstance(detail, dict) and "error" in detail:
        content = detail
    else:
        content = {"error": {"code": "http_error", "message": str(detail)}}
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        request.state.error_detail = str(detail)
    headers = exc.headers if exc.headers else None
    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_content())


def _validation_details(exc: RequestValidationError) -> list[dict[str, object]]:
    # ctx may hold the raised ValueError, which is not JSON serialisable
    return [{key: value for key, value in error.items() if key != "ctx"} for error in exc.errors()]


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    details = _validation_details(exc)
    record_validation_error(request, "validation_error", details)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": {
                "code": "validation_error",
                "message": "Request validation failed.",
                "details": details,
            }
        },
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    request.state.error_detail = exc.__class__.__name__
    logger.exception("Unhandled application error")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": {"code": "server_error", "message": "Internal server error."}},
    )


app.include_router(api_router)


@app.get("/health", tags=["health"], response_model=dict)
async def health() -> dict[str, object]:
    """Return infrastructure-focused health telemetry."""

    return await build_health_payload(settings.git_sha)


@app.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    """Expose Prometheus-formatted metrics."""

    return Response(content=render_metrics(), media_type=CONTENT_TYPE_LATEST)
