"""Structured logging utilities."""
from __future__ import annotations

import sys
import time
import uuid
from collections.abc import MutableMapping
from typing import Any

from fastapi import Request
from loguru import logger
from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from soundshare.core.metrics import observe_request

REQUEST_ID_HEADER = "X-Request-ID"


def configure_logging(level: str = "INFO") -> None:
    """Route every loguru record to one JSON sink on stdout."""

    logger.remove()
    logger.add(sys.stdout, level=level.upper(), serialize=True, enqueue=True, backtrace=False, diagnose=False)


def mask_token(token: str) -> str:
    """Shorten a device token so log lines never carry a deliverable address."""

    if len(token) <= 12:
        return "***"
    return f"{token[:8]}...{token[-4:]}"


def _route_template(scope: Scope) -> str:
    route = scope.get("route")
    return str(getattr(route, "path", scope.get("path", ""))) if route is not None else scope.get("path", "")


class RequestLoggingMiddleware:
    """Logs one ``request_completed`` line per HTTP request and feeds request metrics.

    An inbound ``X-Request-ID`` is reused so mobile clients can correlate their own
    logs; otherwise a fresh id is minted. The id is echoed on the response.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        state = scope.setdefault("state", {})
        request_id = Headers(scope=scope).get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        state["request_id"] = request_id
        method = scope.get("method", "UNKNOWN")
        started = time.perf_counter()
        log = logger.bind(request_id=request_id, path=scope.get("path", ""), method=method)

        async def send_wrapper(message: Message | MutableMapping[str, Any]) -> None:
            if message["type"] == "http.response.start":
                MutableHeaders(scope=message)[REQUEST_ID_HEADER] = request_id
                elapsed = time.perf_counter() - started
                status_code = int(message.get("status", 500))
                observe_request(_route_template(scope), method, status_code, elapsed)
                context: dict[str, Any] = {"status_code": status_code, "latency_ms": round(elapsed * 1000, 2)}
                if user_id := state.get("user_id"):
                    context["user_id"] = user_id
                if status_code >= 500 and (error_detail := state.get("error_detail")):
                    context["error"] = error_detail
                log.bind(**context).info("request_completed")
            await send(message)  # type: ignore[arg-type]

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as exc:
            state["error_detail"] = exc.__class__.__name__
            log.bind(
                latency_ms=round((time.perf_counter() - started) * 1000, 2),
                error=exc.__class__.__name__,
            ).exception("request_failed")
            raise


def record_validation_error(request: Request, error: str, details: Any | None = None) -> None:
    """Log a rejected request body; field values are left out of the log line."""

    context: dict[str, Any] = {
        "path": request.url.path,
        "method": request.method,
        "fields": [".".join(str(part) for part in item.get("loc", ())) for item in details or []],
    }
    if request_id := getattr(request.state, "request_id", None):
        context["request_id"] = request_id
    logger.bind(**context).warning(error)
