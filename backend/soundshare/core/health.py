"""Health check helpers."""
from __future__ import annotations

import asyncio
import datetime as dt
from typing import Any

from loguru import logger

from soundshare.core.database import check_connection
from soundshare.services.background import notification_tasks

_PROCESS_STARTED_AT = dt.datetime.now(dt.timezone.utc)


def get_uptime_seconds() -> float:
    """Return the service uptime in seconds."""

    now = dt.datetime.now(dt.timezone.utc)
    return round((now - _PROCESS_STARTED_AT).total_seconds(), 2)


async def database_health(timeout_seconds: float = 2.0) -> dict[str, str]:
    """Run a lightweight query to confirm the database is reachable."""

    try:
        await asyncio.wait_for(check_connection(), timeout=timeout_seconds)
    except asyncio.TimeoutError:
        reason = f"Connection test exceeded {timeout_seconds} seconds"
        logger.warning("database_health_timeout", timeout=timeout_seconds)
        return {"state": "degraded", "reason": reason}
    except Exception as exc:
        logger.exception("database_health_failed")
        return {"state": "down", "reason": str(exc)}
    return {"state": "ok"}


async def build_health_payload(version: str | None) -> dict[str, Any]:
    """Compose the JSON payload for the /health endpoint."""

    db = await database_health()
    return {
        "uptime_seconds": get_uptime_seconds(),
        "db_status": db,
        "notification_tasks": {"inflight": notification_tasks.inflight},
        "version": version or "unknown",
    }


__all__ = ["build_health_payload", "database_health", "get_uptime_seconds"]
