from __future__ import annotations

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from soundshare.core.metrics import reset_metrics
from soundshare.services.background import notification_tasks
from soundshare.tests.utils import auth_headers, create_user, expo_token, register_device


@pytest.mark.asyncio
async def test_health_reports_database_and_tasks(client: AsyncClient) -> None:
    response = await client.get("/health")

    assert response.status_code == 200
    payload = response.json()
    assert payload["db_status"]["state"] == "ok"
    assert payload["notification_tasks"] == {"inflight": 0}
    assert "uptime_seconds" in payload


@pytest.mark.asyncio
async def test_health_reports_database_failure(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    async def _broken_connection() -> None:
        raise RuntimeError("db offline")

    monkeypatch.setattr("soundshare.core.health.check_connection", _broken_connection)
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["db_status"]["state"] == "down"
    assert "db offline" in response.json()["db_status"]["reason"]


@pytest.mark.asyncio
async def test_metrics_expose_push_and_http_collectors(client: AsyncClient) -> None:
    await client.get("/health")
    response = await client.get("/metrics")

    assert response.status_code == 200
    body = response.text
    assert "http_requests_total" in body
    assert "notification_tasks_inflight" in body


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: AsyncClient) -> None:
    minted = await client.get("/health")
    assert minted.headers["X-Request-ID"]

    reused = await client.get("/health", headers={"X-Request-ID": "mobile-1234"})
    assert reused.headers["X-Request-ID"] == "mobile-1234"


@pytest.mark.asyncio
async def test_push_outcomes_are_counted(client: AsyncClient, session: AsyncSession) -> None:
    reset_metrics()
    alice = await create_user(session, name="Alice")
    bob = await create_user(session, name="Bob")
    await register_device(session, user_id=bob.id, token=expo_token("one"))
    await register_device(session, user_id=bob.id, token="malformed")

    await client.post(f"/api/v1/users/{bob.id}/follow", headers=auth_headers(alice))
    await notification_tasks.drain()
    body = (await client.get("/metrics")).text

    assert 'push_deliveries_total{category="follow",status="sent"} 1.0' in body
    assert 'push_deliveries_total{category="follow",status="invalid_token"} 1.0' in body
    assert 'push_batch_duration_seconds_count{provider="recording"} 1.0' in body
