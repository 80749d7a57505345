from __future__ import annotations

import json
from types import SimpleNamespace
from typing import Any

import httpx
import pytest
from firebase_admin import messaging

from soundshare.core.config import get_settings
from soundshare.core.errors import PushProviderUnavailable
from soundshare.services.push import (
    DisabledPushProvider,
    ExpoPushProvider,
    FirebasePushProvider,
    PushErrorKind,
    PushMessage,
    TicketStatus,
    build_push_provider,
)

EXPO_URL = "https://push.example/--/api/v2/push/send"
FCM_TOKEN = "f" * 40


def _expo(handler: Any, *, access_token: str | None = None) -> ExpoPushProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ExpoPushProvider(url=EXPO_URL, access_token=access_token, client=client)


def test_expo_token_format() -> None:
    provider = ExpoPushProvider(url=EXPO_URL)

    assert provider.is_valid_token("ExponentPushToken[xxxxxxxxxxxxxxxxxxxxxx]")
    assert provider.is_valid_token("ExpoPushToken[abc]")
    assert provider.is_valid_token("0f8fad5b-d9cb-469f-a165-70867728950e")
    assert not provider.is_valid_token("fcm-looking-token")
    assert not provider.is_valid_token("ExponentPushToken[]")


@pytest.mark.asyncio
async def test_expo_batch_maps_tickets_in_order() -> None:
    captured: dict[str, Any] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["body"] = json.loads(request.content)
        captured["auth"] = request.headers.get("Authorization")
        return httpx.Response(
            200,
            json={
                "data": [
                    {"status": "ok", "id": "ticket-1"},
                    {
                        "status": "error",
                        "message": '"ExponentPushToken[b]" is not a registered push notification recipient',
                        "details": {"error": "DeviceNotRegistered"},
                    },
                    {"status": "error", "message": "slow down", "details": {"error": "MessageRateExceeded"}},
                ]
            },
        )

    provider = _expo(handler, access_token="secret")
    messages = [
        PushMessage(to=f"ExponentPushToken[{label}]", title="Hi", body="There", data={"k": label})
        for label in ("a", "b", "c")
    ]

    tickets = await provider.send_batch(messages)
    await provider.close()

    assert captured["auth"] == "Bearer secret"
    assert captured["body"][0] == {
        "to": "ExponentPushToken[a]",
        "title": "Hi",
        "body": "There",
        "data": {"k": "a"},
        "sound": "default",
        "channelId": "default",
    }
    assert tickets[0].status is TicketStatus.OK
    assert tickets[0].ticket_id == "ticket-1"
    assert tickets[1].error is PushErrorKind.DEVICE_NOT_REGISTERED
    assert tickets[1].permanently_invalid is True
    assert tickets[2].error is PushErrorKind.RATE_LIMITED
    assert tickets[2].permanently_invalid is False


@pytest.mark.asyncio
async def test_expo_http_error_raises() -> None:
    provider = _expo(lambda request: httpx.Response(503, text="unavailable"))

    with pytest.raises(httpx.HTTPStatusError):
        await provider.send_batch([PushMessage(to="ExponentPushToken[a]", title="t", body="b")])


@pytest.mark.asyncio
async def test_expo_rejects_oversized_batch() -> None:
    provider = _expo(lambda request: httpx.Response(200, json={"data": []}))
    messages = [PushMessage(to=f"ExponentPushToken[{n}]", title="t", body="b") for n in range(101)]

    with pytest.raises(ValueError):
        await provider.send_batch(messages)


@pytest.mark.asyncio
async def test_fcm_send_each_results_become_tickets(monkeypatch: pytest.MonkeyPatch) -> None:
    sent: list[messaging.Message] = []

    def fake_send_each(batch: list[messaging.Message], app: object | None = None) -> SimpleNamespace:
        sent.extend(batch)
        return SimpleNamespace(
            responses=[
                SimpleNamespace(success=True, message_id="projects/x/messages/1", exception=None),
                SimpleNamespace(success=False, message_id=None, exception=messaging.UnregisteredError("gone")),
                SimpleNamespace(success=False, message_id=None, exception=RuntimeError("boom")),
            ]
        )

    monkeypatch.setattr("soundshare.services.push.messaging.send_each", fake_send_each)
    provider = FirebasePushProvider("{}")
    provider._app = object()  # type: ignore[assignment]

    tickets = await provider.send_batch(
        [
            PushMessage(to=FCM_TOKEN, title="Hi", body="There", data={"count": 2, "nested": {"a": 1}, "none": None}),
            PushMessage(to=FCM_TOKEN, title="Hi", body="There"),
            PushMessage(to=FCM_TOKEN, title="Hi", body="There"),
        ]
    )

    assert sent[0].token == FCM_TOKEN
    assert sent[0].data == {"count": "2", "nested": '{"a": 1}', "none": ""}
    assert tickets[0].ticket_id == "projects/x/messages/1"
    assert tickets[1].error is PushErrorKind.DEVICE_NOT_REGISTERED
    assert tickets[2].error is PushErrorKind.UNKNOWN


@pytest.mark.asyncio
async def test_fcm_initialisation_failure_is_unavailable(monkeypatch: pytest.MonkeyPatch) -> None:
    def no_app() -> None:
        raise ValueError("no default app")

    monkeypatch.setattr("soundshare.services.push.get_app", no_app)
    provider = FirebasePushProvider("not-json-and-not-a-file")

    with pytest.raises(PushProviderUnavailable):
        await provider.open()


def test_fcm_token_format() -> None:
    provider = FirebasePushProvider("{}")

    assert provider.is_valid_token(FCM_TOKEN)
    assert provider.is_valid_token("dXk3:APA91bH-" + "a" * 40)
    assert not provider.is_valid_token("short")
    assert not provider.is_valid_token("ExponentPushToken[abc]")


@pytest.mark.asyncio
async def test_disabled_provider_refuses_batches() -> None:
    provider = DisabledPushProvider()

    assert provider.enabled is False
    with pytest.raises(PushProviderUnavailable):
        await provider.send_batch([PushMessage(to="x", title="t", body="b")])


def test_build_push_provider_selection() -> None:
    settings = get_settings()

    assert isinstance(build_push_provider(settings.model_copy(update={"push_provider": "disabled"})), DisabledPushProvider)
    assert isinstance(
        build_push_provider(settings.model_copy(update={"push_provider": "fcm", "firebase_credentials": None})),
        DisabledPushProvider,
    )
    assert isinstance(
        build_push_provider(settings.model_copy(update={"push_provider": "fcm", "firebase_credentials": "{}"})),
        FirebasePushProvider,
    )
    expo = build_push_provider(settings.model_copy(update={"push_provider": "expo"}))
    assert isinstance(expo, ExpoPushProvider)
    assert expo.url == settings.expo_push_url
