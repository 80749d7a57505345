"""Push provider clients.

A provider validates token format, accepts a batch of at most ``max_batch_size``
messages and answers with one ticket per message, in submission order. Providers are
long-lived: one instance is created per process and reused for every fan-out.
"""
from __future__ import annotations

import asyncio
import json
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Protocol

import anyio
import httpx
from firebase_admin import App, credentials, get_app, initialize_app, messaging
from loguru import logger

from soundshare.core.config import Settings
from soundshare.core.errors import PushProviderUnavailable

EXPO_MAX_BATCH_SIZE = 100
FCM_MAX_BATCH_SIZE = 500

_EXPO_TOKEN_RE = re.compile(r"^Expo(?:nent)?PushToken\[.+\]$")
_EXPO_UUID_RE = re.compile(r"^[a-z\d]{8}-[a-z\d]{4}-[a-z\d]{4}-[a-z\d]{4}-[a-z\d]{12}$", re.IGNORECASE)
_FCM_TOKEN_RE = re.compile(r"^[A-Za-z0-9_:\-]{32,4096}$")


class TicketStatus(str, Enum):
    OK = "ok"
    ERROR = "error"


class PushErrorKind(str, Enum):
    """Machine-readable reason attached to a failed ticket."""

    DEVICE_NOT_REGISTERED = "device_not_registered"
    MESSAGE_TOO_BIG = "message_too_big"
    RATE_LIMITED = "rate_limited"
    INVALID_CREDENTIALS = "invalid_credentials"
    UNKNOWN = "unknown"

    @property
    def permanent(self) -> bool:
        return self is PushErrorKind.DEVICE_NOT_REGISTERED


@dataclass(frozen=True, slots=True)
class PushMessage:
    to: str
    title: str
    body: str
    data: dict[str, Any] = field(default_factory=dict)
    sound: str | None = "default"
    channel_id: str | None = "default"


@dataclass(frozen=True, slots=True)
class PushTicket:
    status: TicketStatus
    ticket_id: str | None = None
    error: PushErrorKind | None = None
    detail: str | None = None

    @classmethod
    def ok(cls, ticket_id: str | None = None) -> PushTicket:
        return cls(status=TicketStatus.OK, ticket_id=ticket_id)

    @classmethod
    def failed(cls, error: PushErrorKind, detail: str | None = None) -> PushTicket:
        return cls(status=TicketStatus.ERROR, error=error, detail=detail)

    @property
    def permanently_invalid(self) -> bool:
        return self.error is not None and self.error.permanent


class PushProvider(Protocol):
    name: str
    max_batch_size: int
    enabled: bool

    def is_valid_token(self, token: str) -> bool: ...

    async def open(self) -> None: ...

    async def send_batch(self, messages: Sequence[PushMessage]) -> list[PushTicket]: ...

    async def close(self) -> None: ...


def _check_batch(messages: Sequence[PushMessage], limit: int) -> None:
    if len(messages) > limit:
        raise ValueError(f"Batch of {len(messages)} exceeds provider limit of {limit}")


class DisabledPushProvider:
    """Stand-in used when push delivery is switched off or unconfigured."""

    name = "disabled"
    max_batch_size = EXPO_MAX_BATCH_SIZE
    enabled = False

    def is_valid_token(self, token: str) -> bool:
        return bool(token)

    async def open(self) -> None:
        return None

    async def send_batch(self, messages: Sequence[PushMessage]) -> list[PushTicket]:
        raise PushProviderUnavailable("Push delivery is disabled")

    async def close(self) -> None:
        return None


_EXPO_ERROR_KINDS = {
    "DeviceNotRegistered": PushErrorKind.DEVICE_NOT_REGISTERED,
    "MessageTooBig": PushErrorKind.MESSAGE_TOO_BIG,
    "MessageRateExceeded": PushErrorKind.RATE_LIMITED,
    "InvalidCredentials": PushErrorKind.INVALID_CREDENTIALS,
    "MismatchSenderId": PushErrorKind.INVALID_CREDENTIALS,
}


class ExpoPushProvider:
    """Client for the Expo push service HTTP API."""

    name = "expo"
    max_batch_size = EXPO_MAX_BATCH_SIZE
    enabled = True

    def __init__(
        self,
        *,
        url: str,
        access_token: str | None = None,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.url = url
        self._access_token = access_token
        self._client = client or httpx.AsyncClient(timeout=timeout)

    def is_valid_token(self, token: str) -> bool:
        return bool(_EXPO_TOKEN_RE.match(token) or _EXPO_UUID_RE.match(token))

    async def open(self) -> None:
        return None

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Accept-Encoding": "gzip, deflate",
            "Content-Type": "application/json",
        }
        if self._access_token:
            headers["Authorization"] = f"Bearer {self._access_token}"
        return headers

    @staticmethod
    def _serialize(message: PushMessage) -> dict[str, Any]:
        body: dict[str, Any] = {
            "to": message.to,
            "title": message.title,
            "body": message.body,
            "data": message.data,
        }
        if message.sound:
            body["sound"] = message.sound
        if message.channel_id:
            body["channelId"] = message.channel_id
        return body

    @staticmethod
    def _parse_ticket(raw: dict[str, Any]) -> PushTicket:
        if raw.get("status") == TicketStatus.OK.value:
            return PushTicket.ok(raw.get("id"))
        details = raw.get("details") or {}
        code = details.get("error") if isinstance(details, dict) else None
        kind = _EXPO_ERROR_KINDS.get(code or "", PushErrorKind.UNKNOWN)
        return PushTicket.failed(kind, raw.get("message") or code)

    async def send_batch(self, messages: Sequence[PushMessage]) -> list[PushTicket]:
        _check_batch(messages, self.max_batch_size)
        response = await self._client.post(
            self.url,
            json=[self._serialize(message) for message in messages],
            headers=self._headers(),
        )
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error("expo_api_error", status=exc.response.status_code, body=exc.response.text[:500])
            raise
        payload = response.json()
        tickets = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(tickets, list):
            raise ValueError(f"Unexpected Expo response: {payload.get('errors') if isinstance(payload, dict) else payload}")
        return [self._parse_ticket(ticket) for ticket in tickets]

    async def close(self) -> None:
        await self._client.aclose()


def _load_credentials(raw: str) -> credentials.Certificate:
    if not raw.lstrip().startswith("{"):
        path = Path(raw)
        if path.exists():
            return credentials.Certificate(str(path))

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError("Invalid FIREBASE_CREDENTIALS value; must be JSON or file path") from exc
    return credentials.Certificate(data)


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def _firebase_error_kind(exc: Exception | None) -> PushErrorKind:
    if isinstance(exc, messaging.UnregisteredError):
        return PushErrorKind.DEVICE_NOT_REGISTERED
    if isinstance(exc, messaging.QuotaExceededError):
        return PushErrorKind.RATE_LIMITED
    if isinstance(exc, (messaging.ThirdPartyAuthError, messaging.SenderIdMismatchError)):
        return PushErrorKind.INVALID_CREDENTIALS
    return PushErrorKind.UNKNOWN


class FirebasePushProvider:
    """Firebase Cloud Messaging client built on ``firebase_admin``."""

    name = "fcm"
    max_batch_size = FCM_MAX_BATCH_SIZE
    enabled = True

    def __init__(self, credentials_value: str) -> None:
        self._credentials_value = credentials_value
        self._app: App | None = None
        self._lock = anyio.Lock()

    def is_valid_token(self, token: str) -> bool:
        return bool(_FCM_TOKEN_RE.match(token))

    async def open(self) -> None:
        await self._ensure_app()

    async def _ensure_app(self) -> App:
        async with self._lock:
            if self._app is not None:
                return self._app
            try:
                self._app = get_app()
            except ValueError:
                try:
                    self._app = initialize_app(_load_credentials(self._credentials_value))
                except (ValueError, OSError) as exc:
                    raise PushProviderUnavailable(f"Firebase initialisation failed: {exc}") from exc
            return self._app

    @staticmethod
    def _build(message: PushMessage) -> messaging.Message:
        return messaging.Message(
            token=message.to,
            notification=messaging.Notification(title=message.title, body=message.body),
            data={key: _stringify(value) for key, value in message.data.items()},
            android=messaging.AndroidConfig(
                notification=messaging.AndroidNotification(sound=message.sound, channel_id=message.channel_id)
            ),
            apns=messaging.APNSConfig(payload=messaging.APNSPayload(aps=messaging.Aps(sound=message.sound))),
        )

    async def send_batch(self, messages: Sequence[PushMessage]) -> list[PushTicket]:
        _check_batch(messages, self.max_batch_size)
        app = await self._ensure_app()
        response = await asyncio.to_thread(messaging.send_each, [self._build(m) for m in messages], app=app)
        tickets: list[PushTicket] = []
        for resp in response.responses:
            if resp.success:
                tickets.append(PushTicket.ok(resp.message_id))
            else:
                tickets.append(PushTicket.failed(_firebase_error_kind(resp.exception), str(resp.exception)))
        return tickets

    async def close(self) -> None:
        return None


def build_push_provider(settings: Settings) -> PushProvider:
    """Create the provider selected by ``PUSH_PROVIDER``."""

    if settings.push_provider == "expo":
        token = settings.expo_access_token.get_secret_value() if settings.expo_access_token else None
        return ExpoPushProvider(url=settings.expo_push_url, access_token=token, timeout=settings.push_timeout_seconds)
    if settings.push_provider == "fcm":
        if settings.firebase_credentials:
            return FirebasePushProvider(settings.firebase_credentials)
        logger.warning("push_disabled", reason="missing_firebase_credentials")
    return DisabledPushProvider()


__all__ = [
    "DisabledPushProvider",
    "EXPO_MAX_BATCH_SIZE",
    "ExpoPushProvider",
    "FCM_MAX_BATCH_SIZE",
    "FirebasePushProvider",
    "PushErrorKind",
    "PushMessage",
    "PushProvider",
    "PushTicket",
    "TicketStatus",
    "build_push_provider",
]
