"""Notification fan-out to every registered device of one or more users."""
from __future__ import annotations

import asyncio
import inspect
import time
from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from soundshare.core.config import get_settings
from soundshare.core.database import get_session_factory
from soundshare.core.logging import mask_token
from soundshare.core.metrics import observe_push_batch, record_push_delivery
from soundshare.models.device_token import DeviceToken
from soundshare.services.composer import NotificationCategory, NotificationPayload
from soundshare.services.push import PushErrorKind, PushMessage, PushProvider, TicketStatus, build_push_provider
from soundshare.services.token_registry import TokenRegistry

T = TypeVar("T")

PayloadFactory = Callable[[str], "NotificationPayload | None | Awaitable[NotificationPayload | None]"]


class DeliveryStatus(str, Enum):
    SENT = "sent"
    INVALID_TOKEN = "invalid_token"
    PROVIDER_ERROR = "provider_error"


@dataclass(slots=True)
class DeliveryOutcome:
    token_id: str
    platform: str
    status: DeliveryStatus
    error: str | None = None
    error_kind: PushErrorKind | None = None
    ticket_id: str | None = None

    @property
    def permanently_invalid(self) -> bool:
        return self.error_kind is not None and self.error_kind.permanent

    def as_dict(self) -> dict[str, Any]:
        return {
            "token_id": self.token_id,
            "platform": self.platform,
            "status": self.status.value,
            "error": self.error,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "ticket_id": self.ticket_id,
        }


@dataclass(slots=True)
class DeliveryReport:
    """Per-device outcomes of one ``send_to_user`` call."""

    user_id: str
    category: NotificationCategory
    enabled: bool = True
    outcomes: list[DeliveryOutcome] = field(default_factory=list)
    pruned: int = 0

    def count(self, status: DeliveryStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status is status)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def attempted(self) -> int:
        """Deliveries actually submitted to the provider."""

        return self.total - self.invalid

    @property
    def succeeded(self) -> int:
        return self.count(DeliveryStatus.SENT)

    @property
    def failed(self) -> int:
        return self.count(DeliveryStatus.PROVIDER_ERROR)

    @property
    def invalid(self) -> int:
        return self.count(DeliveryStatus.INVALID_TOKEN)

    def permanently_invalid_ids(self) -> list[str]:
        return [outcome.token_id for outcome in self.outcomes if outcome.permanently_invalid]

    def as_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "category": self.category.value,
            "enabled": self.enabled,
            "total": self.total,
            "attempted": self.attempted,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "invalid": self.invalid,
            "pruned": self.pruned,
            "outcomes": [outcome.as_dict() for outcome in self.outcomes],
        }


class RecipientStatus(str, Enum):
    DELIVERED = "delivered"
    UNDELIVERED = "undelivered"
    SKIPPED = "skipped"
    ERROR = "error"


@dataclass(slots=True)
class RecipientResult:
    user_id: str
    status: RecipientStatus
    report: DeliveryReport | None = None
    error: str | None = None

    @classmethod
    def from_report(cls, report: DeliveryReport) -> RecipientResult:
        status = RecipientStatus.DELIVERED if report.succeeded else RecipientStatus.UNDELIVERED
        return cls(user_id=report.user_id, status=status, report=report)

    def as_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "status": self.status.value,
            "error": self.error,
            "report": self.report.as_dict() if self.report else None,
        }


@dataclass(slots=True)
class FanoutReport:
    """Combined outcome of a multi-user fan-out."""

    results: list[RecipientResult] = field(default_factory=list)

    def user_ids(self, status: RecipientStatus) -> list[str]:
        return [result.user_id for result in self.results if result.status is status]

    def add_error(self, user_id: str, error: str) -> None:
        self.results.append(RecipientResult(user_id=user_id, status=RecipientStatus.ERROR, error=error))

    def _sum(self, attribute: str) -> int:
        return sum(getattr(result.report, attribute) for result in self.results if result.report is not None)

    def as_dict(self) -> dict[str, Any]:
        return {
            "total": len(self.results),
            "delivered": self.user_ids(RecipientStatus.DELIVERED),
            "undelivered": self.user_ids(RecipientStatus.UNDELIVERED),
            "skipped": self.user_ids(RecipientStatus.SKIPPED),
            "errored": self.user_ids(RecipientStatus.ERROR),
            "attempted": self._sum("attempted"),
            "succeeded": self._sum("succeeded"),
            "failed": self._sum("failed"),
            "results": [result.as_dict() for result in self.results],
        }


def partition(items: Sequence[T], size: int) -> list[list[T]]:
    if size < 1:
        raise ValueError("Batch size must be positive")
    return [list(items[start : start + size]) for start in range(0, len(items), size)]


def _validate_payload(payload: object) -> NotificationPayload:
    if not isinstance(payload, NotificationPayload):
        raise TypeError(f"Expected NotificationPayload, got {type(payload).__name__}")
    if not payload.title or not payload.body:
        raise ValueError("Notification payload requires a title and a body")
    return payload


class NotificationDispatcher:
    """Delivers composed payloads through one long-lived push provider.

    Delivery problems (no devices, malformed tokens, failed or timed-out batches,
    rejected tickets) are recorded in the returned report and never raised.
    """

    def __init__(
        self,
        provider: PushProvider,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        timeout: float = 10.0,
        max_concurrency: int = 8,
        prune_unregistered: bool = True,
    ) -> None:
        self.provider = provider
        self.session_factory = session_factory
        self.timeout = timeout
        self.max_concurrency = max_concurrency
        self.prune_unregistered = prune_unregistered

    async def send_to_user(
        self,
        user_id: str,
        payload: NotificationPayload,
        *,
        session: AsyncSession | None = None,
    ) -> DeliveryReport:
        """Send a payload to all devices registered for ``user_id``."""

        payload = _validate_payload(payload)
        if session is not None:
            return await self._dispatch(session, user_id, payload)

        async with self.session_factory() as db_session:
            return await self._dispatch(db_session, user_id, payload)

    async def _dispatch(self, session: AsyncSession, user_id: str, payload: NotificationPayload) -> DeliveryReport:
        log = logger.bind(user_id=user_id, category=payload.category.value, provider=self.provider.name)
        report = DeliveryReport(user_id=user_id, category=payload.category, enabled=self.provider.enabled)
        if not self.provider.enabled:
            log.info("push_disabled")
            return report

        registry = TokenRegistry(session)
        tokens = await registry.list(user_id)
        if not tokens:
            log.info("push_skipped_no_tokens")
            return report

        deliverable: list[DeviceToken] = []
        for record in tokens:
            if self.provider.is_valid_token(record.token):
                deliverable.append(record)
            else:
                log.bind(token_id=record.id, token=mask_token(record.token)).warning("push_invalid_token")
                report.outcomes.append(
                    DeliveryOutcome(
                        token_id=record.id,
                        platform=record.platform.value,
                        status=DeliveryStatus.INVALID_TOKEN,
                        error="Token failed provider format validation",
                    )
                )

        if deliverable:
            await self.provider.open()
            for batch in partition(deliverable, self.provider.max_batch_size):
                report.outcomes.extend(await self._submit(batch, payload, log))

        if self.prune_unregistered:
            await self._prune(registry, report, log)

        for status in DeliveryStatus:
            record_push_delivery(payload.category.value, status.value, report.count(status))
        log.bind(
            total=report.total,
            attempted=report.attempted,
            succeeded=report.succeeded,
            failed=report.failed,
            invalid=report.invalid,
        ).info("push_dispatch_result")
        return report

    async def _submit(self, batch: list[DeviceToken], payload: NotificationPayload, log: Any) -> list[DeliveryOutcome]:
        messages = [
            PushMessage(to=record.token, title=payload.title, body=payload.body, data=dict(payload.data))
            for record in batch
        ]
        started = time.perf_counter()
        try:
            tickets = await asyncio.wait_for(self.provider.send_batch(messages), timeout=self.timeout)
        except asyncio.TimeoutError:
            log.bind(size=len(batch), timeout=self.timeout).warning("push_batch_timeout")
            return self._batch_failed(batch, f"Provider timed out after {self.timeout}s")
        except Exception as exc:
            log.bind(size=len(batch), error=exc.__class__.__name__).warning("push_batch_failed")
            return self._batch_failed(batch, f"{exc.__class__.__name__}: {exc}")
        finally:
            observe_push_batch(self.provider.name, time.perf_counter() - started)

        if len(tickets) != len(batch):
            log.bind(size=len(batch), tickets=len(tickets)).warning("push_ticket_count_mismatch")
            return self._batch_failed(batch, "Provider returned a mismatched ticket count")

        outcomes: list[DeliveryOutcome] = []
        for record, ticket in zip(batch, tickets):
            if ticket.status is TicketStatus.OK:
                outcomes.append(
                    DeliveryOutcome(
                        token_id=record.id,
                        platform=record.platform.value,
                        status=DeliveryStatus.SENT,
                        ticket_id=ticket.ticket_id,
                    )
                )
                continue
            log.bind(token_id=record.id, error_kind=ticket.error.value if ticket.error else None).warning(
                "push_delivery_failure"
            )
            outcomes.append(
                DeliveryOutcome(
                    token_id=record.id,
                    platform=record.platform.value,
                    status=DeliveryStatus.PROVIDER_ERROR,
                    error=ticket.detail,
                    error_kind=ticket.error,
                )
            )
        return outcomes

    @staticmethod
    def _batch_failed(batch: Iterable[DeviceToken], error: str) -> list[DeliveryOutcome]:
        return [
            DeliveryOutcome(
                token_id=record.id,
                platform=record.platform.value,
                status=DeliveryStatus.PROVIDER_ERROR,
                error=error,
            )
            for record in batch
        ]

    async def _prune(self, registry: TokenRegistry, report: DeliveryReport, log: Any) -> None:
        stale = report.permanently_invalid_ids()
        if not stale:
            return
        try:
            report.pruned = await registry.prune(report.user_id, stale)
        except SQLAlchemyError:
            log.exception("push_prune_failed")

    async def send_to_users(self, user_ids: Iterable[str], payload_factory: PayloadFactory) -> FanoutReport:
        """Fan out to several users; one user's failure never blocks the others."""

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def _one(user_id: str) -> RecipientResult:
            async with semaphore:
                try:
                    payload = payload_factory(user_id)
                    if inspect.isawaitable(payload):
                        payload = await payload
                    if payload is None:
                        return RecipientResult(user_id=user_id, status=RecipientStatus.SKIPPED)
                    report = await self.send_to_user(user_id, payload)
                except Exception as exc:
                    logger.bind(user_id=user_id, error=exc.__class__.__name__).exception("push_fanout_user_failed")
                    return RecipientResult(user_id=user_id, status=RecipientStatus.ERROR, error=str(exc))
                return RecipientResult.from_report(report)

        unique_ids = list(dict.fromkeys(user_ids))
        results = await asyncio.gather(*(_one(user_id) for user_id in unique_ids))
        return FanoutReport(results=list(results))

    async def close(self) -> None:
        await self.provider.close()


_dispatcher: NotificationDispatcher | None = None


def get_dispatcher() -> NotificationDispatcher:
    """Return the process-wide dispatcher, creating its provider on first use."""

    global _dispatcher
    if _dispatcher is None:
        settings = get_settings()
        _dispatcher = NotificationDispatcher(
            build_push_provider(settings),
            get_session_factory(),
            timeout=settings.push_timeout_seconds,
            max_concurrency=settings.push_max_concurrency,
            prune_unregistered=settings.push_prune_unregistered,
        )
    return _dispatcher


async def shutdown_dispatcher() -> None:
    global _dispatcher
    if _dispatcher is not None:
        await _dispatcher.close()
        _dispatcher = None


__all__ = [
    "DeliveryOutcome",
    "DeliveryReport",
    "DeliveryStatus",
    "FanoutReport",
    "NotificationDispatcher",
    "RecipientResult",
    "RecipientStatus",
    "get_dispatcher",
    "partition",
    "shutdown_dispatcher",
]
