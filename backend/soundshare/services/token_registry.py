"""Per-user registry of push notification device tokens."""
from __future__ import annotations

from collections.abc import Iterable

from loguru import logger
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from soundshare.core.errors import InvalidInput, NotFound
from soundshare.core.logging import mask_token
from soundshare.models.base import utcnow
from soundshare.models.device_token import DevicePlatform, DeviceToken


def parse_platform(platform: str | DevicePlatform) -> DevicePlatform:
    if isinstance(platform, DevicePlatform):
        return platform
    try:
        return DevicePlatform(str(platform).strip().lower())
    except ValueError as exc:
        raise InvalidInput("Platform must be 'ios' or 'android'.") from exc


class TokenRegistry:
    """Durable mapping from a user to the device tokens eligible for pushes.

    Records are unique per ``(user_id, token)``. Registering an existing pair refreshes
    its platform and ``updated_at`` instead of inserting a duplicate.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _find(self, user_id: str, token: str) -> DeviceToken | None:
        stmt = select(DeviceToken).where(DeviceToken.user_id == user_id, DeviceToken.token == token)
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def _refresh(self, record: DeviceToken, platform: DevicePlatform) -> DeviceToken:
        record.platform = platform
        record.updated_at = utcnow()
        await self.session.commit()
        await self.session.refresh(record)
        return record

    async def register(self, user_id: str, token: str, platform: str | DevicePlatform) -> tuple[DeviceToken, bool]:
        """Upsert a device token; returns the record and whether it was newly created."""

        resolved_platform = parse_platform(platform)
        cleaned = (token or "").strip()
        if not cleaned:
            raise InvalidInput("Device token must not be empty.")

        existing = await self._find(user_id, cleaned)
        if existing is not None:
            record = await self._refresh(existing, resolved_platform)
            logger.bind(user_id=user_id, token_id=record.id).info("device_token_refreshed")
            return record, False

        record = DeviceToken(user_id=user_id, token=cleaned, platform=resolved_platform)
        self.session.add(record)
        try:
            await self.session.commit()
        except IntegrityError:
            # A concurrent registration of the same pair won the insert.
            await self.session.rollback()
            existing = await self._find(user_id, cleaned)
            if existing is None:
                raise
            record = await self._refresh(existing, resolved_platform)
            logger.bind(user_id=user_id, token_id=record.id).info("device_token_race_converged")
            return record, False

        await self.session.refresh(record)
        logger.bind(
            user_id=user_id,
            token_id=record.id,
            platform=resolved_platform.value,
            token=mask_token(cleaned),
        ).info("device_token_registered")
        return record, True

    async def list(self, user_id: str) -> list[DeviceToken]:
        """Return every token registered for the user, newest first."""

        stmt = (
            select(DeviceToken)
            .where(DeviceToken.user_id == user_id)
            .order_by(DeviceToken.created_at.desc(), DeviceToken.id.desc())
        )
        return list((await self.session.execute(stmt)).scalars())

    async def delete(self, user_id: str, token_id: str) -> None:
        """Remove one of the user's tokens, e.g. on logout."""

        record = await self.session.get(DeviceToken, token_id)
        if record is None or record.user_id != user_id:
            raise NotFound("Device token not found.")
        await self.session.delete(record)
        await self.session.commit()
        logger.bind(user_id=user_id, token_id=token_id).info("device_token_deleted")

    async def prune(self, user_id: str, token_ids: Iterable[str]) -> int:
        """Bulk delete tokens the push provider reported as permanently invalid."""

        ids = list(token_ids)
        if not ids:
            return 0
        result = await self.session.execute(
            delete(DeviceToken).where(DeviceToken.user_id == user_id, DeviceToken.id.in_(ids))
        )
        await self.session.commit()
        removed = int(result.rowcount or 0)
        logger.bind(user_id=user_id, removed=removed).info("device_tokens_pruned")
        return removed


__all__ = ["TokenRegistry", "parse_platform"]
