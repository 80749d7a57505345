"""Explicit notification send and statistics endpoints."""
from __future__ import annotations

from collections import Counter

from fastapi import APIRouter
from sqlalchemy import select

from soundshare.core.dependencies import CurrentUser, DBSession, Dispatcher
from soundshare.core.errors import NotFound
from soundshare.models.user import User
from soundshare.schemas.notification import (
    NotificationStats,
    SendMultipleRequest,
    SendNotificationRequest,
    SendNotificationResponse,
    TokenStat,
)
from soundshare.services.composer import compose_generic
from soundshare.services.social import actor_from
from soundshare.services.token_registry import TokenRegistry

router = APIRouter(prefix="/notifications")


@router.post("/send", response_model=SendNotificationResponse)
async def send_notification(
    payload: SendNotificationRequest,
    current_user: CurrentUser,
    session: DBSession,
    dispatcher: Dispatcher,
) -> SendNotificationResponse:
    """Send a notification to one user and return the delivery report."""

    target = await session.get(User, payload.target_user_id)
    if target is None:
        raise NotFound("Target user not found.")

    notification = compose_generic(actor_from(current_user), title=payload.title, body=payload.body, data=payload.data)
    report = await dispatcher.send_to_user(target.id, notification, session=session)
    return SendNotificationResponse(
        target_user_id=target.id,
        target_user_name=target.name,
        notification=notification.as_dict(),
        report=report.as_dict(),
    )


@router.post("/send-multiple")
async def send_notification_to_multiple(
    payload: SendMultipleRequest,
    current_user: CurrentUser,
    session: DBSession,
    dispatcher: Dispatcher,
) -> dict[str, object]:
    """Fan out one notification to several users; unknown users are reported, not fatal."""

    requested = list(dict.fromkeys(payload.target_user_ids))
    rows = await session.execute(select(User.id).where(User.id.in_(requested)))
    known = {row[0] for row in rows}

    actor = actor_from(current_user)
    fanout = await dispatcher.send_to_users(
        [user_id for user_id in requested if user_id in known],
        lambda _user_id: compose_generic(actor, title=payload.title, body=payload.body, data=payload.data),
    )
    for user_id in requested:
        if user_id not in known:
            fanout.add_error(user_id, "User not found")
    return fanout.as_dict()


@router.get("/stats", response_model=NotificationStats)
async def notification_stats(current_user: CurrentUser, session: DBSession) -> NotificationStats:
    records = await TokenRegistry(session).list(current_user.id)
    platform_stats = Counter(record.platform.value for record in records)
    return NotificationStats(
        total_tokens=len(records),
        platform_stats=dict(platform_stats),
        tokens=[TokenStat.model_validate(record) for record in records],
    )
