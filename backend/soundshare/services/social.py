"""Notifications raised after social writes (follow, message, like, comment).

Each helper is called once the primary write has committed. It composes the payload
from already-loaded rows and hands delivery to the background runner, so the caller's
response never waits on, or fails because of, push delivery.
"""
from __future__ import annotations

import asyncio
from typing import Any

from loguru import logger

from soundshare.models.message import Message
from soundshare.models.playlist import Playlist
from soundshare.models.user import User
from soundshare.services import composer
from soundshare.services.background import NotificationTaskRunner, notification_tasks
from soundshare.services.composer import NotificationPayload
from soundshare.services.dispatcher import NotificationDispatcher


def actor_from(user: User) -> composer.Actor:
    return composer.Actor(id=user.id, name=user.name, image=user.image)


def schedule_notification(
    dispatcher: NotificationDispatcher,
    recipient_id: str,
    payload: NotificationPayload | None,
    *,
    runner: NotificationTaskRunner = notification_tasks,
) -> asyncio.Task[Any] | None:
    if payload is None:
        logger.bind(recipient_id=recipient_id).debug("notification_suppressed")
        return None
    return runner.schedule(
        dispatcher.send_to_user(recipient_id, payload),
        name=f"notify:{payload.category.value}:{recipient_id}",
    )


def notify_follow(dispatcher: NotificationDispatcher, follower: User, target_id: str) -> asyncio.Task[Any] | None:
    return schedule_notification(dispatcher, target_id, composer.compose_follow(actor_from(follower)))


def notify_unfollow(dispatcher: NotificationDispatcher, follower: User, target_id: str) -> asyncio.Task[Any] | None:
    return schedule_notification(dispatcher, target_id, composer.compose_unfollow(actor_from(follower)))


def notify_message(
    dispatcher: NotificationDispatcher,
    sender: User,
    message: Message,
    playlist: Playlist | None = None,
) -> asyncio.Task[Any] | None:
    payload = composer.compose_message(
        actor_from(sender),
        message.content,
        playlist_id=playlist.id if playlist is not None else None,
        playlist_name=playlist.name if playlist is not None else None,
        sent_at=message.created_at,
    )
    return schedule_notification(dispatcher, message.to_id, payload)


def notify_playlist_like(dispatcher: NotificationDispatcher, liker: User, playlist: Playlist) -> asyncio.Task[Any] | None:
    payload = composer.compose_playlist_like(
        actor_from(liker),
        owner_id=playlist.user_id,
        playlist_id=playlist.id,
        playlist_name=playlist.name,
    )
    return schedule_notification(dispatcher, playlist.user_id, payload)


def notify_playlist_comment(
    dispatcher: NotificationDispatcher,
    commenter: User,
    playlist: Playlist,
    comment: str,
) -> asyncio.Task[Any] | None:
    payload = composer.compose_playlist_comment(
        actor_from(commenter),
        owner_id=playlist.user_id,
        playlist_id=playlist.id,
        playlist_name=playlist.name,
        comment=comment,
    )
    return schedule_notification(dispatcher, playlist.user_id, payload)


__all__ = [
    "actor_from",
    "notify_follow",
    "notify_message",
    "notify_playlist_comment",
    "notify_playlist_like",
    "notify_unfollow",
    "schedule_notification",
]
