"""Notification payload composition.

Every function here is pure: names, images and playlist titles arrive already resolved
and nothing touches the database or the network. Functions for categories that suppress
self-notification return ``None`` when there is nothing to send.
"""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

COMMENT_PREVIEW_LENGTH = 50


class NotificationCategory(str, Enum):
    FOLLOW = "follow"
    UNFOLLOW = "unfollow"
    MESSAGE = "message"
    PLAYLIST_SHARE = "playlist_share"
    PLAYLIST_LIKE = "playlist_like"
    PLAYLIST_COMMENT = "playlist_comment"
    GENERIC = "generic"


@dataclass(frozen=True, slots=True)
class Actor:
    """The user whose action triggered the notification."""

    id: str
    name: str
    image: str | None = None


@dataclass(slots=True)
class NotificationPayload:
    category: NotificationCategory
    title: str
    body: str
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: dt.datetime = field(default_factory=lambda: dt.datetime.now(dt.timezone.utc))

    def as_dict(self) -> dict[str, Any]:
        return {
            "category": self.category.value,
            "title": self.title,
            "body": self.body,
            "data": dict(self.data),
            "timestamp": self.timestamp.isoformat(),
        }


def _now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def truncate_comment(content: str, limit: int = COMMENT_PREVIEW_LENGTH) -> str:
    if len(content) > limit:
        return content[:limit] + "..."
    return content


def compose_follow(follower: Actor) -> NotificationPayload:
    return NotificationPayload(
        category=NotificationCategory.FOLLOW,
        title="New Follower",
        body=f"{follower.name} started following you",
        data={
            "type": NotificationCategory.FOLLOW.value,
            "followerId": follower.id,
            "followerName": follower.name,
            "followerImage": follower.image,
        },
    )


def compose_unfollow(follower: Actor) -> NotificationPayload:
    return NotificationPayload(
        category=NotificationCategory.UNFOLLOW,
        title="User Unfollowed",
        body=f"{follower.name} unfollowed you",
        data={
            "type": NotificationCategory.UNFOLLOW.value,
            "followerId": follower.id,
            "followerName": follower.name,
        },
    )


def compose_message(
    sender: Actor,
    content: str,
    *,
    playlist_id: str | None = None,
    playlist_name: str | None = None,
    sent_at: dt.datetime | None = None,
) -> NotificationPayload:
    """Render a message event; a playlist reference turns it into a share."""

    timestamp = sent_at or _now()
    data: dict[str, Any] = {
        "type": NotificationCategory.MESSAGE.value,
        "senderId": sender.id,
        "senderName": sender.name,
        "senderImage": sender.image,
        "messageContent": content,
        "timestamp": timestamp.isoformat(),
    }
    if playlist_id is not None:
        data["playlistId"] = playlist_id
        data["playlistName"] = playlist_name
        return NotificationPayload(
            category=NotificationCategory.PLAYLIST_SHARE,
            title="New Playlist Shared",
            body=f'{sender.name} shared "{playlist_name}" with you',
            data=data,
            timestamp=timestamp,
        )
    return NotificationPayload(
        category=NotificationCategory.MESSAGE,
        title="New Message",
        body=f"{sender.name}: {content}",
        data=data,
        timestamp=timestamp,
    )


def compose_playlist_like(
    liker: Actor, *, owner_id: str, playlist_id: str, playlist_name: str
) -> NotificationPayload | None:
    if liker.id == owner_id:
        return None
    timestamp = _now()
    return NotificationPayload(
        category=NotificationCategory.PLAYLIST_LIKE,
        title="Playlist Liked",
        body=f'{liker.name} liked your playlist "{playlist_name}"',
        data={
            "type": NotificationCategory.PLAYLIST_LIKE.value,
            "likerId": liker.id,
            "likerName": liker.name,
            "likerImage": liker.image,
            "playlistId": playlist_id,
            "playlistName": playlist_name,
            "timestamp": timestamp.isoformat(),
        },
        timestamp=timestamp,
    )


def compose_playlist_comment(
    commenter: Actor,
    *,
    owner_id: str,
    playlist_id: str,
    playlist_name: str,
    comment: str,
) -> NotificationPayload | None:
    if commenter.id == owner_id:
        return None
    timestamp = _now()
    return NotificationPayload(
        category=NotificationCategory.PLAYLIST_COMMENT,
        title="New Comment",
        body=f'{commenter.name} commented on "{playlist_name}": "{truncate_comment(comment)}"',
        data={
            "type": NotificationCategory.PLAYLIST_COMMENT.value,
            "commenterId": commenter.id,
            "commenterName": commenter.name,
            "commenterImage": commenter.image,
            "playlistId": playlist_id,
            "playlistName": playlist_name,
            "commentContent": comment,
            "timestamp": timestamp.isoformat(),
        },
        timestamp=timestamp,
    )


def compose_generic(
    sender: Actor, *, title: str, body: str, data: dict[str, Any] | None = None
) -> NotificationPayload:
    """Free-form notification sent through the explicit send endpoints."""

    timestamp = _now()
    merged = dict(data or {})
    merged.update(
        {
            "senderId": sender.id,
            "senderName": sender.name,
            "timestamp": timestamp.isoformat(),
        }
    )
    return NotificationPayload(
        category=NotificationCategory.GENERIC,
        title=title,
        body=body,
        data=merged,
        timestamp=timestamp,
    )


__all__ = [
    "Actor",
    "COMMENT_PREVIEW_LENGTH",
    "NotificationCategory",
    "NotificationPayload",
    "compose_follow",
    "compose_generic",
    "compose_message",
    "compose_playlist_comment",
    "compose_playlist_like",
    "compose_unfollow",
    "truncate_comment",
]
