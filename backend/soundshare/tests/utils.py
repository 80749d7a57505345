from __future__ import annotations

import asyncio
import uuid
from collections.abc import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from soundshare.core.jwt import create_access_token
from soundshare.models.device_token import DevicePlatform, DeviceToken
from soundshare.models.message import Message
from soundshare.models.playlist import Playlist, PlaylistSong, Song
from soundshare.models.user import User
from soundshare.services.push import PushMessage, PushTicket


def expo_token(label: str) -> str:
    return f"ExponentPushToken[{label}]"


class RecordingPushProvider:
    """In-memory provider that records batches and answers with scripted tickets."""

    name = "recording"
    enabled = True

    def __init__(
        self,
        *,
        max_batch_size: int = 100,
        failures: dict[str, PushTicket] | None = None,
        raise_on_batches: Sequence[int] = (),
        delay: float = 0.0,
        drop_last_ticket: bool = False,
    ) -> None:
        self.max_batch_size = max_batch_size
        self.failures = failures or {}
        self.raise_on_batches = set(raise_on_batches)
        self.delay = delay
        self.drop_last_ticket = drop_last_ticket
        self.batches: list[list[PushMessage]] = []
        self.opened = 0
        self.closed = False

    @property
    def sent(self) -> list[PushMessage]:
        return [message for batch in self.batches for message in batch]

    def is_valid_token(self, token: str) -> bool:
        return token.startswith("ExponentPushToken[") and token.endswith("]")

    async def open(self) -> None:
        self.opened += 1

    async def send_batch(self, messages: Sequence[PushMessage]) -> list[PushTicket]:
        index = len(self.batches)
        self.batches.append(list(messages))
        if self.delay:
            await asyncio.sleep(self.delay)
        if index in self.raise_on_batches:
            raise RuntimeError(f"batch {index} rejected")
        tickets = [self.failures.get(message.to, PushTicket.ok(f"ticket-{index}-{n}")) for n, message in enumerate(messages)]
        if self.drop_last_ticket:
            tickets = tickets[:-1]
        return tickets

    async def close(self) -> None:
        self.closed = True


async def create_user(
    session: AsyncSession,
    *,
    name: str,
    email: str | None = None,
    image: str | None = None,
) -> User:
    user = User(name=name, email=email or f"{name.lower().replace(' ', '.')}.{uuid.uuid4().hex[:6]}@example.com", image=image)
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


async def register_device(
    session: AsyncSession,
    *,
    user_id: str,
    token: str,
    platform: DevicePlatform = DevicePlatform.IOS,
) -> DeviceToken:
    device = DeviceToken(user_id=user_id, token=token, platform=platform)
    session.add(device)
    await session.commit()
    await session.refresh(device)
    return device


async def create_playlist(
    session: AsyncSession,
    *,
    owner: User,
    name: str,
    songs: Sequence[tuple[str, str, str]] = (),
) -> Playlist:
    """Create a playlist with ``(video_id, title, artist)`` songs in the given order."""

    playlist = Playlist(user_id=owner.id, name=name)
    session.add(playlist)
    await session.flush()
    for video_id, title, artist in songs:
        if await session.get(Song, video_id) is None:
            session.add(Song(video_id=video_id, title=title, artist=artist, thumbnail=f"https://img.example/{video_id}.jpg"))
        session.add(PlaylistSong(playlist_id=playlist.id, song_id=video_id))
        await session.flush()
    await session.commit()
    return playlist


async def create_message(
    session: AsyncSession,
    *,
    sender: User,
    recipient: User,
    content: str,
    playlist: Playlist | None = None,
) -> Message:
    message = Message(
        content=content,
        from_id=sender.id,
        to_id=recipient.id,
        playlist_id=playlist.id if playlist is not None else None,
    )
    session.add(message)
    await session.commit()
    return message
