"""Playlist visibility rules.

A viewer may read a playlist when they own it, or when they received a message that
carries the playlist's id. No separate grant record exists; the message is the grant.
"""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from soundshare.core.errors import AccessDenied
from soundshare.models.message import Message
from soundshare.models.playlist import Playlist, PlaylistSong


@dataclass(slots=True)
class SharedPlaylist:
    message_id: str
    sender_id: str
    sender_name: str
    sender_image: str | None
    content: str
    shared_at: dt.datetime
    playlist_id: str
    playlist_name: str
    songs: list[dict[str, Any]] = field(default_factory=list)


def song_list(playlist: Playlist) -> list[dict[str, Any]]:
    return [
        {
            "video_id": entry.song.video_id,
            "title": entry.song.title,
            "artist": entry.song.artist,
            "thumbnail": entry.song.thumbnail,
            "added_at": entry.added_at,
        }
        for entry in playlist.entries
    ]


class PlaylistAccessResolver:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _load(self, playlist_id: str) -> Playlist | None:
        stmt = (
            select(Playlist)
            .where(Playlist.id == playlist_id)
            .options(selectinload(Playlist.entries).joinedload(PlaylistSong.song))
        )
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def _received(self, viewer_id: str, playlist_id: str) -> bool:
        stmt = select(
            exists().where(Message.to_id == viewer_id, Message.playlist_id == playlist_id)
        )
        return bool((await self.session.execute(stmt)).scalar())

    async def can_view(self, viewer_id: str, playlist_id: str) -> bool:
        owner_id = (
            await self.session.execute(select(Playlist.user_id).where(Playlist.id == playlist_id))
        ).scalar_one_or_none()
        if owner_id is None:
            return False
        if owner_id == viewer_id:
            return True
        return await self._received(viewer_id, playlist_id)

    async def require_view(self, viewer_id: str, playlist_id: str) -> Playlist:
        """Return the playlist with its songs, or raise ``AccessDenied``.

        Missing and forbidden playlists are indistinguishable to the caller.
        """

        if not await self.can_view(viewer_id, playlist_id):
            raise AccessDenied()
        playlist = await self._load(playlist_id)
        if playlist is None:
            raise AccessDenied()
        return playlist

    async def list_shared_with_user(self, user_id: str) -> list[SharedPlaylist]:
        """Every playlist-carrying message addressed to the user, newest first.

        A playlist shared twice appears twice; each message is its own event.
        """

        stmt = (
            select(Message)
            .where(Message.to_id == user_id, Message.playlist_id.is_not(None))
            .order_by(Message.created_at.desc(), Message.id.desc())
        )
        messages = list((await self.session.execute(stmt)).unique().scalars())

        playlists: dict[str, Playlist] = {}
        shared: list[SharedPlaylist] = []
        for message in messages:
            playlist_id = message.playlist_id
            if playlist_id is None:
                continue
            if playlist_id not in playlists:
                loaded = await self._load(playlist_id)
                if loaded is None:
                    continue
                playlists[playlist_id] = loaded
            playlist = playlists[playlist_id]
            shared.append(
                SharedPlaylist(
                    message_id=message.id,
                    sender_id=message.sender.id,
                    sender_name=message.sender.name,
                    sender_image=message.sender.image,
                    content=message.content,
                    shared_at=message.created_at,
                    playlist_id=playlist.id,
                    playlist_name=playlist.name,
                    songs=song_list(playlist),
                )
            )
        return shared


__all__ = ["PlaylistAccessResolver", "SharedPlaylist", "song_list"]
