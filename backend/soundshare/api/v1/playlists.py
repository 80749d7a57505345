"""Playlist endpoints: ownership CRUD, shared viewing, likes and comments."""
from __future__ import annotations

from fastapi import APIRouter, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from soundshare.core.dependencies import CurrentUser, DBSession, Dispatcher
from soundshare.core.errors import NotFound
from soundshare.models.playlist import Playlist, PlaylistSong, Song
from soundshare.models.social import PlaylistComment, PlaylistLike
from soundshare.schemas.playlist import (
    AddSongRequest,
    CommentCreate,
    CommentRead,
    PlaylistCreate,
    PlaylistRead,
    SongRead,
)
from soundshare.schemas.social import LikeResponse
from soundshare.services.access import PlaylistAccessResolver, song_list
from soundshare.services.social import notify_playlist_comment, notify_playlist_like

router = APIRouter(prefix="/playlists")


def _to_read(playlist: Playlist) -> PlaylistRead:
    return PlaylistRead(
        id=playlist.id,
        user_id=playlist.user_id,
        name=playlist.name,
        created_at=playlist.created_at,
        songs=[SongRead(**song) for song in song_list(playlist)],
    )


async def _owned_playlist(session: AsyncSession, playlist_id: str, user_id: str) -> Playlist:
    stmt = select(Playlist).where(Playlist.id == playlist_id, Playlist.user_id == user_id)
    playlist = (await session.execute(stmt)).scalar_one_or_none()
    if playlist is None:
        raise NotFound("Playlist not found or unauthorized.")
    return playlist


@router.post("", response_model=PlaylistRead, status_code=status.HTTP_201_CREATED)
async def create_playlist(payload: PlaylistCreate, current_user: CurrentUser, session: DBSession) -> PlaylistRead:
    playlist = Playlist(user_id=current_user.id, name=payload.name, entries=[])
    session.add(playlist)
    await session.commit()
    return _to_read(playlist)


@router.post("/add-song", response_model=SongRead)
async def add_song(payload: AddSongRequest, current_user: CurrentUser, session: DBSession) -> SongRead:
    """Upsert the song metadata and link it to one of the caller's playlists."""

    playlist = await _owned_playlist(session, payload.playlist_id, current_user.id)

    song = await session.get(Song, payload.song.video_id)
    if song is None:
        song = Song(**payload.song.model_dump())
        session.add(song)
    else:
        song.title = payload.song.title
        song.artist = payload.song.artist
        song.thumbnail = payload.song.thumbnail

    link_stmt = select(PlaylistSong).where(
        PlaylistSong.playlist_id == playlist.id, PlaylistSong.song_id == payload.song.video_id
    )
    if (await session.execute(link_stmt)).scalar_one_or_none() is None:
        session.add(PlaylistSong(playlist_id=playlist.id, song_id=payload.song.video_id))
    await session.commit()
    return SongRead(video_id=song.video_id, title=song.title, artist=song.artist, thumbnail=song.thumbnail)


@router.delete("/{playlist_id}/songs/{song_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_song(playlist_id: str, song_id: str, current_user: CurrentUser, session: DBSession) -> Response:
    playlist = await _owned_playlist(session, playlist_id, current_user.id)
    stmt = select(PlaylistSong).where(PlaylistSong.playlist_id == playlist.id, PlaylistSong.song_id == song_id)
    link = (await session.execute(stmt)).scalar_one_or_none()
    if link is None:
        raise NotFound("Song not found in playlist.")
    await session.delete(link)
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{playlist_id}", response_model=PlaylistRead)
async def read_playlist(playlist_id: str, current_user: CurrentUser, session: DBSession) -> PlaylistRead:
    """Playlist contents for its owner or anyone it was shared with."""

    playlist = await PlaylistAccessResolver(session).require_view(current_user.id, playlist_id)
    return _to_read(playlist)


@router.post("/{playlist_id}/like", response_model=LikeResponse)
async def like_playlist(
    playlist_id: str,
    current_user: CurrentUser,
    session: DBSession,
    dispatcher: Dispatcher,
) -> LikeResponse:
    playlist = await PlaylistAccessResolver(session).require_view(current_user.id, playlist_id)
    stmt = select(PlaylistLike).where(PlaylistLike.user_id == current_user.id, PlaylistLike.playlist_id == playlist.id)
    if (await session.execute(stmt)).scalar_one_or_none() is not None:
        return LikeResponse(playlist_id=playlist.id, status="already_liked")

    session.add(PlaylistLike(user_id=current_user.id, playlist_id=playlist.id))
    await session.commit()
    notify_playlist_like(dispatcher, current_user, playlist)
    return LikeResponse(playlist_id=playlist.id, status="liked")


@router.delete("/{playlist_id}/like", response_model=LikeResponse)
async def unlike_playlist(playlist_id: str, current_user: CurrentUser, session: DBSession) -> LikeResponse:
    stmt = select(PlaylistLike).where(PlaylistLike.user_id == current_user.id, PlaylistLike.playlist_id == playlist_id)
    like = (await session.execute(stmt)).scalar_one_or_none()
    if like is None:
        raise NotFound("Like not found.")
    await session.delete(like)
    await session.commit()
    return LikeResponse(playlist_id=playlist_id, status="unliked")


@router.post("/{playlist_id}/comments", response_model=CommentRead, status_code=status.HTTP_201_CREATED)
async def comment_on_playlist(
    playlist_id: str,
    payload: CommentCreate,
    current_user: CurrentUser,
    session: DBSession,
    dispatcher: Dispatcher,
) -> CommentRead:
    playlist = await PlaylistAccessResolver(session).require_view(current_user.id, playlist_id)
    comment = PlaylistComment(user_id=current_user.id, playlist_id=playlist.id, content=payload.content)
    session.add(comment)
    await session.commit()
    notify_playlist_comment(dispatcher, current_user, playlist, comment.content)
    return CommentRead.model_validate(comment)
