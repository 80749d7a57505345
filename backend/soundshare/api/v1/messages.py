"""Direct message endpoints, including playlist shares."""
from __future__ import annotations

from fastapi import APIRouter
from sqlalchemy import or_, select

from soundshare.core.dependencies import CurrentUser, DBSession, Dispatcher
from soundshare.core.errors import NotFound
from soundshare.models.message import Message
from soundshare.models.playlist import Playlist
from soundshare.models.user import User
from soundshare.schemas.message import (
    MessageCreate,
    MessageRead,
    PlaylistSummary,
    SharedPlaylistRead,
    UserSummary,
)
from soundshare.schemas.playlist import SongRead
from soundshare.services.access import PlaylistAccessResolver
from soundshare.services.social import notify_message

router = APIRouter(prefix="/messages")


@router.post("", response_model=MessageRead)
async def send_message(
    payload: MessageCreate,
    current_user: CurrentUser,
    session: DBSession,
    dispatcher: Dispatcher,
) -> MessageRead:
    """Store a message; attaching a playlist shares it with the recipient."""

    recipient = await session.get(User, payload.to_user_id)
    if recipient is None:
        raise NotFound("Recipient not found.")

    playlist: Playlist | None = None
    if payload.playlist_id:
        stmt = select(Playlist).where(Playlist.id == payload.playlist_id, Playlist.user_id == current_user.id)
        playlist = (await session.execute(stmt)).scalar_one_or_none()
        if playlist is None:
            raise NotFound("Playlist not found or unauthorized.")

    message = Message(
        content=payload.content,
        from_id=current_user.id,
        to_id=recipient.id,
        playlist_id=playlist.id if playlist else None,
    )
    session.add(message)
    await session.commit()

    stmt = select(Message).where(Message.id == message.id).execution_options(populate_existing=True)
    message = (await session.execute(stmt)).unique().scalar_one()

    notify_message(dispatcher, current_user, message, playlist)
    return MessageRead.model_validate(message)


@router.get("", response_model=list[MessageRead])
async def list_messages(current_user: CurrentUser, session: DBSession) -> list[MessageRead]:
    """Messages sent or received by the caller, newest first."""

    stmt = (
        select(Message)
        .where(or_(Message.from_id == current_user.id, Message.to_id == current_user.id))
        .order_by(Message.created_at.desc(), Message.id.desc())
    )
    messages = (await session.execute(stmt)).unique().scalars()
    return [MessageRead.model_validate(message) for message in messages]


@router.get("/shared-playlists", response_model=list[SharedPlaylistRead])
async def shared_playlists(current_user: CurrentUser, session: DBSession) -> list[SharedPlaylistRead]:
    """Playlists other users shared with the caller, one entry per message."""

    shared = await PlaylistAccessResolver(session).list_shared_with_user(current_user.id)
    return [
        SharedPlaylistRead(
            message_id=item.message_id,
            sender=UserSummary(id=item.sender_id, name=item.sender_name, image=item.sender_image),
            content=item.content,
            shared_at=item.shared_at,
            playlist=PlaylistSummary(id=item.playlist_id, name=item.playlist_name),
            songs=[SongRead(**song) for song in item.songs],
        )
        for item in shared
    ]
