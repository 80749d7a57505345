"""Direct messages between users, optionally carrying a playlist."""
from __future__ import annotations

import datetime as dt

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from soundshare.models.base import Base, UUIDPrimaryKeyMixin, utcnow


class Message(UUIDPrimaryKeyMixin, Base):
    """A message; a non-null ``playlist_id`` shares that playlist with the recipient."""

    __tablename__ = "messages"

    content: Mapped[str] = mapped_column(Text, nullable=False)
    from_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    to_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    playlist_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("playlists.id", ondelete="SET NULL"), nullable=True, index=True
    )
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    sender = relationship("User", foreign_keys=[from_id], lazy="joined")
    recipient = relationship("User", foreign_keys=[to_id], lazy="joined")
    playlist = relationship("Playlist", lazy="joined")
