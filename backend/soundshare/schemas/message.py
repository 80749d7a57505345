"""Message and shared playlist schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from soundshare.schemas.playlist import SongRead


class UserSummary(BaseModel):
    id: str
    name: str
    image: str | None = None

    model_config = ConfigDict(from_attributes=True)


class PlaylistSummary(BaseModel):
    id: str
    name: str

    model_config = ConfigDict(from_attributes=True)


class MessageCreate(BaseModel):
    to_user_id: str = Field(min_length=1)
    content: str = Field(max_length=4000)
    playlist_id: str | None = None

    @field_validator("content")
    @classmethod
    def strip_content(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("Message content must not be empty.")
        return stripped


class MessageRead(BaseModel):
    id: str
    content: str
    created_at: datetime
    sender: UserSummary
    recipient: UserSummary
    playlist: PlaylistSummary | None = None

    model_config = ConfigDict(from_attributes=True)


class SharedPlaylistRead(BaseModel):
    message_id: str
    sender: UserSummary
    content: str
    shared_at: datetime
    playlist: PlaylistSummary
    songs: list[SongRead]
