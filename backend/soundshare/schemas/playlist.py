"""Playlist and song schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SongIn(BaseModel):
    video_id: str = Field(min_length=1, max_length=64)
    title: str = Field(min_length=1, max_length=300)
    artist: str = Field(min_length=1, max_length=300)
    thumbnail: str = Field(min_length=1, max_length=1024)


class SongRead(BaseModel):
    video_id: str
    title: str
    artist: str
    thumbnail: str
    added_at: datetime | None = None


def _strip_required(value: str) -> str:
    stripped = value.strip()
    if not stripped:
        raise ValueError("Value must not be blank.")
    return stripped


class PlaylistCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        return _strip_required(value)


class AddSongRequest(BaseModel):
    playlist_id: str
    song: SongIn


class PlaylistRead(BaseModel):
    id: str
    user_id: str
    name: str
    created_at: datetime
    songs: list[SongRead] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class CommentCreate(BaseModel):
    content: str = Field(min_length=1, max_length=2000)

    @field_validator("content")
    @classmethod
    def strip_content(cls, value: str) -> str:
        return _strip_required(value)


class CommentRead(BaseModel):
    id: str
    user_id: str
    playlist_id: str
    content: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
