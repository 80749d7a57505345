"""Follow schemas."""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class FollowResponse(BaseModel):
    following_id: str
    status: Literal["following", "already_following", "unfollowed"]


class LikeResponse(BaseModel):
    playlist_id: str
    status: Literal["liked", "already_liked", "unliked"]
