"""Database models package."""
from soundshare.models.base import Base
from soundshare.models.device_token import DevicePlatform, DeviceToken
from soundshare.models.message import Message
from soundshare.models.playlist import Playlist, PlaylistSong, Song
from soundshare.models.social import Follow, PlaylistComment, PlaylistLike
from soundshare.models.user import User

__all__ = [
    "Base",
    "User",
    "DevicePlatform",
    "DeviceToken",
    "Playlist",
    "PlaylistSong",
    "Song",
    "Message",
    "Follow",
    "PlaylistLike",
    "PlaylistComment",
]
