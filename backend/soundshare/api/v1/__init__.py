"""API v1 package."""
from fastapi import APIRouter

from soundshare.api.v1 import devices, messages, notifications, playlists, users

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(devices.router, tags=["devices"])
api_router.include_router(notifications.router, tags=["notifications"])
api_router.include_router(messages.router, tags=["messages"])
api_router.include_router(playlists.router, tags=["playlists"])
api_router.include_router(users.router, tags=["users"])

__all__ = ["api_router"]
