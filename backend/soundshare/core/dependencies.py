"""Common FastAPI dependencies."""
from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from soundshare.core import jwt
from soundshare.core.database import get_db_session
from soundshare.models.user import User
from soundshare.services.dispatcher import NotificationDispatcher, get_dispatcher

DBSession = Annotated[AsyncSession, Depends(get_db_session)]


def _unauthorized(code: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": {"code": code, "message": message}},
    )


def _extract_bearer_token(request: Request) -> str:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise _unauthorized("unauthorized", "Missing credentials.")
    return auth_header.split(" ", 1)[1]


async def require_current_user(request: Request, session: DBSession) -> User:
    """Resolve the caller identity carried by the bearer token."""

    try:
        payload = jwt.decode_token(_extract_bearer_token(request))
    except ValueError as exc:
        raise _unauthorized("invalid_token", "Invalid or expired token.") from exc

    if payload.get("token_type") != jwt.ACCESS_TOKEN_TYPE:
        raise _unauthorized("invalid_token", "Access token required.")

    user_id = payload.get("sub")
    if user_id is None:
        raise _unauthorized("invalid_token", "Invalid token payload.")

    user = await session.get(User, user_id)
    if user is None:
        raise _unauthorized("user_not_found", "User not found.")

    request.state.user = user
    request.state.user_id = user.id
    return user


CurrentUser = Annotated[User, Depends(require_current_user)]
Dispatcher = Annotated[NotificationDispatcher, Depends(get_dispatcher)]
