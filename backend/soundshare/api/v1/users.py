"""Follow relationships between users."""
from __future__ import annotations

from fastapi import APIRouter
from sqlalchemy import select

from soundshare.core.config import get_settings
from soundshare.core.dependencies import CurrentUser, DBSession, Dispatcher
from soundshare.core.errors import InvalidInput, NotFound
from soundshare.models.social import Follow
from soundshare.models.user import User
from soundshare.schemas.social import FollowResponse
from soundshare.services.social import notify_follow, notify_unfollow

router = APIRouter(prefix="/users")


@router.post("/{user_id}/follow", response_model=FollowResponse)
async def follow_user(
    user_id: str,
    current_user: CurrentUser,
    session: DBSession,
    dispatcher: Dispatcher,
) -> FollowResponse:
    if user_id == current_user.id:
        raise InvalidInput("You cannot follow yourself.")
    target = await session.get(User, user_id)
    if target is None:
        raise NotFound("User not found.")

    stmt = select(Follow).where(Follow.follower_id == current_user.id, Follow.following_id == target.id)
    if (await session.execute(stmt)).scalar_one_or_none() is not None:
        return FollowResponse(following_id=target.id, status="already_following")

    session.add(Follow(follower_id=current_user.id, following_id=target.id))
    await session.commit()
    notify_follow(dispatcher, current_user, target.id)
    return FollowResponse(following_id=target.id, status="following")


@router.delete("/{user_id}/follow", response_model=FollowResponse)
async def unfollow_user(
    user_id: str,
    current_user: CurrentUser,
    session: DBSession,
    dispatcher: Dispatcher,
) -> FollowResponse:
    stmt = select(Follow).where(Follow.follower_id == current_user.id, Follow.following_id == user_id)
    follow = (await session.execute(stmt)).scalar_one_or_none()
    if follow is None:
        raise NotFound("You are not following this user.")
    await session.delete(follow)
    await session.commit()
    if get_settings().notify_on_unfollow:
        notify_unfollow(dispatcher, current_user, user_id)
    return FollowResponse(following_id=user_id, status="unfollowed")
