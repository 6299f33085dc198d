"""
Follow graph and user profiles.

Profile and stats counters are derived at read time from the underlying
rows, like every other count in the service.
"""
import logging
from typing import Any, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sweetholic.auth import Identity
from sweetholic.core.ownership import get_user_by_username
from sweetholic.errors import ConflictError, NotFoundError, ValidationError
from sweetholic.models import Comment, Follow, Photo, Post, Reaction, User, utc_now
from sweetholic.pagination import Page
from sweetholic.schemas import FollowUser, UserProfile, UserStats

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("display_name", "bio", "profile_photo_url")


# ─────────────────────────── Follows ──────────────────────────────────────

async def follow_user(session: AsyncSession, caller: Identity, username: str) -> User:
    target = await get_user_by_username(session, username)
    if target.id == caller.id:
        raise ValidationError("Cannot follow yourself")

    existing = await session.scalar(
        select(Follow.id).where(
            Follow.follower_id == caller.id, Follow.following_id == target.id
        )
    )
    if existing is not None:
        raise ConflictError("Already following this user")

    session.add(Follow(follower_id=caller.id, following_id=target.id))
    try:
        await session.flush()
    except IntegrityError as exc:
        raise ConflictError("Already following this user") from exc

    logger.info("%s followed %s", caller.username, target.username)
    return target


async def unfollow_user(session: AsyncSession, caller: Identity, username: str) -> User:
    target = await get_user_by_username(session, username)
    if target.id == caller.id:
        raise ValidationError("Cannot unfollow yourself")

    result = await session.execute(
        delete(Follow).where(
            Follow.follower_id == caller.id, Follow.following_id == target.id
        )
    )
    if not result.rowcount:
        raise ValidationError("Not following this user")

    logger.info("%s unfollowed %s", caller.username, target.username)
    return target


async def _edges(session: AsyncSession, username: str, page: Page, followers: bool
                 ) -> tuple[list[FollowUser], int]:
    user = await get_user_by_username(session, username)
    # followers: edges pointing at the user; following: edges leaving them
    anchor, other = (
        (Follow.following_id, Follow.follower_id)
        if followers
        else (Follow.follower_id, Follow.following_id)
    )
    rows = await session.execute(
        select(User, Follow.created_at)
        .join(Follow, other == User.id)
        .where(anchor == user.id)
        .order_by(Follow.created_at.desc(), Follow.id.desc())
        .limit(page.limit)
        .offset(page.offset)
    )
    people = [
        FollowUser(
            id=u.id,
            username=u.username,
            display_name=u.display_name,
            profile_photo_url=u.profile_photo_url,
            bio=u.bio,
            followed_at=followed_at,
        )
        for u, followed_at in rows
    ]
    total = await session.scalar(select(func.count(Follow.id)).where(anchor == user.id))
    return people, total


async def get_followers(session: AsyncSession, username: str, page: Page):
    return await _edges(session, username, page, followers=True)


async def get_following(session: AsyncSession, username: str, page: Page):
    return await _edges(session, username, page, followers=False)


# ─────────────────────────── Profiles ─────────────────────────────────────

async def _count(session: AsyncSession, stmt) -> int:
    return await session.scalar(stmt) or 0


async def get_user_profile(session: AsyncSession, viewer: Optional[Identity],
                           username: str) -> UserProfile:
    user = await get_user_by_username(session, username)

    is_following = False
    if viewer is not None and viewer.id != user.id:
        is_following = (
            await session.scalar(
                select(Follow.id).where(
                    Follow.follower_id == viewer.id, Follow.following_id == user.id
                )
            )
        ) is not None

    return UserProfile(
        id=user.id,
        username=user.username,
        display_name=user.display_name,
        profile_photo_url=user.profile_photo_url,
        bio=user.bio,
        created_at=user.created_at,
        post_count=await _count(
            session, select(func.count(Post.id)).where(Post.user_id == user.id)
        ),
        follower_count=await _count(
            session, select(func.count(Follow.id)).where(Follow.following_id == user.id)
        ),
        following_count=await _count(
            session, select(func.count(Follow.id)).where(Follow.follower_id == user.id)
        ),
        is_following=is_following,
    )


async def get_user_stats(session: AsyncSession, username: str) -> UserStats:
    user = await get_user_by_username(session, username)
    own_posts = select(Post.id).where(Post.user_id == user.id)

    return UserStats(
        total_posts=await _count(
            session, select(func.count(Post.id)).where(Post.user_id == user.id)
        ),
        total_photos=await _count(
            session, select(func.count(Photo.id)).where(Photo.post_id.in_(own_posts))
        ),
        follower_count=await _count(
            session, select(func.count(Follow.id)).where(Follow.following_id == user.id)
        ),
        following_count=await _count(
            session, select(func.count(Follow.id)).where(Follow.follower_id == user.id)
        ),
        total_reactions_received=await _count(
            session, select(func.count(Reaction.id)).where(Reaction.post_id.in_(own_posts))
        ),
        total_comments_received=await _count(
            session, select(func.count(Comment.id)).where(Comment.post_id.in_(own_posts))
        ),
    )


async def update_profile(session: AsyncSession, caller: Identity,
                         changes: dict[str, Any]) -> User:
    changes = {k: v for k, v in changes.items() if k in PROFILE_FIELDS}
    if not changes:
        raise ValidationError("No fields to update")

    user = await session.get(User, caller.id)
    if user is None:
        raise NotFoundError("User not found")

    for name, value in changes.items():
        setattr(user, name, value)
    user.updated_at = utc_now()
    await session.flush()
    logger.info("Profile updated: %s fields=%s", user.username, sorted(changes))
    return user
