"""
Ownership guard and the existence lookups that precede it.

Every mutation loads its target (404 when absent) and then checks the
caller against the owning user id. Cross-entity rules, such as "list owner
must also own the post", compose two separate `ensure_owner` calls at the
call site, each with its own message.
"""
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sweetholic.auth import Identity
from sweetholic.errors import NotFoundError, OwnershipError
from sweetholic.models import Comment, List, Post, User

logger = logging.getLogger(__name__)


def owns(caller: Optional[Identity], owner_id: int) -> bool:
    return caller is not None and caller.id == owner_id


def ensure_owner(caller: Identity, owner_id: int, message: str) -> None:
    if not owns(caller, owner_id):
        logger.warning("Denied: user %s is not owner %s (%s)", caller.id, owner_id, message)
        raise OwnershipError(message)


async def get_post_or_404(session: AsyncSession, post_id: int) -> Post:
    post = await session.get(Post, post_id)
    if post is None:
        raise NotFoundError("Post not found")
    return post


async def get_list_or_404(session: AsyncSession, list_id: int) -> List:
    lst = await session.get(List, list_id)
    if lst is None:
        raise NotFoundError("List not found")
    return lst


async def get_comment_or_404(session: AsyncSession, comment_id: int) -> Comment:
    comment = await session.get(Comment, comment_id)
    if comment is None:
        raise NotFoundError("Comment not found")
    return comment


async def get_user_by_username(session: AsyncSession, username: str) -> User:
    result = await session.execute(select(User).where(User.username == username))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("User not found")
    return user


async def ensure_post_exists(session: AsyncSession, post_id: int) -> None:
    """Existence check that doesn't load the post (or its author)."""
    found = await session.scalar(select(Post.id).where(Post.id == post_id))
    if found is None:
        raise NotFoundError("Post not found")
