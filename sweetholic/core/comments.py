"""
Comment threads.

Only a comment's author may edit or delete it; owning the post grants no
rights over other people's comments. Thread reads are oldest first, a
user's activity feed of comments is newest first.
"""
import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from sweetholic.auth import Identity
from sweetholic.core.ownership import (
    ensure_owner,
    ensure_post_exists,
    get_comment_or_404,
    get_user_by_username,
)
from sweetholic.core.views import public_user
from sweetholic.errors import ValidationError
from sweetholic.models import Comment, utc_now
from sweetholic.pagination import Page
from sweetholic.schemas import CommentOut

logger = logging.getLogger(__name__)

CONTENT_MAX_LENGTH = 1000


def clean_content(content: Optional[str]) -> str:
    """Trimmed content; the length limit applies to the text as sent."""
    if content is None or not content.strip():
        raise ValidationError("Comment content is required")
    if len(content) > CONTENT_MAX_LENGTH:
        raise ValidationError(
            f"Comment content must be {CONTENT_MAX_LENGTH} characters or less"
        )
    return content.strip()


def comment_out(comment: Comment) -> CommentOut:
    return CommentOut(
        id=comment.id,
        post_id=comment.post_id,
        user_id=comment.user_id,
        content=comment.content,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
        user=public_user(comment.author),
    )


async def create_comment(session: AsyncSession, caller: Identity, post_id: int,
                         content: Optional[str]) -> CommentOut:
    text = clean_content(content)
    await ensure_post_exists(session, post_id)

    comment = Comment(post_id=post_id, user_id=caller.id, content=text)
    session.add(comment)
    await session.flush()
    await session.refresh(comment, ["author"])

    logger.info("Comment %s created on post %s by user %s", comment.id, post_id, caller.id)
    return comment_out(comment)


async def update_comment(session: AsyncSession, caller: Identity, comment_id: int,
                         content: Optional[str]) -> CommentOut:
    text = clean_content(content)
    comment = await get_comment_or_404(session, comment_id)
    ensure_owner(caller, comment.user_id, "Not authorized to update this comment")

    comment.content = text
    comment.updated_at = utc_now()
    await session.flush()
    return comment_out(comment)


async def delete_comment(session: AsyncSession, caller: Identity, comment_id: int) -> None:
    comment = await get_comment_or_404(session, comment_id)
    ensure_owner(caller, comment.user_id, "Not authorized to delete this comment")
    await session.delete(comment)
    await session.flush()
    logger.info("Comment %s deleted by user %s", comment_id, caller.id)


async def _page(session: AsyncSession, criterion, order, page: Page
                ) -> tuple[list[CommentOut], int]:
    rows = await session.scalars(
        select(Comment).where(criterion).order_by(*order).limit(page.limit).offset(page.offset)
    )
    total = await session.scalar(select(func.count(Comment.id)).where(criterion))
    return [comment_out(c) for c in rows], total


async def get_post_comments(session: AsyncSession, post_id: int, page: Page
                            ) -> tuple[list[CommentOut], int]:
    await ensure_post_exists(session, post_id)
    return await _page(
        session,
        Comment.post_id == post_id,
        (Comment.created_at.asc(), Comment.id.asc()),
        page,
    )


async def get_user_comments(session: AsyncSession, username: str, page: Page
                            ) -> tuple[list[CommentOut], int]:
    user = await get_user_by_username(session, username)
    return await _page(
        session,
        Comment.user_id == user.id,
        (Comment.created_at.desc(), Comment.id.desc()),
        page,
    )
