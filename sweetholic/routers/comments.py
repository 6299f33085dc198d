"""
Comment endpoints:
  POST   /comments/{post_id}          — comment on a post
  PUT    /comments/{comment_id}       — edit own comment
  DELETE /comments/{comment_id}       — delete own comment
  GET    /comments/post/{post_id}     — thread, oldest first
  GET    /comments/user/{username}    — a user's comments, newest first
"""
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from sweetholic.auth import Identity, get_current_user
from sweetholic.core import comments as comment_core
from sweetholic.database import get_db
from sweetholic.pagination import Page, get_page
from sweetholic.schemas import CommentIn, Pagination

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/post/{post_id}")
async def get_post_comments(
    post_id: int,
    page: Page = Depends(get_page),
    db: AsyncSession = Depends(get_db),
):
    comments, total = await comment_core.get_post_comments(db, post_id, page)
    return {
        "success": True,
        "data": {
            "comments": comments,
            "pagination": Pagination(limit=page.limit, offset=page.offset, total=total),
        },
    }


@router.get("/user/{username}")
async def get_user_comments(
    username: str,
    page: Page = Depends(get_page),
    db: AsyncSession = Depends(get_db),
):
    comments, total = await comment_core.get_user_comments(db, username, page)
    return {
        "success": True,
        "data": {
            "comments": comments,
            "pagination": Pagination(limit=page.limit, offset=page.offset, total=total),
        },
    }


@router.post("/{post_id}", status_code=status.HTTP_201_CREATED)
async def create_comment(
    post_id: int,
    body: CommentIn,
    caller: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    comment = await comment_core.create_comment(db, caller, post_id, body.content)
    return {"success": True, "message": "Comment created successfully", "data": {"comment": comment}}


@router.put("/{comment_id}")
async def update_comment(
    comment_id: int,
    body: CommentIn,
    caller: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    comment = await comment_core.update_comment(db, caller, comment_id, body.content)
    return {"success": True, "message": "Comment updated successfully", "data": {"comment": comment}}


@router.delete("/{comment_id}")
async def delete_comment(
    comment_id: int,
    caller: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await comment_core.delete_comment(db, caller, comment_id)
    return {"success": True, "message": "Comment deleted successfully"}
