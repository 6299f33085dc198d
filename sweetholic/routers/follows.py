"""
Social graph endpoints:
  POST   /follows/{username}            — follow a user
  DELETE /follows/{username}            — unfollow
  GET    /follows/{username}/followers  — who follows the user
  GET    /follows/{username}/following  — who the user follows
"""
import logging

from fastapi import APIRouter, Depends, status
from opentelemetry import trace
from sqlalchemy.ext.asyncio import AsyncSession

from sweetholic.auth import Identity, get_current_user
from sweetholic.core import social
from sweetholic.database import get_db
from sweetholic.pagination import Page, get_page
from sweetholic.schemas import Pagination

logger = logging.getLogger(__name__)
router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.post("/{username}", status_code=status.HTTP_201_CREATED)
async def follow_user(
    username: str,
    caller: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    with tracer.start_as_current_span("follow_user"):
        target = await social.follow_user(db, caller, username)
        return {
            "success": True,
            "message": f"Successfully followed {target.username}",
            "data": {"following": {"username": target.username}},
        }


@router.delete("/{username}")
async def unfollow_user(
    username: str,
    caller: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    with tracer.start_as_current_span("unfollow_user"):
        target = await social.unfollow_user(db, caller, username)
        return {
            "success": True,
            "message": f"Successfully unfollowed {target.username}",
            "data": {"unfollowed": {"username": target.username}},
        }


@router.get("/{username}/followers")
async def list_followers(
    username: str,
    page: Page = Depends(get_page),
    db: AsyncSession = Depends(get_db),
):
    followers, total = await social.get_followers(db, username, page)
    return {
        "success": True,
        "data": {
            "followers": followers,
            "pagination": Pagination(limit=page.limit, offset=page.offset, total=total),
        },
    }


@router.get("/{username}/following")
async def list_following(
    username: str,
    page: Page = Depends(get_page),
    db: AsyncSession = Depends(get_db),
):
    following, total = await social.get_following(db, username, page)
    return {
        "success": True,
        "data": {
            "following": following,
            "pagination": Pagination(limit=page.limit, offset=page.offset, total=total),
        },
    }
