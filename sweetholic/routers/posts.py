"""
Post endpoints:
  POST   /posts                  — create a post with its photos and food items
  GET    /posts/feed             — newest posts from everyone
  GET    /posts/user/{username}  — newest posts of one user
  GET    /posts/{id}             — post detail
  PUT    /posts/{id}             — partial update (owner only)
  DELETE /posts/{id}             — delete with all children (owner only)
"""
import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends, status
from opentelemetry import trace
from sqlalchemy.ext.asyncio import AsyncSession

from sweetholic.auth import Identity, get_current_user, get_optional_user
from sweetholic.core import posts as post_core
from sweetholic.core import views
from sweetholic.core.ownership import get_user_by_username
from sweetholic.database import get_db, transaction
from sweetholic.errors import NotFoundError
from sweetholic.pagination import Page, get_page
from sweetholic.schemas import PagePagination, PostCreate, PostUpdate
from sweetholic.telemetry import FEED_LATENCY, POSTS_CREATED_TOTAL

logger = logging.getLogger(__name__)
router = APIRouter()
tracer = trace.get_tracer(__name__)


async def _detail_or_404(db: AsyncSession, post_id: int):
    post = await views.post_detail(db, post_id)
    if post is None:
        raise NotFoundError("Post not found")
    return post


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_post(body: PostCreate, caller: Identity = Depends(get_current_user)):
    """
    Post + photos + food items are written in one transaction on a dedicated
    session; a single out-of-range rating leaves nothing behind.
    """
    with tracer.start_as_current_span("create_post") as span:
        span.set_attribute("post.photos", len(body.photos))
        span.set_attribute("post.food_items", len(body.food_items))

        async with transaction("create_post") as db:
            post = await post_core.create_post(
                db,
                caller,
                body.model_dump(exclude={"photos", "food_items"}),
                body.photos,
                body.food_items,
            )
            detail = await _detail_or_404(db, post.id)

        span.set_attribute("post.id", post.id)
        POSTS_CREATED_TOTAL.inc()
        return {
            "success": True,
            "message": "Post created successfully",
            "data": {"post": detail},
        }


@router.get("/feed")
async def get_feed(
    page: Page = Depends(get_page),
    viewer: Optional[Identity] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    start_time = time.time()
    with tracer.start_as_current_span("get_feed") as span:
        if viewer is not None:
            span.set_attribute("user.id", viewer.id)
        posts, total = await views.post_page(db, page)

    FEED_LATENCY.observe(time.time() - start_time)
    return {
        "success": True,
        "data": {
            "posts": posts,
            "pagination": PagePagination(
                limit=page.limit, offset=page.offset, count=len(posts), total=total
            ),
        },
    }


@router.get("/user/{username}")
async def get_user_posts(
    username: str,
    page: Page = Depends(get_page),
    db: AsyncSession = Depends(get_db),
):
    user = await get_user_by_username(db, username)
    posts, total = await views.post_page(db, page, user_id=user.id)
    return {
        "success": True,
        "data": {
            "posts": posts,
            "pagination": PagePagination(
                limit=page.limit, offset=page.offset, count=len(posts), total=total
            ),
        },
    }


@router.get("/{post_id}")
async def get_post(post_id: int, db: AsyncSession = Depends(get_db)):
    return {"success": True, "data": {"post": await _detail_or_404(db, post_id)}}


@router.put("/{post_id}")
async def update_post(
    post_id: int,
    body: PostUpdate,
    caller: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    with tracer.start_as_current_span("update_post"):
        await post_core.update_post(db, caller, post_id, body.model_dump(exclude_unset=True))
        return {
            "success": True,
            "message": "Post updated successfully",
            "data": {"post": await _detail_or_404(db, post_id)},
        }


@router.delete("/{post_id}")
async def delete_post(
    post_id: int,
    caller: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    with tracer.start_as_current_span("delete_post"):
        await post_core.delete_post(db, caller, post_id)
        return {"success": True, "message": "Post deleted successfully"}
