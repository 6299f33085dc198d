"""
Aggregate writer for posts.

A post is written together with its photos and food items as one unit:
the caller passes a session opened by `database.transaction()`, the post is
flushed first, then each child is validated and added in turn. The first
invalid child raises, and the surrounding transaction discards every row
already written for the request.
"""
import logging
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from sweetholic.auth import Identity
from sweetholic.core.ownership import ensure_owner, get_post_or_404
from sweetholic.errors import ValidationError
from sweetholic.models import DEFAULT_RATING_MAX, RATING_SCALES, FoodItem, Photo, Post, utc_now
from sweetholic.schemas import FoodItemIn, PhotoIn

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = (
    "caption",
    "location_name",
    "location_coordinates",
    "food_type",
    "price",
    "rating_type",
    "rating",
    "is_public",
)


def validate_rating_type(rating_type: Optional[str]) -> None:
    if rating_type is not None and rating_type not in RATING_SCALES:
        raise ValidationError(
            f"Rating type must be one of: {', '.join(RATING_SCALES)}"
        )


def scale_max(rating_type: Optional[str]) -> int:
    """Highest allowed rating; posts without a scale use the widest one."""
    return RATING_SCALES.get(rating_type, DEFAULT_RATING_MAX)


def validate_rating(rating: Optional[int], rating_type: Optional[str], what: str = "Rating") -> None:
    if rating is None:
        return
    top = scale_max(rating_type)
    if rating < 1 or rating > top:
        suffix = f" for {rating_type}" if rating_type else ""
        raise ValidationError(f"{what} must be between 1 and {top}{suffix}")


def _require_caption(caption: Optional[str]) -> str:
    if caption is None or not caption.strip():
        raise ValidationError("Caption is required")
    return caption.strip()


async def create_post(
    session: AsyncSession,
    caller: Identity,
    fields: dict[str, Any],
    photos: list[PhotoIn],
    food_items: list[FoodItemIn],
) -> Post:
    """
    Insert a post with its photos and food items.

    `session` must belong to an open transaction; this function only flushes.
    Photos and food items keep the caller's order values, or take their
    position in the request when none was given.
    """
    rating_type = fields.get("rating_type")
    validate_rating_type(rating_type)
    validate_rating(fields.get("rating"), rating_type)

    post = Post(
        user_id=caller.id,
        caption=_require_caption(fields.get("caption")),
        location_name=fields.get("location_name"),
        location_coordinates=fields.get("location_coordinates"),
        food_type=fields.get("food_type"),
        price=fields.get("price"),
        rating_type=rating_type,
        rating=fields.get("rating"),
        is_public=bool(fields.get("is_public", False)),
    )
    session.add(post)
    await session.flush()  # materialise post.id for the children

    for position, photo in enumerate(photos):
        validate_rating(photo.individual_rating, rating_type, what="Photo rating")
        session.add(
            Photo(
                post_id=post.id,
                photo_url=photo.photo_url,
                photo_order=position if photo.photo_order is None else photo.photo_order,
                individual_description=photo.individual_description,
                individual_rating=photo.individual_rating,
                is_front_camera=photo.is_front_camera,
            )
        )
        await session.flush()

    for position, item in enumerate(food_items):
        item_name = item.item_name.strip()
        if not item_name:
            raise ValidationError("Food item name is required")
        validate_rating(item.rating, rating_type, what="Food item rating")
        session.add(
            FoodItem(
                post_id=post.id,
                item_name=item_name,
                price=item.price,
                rating=item.rating,
                item_order=position if item.item_order is None else item.item_order,
            )
        )
        await session.flush()

    logger.info(
        "Post created: %s by user %s (%d photos, %d food items)",
        post.id, caller.id, len(photos), len(food_items),
    )
    return post


async def update_post(
    session: AsyncSession,
    caller: Identity,
    post_id: int,
    changes: dict[str, Any],
) -> Post:
    """
    Apply a partial update. `changes` holds only the fields the client sent;
    anything absent keeps its stored value.
    """
    post = await get_post_or_404(session, post_id)
    ensure_owner(caller, post.user_id, "Not authorized to update this post")

    changes = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS}
    if not changes:
        raise ValidationError("No fields to update")

    if "caption" in changes:
        changes["caption"] = _require_caption(changes["caption"])
    if "is_public" in changes and changes["is_public"] is None:
        raise ValidationError("is_public must be true or false")

    if "rating_type" in changes or "rating" in changes:
        rating_type = changes.get("rating_type", post.rating_type)
        validate_rating_type(rating_type)
        validate_rating(changes.get("rating", post.rating), rating_type)

    for name, value in changes.items():
        setattr(post, name, value)
    # onupdate only fires when a value differs; every accepted update counts
    post.updated_at = utc_now()
    await session.flush()

    logger.info("Post updated: %s fields=%s", post.id, sorted(changes))
    return post


async def delete_post(session: AsyncSession, caller: Identity, post_id: int) -> None:
    """Delete a post; photos, food items, reactions, comments and list memberships go with it."""
    post = await get_post_or_404(session, post_id)
    ensure_owner(caller, post.user_id, "Not authorized to delete this post")

    await session.delete(post)
    await session.flush()
    logger.info("Post deleted: %s by user %s", post_id, caller.id)
