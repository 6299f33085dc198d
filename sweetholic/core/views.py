"""
View composer: nested read models for posts and lists.

Counts (photos, reactions, comments, list items) are correlated COUNT(*)
subqueries evaluated with the row, never stored counters, so they always
match the underlying rows. Child collections are fetched with one query per
page and grouped in Python.
"""
import logging
from collections import defaultdict
from typing import Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from sweetholic.models import Comment, FoodItem, List, ListItem, Photo, Post, Reaction, User
from sweetholic.pagination import Page
from sweetholic.schemas import (
    FoodItemOut,
    ListDetail,
    ListOut,
    ListPost,
    PhotoOut,
    PostDetail,
    PostSummary,
    UserPublic,
)

logger = logging.getLogger(__name__)


def public_user(user: User) -> UserPublic:
    return UserPublic.model_validate(user)


def _count_for_post(model):
    return (
        select(func.count(model.id))
        .where(model.post_id == Post.id)
        .correlate(Post)
        .scalar_subquery()
    )


def _post_with_counts():
    return select(
        Post,
        _count_for_post(Photo).label("photo_count"),
        _count_for_post(Reaction).label("reaction_count"),
        _count_for_post(Comment).label("comment_count"),
    )


_item_count = (
    select(func.count(ListItem.id))
    .where(ListItem.list_id == List.id)
    .correlate(List)
    .scalar_subquery()
)


async def photos_by_post(session: AsyncSession, post_ids: Iterable[int]) -> dict[int, list[Photo]]:
    ids = list(post_ids)
    grouped: dict[int, list[Photo]] = defaultdict(list)
    if not ids:
        return grouped
    rows = await session.scalars(
        select(Photo)
        .where(Photo.post_id.in_(ids))
        .order_by(Photo.post_id, Photo.photo_order, Photo.id)
    )
    for photo in rows:
        grouped[photo.post_id].append(photo)
    return grouped


async def food_items_for_post(session: AsyncSession, post_id: int) -> list[FoodItem]:
    rows = await session.scalars(
        select(FoodItem)
        .where(FoodItem.post_id == post_id)
        .order_by(FoodItem.item_order, FoodItem.id)
    )
    return list(rows)


def _summary(post: Post, photos: list[Photo], photo_count: int,
             reaction_count: int, comment_count: int) -> PostSummary:
    return PostSummary(
        id=post.id,
        user_id=post.user_id,
        caption=post.caption,
        location_name=post.location_name,
        location_coordinates=post.location_coordinates,
        food_type=post.food_type,
        price=post.price,
        rating_type=post.rating_type,
        rating=post.rating,
        is_public=post.is_public,
        created_at=post.created_at,
        updated_at=post.updated_at,
        user=public_user(post.author),
        photos=[PhotoOut.model_validate(p) for p in photos],
        photo_count=photo_count,
        reaction_count=reaction_count,
        comment_count=comment_count,
    )


async def post_detail(session: AsyncSession, post_id: int) -> Optional[PostDetail]:
    """Post + owner + ordered photos + ordered food items + counts."""
    row = (
        await session.execute(
            _post_with_counts()
            .where(Post.id == post_id)
            .execution_options(populate_existing=True)
        )
    ).first()
    if row is None:
        return None
    post, photo_count, reaction_count, comment_count = row
    photos = (await photos_by_post(session, [post.id]))[post.id]
    food_items = await food_items_for_post(session, post.id)
    summary = _summary(post, photos, photo_count, reaction_count, comment_count)
    return PostDetail(
        **summary.model_dump(),
        food_items=[FoodItemOut.model_validate(f) for f in food_items],
    )


async def post_page(session: AsyncSession, page: Page, user_id: Optional[int] = None
                    ) -> tuple[list[PostSummary], int]:
    """Newest-first page of post summaries, optionally for a single owner."""
    stmt = _post_with_counts()
    total_stmt = select(func.count(Post.id))
    if user_id is not None:
        stmt = stmt.where(Post.user_id == user_id)
        total_stmt = total_stmt.where(Post.user_id == user_id)

    rows = (
        await session.execute(
            stmt.order_by(Post.created_at.desc(), Post.id.desc())
            .limit(page.limit)
            .offset(page.offset)
        )
    ).all()
    total = await session.scalar(total_stmt)

    photos = await photos_by_post(session, [row[0].id for row in rows])
    posts = [
        _summary(post, photos[post.id], photo_count, reaction_count, comment_count)
        for post, photo_count, reaction_count, comment_count in rows
    ]
    return posts, total


def list_out(lst: List, item_count: int) -> ListOut:
    out = ListOut.model_validate(lst)
    out.item_count = item_count
    return out


async def list_detail(session: AsyncSession, lst: List) -> ListDetail:
    """
    List fields, owner profile, derived item_count and member posts.

    Posts are ordered by item_order only; members sharing an order come back
    in whatever order the store yields them.
    """
    item_count = await session.scalar(
        select(func.count(ListItem.id)).where(ListItem.list_id == lst.id)
    )
    rows = (
        await session.execute(
            select(Post, ListItem.item_order, ListItem.added_at)
            .join(ListItem, ListItem.post_id == Post.id)
            .where(ListItem.list_id == lst.id)
            .order_by(ListItem.item_order.asc())
        )
    ).all()
    photos = await photos_by_post(session, [row[0].id for row in rows])

    posts = [
        ListPost(
            id=post.id,
            user_id=post.user_id,
            caption=post.caption,
            location_name=post.location_name,
            food_type=post.food_type,
            price=post.price,
            rating=post.rating,
            created_at=post.created_at,
            item_order=item_order,
            added_at=added_at,
            photos=[PhotoOut.model_validate(p) for p in photos[post.id]],
        )
        for post, item_order, added_at in rows
    ]
    return ListDetail(
        **list_out(lst, item_count).model_dump(),
        user=public_user(lst.owner),
        posts=posts,
    )


async def list_page(session: AsyncSession, owner_id: int, public_only: bool, page: Page
                    ) -> tuple[list[ListOut], int]:
    """Newest-first page of an owner's lists with their item counts."""
    stmt = select(List, _item_count.label("item_count")).where(List.user_id == owner_id)
    total_stmt = select(func.count(List.id)).where(List.user_id == owner_id)
    if public_only:
        stmt = stmt.where(List.is_public.is_(True))
        total_stmt = total_stmt.where(List.is_public.is_(True))

    rows = (
        await session.execute(
            stmt.order_by(List.created_at.desc(), List.id.desc())
            .limit(page.limit)
            .offset(page.offset)
        )
    ).all()
    total = await session.scalar(total_stmt)
    return [list_out(lst, item_count) for lst, item_count in rows], total
