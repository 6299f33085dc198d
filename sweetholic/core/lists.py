"""
Lists and the ordering of their members.

Membership order is an explicit integer, `list_items.item_order`. New
members either take the order the caller supplies (used verbatim, even if
another member already has it) or are appended after the current maximum.
Reorders rewrite any subset of orders in one transaction and do not require
a contiguous or duplicate-free result.

Known gap: two concurrent appends without an explicit order can read the
same maximum and store the same item_order.
"""
import logging
from typing import Any, Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sweetholic.auth import Identity
from sweetholic.core import views
from sweetholic.core.ownership import (
    ensure_owner,
    get_list_or_404,
    get_post_or_404,
    get_user_by_username,
    owns,
)
from sweetholic.errors import ConflictError, NotFoundError, OwnershipError, ValidationError
from sweetholic.models import List, ListItem, utc_now
from sweetholic.pagination import Page
from sweetholic.schemas import ItemOrder, ListDetail, ListOut

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 255
LIST_FIELDS = ("title", "description", "cover_photo_url", "is_public")
NOT_LIST_OWNER = "Not authorized to modify this list"


def _clean_title(title: Optional[str], message: str) -> str:
    if title is None or not title.strip():
        raise ValidationError(message)
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError(f"List title must be {TITLE_MAX_LENGTH} characters or less")
    return title.strip()


# ─────────────────────────── List CRUD ────────────────────────────────────

async def create_list(session: AsyncSession, caller: Identity, fields: dict[str, Any]) -> ListOut:
    lst = List(
        user_id=caller.id,
        title=_clean_title(fields.get("title"), "List title is required"),
        description=fields.get("description") or None,
        cover_photo_url=fields.get("cover_photo_url") or None,
        is_public=fields.get("is_public", True),
    )
    session.add(lst)
    await session.flush()
    logger.info("List created: %s by user %s", lst.id, caller.id)
    return views.list_out(lst, 0)


async def update_list(session: AsyncSession, caller: Identity, list_id: int,
                      changes: dict[str, Any]) -> ListOut:
    lst = await get_list_or_404(session, list_id)
    ensure_owner(caller, lst.user_id, "Not authorized to update this list")

    changes = {k: v for k, v in changes.items() if k in LIST_FIELDS}
    if "title" in changes:
        changes["title"] = _clean_title(changes["title"], "List title cannot be empty")
    if "is_public" in changes and changes["is_public"] is None:
        raise ValidationError("is_public must be true or false")
    if not changes:
        raise ValidationError("No fields to update")

    for name, value in changes.items():
        setattr(lst, name, value)
    lst.updated_at = utc_now()
    await session.flush()

    item_count = await session.scalar(
        select(func.count(ListItem.id)).where(ListItem.list_id == lst.id)
    )
    return views.list_out(lst, item_count)


async def delete_list(session: AsyncSession, caller: Identity, list_id: int) -> None:
    """Delete a list and its memberships; the posts themselves stay."""
    lst = await get_list_or_404(session, list_id)
    ensure_owner(caller, lst.user_id, "Not authorized to delete this list")
    await session.delete(lst)
    await session.flush()
    logger.info("List deleted: %s by user %s", list_id, caller.id)


async def get_list(session: AsyncSession, viewer: Optional[Identity], list_id: int) -> ListDetail:
    lst = await get_list_or_404(session, list_id)
    if not lst.is_public and not owns(viewer, lst.user_id):
        raise OwnershipError("This list is private")
    return await views.list_detail(session, lst)


async def get_user_lists(session: AsyncSession, viewer: Optional[Identity], username: str,
                         page: Page) -> tuple[list[ListOut], int]:
    """An owner sees all of their lists; everyone else only the public ones."""
    owner = await get_user_by_username(session, username)
    return await views.list_page(
        session, owner.id, public_only=not owns(viewer, owner.id), page=page
    )


# ─────────────────────────── Membership ───────────────────────────────────

async def next_item_order(session: AsyncSession, list_id: int) -> int:
    current = await session.scalar(
        select(func.coalesce(func.max(ListItem.item_order), -1)).where(
            ListItem.list_id == list_id
        )
    )
    return current + 1


async def add_post_to_list(
    session: AsyncSession,
    caller: Identity,
    list_id: int,
    post_id: int,
    item_order: Optional[int] = None,
) -> ListItem:
    lst = await get_list_or_404(session, list_id)
    ensure_owner(caller, lst.user_id, NOT_LIST_OWNER)

    post = await get_post_or_404(session, post_id)
    ensure_owner(caller, post.user_id, "Can only add your own posts to lists")

    existing = await session.scalar(
        select(ListItem.id).where(ListItem.list_id == list_id, ListItem.post_id == post_id)
    )
    if existing is not None:
        raise ConflictError("Post is already in this list")

    if item_order is None:
        item_order = await next_item_order(session, list_id)

    item = ListItem(list_id=list_id, post_id=post_id, item_order=item_order)
    session.add(item)
    try:
        await session.flush()
    except IntegrityError as exc:
        raise ConflictError("Post is already in this list") from exc

    logger.info("Post %s added to list %s at order %s", post_id, list_id, item_order)
    return item


async def remove_post_from_list(session: AsyncSession, caller: Identity,
                                list_id: int, post_id: int) -> None:
    """Only list ownership is needed to prune a member."""
    lst = await get_list_or_404(session, list_id)
    ensure_owner(caller, lst.user_id, NOT_LIST_OWNER)

    item = await session.scalar(
        select(ListItem).where(ListItem.list_id == list_id, ListItem.post_id == post_id)
    )
    if item is None:
        raise NotFoundError("Post not found in this list")

    await session.delete(item)
    await session.flush()
    logger.info("Post %s removed from list %s", post_id, list_id)


async def reorder_list_items(session: AsyncSession, caller: Identity, list_id: int,
                             item_orders: Optional[list[ItemOrder]]) -> int:
    """
    Rewrite member orders. `session` must belong to an open transaction so
    that either every pair is applied or none is. Pairs naming posts that
    aren't members update nothing. Returns the number of rows changed.
    """
    if not item_orders:
        raise ValidationError(
            "item_orders must be a non-empty array of { post_id, item_order }"
        )

    lst = await get_list_or_404(session, list_id)
    ensure_owner(caller, lst.user_id, NOT_LIST_OWNER)

    changed = 0
    for pair in item_orders:
        result = await session.execute(
            update(ListItem)
            .where(ListItem.list_id == list_id, ListItem.post_id == pair.post_id)
            .values(item_order=pair.item_order)
            .execution_options(synchronize_session=False)
        )
        changed += result.rowcount or 0

    logger.info("List %s reordered: %d pairs, %d rows", list_id, len(item_orders), changed)
    return changed
