"""
List endpoints:
  POST   /lists                           — create a list
  PUT    /lists/{id}                      — partial update (owner only)
  DELETE /lists/{id}                      — delete list and memberships (owner only)
  GET    /lists/{id}                      — list with ordered posts (private → owner only)
  GET    /lists/user/{username}           — a user's lists
  POST   /lists/{id}/posts/{post_id}      — add own post (list owner + post owner)
  DELETE /lists/{id}/posts/{post_id}      — remove a post (list owner)
  PUT    /lists/{id}/reorder              — batch reorder in one transaction
"""
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, status
from opentelemetry import trace
from sqlalchemy.ext.asyncio import AsyncSession

from sweetholic.auth import Identity, get_current_user, get_optional_user
from sweetholic.core import lists as list_core
from sweetholic.database import get_db, transaction
from sweetholic.pagination import Page, get_page
from sweetholic.schemas import (
    ListCreate,
    ListItemAdd,
    ListItemOut,
    ListUpdate,
    Pagination,
    ReorderRequest,
)
from sweetholic.telemetry import LIST_REORDERS_TOTAL

logger = logging.getLogger(__name__)
router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_list(
    body: ListCreate,
    caller: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    lst = await list_core.create_list(db, caller, body.model_dump())
    return {"success": True, "message": "List created successfully", "data": {"list": lst}}


@router.get("/user/{username}")
async def get_user_lists(
    username: str,
    page: Page = Depends(get_page),
    viewer: Optional[Identity] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    lists, total = await list_core.get_user_lists(db, viewer, username, page)
    return {
        "success": True,
        "data": {
            "lists": lists,
            "pagination": Pagination(limit=page.limit, offset=page.offset, total=total),
        },
    }


@router.get("/{list_id}")
async def get_list(
    list_id: int,
    viewer: Optional[Identity] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    return {"success": True, "data": {"list": await list_core.get_list(db, viewer, list_id)}}


@router.put("/{list_id}/reorder")
async def reorder_list_items(
    list_id: int,
    body: ReorderRequest,
    caller: Identity = Depends(get_current_user),
):
    with tracer.start_as_current_span("reorder_list_items") as span:
        span.set_attribute("list.id", list_id)
        async with transaction("reorder_list_items") as db:
            await list_core.reorder_list_items(db, caller, list_id, body.item_orders)

    LIST_REORDERS_TOTAL.inc()
    return {"success": True, "message": "List items reordered successfully"}


@router.put("/{list_id}")
async def update_list(
    list_id: int,
    body: ListUpdate,
    caller: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    lst = await list_core.update_list(db, caller, list_id, body.model_dump(exclude_unset=True))
    return {"success": True, "message": "List updated successfully", "data": {"list": lst}}


@router.delete("/{list_id}")
async def delete_list(
    list_id: int,
    caller: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await list_core.delete_list(db, caller, list_id)
    return {"success": True, "message": "List deleted successfully"}


@router.post("/{list_id}/posts/{post_id}", status_code=status.HTTP_201_CREATED)
async def add_post_to_list(
    list_id: int,
    post_id: int,
    body: Optional[ListItemAdd] = Body(None),
    caller: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    with tracer.start_as_current_span("add_post_to_list"):
        item = await list_core.add_post_to_list(
            db, caller, list_id, post_id, body.item_order if body else None
        )
        return {
            "success": True,
            "message": "Post added to list successfully",
            "data": {"list_item": ListItemOut.model_validate(item)},
        }


@router.delete("/{list_id}/posts/{post_id}")
async def remove_post_from_list(
    list_id: int,
    post_id: int,
    caller: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await list_core.remove_post_from_list(db, caller, list_id, post_id)
    return {"success": True, "message": "Post removed from list successfully"}
