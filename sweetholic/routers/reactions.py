"""
Reaction endpoints:
  POST   /reactions/{post_id}                       — add a reaction of a type
  DELETE /reactions/{post_id}/{reaction_type}       — remove own reaction of a type
  GET    /reactions/{post_id}                       — counts (+ caller's own types)
  GET    /reactions/{post_id}/{reaction_type}/users — who reacted with a type
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, status
from opentelemetry import trace
from sqlalchemy.ext.asyncio import AsyncSession

from sweetholic.auth import Identity, get_current_user, get_optional_user
from sweetholic.core import reactions as reaction_core
from sweetholic.database import get_db
from sweetholic.pagination import Page, get_page
from sweetholic.schemas import Pagination, ReactionCreate, ReactionOut

logger = logging.getLogger(__name__)
router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.post("/{post_id}", status_code=status.HTTP_201_CREATED)
async def add_reaction(
    post_id: int,
    body: ReactionCreate,
    caller: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    with tracer.start_as_current_span("add_reaction"):
        reaction = await reaction_core.add_reaction(db, caller, post_id, body.reaction_type)
        return {
            "success": True,
            "message": "Reaction added successfully",
            "data": {"reaction": ReactionOut.model_validate(reaction)},
        }


@router.delete("/{post_id}/{reaction_type}")
async def remove_reaction(
    post_id: int,
    reaction_type: str,
    caller: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await reaction_core.remove_reaction(db, caller, post_id, reaction_type)
    return {"success": True, "message": "Reaction removed successfully"}


@router.get("/{post_id}")
async def get_post_reactions(
    post_id: int,
    viewer: Optional[Identity] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    summary = await reaction_core.get_reactions(db, post_id, viewer)
    return {"success": True, "data": summary}


@router.get("/{post_id}/{reaction_type}/users")
async def get_reaction_users(
    post_id: int,
    reaction_type: str,
    page: Page = Depends(get_page),
    db: AsyncSession = Depends(get_db),
):
    users, total = await reaction_core.get_reaction_users(db, post_id, reaction_type, page)
    return {
        "success": True,
        "data": {
            "users": users,
            "pagination": Pagination(limit=page.limit, offset=page.offset, total=total),
        },
    }
