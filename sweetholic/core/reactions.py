"""
Reaction ledger.

A user may hold several reactions on a post, but at most one of each type:
(post_id, user_id, reaction_type) is unique. The existence check runs before
the insert; the table's unique constraint catches the concurrent case.
"""
import logging
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sweetholic.auth import Identity
from sweetholic.core.ownership import ensure_post_exists
from sweetholic.errors import ConflictError, NotFoundError, ValidationError
from sweetholic.models import REACTION_TYPES, Reaction, User
from sweetholic.pagination import Page
from sweetholic.schemas import ReactionSummary, ReactionUser
from sweetholic.telemetry import REACTIONS_ADDED_TOTAL

logger = logging.getLogger(__name__)


def validate_reaction_type(reaction_type: Optional[str]) -> str:
    if not reaction_type or reaction_type not in REACTION_TYPES:
        raise ValidationError(
            f"Invalid reaction type. Must be one of: {', '.join(REACTION_TYPES)}"
        )
    return reaction_type


async def add_reaction(session: AsyncSession, caller: Identity, post_id: int,
                       reaction_type: Optional[str]) -> Reaction:
    reaction_type = validate_reaction_type(reaction_type)
    await ensure_post_exists(session, post_id)

    existing = await session.scalar(
        select(Reaction.id).where(
            Reaction.post_id == post_id,
            Reaction.user_id == caller.id,
            Reaction.reaction_type == reaction_type,
        )
    )
    if existing is not None:
        raise ConflictError("You have already reacted with this type")

    reaction = Reaction(post_id=post_id, user_id=caller.id, reaction_type=reaction_type)
    session.add(reaction)
    try:
        await session.flush()
    except IntegrityError as exc:
        raise ConflictError("You have already reacted with this type") from exc

    REACTIONS_ADDED_TOTAL.labels(reaction_type=reaction_type).inc()
    logger.info("User %s reacted %s on post %s", caller.id, reaction_type, post_id)
    return reaction


async def remove_reaction(session: AsyncSession, caller: Identity, post_id: int,
                          reaction_type: str) -> None:
    reaction_type = validate_reaction_type(reaction_type)
    result = await session.execute(
        delete(Reaction).where(
            Reaction.post_id == post_id,
            Reaction.user_id == caller.id,
            Reaction.reaction_type == reaction_type,
        )
    )
    if not result.rowcount:
        raise NotFoundError("Reaction not found")
    logger.info("User %s removed %s from post %s", caller.id, reaction_type, post_id)


async def get_reactions(session: AsyncSession, post_id: int,
                        viewer: Optional[Identity] = None) -> ReactionSummary:
    """
    Totals per type (only types in use appear) plus the viewer's own types.
    Anonymous viewers get an empty `user_reactions` list.
    """
    await ensure_post_exists(session, post_id)

    rows = await session.execute(
        select(Reaction.reaction_type, func.count(Reaction.id))
        .where(Reaction.post_id == post_id)
        .group_by(Reaction.reaction_type)
    )
    counts = {reaction_type: count for reaction_type, count in rows}

    mine: list[str] = []
    if viewer is not None:
        mine = list(
            await session.scalars(
                select(Reaction.reaction_type)
                .where(Reaction.post_id == post_id, Reaction.user_id == viewer.id)
                .order_by(Reaction.created_at, Reaction.id)
            )
        )

    return ReactionSummary(
        post_id=post_id,
        total_reactions=sum(counts.values()),
        reaction_counts=counts,
        user_reactions=mine,
    )


async def get_reaction_users(session: AsyncSession, post_id: int, reaction_type: str,
                             page: Page) -> tuple[list[ReactionUser], int]:
    """Users who used this exact type, most recent first."""
    reaction_type = validate_reaction_type(reaction_type)
    await ensure_post_exists(session, post_id)

    match = (Reaction.post_id == post_id, Reaction.reaction_type == reaction_type)
    rows = await session.execute(
        select(User, Reaction.created_at)
        .join(Reaction, Reaction.user_id == User.id)
        .where(*match)
        .order_by(Reaction.created_at.desc(), Reaction.id.desc())
        .limit(page.limit)
        .offset(page.offset)
    )
    users = [
        ReactionUser(
            id=user.id,
            username=user.username,
            display_name=user.display_name,
            profile_photo_url=user.profile_photo_url,
            reacted_at=reacted_at,
        )
        for user, reacted_at in rows
    ]
    total = await session.scalar(select(func.count(Reaction.id)).where(*match))
    return users, total
