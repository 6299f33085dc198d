"""
User profile endpoints:
  PUT  /users/profile           — update own display name, bio, avatar
  GET  /users/{username}        — public profile with derived counters
  GET  /users/{username}/stats  — totals across the user's posts

Accounts themselves are created and deleted by the auth service.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sweetholic.auth import Identity, get_current_user, get_optional_user
from sweetholic.core import social
from sweetholic.database import get_db
from sweetholic.schemas import ProfileUpdate

logger = logging.getLogger(__name__)
router = APIRouter()


@router.put("/profile")
async def update_profile(
    body: ProfileUpdate,
    caller: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = await social.update_profile(db, caller, body.model_dump(exclude_unset=True))
    return {
        "success": True,
        "message": "Profile updated successfully",
        "data": {
            "user": {
                "id": user.id,
                "username": user.username,
                "email": user.email,
                "display_name": user.display_name,
                "profile_photo_url": user.profile_photo_url,
                "bio": user.bio,
                "created_at": user.created_at,
                "updated_at": user.updated_at,
            }
        },
    }


@router.get("/{username}")
async def get_user_profile(
    username: str,
    viewer: Optional[Identity] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    profile = await social.get_user_profile(db, viewer, username)
    return {"success": True, "data": {"user": profile}}


@router.get("/{username}/stats")
async def get_user_stats(username: str, db: AsyncSession = Depends(get_db)):
    return {"success": True, "data": {"stats": await social.get_user_stats(db, username)}}
