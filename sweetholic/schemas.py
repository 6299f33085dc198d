"""
Pydantic request / response schemas for the API layer.
Kept separate from ORM models to avoid coupling transport to storage.

Request bodies leave most fields optional on purpose: presence is checked by
the core (partial updates apply only the fields that were sent), so the
error messages stay the same whichever layer notices the problem.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

# Integer columns are signed 32-bit; larger values are rejected as bad input
INT_MIN = -(2**31)
INT_MAX = 2**31 - 1

# ──────────────────────────── Users ───────────────────────────────────────

class UserPublic(BaseModel):
    """Public profile fields; email is never part of a read view."""
    id: int
    username: str
    display_name: Optional[str] = None
    profile_photo_url: Optional[str] = None

    class Config:
        from_attributes = True


class UserProfile(UserPublic):
    bio: Optional[str] = None
    created_at: datetime
    post_count: int
    follower_count: int
    following_count: int
    is_following: bool


class UserStats(BaseModel):
    total_posts: int
    total_photos: int
    follower_count: int
    following_count: int
    total_reactions_received: int
    total_comments_received: int


class ProfileUpdate(BaseModel):
    display_name: Optional[str] = Field(None, max_length=100)
    bio: Optional[str] = None
    profile_photo_url: Optional[str] = None


class FollowUser(UserPublic):
    bio: Optional[str] = None
    followed_at: datetime


# ──────────────────────────── Posts ───────────────────────────────────────

class PhotoIn(BaseModel):
    photo_url: str = Field(..., min_length=1)
    photo_order: Optional[int] = Field(None, ge=INT_MIN, le=INT_MAX)
    individual_description: Optional[str] = None
    individual_rating: Optional[int] = Field(None, ge=INT_MIN, le=INT_MAX)
    is_front_camera: bool = False


class FoodItemIn(BaseModel):
    item_name: str = Field(..., min_length=1, max_length=255)
    price: Optional[Decimal] = Field(None, max_digits=10, decimal_places=2)
    rating: Optional[int] = Field(None, ge=INT_MIN, le=INT_MAX)
    item_order: Optional[int] = Field(None, ge=INT_MIN, le=INT_MAX)


class PostCreate(BaseModel):
    caption: Optional[str] = None
    location_name: Optional[str] = Field(None, max_length=255)
    location_coordinates: Optional[dict] = None
    food_type: Optional[str] = Field(None, max_length=100)
    price: Optional[Decimal] = Field(None, max_digits=10, decimal_places=2)
    rating_type: Optional[str] = None
    rating: Optional[int] = Field(None, ge=INT_MIN, le=INT_MAX)
    is_public: bool = False
    photos: list[PhotoIn] = []
    food_items: list[FoodItemIn] = []


class PostUpdate(BaseModel):
    caption: Optional[str] = None
    location_name: Optional[str] = Field(None, max_length=255)
    location_coordinates: Optional[dict] = None
    food_type: Optional[str] = Field(None, max_length=100)
    price: Optional[Decimal] = Field(None, max_digits=10, decimal_places=2)
    rating_type: Optional[str] = None
    rating: Optional[int] = Field(None, ge=INT_MIN, le=INT_MAX)
    is_public: Optional[bool] = None


class PhotoOut(BaseModel):
    id: int
    photo_url: str
    photo_order: int
    individual_description: Optional[str] = None
    individual_rating: Optional[int] = None
    is_front_camera: bool

    class Config:
        from_attributes = True


class FoodItemOut(BaseModel):
    id: int
    item_name: str
    price: Optional[float] = None
    rating: Optional[int] = None
    item_order: int

    class Config:
        from_attributes = True


class PostSummary(BaseModel):
    id: int
    user_id: int
    caption: Optional[str]
    location_name: Optional[str]
    location_coordinates: Optional[dict]
    food_type: Optional[str]
    price: Optional[float]
    rating_type: Optional[str]
    rating: Optional[int]
    is_public: bool
    created_at: datetime
    updated_at: datetime
    user: UserPublic
    photos: list[PhotoOut]
    photo_count: int
    reaction_count: int
    comment_count: int


class PostDetail(PostSummary):
    food_items: list[FoodItemOut]


# ──────────────────────────── Lists ───────────────────────────────────────

class ListCreate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    cover_photo_url: Optional[str] = None
    is_public: bool = True


class ListUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    cover_photo_url: Optional[str] = None
    is_public: Optional[bool] = None


class ListItemAdd(BaseModel):
    item_order: Optional[int] = Field(None, ge=INT_MIN, le=INT_MAX)


class ItemOrder(BaseModel):
    post_id: int = Field(..., ge=INT_MIN, le=INT_MAX)
    item_order: int = Field(..., ge=INT_MIN, le=INT_MAX)


class ReorderRequest(BaseModel):
    item_orders: Optional[list[ItemOrder]] = None


class ListItemOut(BaseModel):
    id: int
    list_id: int
    post_id: int
    item_order: int
    added_at: datetime

    class Config:
        from_attributes = True


class ListOut(BaseModel):
    id: int
    user_id: int
    title: str
    description: Optional[str]
    cover_photo_url: Optional[str]
    is_public: bool
    created_at: datetime
    updated_at: datetime
    item_count: int = 0

    class Config:
        from_attributes = True


class ListPost(BaseModel):
    """A post as it appears inside a list, with its membership metadata."""
    id: int
    user_id: int
    caption: Optional[str]
    location_name: Optional[str]
    food_type: Optional[str]
    price: Optional[float]
    rating: Optional[int]
    created_at: datetime
    item_order: int
    added_at: datetime
    photos: list[PhotoOut]


class ListDetail(ListOut):
    user: UserPublic
    posts: list[ListPost]


# ──────────────────────────── Reactions ───────────────────────────────────

class ReactionCreate(BaseModel):
    reaction_type: Optional[str] = None


class ReactionOut(BaseModel):
    id: int
    post_id: int
    user_id: int
    reaction_type: str
    created_at: datetime

    class Config:
        from_attributes = True


class ReactionSummary(BaseModel):
    post_id: int
    total_reactions: int
    reaction_counts: dict[str, int]
    user_reactions: list[str]


class ReactionUser(UserPublic):
    reacted_at: datetime


# ──────────────────────────── Comments ────────────────────────────────────

class CommentIn(BaseModel):
    content: Optional[str] = None


class CommentOut(BaseModel):
    id: int
    post_id: int
    user_id: int
    content: str
    created_at: datetime
    updated_at: datetime
    user: UserPublic

    class Config:
        from_attributes = True


# ──────────────────────────── Pagination ──────────────────────────────────

class Pagination(BaseModel):
    limit: int
    offset: int
    total: int


class PagePagination(Pagination):
    """Pagination for post listings, which also report the page size."""
    count: int
