"""
SQLAlchemy ORM models.

Tables:
  users       — accounts (created by the auth service, read-only here
                apart from profile fields)
  posts       — food/dessert posts with an optional rating scale
  photos      — ordered photos of a post
  food_items  — ordered, individually rated dishes of a post
  lists       — user-curated collections
  list_items  — list ↔ post membership with an explicit item_order
  reactions   — one row per (post, user, reaction_type)
  comments    — post comments
  follows     — social graph edges (follower → following)

Child rows are removed with their parent both by ON DELETE CASCADE and by
ORM cascades, so engines that don't enforce foreign keys behave the same.
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects import mysql
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sweetholic.database import Base

# rating_type → highest allowed rating
RATING_SCALES = {"3_star": 3, "5_star": 5, "10_star": 10}
DEFAULT_RATING_MAX = 10

REACTION_TYPES = ("heart", "thumbs_up", "star_eyes", "jealous", "dislike")

# Microsecond precision keeps created_at ordering meaningful on MySQL
Timestamp = DateTime().with_variant(mysql.DATETIME(fsp=6), "mysql")


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _in(column: str, values) -> str:
    return f"{column} IN ({', '.join(repr(v) for v in values)})"


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    display_name: Mapped[Optional[str]] = mapped_column(String(100))
    profile_photo_url: Mapped[Optional[str]] = mapped_column(Text)
    bio: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(Timestamp, default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        Timestamp, default=utc_now, onupdate=utc_now, nullable=False
    )


class Follow(Base):
    __tablename__ = "follows"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    follower_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    following_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(Timestamp, default=utc_now, nullable=False)

    __table_args__ = (
        UniqueConstraint("follower_id", "following_id", name="uq_follows_pair"),
        CheckConstraint("follower_id != following_id", name="ck_follows_not_self"),
        Index("idx_follows_following", "following_id"),
    )


class Post(Base):
    __tablename__ = "posts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    caption: Mapped[Optional[str]] = mapped_column(Text)
    location_name: Mapped[Optional[str]] = mapped_column(String(255))
    # {"lat": ..., "lng": ...} as sent by the client
    location_coordinates: Mapped[Optional[dict]] = mapped_column(JSON)
    food_type: Mapped[Optional[str]] = mapped_column(String(100))
    price: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))
    rating_type: Mapped[Optional[str]] = mapped_column(String(10))
    rating: Mapped[Optional[int]] = mapped_column(Integer)
    is_public: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(Timestamp, default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        Timestamp, default=utc_now, onupdate=utc_now, nullable=False
    )

    author = relationship("User", lazy="joined")

    # Cascade-only relationships; read views query children explicitly
    photos = relationship("Photo", cascade="all, delete-orphan")
    food_items = relationship("FoodItem", cascade="all, delete-orphan")
    reactions = relationship("Reaction", cascade="all, delete-orphan")
    comments = relationship("Comment", cascade="all, delete-orphan")
    list_items = relationship("ListItem", cascade="all, delete", back_populates="post")

    __table_args__ = (
        CheckConstraint(
            "rating_type IS NULL OR " + _in("rating_type", RATING_SCALES),
            name="ck_posts_rating_type",
        ),
        Index("idx_posts_user", "user_id"),
        Index("idx_posts_created", "created_at"),
    )


class Photo(Base):
    __tablename__ = "photos"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(
        ForeignKey("posts.id", ondelete="CASCADE"), nullable=False
    )
    photo_url: Mapped[str] = mapped_column(Text, nullable=False)
    photo_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    individual_description: Mapped[Optional[str]] = mapped_column(Text)
    individual_rating: Mapped[Optional[int]] = mapped_column(Integer)
    is_front_camera: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(Timestamp, default=utc_now, nullable=False)

    __table_args__ = (Index("idx_photos_order", "post_id", "photo_order"),)


class FoodItem(Base):
    __tablename__ = "food_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(
        ForeignKey("posts.id", ondelete="CASCADE"), nullable=False
    )
    item_name: Mapped[str] = mapped_column(String(255), nullable=False)
    price: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))
    rating: Mapped[Optional[int]] = mapped_column(Integer)
    item_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(Timestamp, default=utc_now, nullable=False)

    __table_args__ = (Index("idx_food_items_order", "post_id", "item_order"),)


class List(Base):
    __tablename__ = "lists"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    cover_photo_url: Mapped[Optional[str]] = mapped_column(Text)
    is_public: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(Timestamp, default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        Timestamp, default=utc_now, onupdate=utc_now, nullable=False
    )

    owner = relationship("User", lazy="joined")
    items = relationship("ListItem", cascade="all, delete", back_populates="list")

    __table_args__ = (
        Index("idx_lists_user", "user_id"),
        Index("idx_lists_created", "created_at"),
    )


class ListItem(Base):
    __tablename__ = "list_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    list_id: Mapped[int] = mapped_column(
        ForeignKey("lists.id", ondelete="CASCADE"), nullable=False
    )
    post_id: Mapped[int] = mapped_column(
        ForeignKey("posts.id", ondelete="CASCADE"), nullable=False
    )
    item_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    added_at: Mapped[datetime] = mapped_column(Timestamp, default=utc_now, nullable=False)

    list = relationship("List", back_populates="items")
    post = relationship("Post", back_populates="list_items")

    __table_args__ = (
        UniqueConstraint("list_id", "post_id", name="uq_list_items_pair"),
        Index("idx_list_items_order", "list_id", "item_order"),
        Index("idx_list_items_post", "post_id"),
    )


class Reaction(Base):
    __tablename__ = "reactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(
        ForeignKey("posts.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    reaction_type: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(Timestamp, default=utc_now, nullable=False)

    __table_args__ = (
        UniqueConstraint("post_id", "user_id", "reaction_type", name="uq_reactions_triple"),
        CheckConstraint(_in("reaction_type", REACTION_TYPES), name="ck_reactions_type"),
        Index("idx_reactions_post", "post_id"),
        Index("idx_reactions_user", "user_id"),
    )


class Comment(Base):
    __tablename__ = "comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(
        ForeignKey("posts.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(Timestamp, default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        Timestamp, default=utc_now, onupdate=utc_now, nullable=False
    )

    author = relationship("User", lazy="joined")

    __table_args__ = (
        Index("idx_comments_post", "post_id"),
        Index("idx_comments_user", "user_id"),
    )
