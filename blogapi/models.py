from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from blogapi.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """Timezone-aware timestamp that always comes back as UTC.

    SQLite has no timezone storage and returns naive values; those are
    tagged as UTC so freshly written and re-read rows compare equal.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            return value.astimezone(timezone.utc)
        return value

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class UserRole(str, enum.Enum):
    SUPER_ADMIN = "super_admin"
    AUTHOR = "author"


class PostStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


def _enum_values(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]


# ---------------------------------------------------------------------------
# Association tables: BlogPost <-> Category, BlogPost <-> Tag (many-to-many)
# ---------------------------------------------------------------------------
blog_post_categories = Table(
    "blog_post_categories",
    Base.metadata,
    Column(
        "blog_post_id", Integer, ForeignKey("blog_posts.id", ondelete="CASCADE"), primary_key=True
    ),
    Column(
        "category_id", Integer, ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True
    ),
)

blog_post_tags = Table(
    "blog_post_tags",
    Base.metadata,
    Column(
        "blog_post_id", Integer, ForeignKey("blog_posts.id", ondelete="CASCADE"), primary_key=True
    ),
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


# ---------------------------------------------------------------------------
# User
# ---------------------------------------------------------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="user_role", values_callable=_enum_values),
        default=UserRole.AUTHOR,
        nullable=False,
    )
    avatar_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    bio: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utcnow, server_default=func.now(), nullable=False
    )

    # Relationships: lazy="raise" forces explicit eager loading in services;
    # passive_deletes hands the cascade to the database.
    posts: Mapped[List["BlogPost"]] = relationship(
        "BlogPost", back_populates="author", lazy="raise", passive_deletes=True
    )


# ---------------------------------------------------------------------------
# Category
# ---------------------------------------------------------------------------
class Category(Base):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utcnow, server_default=func.now(), nullable=False
    )


# ---------------------------------------------------------------------------
# Tag
# ---------------------------------------------------------------------------
class Tag(Base):
    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    slug: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utcnow, server_default=func.now(), nullable=False
    )


# ---------------------------------------------------------------------------
# BlogPost
# ---------------------------------------------------------------------------
class BlogPost(Base):
    __tablename__ = "blog_posts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(200), unique=True, nullable=False, index=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    excerpt: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    featured_image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[PostStatus] = mapped_column(
        Enum(PostStatus, name="post_status", values_callable=_enum_values),
        default=PostStatus.DRAFT,
        nullable=False,
        index=True,
    )
    published_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utcnow, server_default=func.now(), nullable=False, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utcnow, server_default=func.now(), nullable=False
    )

    # Foreign key
    author_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Relationships: loaded explicitly with joinedload/selectinload in services
    author: Mapped["User"] = relationship("User", back_populates="posts", lazy="raise")
    categories: Mapped[List["Category"]] = relationship(
        "Category",
        secondary=blog_post_categories,
        lazy="raise",
        passive_deletes=True,
        order_by="Category.name",
    )
    tags: Mapped[List["Tag"]] = relationship(
        "Tag",
        secondary=blog_post_tags,
        lazy="raise",
        passive_deletes=True,
        order_by="Tag.name",
    )


# ---------------------------------------------------------------------------
# AdSenseConfig (singleton)
# ---------------------------------------------------------------------------
ADSENSE_SINGLETON_KEY = 1


class AdSenseConfig(Base):
    __tablename__ = "adsense_config"

    __table_args__ = (
        CheckConstraint(
            f"singleton_key = {ADSENSE_SINGLETON_KEY}", name="ck_adsense_config_singleton"
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # At most one row: every insert uses the same key and the column is unique.
    singleton_key: Mapped[int] = mapped_column(
        Integer, unique=True, nullable=False, default=ADSENSE_SINGLETON_KEY
    )
    publisher_id: Mapped[str] = mapped_column(String(255), nullable=False)
    ad_slot_header: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    ad_slot_sidebar: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    ad_slot_footer: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    ad_slot_in_content: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    is_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utcnow, server_default=func.now(), nullable=False
    )
