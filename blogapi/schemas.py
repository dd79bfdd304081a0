from datetime import datetime
from typing import Annotated, Generic, TypeVar

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    HttpUrl,
    TypeAdapter,
    field_validator,
)

from blogapi.config import settings
from blogapi.models import PostStatus, UserRole

SLUG_PATTERN = r"^[a-z0-9-]+$"

_http_url = TypeAdapter(HttpUrl)


def _check_url(value: str) -> str:
    # Validate as a URL but keep the caller's exact spelling.
    _http_url.validate_python(value)
    return value


Url = Annotated[str, AfterValidator(_check_url)]
Slug = Annotated[str, Field(min_length=1, pattern=SLUG_PATTERN)]


def _reject_null(value):
    if value is None:
        raise ValueError("field may be omitted but not set to null")
    return value


# --- User ---

class UserCreate(BaseModel):
    email: EmailStr
    username: str = Field(min_length=3, max_length=50)
    password: str = Field(min_length=8)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    role: UserRole
    avatar_url: Url | None = None
    bio: str | None = Field(None, max_length=500)


class UserUpdate(BaseModel):
    """Every field is optional; only fields present in the payload change."""

    email: EmailStr | None = None
    username: str | None = Field(None, min_length=3, max_length=50)
    password: str | None = Field(None, min_length=8)
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    role: UserRole | None = None
    avatar_url: Url | None = None
    bio: str | None = Field(None, max_length=500)
    is_active: bool | None = None

    _not_null = field_validator(
        "email", "username", "password", "first_name", "last_name", "role", "is_active",
        mode="before",
    )(_reject_null)


class UserResponse(BaseModel):
    id: int
    email: str
    username: str
    first_name: str
    last_name: str
    role: UserRole
    avatar_url: str | None
    bio: str | None
    is_active: bool
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


# --- Category ---

class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    slug: Annotated[Slug, Field(max_length=100)]
    description: str | None = Field(None, max_length=500)


class CategoryUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    slug: Annotated[Slug, Field(max_length=100)] | None = None
    description: str | None = Field(None, max_length=500)

    _not_null = field_validator("name", "slug", mode="before")(_reject_null)


class CategoryResponse(BaseModel):
    id: int
    name: str
    slug: str
    description: str | None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


# --- Tag ---

class TagCreate(BaseModel):
    name: str = Field(min_length=1, max_length=50)
    slug: Annotated[Slug, Field(max_length=50)]


class TagUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=50)
    slug: Annotated[Slug, Field(max_length=50)] | None = None

    _not_null = field_validator("name", "slug", mode="before")(_reject_null)


class TagResponse(BaseModel):
    id: int
    name: str
    slug: str
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


# --- Blog post ---

class BlogPostCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    slug: Annotated[Slug, Field(max_length=200)]
    content: str = Field(min_length=1)
    excerpt: str | None = Field(None, max_length=500)
    featured_image_url: Url | None = None
    status: PostStatus
    category_ids: list[int] = Field(min_length=1)
    tag_ids: list[int] = []


class BlogPostUpdate(BaseModel):
    """
    Partial update.  ``category_ids`` / ``tag_ids`` replace the whole
    association set whenever they are present, including as ``[]``.
    """

    title: str | None = Field(None, min_length=1, max_length=200)
    slug: Annotated[Slug, Field(max_length=200)] | None = None
    content: str | None = Field(None, min_length=1)
    excerpt: str | None = Field(None, max_length=500)
    featured_image_url: Url | None = None
    status: PostStatus | None = None
    category_ids: list[int] | None = None
    tag_ids: list[int] | None = None

    _not_null = field_validator(
        "title", "slug", "content", "status", "category_ids", "tag_ids", mode="before"
    )(_reject_null)


class BlogPostResponse(BaseModel):
    id: int
    title: str
    slug: str
    content: str
    excerpt: str | None
    author_id: int
    featured_image_url: str | None
    status: PostStatus
    published_at: datetime | None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class BlogPostWithRelations(BlogPostResponse):
    author: UserResponse
    categories: list[CategoryResponse] = []
    tags: list[TagResponse] = []


# --- AdSense ---

class AdSenseConfigUpdate(BaseModel):
    publisher_id: str = Field(min_length=1)
    ad_slot_header: str | None = None
    ad_slot_sidebar: str | None = None
    ad_slot_footer: str | None = None
    ad_slot_in_content: str | None = None
    is_enabled: bool


class PublicAdSenseConfig(BaseModel):
    ad_slot_header: str | None
    ad_slot_sidebar: str | None
    ad_slot_footer: str | None
    ad_slot_in_content: str | None
    is_enabled: bool
    model_config = ConfigDict(from_attributes=True)


class AdSenseConfigResponse(PublicAdSenseConfig):
    id: int
    publisher_id: str
    created_at: datetime
    updated_at: datetime


# --- Auth ---

class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class AuthResponse(BaseModel):
    user: UserResponse
    token: str


# --- Queries & pagination ---

class PaginationQuery(BaseModel):
    page: int = Field(1, ge=1)
    limit: int = Field(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class BlogPostQuery(PaginationQuery):
    status: PostStatus | None = None
    category_id: int | None = None
    tag_id: int | None = None
    author_id: int | None = None
    search: str | None = None


T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    items: list[T]
    total: int
    page: int
    limit: int
    total_pages: int = Field(alias="totalPages")
    model_config = ConfigDict(populate_by_name=True)


class SuccessResponse(BaseModel):
    success: bool = True
