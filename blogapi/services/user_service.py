"""
User service: CRUD operations for the User aggregate.

Email and username uniqueness is enforced by the database; a duplicate
surfaces as ``sqlalchemy.exc.IntegrityError`` from the flush and is
translated to 409 by the application's exception handlers.
"""
import logging
import math

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from blogapi.errors import NotFoundError
from blogapi.models import User, utcnow
from blogapi.schemas import (
    Page,
    PaginationQuery,
    SuccessResponse,
    UserCreate,
    UserResponse,
    UserUpdate,
)
from blogapi.security import hash_password

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = (
    "email",
    "username",
    "first_name",
    "last_name",
    "role",
    "avatar_url",
    "bio",
    "is_active",
)


async def create_user(db: AsyncSession, data: UserCreate) -> UserResponse:
    user = User(
        email=data.email,
        username=data.username,
        password_hash=await hash_password(data.password),
        first_name=data.first_name,
        last_name=data.last_name,
        role=data.role,
        avatar_url=data.avatar_url,
        bio=data.bio,
        is_active=True,
    )
    db.add(user)
    await db.flush()
    logger.info("Created user id=%s username=%r role=%s", user.id, user.username, user.role.value)
    return UserResponse.model_validate(user)


async def update_user(db: AsyncSession, user_id: int, data: UserUpdate) -> UserResponse:
    """
    Apply the fields present in *data* to the user and bump ``updated_at``.

    A supplied ``password`` is re-hashed; the plaintext is never stored.
    Raises NotFoundError when the user does not exist.
    """
    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")

    provided = data.model_fields_set
    for field in _UPDATABLE_FIELDS:
        if field in provided:
            setattr(user, field, getattr(data, field))
    if "password" in provided:
        user.password_hash = await hash_password(data.password)

    user.updated_at = utcnow()
    await db.flush()
    logger.info("Updated user id=%s fields=%s", user.id, sorted(provided - {"password"}))
    return UserResponse.model_validate(user)


async def delete_user(db: AsyncSession, user_id: int) -> SuccessResponse:
    """Delete the user; their posts go with them via ON DELETE CASCADE."""
    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")

    await db.delete(user)
    await db.flush()
    logger.info("Deleted user id=%s", user_id)
    return SuccessResponse(success=True)


async def get_users(db: AsyncSession, pagination: PaginationQuery) -> Page[UserResponse]:
    total: int = (await db.execute(select(func.count()).select_from(User))).scalar_one()

    q = (
        select(User)
        .order_by(User.id)
        .offset(pagination.offset)
        .limit(pagination.limit)
    )
    users = (await db.execute(q)).scalars().all()

    return Page[UserResponse](
        items=[UserResponse.model_validate(u) for u in users],
        total=total,
        page=pagination.page,
        limit=pagination.limit,
        total_pages=math.ceil(total / pagination.limit),
    )


async def get_user(db: AsyncSession, user_id: int) -> UserResponse | None:
    user = await db.get(User, user_id)
    if user is None:
        return None
    return UserResponse.model_validate(user)
