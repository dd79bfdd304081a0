from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from blogapi.database import get_db
from blogapi.dependencies import get_current_user, pagination_params, require_super_admin
from blogapi.permissions import AccessLevel, authorize
from blogapi.schemas import (
    Page,
    PaginationQuery,
    SuccessResponse,
    UserCreate,
    UserResponse,
    UserUpdate,
)
from blogapi.services import user_service

router = APIRouter(prefix="/api/v1/users", tags=["users"])

# Fields only a super admin may change, even on their own account.
_PRIVILEGED_FIELDS = frozenset({"role", "is_active"})


@router.post(
    "",
    status_code=201,
    response_model=UserResponse,
    dependencies=[Depends(require_super_admin)],
)
async def create_user(data: UserCreate, db: AsyncSession = Depends(get_db)):
    return await user_service.create_user(db, data)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    data: UserUpdate,
    current_user: UserResponse = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    authorize(
        current_user,
        AccessLevel.OWNER_OR_SUPER_ADMIN,
        owner_id=user_id,
        detail="You can only update your own account",
    )
    if data.model_fields_set & _PRIVILEGED_FIELDS:
        authorize(
            current_user,
            AccessLevel.SUPER_ADMIN,
            detail="Only a super admin can change role or activation",
        )
    return await user_service.update_user(db, user_id, data)


@router.delete(
    "/{user_id}",
    response_model=SuccessResponse,
    dependencies=[Depends(require_super_admin)],
)
async def delete_user(user_id: int, db: AsyncSession = Depends(get_db)):
    return await user_service.delete_user(db, user_id)


@router.get(
    "",
    response_model=Page[UserResponse],
    dependencies=[Depends(require_super_admin)],
)
async def list_users(
    pagination: PaginationQuery = Depends(pagination_params),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.get_users(db, pagination)


@router.get("/{user_id}", response_model=UserResponse | None)
async def get_user(
    user_id: int,
    current_user: UserResponse = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    authorize(
        current_user,
        AccessLevel.OWNER_OR_SUPER_ADMIN,
        owner_id=user_id,
        detail="You can only view your own account",
    )
    return await user_service.get_user(db, user_id)
