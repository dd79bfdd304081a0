from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from blogapi.database import get_db
from blogapi.dependencies import require_super_admin
from blogapi.schemas import CategoryCreate, CategoryResponse, CategoryUpdate, SuccessResponse
from blogapi.services import category_service

router = APIRouter(prefix="/api/v1/categories", tags=["categories"])


@router.get("", response_model=list[CategoryResponse])
async def list_categories(db: AsyncSession = Depends(get_db)):
    return await category_service.get_categories(db)


@router.get("/slug/{slug}", response_model=CategoryResponse | None)
async def get_category_by_slug(slug: str, db: AsyncSession = Depends(get_db)):
    return await category_service.get_category_by_slug(db, slug)


@router.get("/{category_id}", response_model=CategoryResponse | None)
async def get_category(category_id: int, db: AsyncSession = Depends(get_db)):
    return await category_service.get_category_by_id(db, category_id)


@router.post(
    "",
    status_code=201,
    response_model=CategoryResponse,
    dependencies=[Depends(require_super_admin)],
)
async def create_category(data: CategoryCreate, db: AsyncSession = Depends(get_db)):
    return await category_service.create_category(db, data)


@router.put(
    "/{category_id}",
    response_model=CategoryResponse,
    dependencies=[Depends(require_super_admin)],
)
async def update_category(
    category_id: int, data: CategoryUpdate, db: AsyncSession = Depends(get_db)
):
    return await category_service.update_category(db, category_id, data)


@router.delete(
    "/{category_id}",
    response_model=SuccessResponse,
    dependencies=[Depends(require_super_admin)],
)
async def delete_category(category_id: int, db: AsyncSession = Depends(get_db)):
    return await category_service.delete_category(db, category_id)
