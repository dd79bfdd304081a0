from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from blogapi.database import get_db
from blogapi.dependencies import require_super_admin
from blogapi.schemas import SuccessResponse, TagCreate, TagResponse, TagUpdate
from blogapi.services import tag_service

router = APIRouter(prefix="/api/v1/tags", tags=["tags"])


@router.get("", response_model=list[TagResponse])
async def list_tags(db: AsyncSession = Depends(get_db)):
    return await tag_service.get_tags(db)


@router.get("/slug/{slug}", response_model=TagResponse | None)
async def get_tag_by_slug(slug: str, db: AsyncSession = Depends(get_db)):
    return await tag_service.get_tag_by_slug(db, slug)


@router.get("/{tag_id}", response_model=TagResponse | None)
async def get_tag(tag_id: int, db: AsyncSession = Depends(get_db)):
    return await tag_service.get_tag_by_id(db, tag_id)


@router.post(
    "",
    status_code=201,
    response_model=TagResponse,
    dependencies=[Depends(require_super_admin)],
)
async def create_tag(data: TagCreate, db: AsyncSession = Depends(get_db)):
    return await tag_service.create_tag(db, data)


@router.put(
    "/{tag_id}",
    response_model=TagResponse,
    dependencies=[Depends(require_super_admin)],
)
async def update_tag(tag_id: int, data: TagUpdate, db: AsyncSession = Depends(get_db)):
    return await tag_service.update_tag(db, tag_id, data)


@router.delete(
    "/{tag_id}",
    response_model=SuccessResponse,
    dependencies=[Depends(require_super_admin)],
)
async def delete_tag(tag_id: int, db: AsyncSession = Depends(get_db)):
    return await tag_service.delete_tag(db, tag_id)
