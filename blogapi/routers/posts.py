from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from blogapi.database import get_db
from blogapi.dependencies import get_current_user, post_query_params
from blogapi.schemas import (
    BlogPostCreate,
    BlogPostQuery,
    BlogPostResponse,
    BlogPostUpdate,
    BlogPostWithRelations,
    Page,
    SuccessResponse,
    UserResponse,
)
from blogapi.services import post_service

router = APIRouter(prefix="/api/v1/posts", tags=["posts"])


@router.get("", response_model=Page[BlogPostWithRelations])
async def list_posts(
    query: BlogPostQuery = Depends(post_query_params),
    db: AsyncSession = Depends(get_db),
):
    return await post_service.get_posts(db, query)


# Declared before "/{post_id}" so "mine" is not parsed as an id.
@router.get("/mine", response_model=Page[BlogPostWithRelations])
async def my_posts(
    query: BlogPostQuery = Depends(post_query_params),
    current_user: UserResponse = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await post_service.get_my_posts(db, current_user.id, query)


@router.get("/slug/{slug}", response_model=BlogPostWithRelations | None)
async def get_post_by_slug(slug: str, db: AsyncSession = Depends(get_db)):
    return await post_service.get_post_by_slug(db, slug)


@router.get("/{post_id}", response_model=BlogPostWithRelations | None)
async def get_post(post_id: int, db: AsyncSession = Depends(get_db)):
    return await post_service.get_post_by_id(db, post_id)


@router.post("", status_code=201, response_model=BlogPostResponse)
async def create_post(
    data: BlogPostCreate,
    current_user: UserResponse = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await post_service.create_post(db, data, current_user.id)


@router.put("/{post_id}", response_model=BlogPostResponse)
async def update_post(
    post_id: int,
    data: BlogPostUpdate,
    current_user: UserResponse = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await post_service.update_post(
        db, post_id, data, current_user.id, current_user.role
    )


@router.delete("/{post_id}", response_model=SuccessResponse)
async def delete_post(
    post_id: int,
    current_user: UserResponse = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await post_service.delete_post(db, post_id, current_user.id, current_user.role)
