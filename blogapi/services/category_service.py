"""
Category service.

Slugs are unique at the database level; collisions surface as
``IntegrityError``.  The full list is returned unpaginated and sorted by
name because the set of categories is small.
"""
import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from blogapi.errors import NotFoundError
from blogapi.models import Category, blog_post_categories, utcnow
from blogapi.schemas import CategoryCreate, CategoryResponse, CategoryUpdate, SuccessResponse

logger = logging.getLogger(__name__)


async def create_category(db: AsyncSession, data: CategoryCreate) -> CategoryResponse:
    category = Category(name=data.name, slug=data.slug, description=data.description)
    db.add(category)
    await db.flush()
    logger.info("Created category id=%s slug=%r", category.id, category.slug)
    return CategoryResponse.model_validate(category)


async def update_category(
    db: AsyncSession, category_id: int, data: CategoryUpdate
) -> CategoryResponse:
    category = await db.get(Category, category_id)
    if category is None:
        raise NotFoundError("Category not found")

    provided = data.model_fields_set
    if "name" in provided:
        category.name = data.name
    if "slug" in provided:
        category.slug = data.slug
    if "description" in provided:
        category.description = data.description
    category.updated_at = utcnow()

    await db.flush()
    return CategoryResponse.model_validate(category)


async def delete_category(db: AsyncSession, category_id: int) -> SuccessResponse:
    """Unlink the category from every post, then delete it.  Posts stay."""
    category = await db.get(Category, category_id)
    if category is None:
        raise NotFoundError("Category not found")

    await db.execute(
        delete(blog_post_categories).where(blog_post_categories.c.category_id == category_id)
    )
    await db.delete(category)
    await db.flush()
    logger.info("Deleted category id=%s", category_id)
    return SuccessResponse(success=True)


async def get_categories(db: AsyncSession) -> list[CategoryResponse]:
    result = await db.execute(select(Category).order_by(Category.name))
    return [CategoryResponse.model_validate(c) for c in result.scalars().all()]


async def get_category_by_id(db: AsyncSession, category_id: int) -> CategoryResponse | None:
    category = await db.get(Category, category_id)
    return CategoryResponse.model_validate(category) if category else None


async def get_category_by_slug(db: AsyncSession, slug: str) -> CategoryResponse | None:
    result = await db.execute(select(Category).where(Category.slug == slug))
    category = result.scalar_one_or_none()
    return CategoryResponse.model_validate(category) if category else None
