"""Tag service: mirrors the category service without a description field."""
import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from blogapi.errors import NotFoundError
from blogapi.models import Tag, blog_post_tags, utcnow
from blogapi.schemas import SuccessResponse, TagCreate, TagResponse, TagUpdate

logger = logging.getLogger(__name__)


async def create_tag(db: AsyncSession, data: TagCreate) -> TagResponse:
    tag = Tag(name=data.name, slug=data.slug)
    db.add(tag)
    await db.flush()
    logger.info("Created tag id=%s slug=%r", tag.id, tag.slug)
    return TagResponse.model_validate(tag)


async def update_tag(db: AsyncSession, tag_id: int, data: TagUpdate) -> TagResponse:
    tag = await db.get(Tag, tag_id)
    if tag is None:
        raise NotFoundError("Tag not found")

    provided = data.model_fields_set
    if "name" in provided:
        tag.name = data.name
    if "slug" in provided:
        tag.slug = data.slug
    tag.updated_at = utcnow()

    await db.flush()
    return TagResponse.model_validate(tag)


async def delete_tag(db: AsyncSession, tag_id: int) -> SuccessResponse:
    tag = await db.get(Tag, tag_id)
    if tag is None:
        raise NotFoundError("Tag not found")

    await db.execute(delete(blog_post_tags).where(blog_post_tags.c.tag_id == tag_id))
    await db.delete(tag)
    await db.flush()
    logger.info("Deleted tag id=%s", tag_id)
    return SuccessResponse(success=True)


async def get_tags(db: AsyncSession) -> list[TagResponse]:
    result = await db.execute(select(Tag).order_by(Tag.name))
    return [TagResponse.model_validate(t) for t in result.scalars().all()]


async def get_tag_by_id(db: AsyncSession, tag_id: int) -> TagResponse | None:
    tag = await db.get(Tag, tag_id)
    return TagResponse.model_validate(tag) if tag else None


async def get_tag_by_slug(db: AsyncSession, slug: str) -> TagResponse | None:
    result = await db.execute(select(Tag).where(Tag.slug == slug))
    tag = result.scalar_one_or_none()
    return TagResponse.model_validate(tag) if tag else None
