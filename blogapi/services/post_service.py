"""
Blog post service: business logic for the BlogPost aggregate.

Design notes
------------
- Ownership is decided by ``permissions.authorize``: the post's author or
  any super admin may update/delete it.
- Category and tag links live in plain association tables.  Whenever a
  write touches them the whole set for the post is deleted and
  re-inserted; there is no diffing.
- ``published_at`` follows the status: stamped on the transition into
  ``published``, cleared on a move back to ``draft``, untouched otherwise.
- List/detail reads use ``joinedload`` for the author (many-to-one) and
  ``selectinload`` for categories and tags.  ``populate_existing`` makes
  sure rows already in the identity map pick up association changes made
  earlier in the same session.
- Service functions flush but do not commit; the transaction boundary is
  owned by the ``get_db`` dependency, so a failed association insert rolls
  the post insert back with it.
"""
import logging
import math
from collections.abc import Iterable

from sqlalchemy import Table, delete, func, insert, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload, selectinload

from blogapi.errors import NotFoundError
from blogapi.models import (
    BlogPost,
    Category,
    PostStatus,
    Tag,
    User,
    UserRole,
    blog_post_categories,
    blog_post_tags,
    utcnow,
)
from blogapi.permissions import AccessLevel, Principal, authorize
from blogapi.schemas import (
    BlogPostCreate,
    BlogPostQuery,
    BlogPostResponse,
    BlogPostUpdate,
    BlogPostWithRelations,
    Page,
    SuccessResponse,
)

logger = logging.getLogger(__name__)

# Scalar columns a BlogPostUpdate may carry; status is handled separately
# because it drives published_at.
_UPDATABLE_FIELDS = ("title", "slug", "content", "excerpt", "featured_image_url")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _with_relations(stmt):
    return stmt.options(
        joinedload(BlogPost.author, innerjoin=True),
        selectinload(BlogPost.categories),
        selectinload(BlogPost.tags),
    ).execution_options(populate_existing=True)


async def _ensure_all_exist(db: AsyncSession, model, ids: Iterable[int], label: str) -> None:
    wanted = set(ids)
    if not wanted:
        return
    result = await db.execute(select(model.id).where(model.id.in_(wanted)))
    if len(set(result.scalars().all())) != len(wanted):
        raise NotFoundError(f"One or more {label} not found")


async def _replace_links(
    db: AsyncSession, table: Table, column: str, post_id: int, ids: Iterable[int]
) -> None:
    """Delete every link row of *post_id* in *table*, then insert *ids*."""
    await db.execute(delete(table).where(table.c.blog_post_id == post_id))
    rows = [{"blog_post_id": post_id, column: linked_id} for linked_id in dict.fromkeys(ids)]
    if rows:
        await db.execute(insert(table), rows)


async def _post_ids_linked_to(db: AsyncSession, table: Table, column: str, linked_id: int) -> set[int]:
    result = await db.execute(
        select(table.c.blog_post_id).where(table.c[column] == linked_id)
    )
    return set(result.scalars().all())


async def _get_post_for_write(
    db: AsyncSession, post_id: int, current_user_id: int, current_user_role: UserRole, action: str
) -> BlogPost:
    post = await db.get(BlogPost, post_id)
    if post is None:
        raise NotFoundError("Blog post not found")
    authorize(
        Principal(current_user_id, UserRole(current_user_role)),
        AccessLevel.OWNER_OR_SUPER_ADMIN,
        owner_id=post.author_id,
        detail=f"Permission denied: can only {action} your own posts",
    )
    return post


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

async def create_post(db: AsyncSession, data: BlogPostCreate, author_id: int) -> BlogPostResponse:
    """
    Create a post owned by *author_id* and link it to its categories/tags.

    Raises NotFoundError when the author, any category or any tag is
    missing; nothing is written in that case.
    """
    if await db.get(User, author_id) is None:
        raise NotFoundError("Author not found")
    await _ensure_all_exist(db, Category, data.category_ids, "categories")
    await _ensure_all_exist(db, Tag, data.tag_ids, "tags")

    post = BlogPost(
        title=data.title,
        slug=data.slug,
        content=data.content,
        excerpt=data.excerpt,
        featured_image_url=data.featured_image_url,
        status=data.status,
        published_at=utcnow() if data.status is PostStatus.PUBLISHED else None,
        author_id=author_id,
    )
    db.add(post)
    await db.flush()

    await _replace_links(db, blog_post_categories, "category_id", post.id, data.category_ids)
    await _replace_links(db, blog_post_tags, "tag_id", post.id, data.tag_ids)

    logger.info("Created blog post id=%s slug=%r author_id=%s", post.id, post.slug, author_id)
    return BlogPostResponse.model_validate(post)


async def update_post(
    db: AsyncSession,
    post_id: int,
    data: BlogPostUpdate,
    current_user_id: int,
    current_user_role: UserRole,
) -> BlogPostResponse:
    """
    Apply the fields present in *data* to the post.

    Only the owner or a super admin may update.  ``category_ids`` and
    ``tag_ids`` each replace the full link set when present.
    """
    post = await _get_post_for_write(db, post_id, current_user_id, current_user_role, "update")
    provided = data.model_fields_set

    if "category_ids" in provided:
        await _ensure_all_exist(db, Category, data.category_ids, "categories")
    if "tag_ids" in provided:
        await _ensure_all_exist(db, Tag, data.tag_ids, "tags")

    for field in _UPDATABLE_FIELDS:
        if field in provided:
            setattr(post, field, getattr(data, field))

    if "status" in provided:
        if data.status is PostStatus.PUBLISHED and post.status is PostStatus.DRAFT:
            post.published_at = utcnow()
        elif data.status is PostStatus.DRAFT:
            post.published_at = None
        post.status = data.status

    post.updated_at = utcnow()
    await db.flush()

    if "category_ids" in provided:
        await _replace_links(db, blog_post_categories, "category_id", post.id, data.category_ids)
    if "tag_ids" in provided:
        await _replace_links(db, blog_post_tags, "tag_id", post.id, data.tag_ids)

    logger.info("Updated blog post id=%s fields=%s", post.id, sorted(provided))
    return BlogPostResponse.model_validate(post)


async def delete_post(
    db: AsyncSession, post_id: int, current_user_id: int, current_user_role: UserRole
) -> SuccessResponse:
    post = await _get_post_for_write(db, post_id, current_user_id, current_user_role, "delete")
    # Link rows go with the post via ON DELETE CASCADE.
    await db.delete(post)
    await db.flush()
    logger.info("Deleted blog post id=%s", post_id)
    return SuccessResponse(success=True)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

async def get_posts(db: AsyncSession, query: BlogPostQuery) -> Page[BlogPostWithRelations]:
    """
    Return one page of posts matching every filter in *query*, newest first.

    Category and tag filters are resolved to sets of post ids first; when
    their intersection is empty the function returns an empty page without
    running the main query.
    """
    conditions = []
    if query.status is not None:
        conditions.append(BlogPost.status == query.status)
    if query.author_id is not None:
        conditions.append(BlogPost.author_id == query.author_id)
    if query.search:
        conditions.append(
            or_(
                BlogPost.title.icontains(query.search, autoescape=True),
                BlogPost.content.icontains(query.search, autoescape=True),
                BlogPost.excerpt.icontains(query.search, autoescape=True),
            )
        )

    candidate_ids: set[int] | None = None
    if query.category_id is not None:
        candidate_ids = await _post_ids_linked_to(
            db, blog_post_categories, "category_id", query.category_id
        )
    if query.tag_id is not None:
        tagged = await _post_ids_linked_to(db, blog_post_tags, "tag_id", query.tag_id)
        candidate_ids = tagged if candidate_ids is None else candidate_ids & tagged

    if candidate_ids is not None:
        if not candidate_ids:
            return Page[BlogPostWithRelations](
                items=[], total=0, page=query.page, limit=query.limit, total_pages=0
            )
        conditions.append(BlogPost.id.in_(candidate_ids))

    count_q = select(func.count()).select_from(BlogPost).where(*conditions)
    total: int = (await db.execute(count_q)).scalar_one()

    posts_q = _with_relations(
        select(BlogPost)
        .where(*conditions)
        .order_by(BlogPost.created_at.desc(), BlogPost.id.desc())
        .offset(query.offset)
        .limit(query.limit)
    )
    result = await db.execute(posts_q)
    posts = result.unique().scalars().all()

    return Page[BlogPostWithRelations](
        items=[BlogPostWithRelations.model_validate(p) for p in posts],
        total=total,
        page=query.page,
        limit=query.limit,
        total_pages=math.ceil(total / query.limit),
    )


async def get_my_posts(
    db: AsyncSession, author_id: int, query: BlogPostQuery
) -> Page[BlogPostWithRelations]:
    """Same as ``get_posts`` but always restricted to *author_id*."""
    return await get_posts(db, query.model_copy(update={"author_id": author_id}))


async def _get_one(db: AsyncSession, condition) -> BlogPostWithRelations | None:
    result = await db.execute(_with_relations(select(BlogPost).where(condition)))
    post = result.unique().scalar_one_or_none()
    if post is None:
        return None
    return BlogPostWithRelations.model_validate(post)


async def get_post_by_id(db: AsyncSession, post_id: int) -> BlogPostWithRelations | None:
    return await _get_one(db, BlogPost.id == post_id)


async def get_post_by_slug(db: AsyncSession, slug: str) -> BlogPostWithRelations | None:
    return await _get_one(db, BlogPost.slug == slug)
