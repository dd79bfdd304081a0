"""
Direct service-layer tests: exercises business logic without HTTP overhead.

These tests call the services with a database session, covering the
association rewrites, the published_at state machine, the filter
combinations, ownership, token verification and the access policy.
"""
from datetime import timedelta

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from blogapi.errors import (
    AccountDeactivatedError,
    AuthenticationRequiredError,
    InvalidCredentialsError,
    NotFoundError,
    PermissionDeniedError,
)
from blogapi.models import PostStatus, UserRole, blog_post_categories, blog_post_tags
from blogapi.permissions import AccessLevel, Principal, authorize
from blogapi.schemas import (
    BlogPostCreate,
    BlogPostQuery,
    BlogPostUpdate,
    CategoryCreate,
    PaginationQuery,
    TagCreate,
    UserCreate,
    UserUpdate,
)
from blogapi.services import auth_service, category_service, post_service, tag_service, user_service


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def _create_user(db: AsyncSession, username: str = "svcuser", role=UserRole.AUTHOR):
    return await user_service.create_user(db, UserCreate(
        email=f"{username}@example.com",
        username=username,
        password="service-password",
        first_name="Service",
        last_name="User",
        role=role,
    ))


async def _create_taxonomy(db: AsyncSession):
    news = await category_service.create_category(db, CategoryCreate(name="News", slug="news"))
    guides = await category_service.create_category(db, CategoryCreate(name="Guides", slug="guides"))
    python = await tag_service.create_tag(db, TagCreate(name="Python", slug="python"))
    sql = await tag_service.create_tag(db, TagCreate(name="SQL", slug="sql"))
    return news, guides, python, sql


def _post(slug: str, category_ids, tag_ids=(), status=PostStatus.DRAFT, **extra) -> BlogPostCreate:
    return BlogPostCreate(
        title=extra.pop("title", slug.replace("-", " ").title()),
        slug=slug,
        content=extra.pop("content", f"Body of {slug}"),
        status=status,
        category_ids=list(category_ids),
        tag_ids=list(tag_ids),
        **extra,
    )


async def _link_count(db: AsyncSession, table, post_id: int) -> int:
    result = await db.execute(
        select(func.count()).select_from(table).where(table.c.blog_post_id == post_id)
    )
    return result.scalar_one()


# ---------------------------------------------------------------------------
# create_post
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_post_links_categories_and_tags(db_session: AsyncSession):
    user = await _create_user(db_session)
    news, guides, python, _ = await _create_taxonomy(db_session)

    created = await post_service.create_post(
        db_session, _post("hello-world", [news.id, guides.id], [python.id]), user.id
    )
    assert created.author_id == user.id
    assert created.status is PostStatus.DRAFT
    assert created.published_at is None

    detail = await post_service.get_post_by_id(db_session, created.id)
    assert detail.author.id == user.id
    assert [c.slug for c in detail.categories] == ["guides", "news"]
    assert [t.slug for t in detail.tags] == ["python"]


@pytest.mark.asyncio
async def test_create_published_post_sets_published_at(db_session: AsyncSession):
    user = await _create_user(db_session)
    news, *_ = await _create_taxonomy(db_session)

    created = await post_service.create_post(
        db_session, _post("live", [news.id], status=PostStatus.PUBLISHED), user.id
    )
    assert created.published_at is not None


@pytest.mark.asyncio
async def test_reloaded_timestamps_are_utc_aware(db_session: AsyncSession):
    user = await _create_user(db_session)
    news, *_ = await _create_taxonomy(db_session)
    created = await post_service.create_post(
        db_session, _post("stamped", [news.id], status=PostStatus.PUBLISHED), user.id
    )
    await db_session.commit()

    # populate_existing forces the columns to be re-read from the database.
    reloaded = await post_service.get_post_by_id(db_session, created.id)
    for value in (reloaded.created_at, reloaded.updated_at, reloaded.published_at):
        assert value.utcoffset() == timedelta(0)
    assert reloaded.published_at == created.published_at
    assert reloaded.created_at == created.created_at
    assert reloaded.author.created_at.utcoffset() == timedelta(0)


@pytest.mark.asyncio
async def test_create_post_unknown_category_writes_nothing(db_session: AsyncSession):
    user = await _create_user(db_session)
    news, *_ = await _create_taxonomy(db_session)

    with pytest.raises(NotFoundError, match="categories"):
        await post_service.create_post(db_session, _post("ghost", [news.id, 999]), user.id)

    page = await post_service.get_posts(db_session, BlogPostQuery())
    assert page.total == 0


@pytest.mark.asyncio
async def test_create_post_unknown_tag_raises(db_session: AsyncSession):
    user = await _create_user(db_session)
    news, *_ = await _create_taxonomy(db_session)

    with pytest.raises(NotFoundError, match="tags"):
        await post_service.create_post(db_session, _post("ghost", [news.id], [404]), user.id)


@pytest.mark.asyncio
async def test_create_post_unknown_author_raises(db_session: AsyncSession):
    news, *_ = await _create_taxonomy(db_session)
    with pytest.raises(NotFoundError, match="Author"):
        await post_service.create_post(db_session, _post("orphan", [news.id]), 12345)


@pytest.mark.asyncio
async def test_create_post_collapses_duplicate_ids(db_session: AsyncSession):
    user = await _create_user(db_session)
    news, _, python, _ = await _create_taxonomy(db_session)

    created = await post_service.create_post(
        db_session, _post("dupes", [news.id, news.id], [python.id, python.id]), user.id
    )
    assert await _link_count(db_session, blog_post_categories, created.id) == 1
    assert await _link_count(db_session, blog_post_tags, created.id) == 1


# ---------------------------------------------------------------------------
# update_post
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_published_at_follows_status_transitions(db_session: AsyncSession):
    user = await _create_user(db_session)
    news, *_ = await _create_taxonomy(db_session)
    post = await post_service.create_post(db_session, _post("cycle", [news.id]), user.id)

    published = await post_service.update_post(
        db_session, post.id, BlogPostUpdate(status=PostStatus.PUBLISHED), user.id, UserRole.AUTHOR
    )
    assert published.published_at is not None
    first_published_at = published.published_at

    # Re-publishing an already published post keeps the original timestamp.
    again = await post_service.update_post(
        db_session, post.id, BlogPostUpdate(status=PostStatus.PUBLISHED), user.id, UserRole.AUTHOR
    )
    assert again.published_at == first_published_at

    # Unrelated edits leave it alone too.
    edited = await post_service.update_post(
        db_session, post.id, BlogPostUpdate(title="Renamed"), user.id, UserRole.AUTHOR
    )
    assert edited.title == "Renamed"
    assert edited.published_at == first_published_at

    drafted = await post_service.update_post(
        db_session, post.id, BlogPostUpdate(status=PostStatus.DRAFT), user.id, UserRole.AUTHOR
    )
    assert drafted.status is PostStatus.DRAFT
    assert drafted.published_at is None


@pytest.mark.asyncio
async def test_update_replaces_association_sets(db_session: AsyncSession):
    user = await _create_user(db_session)
    news, guides, python, sql = await _create_taxonomy(db_session)
    post = await post_service.create_post(
        db_session, _post("swap", [news.id], [python.id]), user.id
    )

    await post_service.update_post(
        db_session,
        post.id,
        BlogPostUpdate(category_ids=[guides.id], tag_ids=[sql.id, python.id]),
        user.id,
        UserRole.AUTHOR,
    )
    detail = await post_service.get_post_by_id(db_session, post.id)
    assert [c.slug for c in detail.categories] == ["guides"]
    assert [t.slug for t in detail.tags] == ["python", "sql"]


@pytest.mark.asyncio
async def test_update_with_empty_tag_list_clears_tags(db_session: AsyncSession):
    user = await _create_user(db_session)
    news, _, python, _ = await _create_taxonomy(db_session)
    post = await post_service.create_post(
        db_session, _post("untag", [news.id], [python.id]), user.id
    )

    await post_service.update_post(
        db_session, post.id, BlogPostUpdate(tag_ids=[]), user.id, UserRole.AUTHOR
    )
    assert await _link_count(db_session, blog_post_tags, post.id) == 0
    # Categories were not in the payload and stay linked.
    assert await _link_count(db_session, blog_post_categories, post.id) == 1


@pytest.mark.asyncio
async def test_update_by_non_owner_is_denied(db_session: AsyncSession):
    owner = await _create_user(db_session, "owner")
    intruder = await _create_user(db_session, "intruder")
    news, *_ = await _create_taxonomy(db_session)
    post = await post_service.create_post(db_session, _post("mine", [news.id]), owner.id)

    with pytest.raises(PermissionDeniedError):
        await post_service.update_post(
            db_session, post.id, BlogPostUpdate(title="Hijacked"), intruder.id, UserRole.AUTHOR
        )


@pytest.mark.asyncio
async def test_super_admin_may_update_any_post(db_session: AsyncSession):
    owner = await _create_user(db_session, "owner")
    admin = await _create_user(db_session, "boss", role=UserRole.SUPER_ADMIN)
    news, *_ = await _create_taxonomy(db_session)
    post = await post_service.create_post(db_session, _post("edited", [news.id]), owner.id)

    updated = await post_service.update_post(
        db_session, post.id, BlogPostUpdate(title="Moderated"), admin.id, UserRole.SUPER_ADMIN
    )
    assert updated.title == "Moderated"
    assert updated.author_id == owner.id


@pytest.mark.asyncio
async def test_update_missing_post_raises_not_found(db_session: AsyncSession):
    with pytest.raises(NotFoundError):
        await post_service.update_post(
            db_session, 999, BlogPostUpdate(title="x"), 1, UserRole.SUPER_ADMIN
        )


# ---------------------------------------------------------------------------
# delete_post
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_delete_post_removes_link_rows(db_session: AsyncSession):
    user = await _create_user(db_session)
    news, _, python, _ = await _create_taxonomy(db_session)
    post = await post_service.create_post(
        db_session, _post("bye", [news.id], [python.id]), user.id
    )

    result = await post_service.delete_post(db_session, post.id, user.id, UserRole.AUTHOR)
    assert result.success is True
    assert await post_service.get_post_by_id(db_session, post.id) is None
    assert await _link_count(db_session, blog_post_categories, post.id) == 0
    assert await _link_count(db_session, blog_post_tags, post.id) == 0
    # The category itself survives.
    assert await category_service.get_category_by_id(db_session, news.id) is not None


@pytest.mark.asyncio
async def test_delete_by_non_owner_is_denied(db_session: AsyncSession):
    owner = await _create_user(db_session, "owner")
    intruder = await _create_user(db_session, "intruder")
    news, *_ = await _create_taxonomy(db_session)
    post = await post_service.create_post(db_session, _post("keep", [news.id]), owner.id)

    with pytest.raises(PermissionDeniedError):
        await post_service.delete_post(db_session, post.id, intruder.id, UserRole.AUTHOR)
    assert await post_service.get_post_by_id(db_session, post.id) is not None


# ---------------------------------------------------------------------------
# get_posts
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_get_posts_empty(db_session: AsyncSession):
    page = await post_service.get_posts(db_session, BlogPostQuery())
    assert page.total == 0
    assert page.items == []
    assert page.total_pages == 0


@pytest.mark.asyncio
async def test_get_posts_paginates_newest_first(db_session: AsyncSession):
    user = await _create_user(db_session)
    news, *_ = await _create_taxonomy(db_session)
    for slug in ("first", "second", "third"):
        await post_service.create_post(db_session, _post(slug, [news.id]), user.id)

    page1 = await post_service.get_posts(db_session, BlogPostQuery(page=1, limit=2))
    assert page1.total == 3
    assert page1.total_pages == 2
    assert [p.slug for p in page1.items] == ["third", "second"]

    page2 = await post_service.get_posts(db_session, BlogPostQuery(page=2, limit=2))
    assert [p.slug for p in page2.items] == ["first"]
    assert page2.page == 2


@pytest.mark.asyncio
async def test_get_posts_filters(db_session: AsyncSession):
    alice = await _create_user(db_session, "alice")
    bob = await _create_user(db_session, "bobby")
    news, guides, python, sql = await _create_taxonomy(db_session)

    await post_service.create_post(
        db_session,
        _post("py-news", [news.id], [python.id], status=PostStatus.PUBLISHED,
              title="Python 4 announced"),
        alice.id,
    )
    await post_service.create_post(
        db_session, _post("sql-guide", [guides.id], [sql.id], content="Indexing 100% explained"),
        alice.id,
    )
    await post_service.create_post(
        db_session, _post("py-guide", [guides.id], [python.id]), bob.id
    )

    async def slugs(**filters):
        page = await post_service.get_posts(db_session, BlogPostQuery(**filters))
        return sorted(p.slug for p in page.items)

    assert await slugs(status=PostStatus.PUBLISHED) == ["py-news"]
    assert await slugs(author_id=alice.id) == ["py-news", "sql-guide"]
    assert await slugs(category_id=guides.id) == ["py-guide", "sql-guide"]
    assert await slugs(tag_id=python.id) == ["py-guide", "py-news"]
    assert await slugs(category_id=guides.id, tag_id=python.id) == ["py-guide"]
    assert await slugs(category_id=news.id, tag_id=sql.id) == []
    assert await slugs(search="PYTHON") == ["py-news"]
    # LIKE wildcards in the term are matched literally.
    assert await slugs(search="100%") == ["sql-guide"]
    assert await slugs(search="%") == ["sql-guide"]


@pytest.mark.asyncio
async def test_get_my_posts_ignores_requested_author(db_session: AsyncSession):
    alice = await _create_user(db_session, "alice")
    bob = await _create_user(db_session, "bobby")
    news, *_ = await _create_taxonomy(db_session)
    await post_service.create_post(db_session, _post("alice-post", [news.id]), alice.id)
    await post_service.create_post(db_session, _post("bob-post", [news.id]), bob.id)

    page = await post_service.get_my_posts(db_session, alice.id, BlogPostQuery(author_id=bob.id))
    assert [p.slug for p in page.items] == ["alice-post"]


@pytest.mark.asyncio
async def test_get_post_by_slug(db_session: AsyncSession):
    user = await _create_user(db_session)
    news, *_ = await _create_taxonomy(db_session)
    await post_service.create_post(db_session, _post("by-slug", [news.id]), user.id)

    found = await post_service.get_post_by_slug(db_session, "by-slug")
    assert found is not None
    assert found.author.username == "svcuser"
    assert await post_service.get_post_by_slug(db_session, "nope") is None


# ---------------------------------------------------------------------------
# Cascades from users and taxonomy
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_delete_user_cascades_to_posts(db_session: AsyncSession):
    user = await _create_user(db_session)
    news, *_ = await _create_taxonomy(db_session)
    post = await post_service.create_post(db_session, _post("doomed", [news.id]), user.id)

    await user_service.delete_user(db_session, user.id)
    assert await post_service.get_post_by_id(db_session, post.id) is None


@pytest.mark.asyncio
async def test_delete_tag_unlinks_posts(db_session: AsyncSession):
    user = await _create_user(db_session)
    news, _, python, _ = await _create_taxonomy(db_session)
    post = await post_service.create_post(
        db_session, _post("tagged", [news.id], [python.id]), user.id
    )

    await tag_service.delete_tag(db_session, python.id)
    detail = await post_service.get_post_by_id(db_session, post.id)
    assert detail is not None
    assert detail.tags == []


# ---------------------------------------------------------------------------
# user_service / auth_service
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_get_users_pages_past_the_end(db_session: AsyncSession):
    for name in ("user-a", "user-b", "user-c"):
        await _create_user(db_session, name)

    first = await user_service.get_users(db_session, PaginationQuery(page=1, limit=2))
    assert len(first.items) == 2
    assert first.total_pages == 2

    second = await user_service.get_users(db_session, PaginationQuery(page=2, limit=2))
    assert [u.username for u in second.items] == ["user-c"]

    beyond = await user_service.get_users(db_session, PaginationQuery(page=10, limit=2))
    assert beyond.items == []
    assert beyond.total == 3


@pytest.mark.asyncio
async def test_update_user_rehashes_password(db_session: AsyncSession):
    user = await _create_user(db_session)
    await user_service.update_user(db_session, user.id, UserUpdate(password="another-secret"))

    assert (await auth_service.login(db_session, user.email, "another-secret")).user.id == user.id
    with pytest.raises(InvalidCredentialsError):
        await auth_service.login(db_session, user.email, "service-password")


@pytest.mark.asyncio
async def test_verify_token_follows_account_state(db_session: AsyncSession):
    user = await _create_user(db_session)
    token = (await auth_service.login(db_session, user.email, "service-password")).token

    verified = await auth_service.verify_token(db_session, token)
    assert verified.id == user.id

    await user_service.update_user(db_session, user.id, UserUpdate(is_active=False))
    assert await auth_service.verify_token(db_session, token) is None
    # The plain lookup does not filter on is_active.
    assert (await auth_service.get_current_user(db_session, user.id)).is_active is False

    await user_service.delete_user(db_session, user.id)
    assert await auth_service.verify_token(db_session, token) is None


@pytest.mark.asyncio
async def test_login_deactivated_raises(db_session: AsyncSession):
    user = await _create_user(db_session)
    await user_service.update_user(db_session, user.id, UserUpdate(is_active=False))
    with pytest.raises(AccountDeactivatedError):
        await auth_service.login(db_session, user.email, "service-password")


# ---------------------------------------------------------------------------
# permissions.authorize
# ---------------------------------------------------------------------------

def test_authorize_levels():
    admin = Principal(1, UserRole.SUPER_ADMIN)
    author = Principal(2, UserRole.AUTHOR)

    authorize(None, AccessLevel.PUBLIC)
    authorize(author, AccessLevel.AUTHENTICATED)
    authorize(author, AccessLevel.OWNER_OR_SUPER_ADMIN, owner_id=2)
    authorize(admin, AccessLevel.OWNER_OR_SUPER_ADMIN, owner_id=2)
    authorize(admin, AccessLevel.SUPER_ADMIN)

    with pytest.raises(AuthenticationRequiredError):
        authorize(None, AccessLevel.AUTHENTICATED)
    with pytest.raises(PermissionDeniedError):
        authorize(author, AccessLevel.OWNER_OR_SUPER_ADMIN, owner_id=1)
    with pytest.raises(PermissionDeniedError, match="admins only"):
        authorize(author, AccessLevel.SUPER_ADMIN, detail="admins only")
