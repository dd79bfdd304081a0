from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from blogapi.config import settings
from blogapi.database import get_db
from blogapi.errors import AuthenticationRequiredError
from blogapi.models import PostStatus
from blogapi.permissions import AccessLevel, authorize
from blogapi.schemas import BlogPostQuery, PaginationQuery, UserResponse
from blogapi.services import auth_service

bearer_scheme = HTTPBearer(auto_error=False)


# ---------------------------------------------------------------------------
# Query parameters
# ---------------------------------------------------------------------------

def pagination_params(
    page: int = Query(1, ge=1, description="Page number (1-based)."),
    limit: int = Query(
        settings.DEFAULT_PAGE_SIZE,
        ge=1,
        le=settings.MAX_PAGE_SIZE,
        description=f"Items per page (max {settings.MAX_PAGE_SIZE}).",
    ),
) -> PaginationQuery:
    return PaginationQuery(page=page, limit=limit)


def post_query_params(
    pagination: PaginationQuery = Depends(pagination_params),
    status: PostStatus | None = Query(None, description="Exact status match."),
    author_id: int | None = Query(None),
    category_id: int | None = Query(None, description="Posts linked to this category."),
    tag_id: int | None = Query(None, description="Posts linked to this tag."),
    search: str | None = Query(
        None, description="Case-insensitive substring of title, content or excerpt."
    ),
) -> BlogPostQuery:
    return BlogPostQuery(
        page=pagination.page,
        limit=pagination.limit,
        status=status,
        author_id=author_id,
        category_id=category_id,
        tag_id=tag_id,
        search=search,
    )


# ---------------------------------------------------------------------------
# Authentication gates
# ---------------------------------------------------------------------------

async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    """
    Resolve the bearer token to an active user or raise 401.

    Missing, malformed, expired and tampered tokens, as well as tokens of
    deleted or deactivated users, are all rejected the same way.
    """
    if credentials is None:
        raise AuthenticationRequiredError()
    user = await auth_service.verify_token(db, credentials.credentials)
    if user is None:
        raise AuthenticationRequiredError("Invalid or expired token")
    return user


async def require_super_admin(
    user: UserResponse = Depends(get_current_user),
) -> UserResponse:
    authorize(user, AccessLevel.SUPER_ADMIN, detail="Super admin access required")
    return user
