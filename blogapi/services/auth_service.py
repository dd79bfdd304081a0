"""
Auth service: login, token verification and current-user lookup.

``verify_token`` refuses deactivated accounts while ``get_current_user``
does not filter on ``is_active``.  The difference is kept on purpose
(a deactivated user holding the id can still read their own record) and
is listed as an open product question in DESIGN.md.
"""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from blogapi.errors import AccountDeactivatedError, InvalidCredentialsError
from blogapi.models import User
from blogapi.schemas import AuthResponse, UserResponse
from blogapi.security import create_access_token, decode_access_token, verify_password

logger = logging.getLogger(__name__)


async def login(db: AsyncSession, email: str, password: str) -> AuthResponse:
    """
    Check *email*/*password* and issue an access token.

    Unknown email and wrong password raise the same InvalidCredentialsError;
    a deactivated account raises AccountDeactivatedError.
    """
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if user is None:
        logger.info("Login failed: unknown email")
        raise InvalidCredentialsError()
    if not user.is_active:
        logger.info("Login refused for deactivated user id=%s", user.id)
        raise AccountDeactivatedError()
    if not await verify_password(password, user.password_hash):
        logger.info("Login failed: bad password for user id=%s", user.id)
        raise InvalidCredentialsError()

    token = create_access_token(user.id, user.email, user.role.value)
    logger.info("User id=%s logged in", user.id)
    return AuthResponse(user=UserResponse.model_validate(user), token=token)


async def verify_token(db: AsyncSession, token: str) -> UserResponse | None:
    """
    Return the active user a valid token refers to, else None.

    The user is re-read on every call, so deleting or deactivating an
    account invalidates tokens issued before the change.
    """
    payload = decode_access_token(token)
    if payload is None:
        return None

    user = await db.get(User, payload.user_id, populate_existing=True)
    if user is None or not user.is_active:
        return None
    return UserResponse.model_validate(user)


async def get_current_user(db: AsyncSession, user_id: int) -> UserResponse | None:
    user = await db.get(User, user_id)
    return UserResponse.model_validate(user) if user else None
