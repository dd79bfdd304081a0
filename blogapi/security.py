"""
Password hashing and signed access tokens.

Passwords are hashed with Argon2id through passlib's ``CryptContext``;
PBKDF2-SHA256 stays verifiable as a deprecated fallback scheme.  Hashing
is CPU bound, so the async helpers push it onto the default executor
instead of blocking the event loop.

Access tokens are HS256-signed JWTs carrying the user id (``sub``),
email, role, ``iat`` and ``exp``.  Any decoding problem (bad structure,
signature mismatch, expiry) yields ``None`` rather than an exception.
"""
import asyncio
import logging
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from jose.utils import base64url_decode, base64url_encode
from passlib.context import CryptContext
from pydantic import BaseModel, ValidationError

from blogapi.config import settings

logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["argon2", "pbkdf2_sha256"],
    deprecated="pbkdf2_sha256",
    argon2__memory_cost=settings.ARGON2_MEMORY_COST,
    argon2__time_cost=settings.ARGON2_TIME_COST,
    argon2__parallelism=settings.ARGON2_PARALLELISM,
)


# ---------------------------------------------------------------------------
# Passwords
# ---------------------------------------------------------------------------

async def hash_password(password: str) -> str:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, pwd_context.hash, password)


async def verify_password(password: str, password_hash: str) -> bool:
    """Return True when *password* matches *password_hash*.

    A malformed stored hash is logged and treated as a mismatch.
    """
    loop = asyncio.get_running_loop()
    try:
        return await loop.run_in_executor(None, pwd_context.verify, password, password_hash)
    except ValueError:
        logger.exception("Stored password hash is corrupted or has an unknown format")
        return False


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------

class TokenPayload(BaseModel):
    user_id: int
    email: str
    role: str
    issued_at: datetime
    expires_at: datetime


def create_access_token(
    user_id: int,
    email: str,
    role: str,
    expires_delta: timedelta | None = None,
) -> str:
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(hours=settings.TOKEN_EXPIRE_HOURS))
    claims = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.TOKEN_ALGORITHM)


def _is_canonical(token: str) -> bool:
    """True when every segment is the unique base64url spelling of its bytes.

    The final character of a segment can carry unused bits that decoders
    drop, so two spellings may decode to the same signature.  Only the
    spelling the encoder would produce is accepted.
    """
    try:
        segments = token.encode("ascii").split(b".")
        return all(base64url_encode(base64url_decode(s)) == s for s in segments)
    except ValueError:
        return False


def decode_access_token(token: str) -> TokenPayload | None:
    """
    Verify the signature and expiry of *token* and return its claims.

    Returns None for anything that is not a structurally valid, correctly
    signed, unexpired token.
    """
    try:
        claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.TOKEN_ALGORITHM])
    except JWTError as exc:
        logger.debug("Rejected access token: %s", exc)
        return None
    if not _is_canonical(token):
        logger.debug("Rejected access token: non-canonical base64url segment")
        return None

    try:
        return TokenPayload(
            user_id=int(claims["sub"]),
            email=claims["email"],
            role=claims["role"],
            issued_at=datetime.fromtimestamp(claims["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
        )
    except (KeyError, TypeError, ValueError, ValidationError) as exc:
        logger.debug("Access token is missing required claims: %s", exc)
        return None
