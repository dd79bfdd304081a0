"""Role-based access policy shared by the router gates and the services."""
import enum
from typing import NamedTuple, Protocol

from blogapi.errors import AuthenticationRequiredError, PermissionDeniedError
from blogapi.models import UserRole


class Actor(Protocol):
    id: int
    role: UserRole


class Principal(NamedTuple):
    """Bare (id, role) pair for callers that do not hold a User row."""

    id: int
    role: UserRole


class AccessLevel(enum.Enum):
    PUBLIC = "public"
    AUTHENTICATED = "authenticated"
    OWNER_OR_SUPER_ADMIN = "owner_or_super_admin"
    SUPER_ADMIN = "super_admin"


def is_super_admin(role: UserRole | str) -> bool:
    return UserRole(role) is UserRole.SUPER_ADMIN


def authorize(
    actor: Actor | None,
    level: AccessLevel,
    owner_id: int | None = None,
    detail: str | None = None,
) -> None:
    """
    Raise unless *actor* satisfies *level*.

    ``OWNER_OR_SUPER_ADMIN`` compares *owner_id* against the actor's id;
    super admins pass every level.
    """
    if level is AccessLevel.PUBLIC:
        return
    if actor is None:
        raise AuthenticationRequiredError()
    if level is AccessLevel.AUTHENTICATED or is_super_admin(actor.role):
        return
    if level is AccessLevel.OWNER_OR_SUPER_ADMIN and owner_id == actor.id:
        return
    raise PermissionDeniedError(detail)
