"""Authentication module — deep module exposing FastAPI dependencies.

Public interface:
    ``require_auth``       — returns AuthContext or raises 401.
    ``require_permission`` — dependency factory, raises 403 unless the
                             caller's role holds the named permission.

When ``settings.auth_enabled`` is False every dependency acts as the first
active Admin user so the development workflow is unbroken. If no Admin user
exists yet the context carries ``user_id=None``; operations that record an
owner then fail with 401.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, FrozenSet, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import settings
from .permissions import RoleName, all_permissions
from .token_factory import TokenPayload, decode_token
from ..database import get_db
from ..exceptions import AuthenticationError, ForbiddenError

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthContext:
    """Resolved identity of the caller, available to every endpoint."""

    user_id: Optional[int]
    role: Optional[str]
    permissions: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def is_admin(self) -> bool:
        return self.role == RoleName.ADMIN.value

    def has_permission(self, permission: str) -> bool:
        return self.is_admin or permission in self.permissions

    def require_user_id(self) -> int:
        """The caller's user id, or 401 when acting without an account."""
        if self.user_id is None:
            raise AuthenticationError("An authenticated user is required for this operation")
        return self.user_id


def require_auth(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    db: Session = Depends(get_db),
) -> AuthContext:
    """Require a valid JWT and return the user's AuthContext.

    When ``AUTH_ENABLED=false`` returns the first active Admin's context.
    """
    if not settings.auth_enabled:
        return _dev_context(db)

    if credentials is None:
        raise AuthenticationError("Missing authentication token")

    payload = decode_token(
        credentials.credentials, settings.jwt_secret_key, settings.jwt_algorithm
    )
    if payload is None:
        raise AuthenticationError("Invalid or expired token")

    return _load_auth_context(payload, db)


def require_permission(permission: str) -> Callable[..., AuthContext]:
    """Build a dependency that requires *permission* on the caller's role.

    Usage::

        @router.post("", dependencies=[Depends(require_permission("create:orders"))])
    """

    def _check(auth: AuthContext = Depends(require_auth)) -> AuthContext:
        if not auth.has_permission(permission):
            logger.info(
                "Permission denied",
                extra={"user_id": auth.user_id, "permission": permission},
            )
            raise ForbiddenError(f"Missing permission: {permission}")
        return auth

    return _check


def _dev_context(db: Session) -> AuthContext:
    from ..repositories.user_repository import UserRepository

    admin = UserRepository(db).first_active_admin(RoleName.ADMIN.value)
    return AuthContext(
        user_id=admin.id if admin else None,
        role=RoleName.ADMIN.value,
        permissions=frozenset(all_permissions()),
    )


def _load_auth_context(payload: TokenPayload, db: Session) -> AuthContext:
    """Load the user and its role's permissions given a decoded token payload."""
    from ..repositories.user_repository import UserRepository

    if not payload.sub.isdigit():
        raise AuthenticationError("Invalid token subject")

    user = UserRepository(db).get_by_id_optional(int(payload.sub))
    if user is None:
        raise AuthenticationError("User not found")
    if not user.is_active:
        raise AuthenticationError("Account is deactivated")

    role = user.role
    return AuthContext(
        user_id=user.id,
        role=role.name if role else None,
        permissions=frozenset(role.permission_names if role and role.is_active else ()),
    )
