"""Authentication module — FastAPI dependencies.

Public interface:
    ``require_auth``        — returns AuthContext or raises 401.
    ``require_admin``       — returns AuthContext, raises 403 unless admin
                              or super admin.
    ``require_super_admin`` — returns AuthContext, raises 403 unless super admin.

The role is always re-read from the database; the role claim inside the token
is informational only.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import settings
from .token_factory import TokenPayload, decode_token
from ..database import get_db
from ..exceptions import AuthenticationError, ForbiddenError
from ..models.user import ROLE_ADMIN, ROLE_SUPER_ADMIN

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthContext:
    """Resolved identity available to every endpoint.

    Every file, folder, tag and search query is scoped to ``user_id``.
    """

    user_id: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role in (ROLE_ADMIN, ROLE_SUPER_ADMIN)

    @property
    def is_super_admin(self) -> bool:
        return self.role == ROLE_SUPER_ADMIN


def require_auth(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    db: Session = Depends(get_db),
) -> AuthContext:
    """Require a valid bearer token and return the caller's AuthContext."""
    if credentials is None:
        raise AuthenticationError("Missing authentication token")

    payload = decode_token(
        credentials.credentials, settings.jwt_secret_key, settings.jwt_algorithm
    )
    if payload is None:
        raise AuthenticationError("Invalid or expired token")

    return _load_auth_context(payload, db)


def require_admin(
    auth: AuthContext = Depends(require_auth),
) -> AuthContext:
    """Require the authenticated user to be an admin. Raises 403 otherwise."""
    if not auth.is_admin:
        raise ForbiddenError("Admin access required")
    return auth


def require_super_admin(
    auth: AuthContext = Depends(require_auth),
) -> AuthContext:
    """Require the authenticated user to be a super admin. Raises 403 otherwise."""
    if not auth.is_super_admin:
        raise ForbiddenError("Super admin access required")
    return auth


def _load_auth_context(payload: TokenPayload, db: Session) -> AuthContext:
    """Load the user named by a decoded token payload."""
    from ..models.user import User

    user = db.query(User).filter(User.id == payload.sub).first()
    if user is None:
        logger.info("Token for unknown user rejected", extra={"user_id": payload.sub})
        raise AuthenticationError("User not found")

    return AuthContext(user_id=user.id, role=user.role)
