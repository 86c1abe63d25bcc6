import structlog
from datetime import datetime
from typing import Callable, Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.core.exceptions import AccountInactive, Unauthenticated
from app.core.roles import authorize
from app.core.security import decode_token
from app.db.session import get_db
from app.models.token_blacklist import TokenBlacklist
from app.models.user import User, UserRole
from app.utils.ids import parse_uuid

logger = structlog.get_logger()


def _is_token_revoked(db: Session, jti: Optional[str]) -> bool:
    if not jti:
        return True
    return (
        db.query(TokenBlacklist)
        .filter(
            TokenBlacklist.jti == jti,
            TokenBlacklist.expires_at > datetime.utcnow(),
        )
        .first()
        is not None
    )


def _extract_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1].strip() or None
    return request.cookies.get("access_token")


def get_optional_user(
    request: Request,
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Resolve the principal from a bearer header or cookie.

    No token at all yields ``None``; a token that is present but unusable raises.
    The decoded payload is kept on ``request.state`` so logout and refresh can
    revoke exactly the token that was presented.
    """
    token = _extract_token(request)
    if not token:
        return None

    payload = decode_token(token)
    if _is_token_revoked(db, payload.get("jti")):
        raise Unauthenticated("Token has been revoked")

    user_id = parse_uuid(payload.get("sub"))
    user = db.query(User).filter(User.id == user_id).first() if user_id else None
    if not user:
        raise Unauthenticated("Invalid authentication credentials")

    if not user.is_active:
        raise AccountInactive()

    request.state.token_payload = payload
    return user


def get_current_user(
    current_user: Optional[User] = Depends(get_optional_user),
) -> User:
    if current_user is None:
        raise Unauthenticated()
    return current_user


def require_roles(spec: str) -> Callable[..., User]:
    """Dependency factory gating a route on a pipe-delimited role spec."""

    def role_guard(
        request: Request,
        principal: Optional[User] = Depends(get_optional_user),
    ) -> User:
        user = authorize(principal, spec)
        if user.role == UserRole.ADMIN:
            logger.info(
                "admin_action",
                action=f"{request.method} {request.url.path}",
                admin_user_id=str(user.id),
            )
        return user

    return role_guard


require_admin = require_roles(UserRole.ADMIN.value)
require_seller_or_admin = require_roles(f"{UserRole.SELLER.value}|{UserRole.ADMIN.value}")
