import json
from datetime import datetime
from typing import Type, TypeVar

import structlog
from fastapi import APIRouter, Depends, Request, status
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.core.config import settings
from app.core.exceptions import AccountInactive, InvalidCredentials, ValidationFailed
from app.core.rate_limiter import limiter
from app.core.security import access_token_ttl_seconds, create_access_token, verify_password
from app.core.validation import field_errors_from_pydantic
from app.db.session import get_db
from app.models.token_blacklist import TokenBlacklist
from app.models.user import User
from app.schemas.token import RegisterResponse, Token
from app.schemas.user import RegisterRequest, UserLogin, UserResponse
from app.services.user_service import UserService
from app.utils.response import success

logger = structlog.get_logger()

router = APIRouter()

SchemaT = TypeVar("SchemaT", bound=BaseModel)


async def _parse_body(request: Request, schema: Type[SchemaT], status_code: int) -> SchemaT:
    """Validate the JSON body by hand so the failure status can differ per route."""
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationFailed(
            errors={"__root__": ["Request body must be valid JSON"]},
            status_code=status_code,
        )
    try:
        return schema.model_validate(payload)
    except ValidationError as exc:
        raise ValidationFailed(
            errors=field_errors_from_pydantic(exc.errors()),
            status_code=status_code,
        )


def _issue_token(user: User) -> Token:
    access_token = create_access_token(
        data={"sub": str(user.id), "role": user.role.value}
    )
    return Token(
        access_token=access_token,
        expires_in=access_token_ttl_seconds(),
        user=UserResponse.model_validate(user),
    )


def _blacklist_token(db: Session, payload: dict, reason: str) -> None:
    jti = payload.get("jti")
    user_id = payload.get("sub")
    exp = payload.get("exp")
    if not jti or not user_id or not exp:
        return

    existing = db.query(TokenBlacklist).filter(TokenBlacklist.jti == jti).first()
    if existing:
        return

    db.add(
        TokenBlacklist(
            jti=jti,
            user_id=user_id,
            expires_at=datetime.utcfromtimestamp(exp),
            reason=reason,
        )
    )


def _revoke_presented_token(request: Request, db: Session, user: User, reason: str) -> None:
    payload = getattr(request.state, "token_payload", None)
    if not payload:
        return
    payload = dict(payload, sub=user.id)
    _blacklist_token(db, payload, reason=reason)
    try:
        db.commit()
    except IntegrityError:
        # Same token revoked twice concurrently; the first write already holds.
        db.rollback()
    logger.info("token_revoked", user_id=str(user.id), reason=reason)


def _authenticate(db: Session, credentials: UserLogin) -> Token:
    user = db.query(User).filter(User.email == credentials.email).first()

    if not user or not verify_password(credentials.password, user.password_hash):
        logger.info("login_failed", email=credentials.email)
        raise InvalidCredentials()

    if not user.is_active:
        raise AccountInactive()

    logger.info("login_succeeded", user_id=str(user.id), role=user.role.value)
    return _issue_token(user)


def _register(db: Session, user_in: RegisterRequest) -> RegisterResponse:
    user = UserService.register(db, user_in, status_code=status.HTTP_400_BAD_REQUEST)
    return RegisterResponse(
        message="User successfully registered",
        user=UserResponse.model_validate(user),
    )


@router.post(
    "/login",
    response_model=Token,
    summary="Login user",
    description="""
Authenticates a user and returns a bearer token.

Behavior:
1. Validates the JSON payload (email, password)
2. Verifies credentials
3. Ensures user is active
4. Issues a JWT access token carrying a revocable JTI
""",
    responses={
        200: {"description": "Login successful"},
        401: {"description": "Invalid credentials"},
        403: {"description": "Account inactive"},
        422: {"description": "Validation error"},
    },
    tags=["Authentication"],
)
@limiter.limit(settings.AUTH_RATE_LIMIT)
async def login(request: Request, db: Session = Depends(get_db)):
    credentials = await _parse_body(request, UserLogin, status.HTTP_422_UNPROCESSABLE_ENTITY)
    # Store access and bcrypt run in the worker pool, off the event loop.
    return await run_in_threadpool(_authenticate, db, credentials)


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register user account",
    description="""
Creates a new user account.

Validation:
1. Email must be unique
2. Password must be confirmed with `password_confirmation`
3. Role defaults to client when omitted
""",
    responses={
        201: {"description": "Registration successful"},
        400: {"description": "Validation error"},
    },
    tags=["Authentication"],
)
@limiter.limit(settings.AUTH_RATE_LIMIT)
async def register(request: Request, db: Session = Depends(get_db)):
    user_in = await _parse_body(request, RegisterRequest, status.HTTP_400_BAD_REQUEST)
    return await run_in_threadpool(_register, db, user_in)


@router.post("/logout", tags=["Authentication"])
def logout(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    _revoke_presented_token(request, db, current_user, reason="logout")
    return success(message="User successfully signed out")


@router.post("/refresh", response_model=Token, tags=["Authentication"])
@limiter.limit(settings.AUTH_RATE_LIMIT)
def refresh_token(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    _revoke_presented_token(request, db, current_user, reason="refresh")
    return _issue_token(current_user)


@router.get("/user-profile", response_model=UserResponse, tags=["Authentication"])
def user_profile(current_user: User = Depends(get_current_user)):
    return current_user
