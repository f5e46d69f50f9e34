"""Auth API router: register (traveller or operator), login, refresh, me."""

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from safari_connector.auth.dependencies import get_current_active_user
from safari_connector.auth.jwt import create_token_pair, decode_token
from safari_connector.auth.passwords import hash_password, verify_password
from safari_connector.config import settings
from safari_connector.database import get_db
from safari_connector.models.operator import Operator
from safari_connector.models.user import User
from safari_connector.schemas.auth import (
    AuthResponse,
    LoginRequest,
    OperatorRegisterRequest,
    RefreshRequest,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _create_user(db: AsyncSession, body: RegisterRequest, role: str) -> User:
    """Create a local account, rejecting duplicate emails with 409."""
    email = body.email.lower()
    result = await db.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        )

    user = User(
        email=email,
        hashed_password=hash_password(body.password),
        name=body.name,
        phone=body.phone,
        role=role,
    )
    db.add(user)
    await db.flush()
    return user


def _auth_response(user: User) -> AuthResponse:
    tokens = create_token_pair(str(user.id), user.role)
    return AuthResponse(
        user=UserResponse.model_validate(user),
        tokens=TokenResponse(**tokens),
    )


# ---------------------------------------------------------------------------
# POST /register
# ---------------------------------------------------------------------------


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, db: AsyncSession = Depends(get_db)) -> AuthResponse:
    """Register a traveller account with email and password."""
    user = await _create_user(db, body, "traveller")
    await db.refresh(user)
    logger.info("Traveller %s registered", user.id)
    return _auth_response(user)


@router.post("/register/operator", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register_operator(body: OperatorRegisterRequest, db: AsyncSession = Depends(get_db)) -> AuthResponse:
    """Register an operator account. The company profile starts as ``pending``."""
    user = await _create_user(db, body, "operator")

    operator = Operator(
        user_id=user.id,
        company_name=body.company_name,
        country=body.country,
        location=body.location,
        website=body.website,
        description=body.description,
        contact_email=user.email,
        phone=body.phone,
    )
    db.add(operator)
    await db.flush()
    await db.refresh(user)

    logger.info(
        "Operator %s (%s) registered; approval pending, notify %s",
        operator.id,
        operator.company_name,
        settings.admin_notification_email,
    )
    return _auth_response(user)


# ---------------------------------------------------------------------------
# POST /login
# ---------------------------------------------------------------------------


@router.post("/login", response_model=AuthResponse)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)) -> AuthResponse:
    """Authenticate with email and password."""
    result = await db.execute(select(User).where(User.email == body.email.lower()))
    user = result.scalar_one_or_none()

    # Reject: not found, or no matching password
    if user is None or not verify_password(body.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive",
        )

    return _auth_response(user)


# ---------------------------------------------------------------------------
# POST /refresh
# ---------------------------------------------------------------------------


@router.post("/refresh", response_model=TokenResponse)
async def refresh(body: RefreshRequest, db: AsyncSession = Depends(get_db)) -> TokenResponse:
    """Exchange a valid refresh token for a new token pair."""
    invalid = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired refresh token",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_token(body.refresh_token)
    except JWTError:
        raise invalid from None

    if payload.get("type") != "refresh" or payload.get("sub") is None:
        raise invalid

    try:
        user_id = uuid.UUID(payload["sub"])
    except ValueError:
        raise invalid from None

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return TokenResponse(**create_token_pair(str(user.id), user.role))


# ---------------------------------------------------------------------------
# GET /me
# ---------------------------------------------------------------------------


@router.get("/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_active_user)) -> UserResponse:
    """Return the currently authenticated user's profile."""
    return UserResponse.model_validate(current_user)
