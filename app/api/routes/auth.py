"""Authentication endpoints."""

import logging

from fastapi import APIRouter, status

from app.core.dependencies import Auth, CurrentClaims
from app.schemas.user import (
    Claims,
    MessageResponse,
    RefreshRequest,
    TokenResponse,
    UserCreate,
    UserLogin,
    UserResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter()


# ─────────────────────────────────────────────
# Register
# ─────────────────────────────────────────────

@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(user_data: UserCreate, auth: Auth):
    """
    Register a new user.
    Fails with 409 if the nickname is taken.
    """
    return await auth.register(user_data)


# ─────────────────────────────────────────────
# Login
# ─────────────────────────────────────────────

@router.post("/login", response_model=TokenResponse)
async def login(credentials: UserLogin, auth: Auth):
    """
    Authenticate a user.
    Returns access and refresh tokens.
    """
    return await auth.login(credentials)


# ─────────────────────────────────────────────
# Refresh Token (Rotation)
# ─────────────────────────────────────────────

@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(body: RefreshRequest, auth: Auth):
    """
    Exchange a refresh token for a new access + refresh pair.
    The presented refresh token is consumed.
    """
    return await auth.refresh(body.refresh_token)


# ─────────────────────────────────────────────
# Logout
# ─────────────────────────────────────────────

@router.post("/logout", response_model=MessageResponse)
async def logout(body: RefreshRequest, auth: Auth):
    """Delete the refresh session. Succeeds even if it is already gone."""
    await auth.logout(body.refresh_token)
    return MessageResponse(message="Logged out successfully")


# ─────────────────────────────────────────────
# Current Identity
# ─────────────────────────────────────────────

@router.get("/me", response_model=Claims)
async def get_current_identity(claims: CurrentClaims):
    """Return the claims of the presented access token."""
    return claims
