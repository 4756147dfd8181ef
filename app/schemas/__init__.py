"""Pydantic schemas for API request/response validation."""

from app.schemas.user import (
    UserCreate,
    UserLogin,
    UserResponse,
    RefreshRequest,
    TokenResponse,
    Claims,
    MessageResponse,
)
from app.schemas.hieroglyph import HieroglyphCreate, HieroglyphResponse

__all__ = [
    "UserCreate",
    "UserLogin",
    "UserResponse",
    "RefreshRequest",
    "TokenResponse",
    "Claims",
    "MessageResponse",
    "HieroglyphCreate",
    "HieroglyphResponse",
]
