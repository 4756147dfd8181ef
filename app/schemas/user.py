"""User and token schemas for API validation."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from app.core.security import MAX_PASSWORD_BYTES, password_fits
from app.models.user import UserRole


class UserCreate(BaseModel):
    """Schema for user registration."""
    nickname: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=1)

    @field_validator("password")
    @classmethod
    def password_within_bcrypt_limit(cls, value: str) -> str:
        # bcrypt only looks at the first 72 bytes, not characters
        if not password_fits(value):
            raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes in UTF-8")
        return value


class UserLogin(BaseModel):
    """Schema for user login."""
    nickname: str
    password: str


class UserResponse(BaseModel):
    """Schema for user response. Never carries the password hash."""
    id: int
    nickname: str
    role: UserRole
    created_at: datetime

    class Config:
        from_attributes = True


class RefreshRequest(BaseModel):
    refresh_token: str


class TokenResponse(BaseModel):
    """Access/refresh token pair handed back on login and refresh."""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds


class Claims(BaseModel):
    """Decoded access-token payload."""
    iat: int
    exp: int
    user_id: int
    role: UserRole


class MessageResponse(BaseModel):
    """Simple message response."""
    message: str
