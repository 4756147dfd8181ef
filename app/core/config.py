"""Application configuration settings."""

from functools import lru_cache
from typing import List, Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Hanzi API"
    debug: bool = True

    # Server
    host: str = "0.0.0.0"
    port: int = 3000

    # Database
    database_url: str = "sqlite+aiosqlite:///./hanzi.db"
    db_timeout_seconds: float = 5.0

    # JWT Authentication (no default: a missing secret must fail at startup)
    jwt_secret_key: str
    # Symmetric only; the signer holds a single shared secret
    jwt_algorithm: Literal["HS256", "HS384", "HS512"] = "HS256"
    access_token_expire_minutes: int = 15
    refresh_token_expire_days: int = 30

    # Password hashing
    bcrypt_rounds: int = 12

    # CORS
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"

    # Security
    allowed_hosts: str = "*"

    @field_validator("jwt_secret_key")
    @classmethod
    def secret_must_not_be_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("JWT_SECRET_KEY must be set to a non-empty value")
        return value

    @property
    def allowed_hosts_list(self) -> List[str]:
        """Get allowed hosts as a list."""
        return [host.strip() for host in self.allowed_hosts.split(",")]

    @property
    def cors_origins_list(self) -> List[str]:
        """Get CORS origins as a list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
