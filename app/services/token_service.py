"""Access-token signing and verification, plus opaque refresh-token generation."""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional

from jose import ExpiredSignatureError, jwt
from jose.exceptions import JOSEError
from pydantic import ValidationError

from app.core.config import get_settings
from app.core.exceptions import SigningError, Unauthorized
from app.models.user import UserRole
from app.schemas.user import Claims

logger = logging.getLogger(__name__)

REFRESH_TOKEN_BYTES = 32


class TokenService:
    """
    Signs and verifies access tokens with a server-held symmetric secret.

    Instances are immutable after construction; one is built at startup from
    settings and shared by every request.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        access_token_ttl: timedelta = timedelta(minutes=15),
        refresh_token_ttl: timedelta = timedelta(days=30),
    ):
        if not secret_key:
            raise SigningError("Signing secret is not configured")
        self._secret_key = secret_key
        self._algorithm = algorithm
        self.access_token_ttl = access_token_ttl
        self.refresh_token_ttl = refresh_token_ttl

    # ─── Access Token ───────────────────────────
    def create_access_token(
        self,
        user_id: int,
        role: UserRole,
        now: Optional[datetime] = None,
    ) -> str:
        now = now or datetime.now(timezone.utc)
        payload = {
            "iat": int(now.timestamp()),
            "exp": int((now + self.access_token_ttl).timestamp()),
            "user_id": user_id,
            "role": UserRole(role).value,
        }
        try:
            return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)
        except JOSEError as exc:
            # jose raises JWSError, not JWTError, for an unsupported algorithm
            raise SigningError("Failed to sign access token") from exc

    def decode_access_token(self, token: str) -> Claims:
        """Verify signature and expiry, then return the claims."""
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"require_exp": True, "require_iat": True},
            )
        except ExpiredSignatureError:
            raise Unauthorized("Token has expired")
        except JOSEError as exc:
            logger.debug(f"Rejected access token: {exc}")
            raise Unauthorized("Invalid token")

        try:
            return Claims.model_validate(payload)
        except ValidationError:
            raise Unauthorized("Invalid token claims")

    def authenticate(self, authorization: Optional[str]) -> Claims:
        """Parse an ``Authorization: Bearer <token>`` header value into claims."""
        if not authorization:
            raise Unauthorized("Authorization token required")

        scheme, _, token = authorization.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            raise Unauthorized("Authorization token required")

        return self.decode_access_token(token.strip())

    # ─── Refresh Token ──────────────────────────
    @staticmethod
    def generate_refresh_token() -> str:
        """64 lowercase hex chars from the OS CSPRNG."""
        return secrets.token_hex(REFRESH_TOKEN_BYTES)

    @property
    def access_token_expires_in(self) -> int:
        return int(self.access_token_ttl.total_seconds())


@lru_cache()
def get_token_service() -> TokenService:
    """Build the shared TokenService from settings (once per process)."""
    settings = get_settings()
    return TokenService(
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        access_token_ttl=timedelta(minutes=settings.access_token_expire_minutes),
        refresh_token_ttl=timedelta(days=settings.refresh_token_expire_days),
    )
