"""Authentication service: registration, login, token issuance and refresh rotation."""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from starlette.concurrency import run_in_threadpool

from app.core.exceptions import Conflict, InvalidCredentials, Unauthorized
from app.core.security import FAKE_HASHED_PASSWORD, hash_password, verify_password
from app.models.user import User
from app.schemas.user import TokenResponse, UserCreate, UserLogin
from app.services.session_store import SessionStore
from app.services.token_service import TokenService

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuthService:
    """Authentication flows over a SessionStore and a TokenService."""

    def __init__(
        self,
        store: SessionStore,
        tokens: TokenService,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.tokens = tokens
        self.clock = clock

    # ─── Registration ───────────────────────────
    async def register(self, user_data: UserCreate) -> User:
        if await self.store.find_user_by_nickname(user_data.nickname):
            raise Conflict("A user with this nickname already exists")

        hashed = await run_in_threadpool(hash_password, user_data.password)
        # insert_user also maps a unique-constraint race to Conflict
        user = await self.store.insert_user(user_data.nickname, hashed)
        logger.info(f"Registered user {user.id}")
        return user

    # ─── Secure Login (constant-time) ───────────
    async def login(self, credentials: UserLogin) -> TokenResponse:
        user = await self.store.find_user_by_nickname(credentials.nickname)
        hashed_password = user.hashed_password if user else FAKE_HASHED_PASSWORD
        password_correct = await run_in_threadpool(
            verify_password, credentials.password, hashed_password
        )

        if not user or not password_correct:
            raise InvalidCredentials()

        return await self.issue_tokens(user.id)

    # ─── Token Issuance ─────────────────────────
    async def issue_tokens(self, user_id: int) -> TokenResponse:
        """
        Mint an access/refresh pair for ``user_id``.

        The role is read from the store on every call, never carried over
        from an earlier token.
        """
        user = await self.store.find_user_by_id(user_id)
        if user is None:
            raise Unauthorized("User not found")

        now = self.clock()
        access_token = self.tokens.create_access_token(user.id, user.role, now=now)

        refresh_token = self.tokens.generate_refresh_token()
        await self.store.insert_refresh_session(
            user_id=user.id,
            token=refresh_token,
            expires_at=now + self.tokens.refresh_token_ttl,
        )

        return TokenResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            token_type="bearer",
            expires_in=self.tokens.access_token_expires_in,
        )

    # ─── Refresh Access Token (Rotation) ────────
    async def refresh(self, refresh_token: str) -> TokenResponse:
        session = await self.store.consume_refresh_session(refresh_token)
        if session is None:
            raise Unauthorized("Invalid refresh token")

        if self.clock() >= session.expires_at:
            # Keep the cleanup even though the request fails
            await self.store.commit()
            raise Unauthorized("Session expired")

        return await self.issue_tokens(session.user_id)

    # ─── Logout ─────────────────────────────────
    async def logout(self, refresh_token: str) -> None:
        await self.store.delete_refresh_session(refresh_token)

    async def purge_expired_sessions(self, now: Optional[datetime] = None) -> int:
        return await self.store.delete_expired_sessions(now or self.clock())
