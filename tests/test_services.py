"""
Tests for the authentication core services.

Run with: pytest tests/test_services.py -v
"""

import asyncio
import base64
import json
import re
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError
from sqlalchemy import update

from app.core.exceptions import (
    AppError,
    Conflict,
    HashingError,
    InvalidCredentials,
    SigningError,
    Unauthorized,
)
from app.models.user import User, UserRole
from app.schemas.user import UserCreate, UserLogin


async def _register(auth, nickname="alice", password="pw123"):
    return await auth.register(UserCreate(nickname=nickname, password=password))


# ============================================
# Credential Hasher Tests
# ============================================

class TestPasswordHashing:
    """Tests for bcrypt hashing through passlib."""

    def test_hash_and_verify(self):
        from app.core.security import hash_password, verify_password

        password = "securePassword123!"
        hashed = hash_password(password)

        assert hashed != password
        assert verify_password(password, hashed) is True
        assert verify_password("wrongPassword", hashed) is False

    def test_hash_is_salted(self):
        from app.core.security import hash_password

        assert hash_password("same") != hash_password("same")

    def test_malformed_hash_raises(self):
        from app.core.security import verify_password

        with pytest.raises(HashingError):
            verify_password("pw", "not-a-bcrypt-hash")

    def test_fake_hash_for_unknown_users(self):
        from app.core.security import FAKE_HASHED_PASSWORD, verify_password

        assert FAKE_HASHED_PASSWORD.startswith("$2")
        assert verify_password("anything", FAKE_HASHED_PASSWORD) is False

    def test_hash_rejects_password_past_bcrypt_limit(self):
        from app.core.security import hash_password

        with pytest.raises(HashingError):
            hash_password("密" * 25)

    def test_password_past_bcrypt_limit_never_verifies(self):
        from app.core.security import hash_password, verify_password

        hashed = hash_password("a" * 72)

        assert verify_password("a" * 72, hashed) is True
        # bcrypt alone would ignore the tail and accept this
        assert verify_password("a" * 72 + "zzz", hashed) is False


class TestUserSchemas:
    """Password length is measured in UTF-8 bytes, the unit bcrypt uses."""

    def test_ascii_password_at_limit_accepted(self):
        assert UserCreate(nickname="alice", password="a" * 72).password == "a" * 72

    def test_multibyte_password_past_limit_rejected(self):
        # 24 three-byte characters plus one ASCII byte: 25 chars, 73 bytes
        with pytest.raises(ValidationError):
            UserCreate(nickname="alice", password="密" * 24 + "a")

    def test_multibyte_password_at_limit_accepted(self):
        assert UserCreate(nickname="alice", password="密" * 24).password == "密" * 24


# ============================================
# TokenService Tests
# ============================================

class TestTokenService:
    """Tests for access-token signing and claims extraction."""

    def test_round_trip_claims(self, tokens):
        token = tokens.create_access_token(42, UserRole.ADMIN)
        claims = tokens.decode_access_token(token)

        assert claims.user_id == 42
        assert claims.role == UserRole.ADMIN
        assert claims.exp - claims.iat == 15 * 60

    def test_token_is_compact_jws(self, tokens):
        token = tokens.create_access_token(1, UserRole.USER)
        assert token.count(".") == 2

    def test_foreign_secret_rejected(self, tokens):
        from app.services.token_service import TokenService

        forged = TokenService(secret_key="someone-else").create_access_token(1, UserRole.ADMIN)

        with pytest.raises(Unauthorized):
            tokens.decode_access_token(forged)

    def test_tampered_payload_rejected(self, tokens):
        header, payload, signature = tokens.create_access_token(7, UserRole.USER).split(".")
        padded = payload + "=" * (-len(payload) % 4)
        claims = json.loads(base64.urlsafe_b64decode(padded))
        claims["role"] = "admin"
        forged_payload = base64.urlsafe_b64encode(json.dumps(claims).encode()).rstrip(b"=").decode()

        with pytest.raises(Unauthorized):
            tokens.decode_access_token(f"{header}.{forged_payload}.{signature}")

    def test_expired_token_rejected(self, tokens):
        issued = datetime.now(timezone.utc) - timedelta(hours=1)
        token = tokens.create_access_token(1, UserRole.USER, now=issued)

        with pytest.raises(Unauthorized, match="expired"):
            tokens.decode_access_token(token)

    def test_garbage_rejected(self, tokens):
        with pytest.raises(Unauthorized):
            tokens.decode_access_token("not.a.token")

    @pytest.mark.parametrize("header", [None, "", "Bearer", "Basic abc", "Bearer   "])
    def test_authenticate_requires_bearer(self, tokens, header):
        with pytest.raises(Unauthorized):
            tokens.authenticate(header)

    def test_authenticate_bearer_header(self, tokens):
        token = tokens.create_access_token(3, UserRole.USER)
        assert tokens.authenticate(f"Bearer {token}").user_id == 3

    def test_refresh_token_format(self, tokens):
        first = tokens.generate_refresh_token()
        second = tokens.generate_refresh_token()

        assert re.fullmatch(r"[0-9a-f]{64}", first)
        assert first != second

    def test_empty_secret_is_rejected(self):
        from app.services.token_service import TokenService

        with pytest.raises(SigningError):
            TokenService(secret_key="")

    def test_unsupported_algorithm_raises_signing_error(self):
        from app.services.token_service import TokenService

        signer = TokenService(secret_key="s", algorithm="NOPE")
        with pytest.raises(SigningError):
            signer.create_access_token(1, UserRole.USER)

    def test_unsupported_algorithm_rejects_tokens(self, tokens):
        from app.services.token_service import TokenService

        token = tokens.create_access_token(1, UserRole.USER)
        with pytest.raises(Unauthorized):
            TokenService(secret_key="test-secret-key", algorithm="NOPE").decode_access_token(token)


class TestSettings:
    """The signing secret is a startup requirement."""

    def test_missing_secret_fails(self, monkeypatch):
        from app.core.config import Settings

        monkeypatch.delenv("JWT_SECRET_KEY", raising=False)
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_blank_secret_fails(self, monkeypatch):
        from app.core.config import Settings

        monkeypatch.setenv("JWT_SECRET_KEY", "   ")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_defaults(self):
        from app.core.config import Settings

        settings = Settings(_env_file=None)
        assert settings.access_token_expire_minutes == 15
        assert settings.refresh_token_expire_days == 30
        assert settings.jwt_algorithm == "HS256"
        assert "app_env" not in Settings.model_fields

    @pytest.mark.parametrize("algorithm", ["RS256", "none", "NOPE"])
    def test_non_hmac_algorithm_fails(self, monkeypatch, algorithm):
        from app.core.config import Settings

        monkeypatch.setenv("JWT_ALGORITHM", algorithm)
        with pytest.raises(ValidationError):
            Settings(_env_file=None)


# ============================================
# AuthService Tests
# ============================================

class TestAuthService:
    """Tests for register, login, issuance, rotation and logout."""

    @pytest.mark.asyncio
    async def test_register_conflict(self, auth):
        user = await _register(auth)
        assert user.id is not None
        assert user.role == UserRole.USER

        with pytest.raises(Conflict):
            await _register(auth)

    @pytest.mark.asyncio
    async def test_login_returns_current_claims(self, auth, tokens, store):
        user = await _register(auth)

        pair = await auth.login(UserLogin(nickname="alice", password="pw123"))
        claims = tokens.decode_access_token(pair.access_token)

        assert claims.user_id == user.id
        assert claims.role == UserRole.USER
        assert re.fullmatch(r"[0-9a-f]{64}", pair.refresh_token)
        assert pair.expires_in == 15 * 60
        assert await store.find_refresh_session(pair.refresh_token) is not None

    @pytest.mark.asyncio
    async def test_login_failures_are_indistinguishable(self, auth):
        await _register(auth)

        with pytest.raises(InvalidCredentials) as wrong_password:
            await auth.login(UserLogin(nickname="alice", password="wrong"))
        with pytest.raises(InvalidCredentials) as unknown_user:
            await auth.login(UserLogin(nickname="bob", password="pw123"))

        assert wrong_password.value.message == unknown_user.value.message
        assert wrong_password.value.status_code == 401

    @pytest.mark.asyncio
    async def test_login_with_longer_password_fails(self, auth):
        await _register(auth, password="a" * 72)

        with pytest.raises(InvalidCredentials):
            await auth.login(UserLogin(nickname="alice", password="a" * 72 + "zzz"))

        pair = await auth.login(UserLogin(nickname="alice", password="a" * 72))
        assert pair.access_token

    @pytest.mark.asyncio
    async def test_session_expires_after_thirty_days(self, auth, store, clock):
        user = await _register(auth)
        issued_at = clock.now
        expiry = issued_at + timedelta(days=30)

        early = await auth.issue_tokens(user.id)
        late = await auth.issue_tokens(user.id)

        record = await store.find_refresh_session(early.refresh_token)
        assert record.expires_at == expiry

        clock.now = expiry - timedelta(seconds=1)
        assert (await auth.refresh(early.refresh_token)).access_token

        clock.now = expiry
        with pytest.raises(Unauthorized, match="expired"):
            await auth.refresh(late.refresh_token)

        # Expired session is cleaned up
        assert await store.find_refresh_session(late.refresh_token) is None

    @pytest.mark.asyncio
    async def test_refresh_is_single_use(self, auth):
        user = await _register(auth)
        pair = await auth.issue_tokens(user.id)

        rotated = await auth.refresh(pair.refresh_token)
        assert rotated.refresh_token != pair.refresh_token

        with pytest.raises(Unauthorized, match="Invalid refresh token"):
            await auth.refresh(pair.refresh_token)

        # The rotated token still works once
        assert await auth.refresh(rotated.refresh_token)

    @pytest.mark.asyncio
    async def test_unknown_refresh_token(self, auth):
        with pytest.raises(Unauthorized):
            await auth.refresh("0" * 64)

    @pytest.mark.asyncio
    async def test_logout_is_idempotent(self, auth):
        user = await _register(auth)
        pair = await auth.issue_tokens(user.id)

        await auth.logout(pair.refresh_token)
        await auth.logout(pair.refresh_token)

        with pytest.raises(Unauthorized):
            await auth.refresh(pair.refresh_token)

    @pytest.mark.asyncio
    async def test_role_is_read_fresh_at_issuance(self, auth, tokens, db):
        user = await _register(auth)
        first = await auth.issue_tokens(user.id)

        await db.execute(update(User).where(User.id == user.id).values(role=UserRole.ADMIN))

        second = await auth.refresh(first.refresh_token)

        assert tokens.decode_access_token(second.access_token).role == UserRole.ADMIN
        # Already-issued access tokens keep the role they were minted with
        assert tokens.decode_access_token(first.access_token).role == UserRole.USER

    @pytest.mark.asyncio
    async def test_issue_for_missing_user(self, auth):
        with pytest.raises(Unauthorized):
            await auth.issue_tokens(9999)

    @pytest.mark.asyncio
    async def test_purge_expired_sessions(self, auth, store, clock):
        user = await _register(auth)
        pair = await auth.issue_tokens(user.id)

        assert await auth.purge_expired_sessions(clock.now) == 0
        assert await auth.purge_expired_sessions(clock.now + timedelta(days=31)) == 1
        assert await store.find_refresh_session(pair.refresh_token) is None


class TestConcurrentRefresh:
    """Two callers racing with the same refresh token: exactly one wins."""

    @pytest.mark.asyncio
    async def test_only_one_concurrent_refresh_succeeds(self, auth, db, tokens):
        from app.db.session import AsyncSessionLocal
        from app.services.auth_service import AuthService
        from app.services.session_store import SqlAlchemySessionStore

        user = await _register(auth)
        pair = await auth.issue_tokens(user.id)
        await db.commit()

        async def attempt():
            async with AsyncSessionLocal() as session:
                service = AuthService(SqlAlchemySessionStore(session, timeout=10.0), tokens)
                try:
                    await service.refresh(pair.refresh_token)
                    await session.commit()
                    return None
                except AppError as exc:
                    await session.rollback()
                    return exc

        outcomes = await asyncio.gather(attempt(), attempt())
        failures = [o for o in outcomes if o is not None]

        assert len(failures) == 1
        # SQLite may report the loser as lock contention rather than a miss
        assert failures[0].status_code in (401, 500)


# ============================================
# ProgressService Tests
# ============================================

class TestProgressService:
    """Marking items learned is an upsert, and each achievement is awarded once."""

    @pytest.mark.asyncio
    async def test_existing_unlearned_row_is_updated(self, auth, db):
        from app.models.progress import ContentType, UserProgress
        from app.services.progress_service import ProgressService

        user = await _register(auth)
        row = UserProgress(user_id=user.id, content_type=ContentType.WORD, content_id=5, is_learned=False)
        db.add(row)
        await db.commit()

        progress, _ = await ProgressService.mark_learned(db, user.id, ContentType.WORD, 5)

        assert progress.id == row.id
        assert progress.is_learned is True
        assert progress.learned_at is not None

    @pytest.mark.asyncio
    async def test_concurrent_mark_learned_for_same_item(self, auth, db):
        from sqlalchemy import func, select

        from app.db.session import AsyncSessionLocal
        from app.models.achievement import Achievement, UserAchievement
        from app.models.progress import ContentType, UserProgress
        from app.services.progress_service import ProgressService

        user = await _register(auth)
        db.add(Achievement(name="First Step", criteria={"learned_count": 1}))
        await db.commit()

        async def attempt():
            async with AsyncSessionLocal() as session:
                _, awarded = await ProgressService.mark_learned(
                    session, user.id, ContentType.HIEROGLYPH, 1
                )
                await session.commit()
                return awarded

        outcomes = await asyncio.gather(attempt(), attempt())

        assert sum(len(awarded) for awarded in outcomes) == 1
        progress_rows = await db.scalar(
            select(func.count(UserProgress.id)).where(UserProgress.user_id == user.id)
        )
        achievement_rows = await db.scalar(
            select(func.count(UserAchievement.id)).where(UserAchievement.user_id == user.id)
        )
        assert progress_rows == 1
        assert achievement_rows == 1
