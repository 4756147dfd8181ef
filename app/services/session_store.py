"""
Persistence contract for users and refresh sessions.

The auth service only talks to a ``SessionStore``; ``SqlAlchemySessionStore``
is the implementation backed by the request's AsyncSession.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Optional, Protocol

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import Conflict, StorageError
from app.models.refresh_session import RefreshSession
from app.models.user import User, UserRole

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionRecord:
    """The parts of a refresh session row the auth core needs."""
    user_id: int
    expires_at: datetime


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; every stored value is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SessionStore(Protocol):
    async def find_user_by_id(self, user_id: int) -> Optional[User]:
        ...

    async def find_user_by_nickname(self, nickname: str) -> Optional[User]:
        ...

    async def insert_user(self, nickname: str, hashed_password: str, role: UserRole = UserRole.USER) -> User:
        ...

    async def insert_refresh_session(self, user_id: int, token: str, expires_at: datetime) -> None:
        ...

    async def find_refresh_session(self, token: str) -> Optional[SessionRecord]:
        ...

    async def consume_refresh_session(self, token: str) -> Optional[SessionRecord]:
        ...

    async def delete_refresh_session(self, token: str) -> None:
        ...

    async def delete_expired_sessions(self, now: datetime) -> int:
        ...

    async def commit(self) -> None:
        ...


class SqlAlchemySessionStore:
    """SessionStore over an AsyncSession. Every statement is bounded by ``timeout``."""

    def __init__(self, db: AsyncSession, timeout: Optional[float] = None):
        self.db = db
        self.timeout = timeout

    async def _run(
        self,
        operation: Awaitable[Any],
        action: str,
        conflict_message: Optional[str] = None,
    ) -> Any:
        try:
            return await asyncio.wait_for(operation, timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            raise StorageError(f"Timed out while {action}") from exc
        except IntegrityError as exc:
            if conflict_message:
                raise Conflict(conflict_message) from exc
            raise StorageError(f"Integrity error while {action}") from exc
        except SQLAlchemyError as exc:
            raise StorageError(f"Database error while {action}") from exc

    # ─── Users ───────────────────────────────────
    async def find_user_by_id(self, user_id: int) -> Optional[User]:
        # populate_existing: the role must come from the row, not the identity map
        query = (
            select(User)
            .where(User.id == user_id)
            .execution_options(populate_existing=True)
        )
        result = await self._run(self.db.execute(query), "loading user")
        return result.scalar_one_or_none()

    async def find_user_by_nickname(self, nickname: str) -> Optional[User]:
        result = await self._run(
            self.db.execute(select(User).where(User.nickname == nickname)),
            "loading user",
        )
        return result.scalar_one_or_none()

    async def insert_user(self, nickname: str, hashed_password: str, role: UserRole = UserRole.USER) -> User:
        user = User(nickname=nickname, hashed_password=hashed_password, role=role)
        self.db.add(user)
        await self._run(
            self.db.flush(),
            "inserting user",
            conflict_message="A user with this nickname already exists",
        )
        return user

    # ─── Refresh Sessions ────────────────────────
    async def insert_refresh_session(self, user_id: int, token: str, expires_at: datetime) -> None:
        self.db.add(
            RefreshSession(
                user_id=user_id,
                refresh_token=token,
                expires_at=expires_at,
            )
        )
        await self._run(self.db.flush(), "inserting refresh session")

    async def find_refresh_session(self, token: str) -> Optional[SessionRecord]:
        result = await self._run(
            self.db.execute(
                select(RefreshSession.user_id, RefreshSession.expires_at)
                .where(RefreshSession.refresh_token == token)
            ),
            "looking up refresh session",
        )
        row = result.first()
        if row is None:
            return None
        return SessionRecord(user_id=row.user_id, expires_at=as_utc(row.expires_at))

    async def consume_refresh_session(self, token: str) -> Optional[SessionRecord]:
        """
        Delete the session for ``token`` and return it.

        Only the caller whose DELETE actually removed the row gets the record;
        a concurrent caller with the same token sees zero affected rows and
        gets None.
        """
        record = await self.find_refresh_session(token)
        if record is None:
            return None

        result = await self._run(
            self.db.execute(
                delete(RefreshSession)
                .where(RefreshSession.refresh_token == token)
                .execution_options(synchronize_session=False)
            ),
            "consuming refresh session",
        )
        if result.rowcount != 1:
            logger.warning(f"Refresh session for user {record.user_id} was consumed concurrently")
            return None
        return record

    async def delete_refresh_session(self, token: str) -> None:
        """Idempotent: deleting a missing session is not an error."""
        await self._run(
            self.db.execute(
                delete(RefreshSession)
                .where(RefreshSession.refresh_token == token)
                .execution_options(synchronize_session=False)
            ),
            "deleting refresh session",
        )

    async def delete_expired_sessions(self, now: datetime) -> int:
        result = await self._run(
            self.db.execute(
                delete(RefreshSession)
                .where(RefreshSession.expires_at <= now)
                .execution_options(synchronize_session=False)
            ),
            "purging expired sessions",
        )
        count = result.rowcount
        if count > 0:
            logger.info(f"Purged {count} expired refresh sessions")
        return count

    async def commit(self) -> None:
        await self._run(self.db.commit(), "committing")
