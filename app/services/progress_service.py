"""Learning progress and achievement awarding."""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.achievement import Achievement, UserAchievement
from app.models.progress import ContentType, UserProgress

logger = logging.getLogger(__name__)


def _upsert_insert(db: AsyncSession, model):
    """``INSERT`` construct with ``ON CONFLICT`` support for the bound dialect."""
    if db.get_bind().dialect.name == "postgresql":
        return postgresql.insert(model)
    return sqlite.insert(model)


class ProgressService:
    """Tracks learned content and awards achievements when criteria are met."""

    @staticmethod
    async def mark_learned(
        db: AsyncSession,
        user_id: int,
        content_type: ContentType,
        content_id: int,
    ) -> Tuple[UserProgress, List[Achievement]]:
        """
        Mark one content item as learned (insert or update).

        A single ``INSERT ... ON CONFLICT DO UPDATE`` on the
        (user_id, content_type, content_id) key, so two requests for the same
        item never race into a unique violation.

        Returns the progress row and any achievements newly earned by it.
        """
        now = datetime.now(timezone.utc)
        stmt = (
            _upsert_insert(db, UserProgress)
            .values(
                user_id=user_id,
                content_type=content_type,
                content_id=content_id,
                is_learned=True,
                learned_at=now,
            )
            .on_conflict_do_update(
                index_elements=[
                    UserProgress.user_id,
                    UserProgress.content_type,
                    UserProgress.content_id,
                ],
                set_={"is_learned": True, "learned_at": now},
            )
        )
        await db.execute(stmt)

        result = await db.execute(
            select(UserProgress)
            .where(
                UserProgress.user_id == user_id,
                UserProgress.content_type == content_type,
                UserProgress.content_id == content_id,
            )
            .execution_options(populate_existing=True)
        )
        progress = result.scalar_one()

        awarded = await ProgressService.evaluate_achievements(db, user_id)
        return progress, awarded

    @staticmethod
    async def count_learned(db: AsyncSession, user_id: int, content_type: Optional[ContentType] = None) -> int:
        query = select(func.count(UserProgress.id)).where(
            UserProgress.user_id == user_id,
            UserProgress.is_learned == True,
        )
        if content_type:
            query = query.where(UserProgress.content_type == content_type)
        result = await db.execute(query)
        return result.scalar() or 0

    @staticmethod
    async def evaluate_achievements(db: AsyncSession, user_id: int) -> List[Achievement]:
        """
        Award every not-yet-earned achievement whose criteria the user meets.

        Supported criteria: ``{"learned_count": N}`` optionally narrowed by
        ``{"content_type": "<kind>"}``.
        """
        earned = select(UserAchievement.achievement_id).where(UserAchievement.user_id == user_id)
        result = await db.execute(select(Achievement).where(Achievement.id.not_in(earned)))
        candidates = result.scalars().all()

        awarded: List[Achievement] = []
        for achievement in candidates:
            criteria = achievement.criteria or {}
            required = criteria.get("learned_count")
            if required is None:
                continue

            kind = criteria.get("content_type")
            try:
                content_type = ContentType(kind) if kind else None
            except ValueError:
                logger.warning(f"Achievement {achievement.id} has unknown content_type {kind!r}")
                continue

            if await ProgressService.count_learned(db, user_id, content_type) < int(required):
                continue

            # A concurrent request may have awarded it since the candidate query
            result = await db.execute(
                _upsert_insert(db, UserAchievement)
                .values(
                    user_id=user_id,
                    achievement_id=achievement.id,
                    achieved_at=datetime.now(timezone.utc),
                )
                .on_conflict_do_nothing(
                    index_elements=[UserAchievement.user_id, UserAchievement.achievement_id]
                )
            )
            if result.rowcount == 1:
                awarded.append(achievement)

        if awarded:
            logger.info(f"User {user_id} earned {len(awarded)} achievement(s)")
        return awarded
