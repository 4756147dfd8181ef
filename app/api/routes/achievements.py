"""Achievement endpoints."""

from typing import List

from fastapi import APIRouter
from sqlalchemy import select

from app.core.dependencies import CurrentClaims, DbSession
from app.models.achievement import Achievement, UserAchievement
from app.schemas.progress import AchievementResponse, UserAchievementResponse

router = APIRouter()


@router.get("", response_model=List[AchievementResponse])
async def list_achievements(db: DbSession):
    """List every achievement that can be earned."""
    result = await db.execute(select(Achievement).order_by(Achievement.id))
    return result.scalars().all()


@router.get("/me", response_model=List[UserAchievementResponse])
async def list_my_achievements(db: DbSession, claims: CurrentClaims):
    """List achievements earned by the current user."""
    result = await db.execute(
        select(Achievement, UserAchievement.achieved_at)
        .join(UserAchievement, UserAchievement.achievement_id == Achievement.id)
        .where(UserAchievement.user_id == claims.user_id)
        .order_by(UserAchievement.achieved_at)
    )
    return [
        UserAchievementResponse(
            id=achievement.id,
            name=achievement.name,
            description=achievement.description,
            icon=achievement.icon,
            achieved_at=achieved_at,
        )
        for achievement, achieved_at in result.all()
    ]
