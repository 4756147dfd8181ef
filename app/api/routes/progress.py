"""User progress endpoints."""

from typing import List

from fastapi import APIRouter
from sqlalchemy import select

from app.core.dependencies import CurrentClaims, DbSession
from app.models.progress import UserProgress
from app.schemas.progress import (
    AchievementResponse,
    MarkLearnedRequest,
    MarkLearnedResponse,
    ProgressResponse,
)
from app.services.progress_service import ProgressService

router = APIRouter()


@router.post("/learn", response_model=MarkLearnedResponse)
async def mark_learned(payload: MarkLearnedRequest, db: DbSession, claims: CurrentClaims):
    """
    Mark a content item as learned for the current user.

    Also reports achievements earned by this step.
    """
    progress, awarded = await ProgressService.mark_learned(
        db,
        user_id=claims.user_id,
        content_type=payload.content_type,
        content_id=payload.content_id,
    )
    return MarkLearnedResponse(
        progress=ProgressResponse.model_validate(progress),
        new_achievements=[AchievementResponse.model_validate(a) for a in awarded],
    )


@router.get("/me", response_model=List[ProgressResponse])
async def get_my_progress(db: DbSession, claims: CurrentClaims):
    result = await db.execute(
        select(UserProgress)
        .where(UserProgress.user_id == claims.user_id)
        .order_by(UserProgress.id)
    )
    return result.scalars().all()
