"""API routes package."""

from fastapi import APIRouter

from app.api.routes import (
    auth,
    health,
    hieroglyphs,
    progress,
    achievements,
    quizzes,
)

api_router = APIRouter()

api_router.include_router(health.router, tags=["Health"])
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(hieroglyphs.router, prefix="/hieroglyphs", tags=["Hieroglyphs"])
api_router.include_router(progress.router, prefix="/progress", tags=["Progress"])
api_router.include_router(achievements.router, prefix="/achievements", tags=["Achievements"])
api_router.include_router(quizzes.router, prefix="/quizzes", tags=["Quizzes"])
