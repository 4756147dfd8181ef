"""Database models."""

from app.models.user import User, UserRole
from app.models.refresh_session import RefreshSession
from app.models.hieroglyph import Hieroglyph
from app.models.progress import UserProgress, ContentType
from app.models.achievement import Achievement, UserAchievement
from app.models.quiz import Quiz, QuizItem, QuizResult

__all__ = [
    "User",
    "UserRole",
    "RefreshSession",
    "Hieroglyph",
    "UserProgress",
    "ContentType",
    "Achievement",
    "UserAchievement",
    "Quiz",
    "QuizItem",
    "QuizResult",
]
