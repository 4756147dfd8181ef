"""Progress and achievement schemas."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from app.models.progress import ContentType


class MarkLearnedRequest(BaseModel):
    content_type: ContentType
    content_id: int


class ProgressResponse(BaseModel):
    id: int
    user_id: int
    content_type: ContentType
    content_id: int
    is_learned: bool
    learned_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AchievementResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    criteria: Dict[str, Any]
    icon: Optional[str] = None

    class Config:
        from_attributes = True


class UserAchievementResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    icon: Optional[str] = None
    achieved_at: datetime


class MarkLearnedResponse(BaseModel):
    progress: ProgressResponse
    new_achievements: List[AchievementResponse] = []
