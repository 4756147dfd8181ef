"""Quiz schemas. Correct answers never leave the server."""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel


class QuizResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class QuizItemResponse(BaseModel):
    id: int
    quiz_id: int
    question: str
    options: Optional[Any] = None

    class Config:
        from_attributes = True


class QuizDetailResponse(QuizResponse):
    questions: List[QuizItemResponse]


class Answer(BaseModel):
    question_id: int
    answer: str


class QuizSubmission(BaseModel):
    answers: List[Answer]


class QuizResultResponse(BaseModel):
    score: int
    total_questions: int
