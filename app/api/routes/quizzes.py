"""Quiz endpoints."""

import logging
from typing import List

from fastapi import APIRouter
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from app.core.dependencies import CurrentClaims, DbSession
from app.core.exceptions import NotFound
from app.models.quiz import Quiz, QuizItem, QuizResult
from app.schemas.quiz import (
    QuizDetailResponse,
    QuizItemResponse,
    QuizResponse,
    QuizResultResponse,
    QuizSubmission,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=List[QuizResponse])
async def list_quizzes(db: DbSession):
    result = await db.execute(select(Quiz).order_by(Quiz.id))
    return result.scalars().all()


@router.get("/{quiz_id}", response_model=QuizDetailResponse)
async def get_quiz(quiz_id: int, db: DbSession):
    """Quiz with its questions. Correct answers are not included."""
    result = await db.execute(
        select(Quiz).where(Quiz.id == quiz_id).options(selectinload(Quiz.items))
    )
    quiz = result.scalar_one_or_none()
    if not quiz:
        raise NotFound("Quiz not found")

    return QuizDetailResponse(
        id=quiz.id,
        name=quiz.name,
        description=quiz.description,
        created_at=quiz.created_at,
        questions=[QuizItemResponse.model_validate(item) for item in quiz.items],
    )


@router.post("/{quiz_id}/submit", response_model=QuizResultResponse)
async def submit_quiz(
    quiz_id: int,
    submission: QuizSubmission,
    db: DbSession,
    claims: CurrentClaims,
):
    """
    Score submitted answers and store the result.

    Unanswered questions count as wrong. If a question is answered more than
    once, only the first answer is scored.
    """
    result = await db.execute(
        select(QuizItem.id, QuizItem.correct_answer).where(QuizItem.quiz_id == quiz_id)
    )
    correct_answers = dict(result.all())
    if not correct_answers:
        raise NotFound("Quiz not found or has no questions")

    answers = {}
    for a in submission.answers:
        answers.setdefault(a.question_id, a.answer)
    score = sum(
        1
        for question_id, correct in correct_answers.items()
        if answers.get(question_id) == correct
    )

    db.add(QuizResult(user_id=claims.user_id, quiz_id=quiz_id, score=score))
    await db.flush()
    logger.info(f"User {claims.user_id} scored {score}/{len(correct_answers)} on quiz {quiz_id}")

    return QuizResultResponse(score=score, total_questions=len(correct_answers))
