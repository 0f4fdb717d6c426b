"""
Quiz router.

POST /quiz — generate a multiple-choice quiz from impressions or a topic
"""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from hgtracker.db.base import get_db
from hgtracker.schemas.common import ERROR_RESPONSES
from hgtracker.schemas.filters import FilterSpec
from hgtracker.schemas.impressions import ImpressionOut
from hgtracker.schemas.quiz import QuizRequest, QuizResponse
from hgtracker.services.categories import category_labels
from hgtracker.services.filters import filter_impressions
from hgtracker.services.impressions import list_impressions
from hgtracker.services.quiz import QuizGenerator, QuizSettings, fallback_questions

router = APIRouter(prefix="/quiz", tags=["quiz"], responses=ERROR_RESPONSES)


def get_quiz_generator() -> QuizGenerator:
    """Dependency; tests override it with a generator on a mock transport."""
    return QuizGenerator(QuizSettings.from_settings())


def _select_impressions(db: Session, payload: QuizRequest) -> list[ImpressionOut]:
    items = [ImpressionOut.model_validate(i) for i in list_impressions(db)]
    if payload.impression_ids is not None:
        wanted = set(payload.impression_ids)
        items = [i for i in items if i.id in wanted]
    return filter_impressions(items, FilterSpec(categories=payload.categories))


@router.post(
    "",
    response_model=QuizResponse,
    summary="Generate a quiz",
    responses={
        422: {"description": "No impressions selected, blank topic, or bad request."},
        429: {"description": "Completion endpoint rate limited after retries."},
        502: {"description": "Completion endpoint returned an unusable answer."},
        503: {"description": "Quiz generation not configured or endpoint unavailable."},
    },
)
async def quiz_generate(
    payload: QuizRequest,
    db: Session = Depends(get_db),
    generator: QuizGenerator = Depends(get_quiz_generator),
):
    """
    Ask the completion endpoint for `question_count` multiple-choice questions.

    - **topic** set: questions about that topic.
    - otherwise: questions about the selected impressions (all by default).

    Transient upstream failures are retried with exponential backoff. With
    `fallback: true`, a failed generation returns built-in example questions
    (`source: "fallback"`) instead of an error.
    """
    if payload.topic is not None:
        source = payload.topic
        labels = None
    else:
        source = _select_impressions(db, payload)
        labels = category_labels(db)

    result = await generator.generate(source, payload.question_count, labels)

    if result.ok:
        return QuizResponse(questions=result.questions, total_questions=result.total_questions)

    if payload.fallback:
        questions = fallback_questions(payload.question_count)
        return QuizResponse(
            questions=questions,
            total_questions=len(questions),
            source="fallback",
            error_code=result.error.code,
        )
    raise result.error
