"""
Quiz request / response schemas.

POST /quiz  → QuizRequest → QuizResponse
"""
from __future__ import annotations

from typing import Annotated, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

QUIZ_OPTION_COUNT = 4
QUIZ_MAX_QUESTIONS = 20


class QuizQuestion(BaseModel):
    """A multiple-choice item; `correct_answer` indexes into `options`."""
    model_config = ConfigDict(frozen=True)

    question: str
    options: Annotated[list[str], Field(min_length=QUIZ_OPTION_COUNT, max_length=QUIZ_OPTION_COUNT)]
    correct_answer: int = Field(ge=0, lt=QUIZ_OPTION_COUNT)


class QuizRequest(BaseModel):
    """
    Either quiz the user on their own impressions, or on a free-text topic.

    - `topic` set: topic mode; combining it with `impression_ids` or
      `categories` is rejected (422).
    - otherwise: impressions mode. `impression_ids` narrows to specific
      entries, `categories` keeps entries tagged with any of the ids.
    """
    topic: Optional[str] = Field(
        default=None,
        max_length=500,
        description="Free-text subject for a custom quiz.",
        examples=["The Sermon on the Mount"],
    )
    impression_ids: Optional[list[str]] = Field(
        default=None,
        description="Restrict the quiz to these impressions.",
    )
    categories: list[int] = Field(
        default_factory=list,
        description="Only use impressions tagged with any of these categories.",
    )
    question_count: int = Field(
        default=5,
        ge=1,
        le=QUIZ_MAX_QUESTIONS,
        description=f"Number of questions to request (1–{QUIZ_MAX_QUESTIONS}).",
    )
    fallback: bool = Field(
        default=False,
        description="Return built-in example questions instead of an error when generation fails.",
    )

    @model_validator(mode="after")
    def topic_excludes_selection(self):
        if self.topic is not None and (self.impression_ids or self.categories):
            raise ValueError("topic cannot be combined with impression_ids or categories")
        return self


class QuizResponse(BaseModel):
    questions: list[QuizQuestion]
    total_questions: int
    source: Literal["generated", "fallback"] = "generated"
    error_code: Optional[str] = Field(
        default=None,
        description="Why generation failed; only set when source is 'fallback'.",
    )
