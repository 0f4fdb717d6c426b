"""
Quiz generation service.

Builds a prompt from the user's impressions (or a free-text topic), sends it
to a chat-completion endpoint, and validates the JSON it gets back.

Rules:
- Never raises across `generate()`: every failure comes back as a
  QuizFailure carrying a classified QuizError.
- HTTP status is classified once, in `_classify_status`. 429 and 5xx
  unavailability are retried with exponential backoff; everything else is
  final.
- Malformed model output is not retried.

Public API
----------
QuizGenerator(settings, client, sleep).generate(source, question_count, category_labels)
generate_quiz(source, question_count, ...)                 -> QuizResult
fallback_questions(count)                                  -> list[QuizQuestion]
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence, Union

import httpx

from hgtracker.core.config import settings as app_settings
from hgtracker.core.errors import (
    MalformedResponseError,
    QuizConfigurationError,
    QuizError,
    QuizErrorKind,
    QuizInputError,
    TransientServiceError,
    UpstreamServiceError,
)
from hgtracker.schemas.quiz import QuizQuestion
from hgtracker.services.quiz_parsing import parse_quiz_questions
from hgtracker.services.quiz_prompts import (
    SYSTEM_PROMPT,
    build_impressions_prompt,
    build_topic_prompt,
)

logger = logging.getLogger(__name__)

_SERVICE_UNAVAILABLE_STATUSES = frozenset({500, 502, 503, 504})


# ---------------------------------------------------------------------------
# Configuration and result types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class QuizSettings:
    """Everything the generator needs; built from app settings or by tests."""
    api_key: Optional[str]
    endpoint: str = "https://api.openai.com/v1/chat/completions"
    model: str = "gpt-4o-mini"
    temperature: float = 0.7
    max_tokens: int = 2000
    max_attempts: int = 3
    base_delay: float = 1.0
    timeout: float = 30.0

    @classmethod
    def from_settings(cls, s=app_settings) -> "QuizSettings":
        return cls(
            api_key=s.OPENAI_API_KEY,
            endpoint=s.OPENAI_ENDPOINT,
            model=s.QUIZ_MODEL,
            temperature=s.QUIZ_TEMPERATURE,
            max_tokens=s.QUIZ_MAX_TOKENS,
            max_attempts=s.QUIZ_MAX_ATTEMPTS,
            base_delay=s.QUIZ_RETRY_BASE_DELAY,
            timeout=s.QUIZ_TIMEOUT,
        )


@dataclass
class QuizSuccess:
    questions: list[QuizQuestion]
    total_questions: int
    ok: bool = True


@dataclass
class QuizFailure:
    error: QuizError
    ok: bool = False

    @property
    def kind(self) -> QuizErrorKind:
        return self.error.kind

    @property
    def message(self) -> str:
        return self.error.message


QuizResult = Union[QuizSuccess, QuizFailure]


FALLBACK_QUESTIONS: list[QuizQuestion] = [
    QuizQuestion(
        question="What was the main theme of your most recent spiritual impression?",
        options=[
            "Personal growth and development",
            "Service to others",
            "Gratitude and thankfulness",
            "Faith and trust in God",
        ],
        correct_answer=0,
    ),
    QuizQuestion(
        question="Which location is most commonly associated with your spiritual impressions?",
        options=["Church", "Home", "Nature/Outdoors", "BYU Campus"],
        correct_answer=0,
    ),
    QuizQuestion(
        question="What time of day do you typically record your spiritual impressions?",
        options=["Morning", "Afternoon", "Evening", "Late night"],
        correct_answer=2,
    ),
]


def fallback_questions(count: int) -> list[QuizQuestion]:
    """Built-in questions shown when generation fails."""
    return list(FALLBACK_QUESTIONS[: max(count, 0)])


# ---------------------------------------------------------------------------
# HTTP classification
# ---------------------------------------------------------------------------

def _classify_status(status_code: int) -> Optional[QuizErrorKind]:
    """Error kind for a non-2xx status; None means success."""
    if 200 <= status_code < 300:
        return None
    if status_code == 429:
        return QuizErrorKind.rate_limited
    if status_code in _SERVICE_UNAVAILABLE_STATUSES:
        return QuizErrorKind.service_unavailable
    return QuizErrorKind.upstream_error


def _check_impression(impression: Any, index: int) -> None:
    """Prompt inputs need a text description and an iterable of category ids."""
    description = getattr(impression, "description", None)
    if not isinstance(description, str) or not description.strip():
        raise QuizInputError(
            f"Impression {index} has no description.", details={"index": index}
        )
    categories = getattr(impression, "categories", None)
    if categories is not None and not isinstance(categories, (list, tuple, set, frozenset)):
        raise QuizInputError(
            f"Impression {index} categories must be a list of ids.", details={"index": index}
        )


def _message_content(body: Any) -> str:
    try:
        content = body["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise MalformedResponseError("Completion response has no message content") from exc
    if not isinstance(content, str) or not content.strip():
        raise MalformedResponseError("Completion message content is empty")
    return content


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------

class QuizGenerator:
    def __init__(
        self,
        settings: QuizSettings,
        client: Optional[httpx.AsyncClient] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.settings = settings
        self._client = client
        self._sleep = sleep

    async def generate(
        self,
        source: Union[Sequence[Any], str],
        question_count: int = 5,
        category_labels: Optional[Mapping[int, str]] = None,
    ) -> QuizResult:
        """
        Generate multiple-choice questions from impressions or a topic.

        `source` is either a list of impressions (anything with `description`
        and `categories`) or a topic string. `category_labels` maps category
        ids to display names for the prompt.
        """
        try:
            prompt = self._build_prompt(source, question_count, category_labels)
            questions = await self._request_with_retry(prompt)
        except QuizError as exc:
            logger.warning("Quiz generation failed (%s): %s", exc.kind.value, exc.message)
            return QuizFailure(error=exc)

        # Extra questions are dropped; a short list is returned as-is.
        questions = questions[:question_count]
        return QuizSuccess(questions=questions, total_questions=len(questions))

    # -- steps --------------------------------------------------------------

    def _build_prompt(self, source, question_count: int, category_labels) -> str:
        if not self.settings.api_key:
            raise QuizConfigurationError()
        if question_count < 1:
            raise QuizInputError("Question count must be a positive integer.")

        if isinstance(source, str):
            topic = source.strip()
            if not topic:
                raise QuizInputError("Quiz topic is empty.")
            return build_topic_prompt(topic, question_count)

        impressions = list(source or [])
        if not impressions:
            raise QuizInputError("No impressions provided.")
        for index, impression in enumerate(impressions):
            _check_impression(impression, index)
        return build_impressions_prompt(impressions, question_count, category_labels)

    async def _request_with_retry(self, prompt: str) -> list[QuizQuestion]:
        max_attempts = max(self.settings.max_attempts, 1)
        attempt = 0
        while True:
            attempt += 1
            logger.debug("Quiz completion attempt %d/%d", attempt, max_attempts)
            try:
                text = await self._complete(prompt)
            except TransientServiceError as exc:
                if attempt >= max_attempts:
                    exc.details["attempts"] = attempt
                    raise
                delay = self.settings.base_delay * 2 ** (attempt - 1)
                logger.warning(
                    "Quiz completion transient failure (%s, status %s), retrying in %.1fs (%d/%d)",
                    exc.kind.value, exc.status_code, delay, attempt, max_attempts,
                )
                await self._sleep(delay)
                continue

            try:
                return parse_quiz_questions(text)
            except MalformedResponseError:
                logger.warning("Malformed quiz completion: %.500s", text)
                raise

    async def _complete(self, prompt: str) -> str:
        payload = {
            "model": self.settings.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.settings.temperature,
            "max_tokens": self.settings.max_tokens,
        }
        headers = {"Authorization": f"Bearer {self.settings.api_key}"}

        try:
            response = await self._post(payload, headers)
        except httpx.TransportError as exc:
            raise TransientServiceError(
                QuizErrorKind.service_unavailable,
                f"Completion endpoint unreachable: {exc.__class__.__name__}",
            ) from exc

        kind = _classify_status(response.status_code)
        if kind in (QuizErrorKind.rate_limited, QuizErrorKind.service_unavailable):
            message = (
                "Quiz service is rate limited, try again later."
                if kind == QuizErrorKind.rate_limited
                else "Quiz service is temporarily unavailable, try again later."
            )
            raise TransientServiceError(kind, message, status_code=response.status_code)
        if kind is not None:
            raise UpstreamServiceError(response.status_code, response.reason_phrase)

        try:
            body = response.json()
        except ValueError as exc:
            raise MalformedResponseError("Completion response is not JSON") from exc
        return _message_content(body)

    async def _post(self, payload: dict, headers: dict) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(self.settings.endpoint, json=payload, headers=headers)
        async with httpx.AsyncClient(timeout=self.settings.timeout) as client:
            return await client.post(self.settings.endpoint, json=payload, headers=headers)


async def generate_quiz(
    source: Union[Sequence[Any], str],
    question_count: int = 5,
    *,
    settings: Optional[QuizSettings] = None,
    client: Optional[httpx.AsyncClient] = None,
    category_labels: Optional[Mapping[int, str]] = None,
) -> QuizResult:
    """One-shot helper around QuizGenerator using the app settings by default."""
    generator = QuizGenerator(settings or QuizSettings.from_settings(), client=client)
    return await generator.generate(source, question_count, category_labels)
