"""
Turn free-form completion text into validated quiz questions.

The model is asked for a bare JSON array but often wraps it in a ```json
fence or surrounds it with prose. Extraction order:

1. contents of the first ```json or untagged fence that parses as JSON;
2. otherwise the first `[` up to its matching `]`;
3. otherwise the text as-is (json.loads then reports the problem).

Validation is all-or-nothing: one bad element rejects the whole response.
"""
from __future__ import annotations

import json
import re
from typing import Any

from hgtracker.core.errors import MalformedResponseError
from hgtracker.schemas.quiz import QUIZ_OPTION_COUNT, QuizQuestion

_FENCE_RE = re.compile(r"```([A-Za-z0-9_+-]*)[ \t]*\n(.*?)```", re.DOTALL)
_JSON_FENCE_TAGS = ("", "json")


def _matching_bracket_span(text: str) -> str | None:
    """Slice from the first `[` to its matching `]`, skipping string literals."""
    start = text.find("[")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for pos in range(start, len(text)):
        ch = text[pos]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
            if depth == 0:
                return text[start : pos + 1]
    return None


def _fenced_json(text: str) -> str | None:
    """Body of the first json-tagged or untagged fence that parses."""
    for match in _FENCE_RE.finditer(text):
        if match.group(1).lower() not in _JSON_FENCE_TAGS:
            continue
        body = match.group(2).strip()
        try:
            json.loads(body)
        except ValueError:
            continue
        return body
    return None


def extract_json_payload(text: str) -> str:
    """Pull the JSON part out of an LLM reply."""
    text = text.strip()
    fenced = _fenced_json(text)
    if fenced is not None:
        return fenced
    span = _matching_bracket_span(text)
    if span is not None:
        return span
    return text


def _validate_question(item: Any, index: int) -> QuizQuestion:
    if not isinstance(item, dict):
        raise MalformedResponseError(f"Question {index} is not an object", index=index)

    question = item.get("question")
    if not isinstance(question, str) or not question.strip():
        raise MalformedResponseError(f"Question {index} has no question text", index=index)

    options = item.get("options")
    if not isinstance(options, list):
        raise MalformedResponseError(f"Question {index} has no options list", index=index)
    if len(options) != QUIZ_OPTION_COUNT or not all(isinstance(o, str) for o in options):
        raise MalformedResponseError(
            f"Question {index} must have exactly {QUIZ_OPTION_COUNT} string options",
            index=index,
        )

    answer = item.get("correctAnswer")
    # bool is an int subclass; true/false is not an index
    if isinstance(answer, bool) or not isinstance(answer, (int, float)):
        raise MalformedResponseError(f"Question {index} has no numeric correctAnswer", index=index)
    if isinstance(answer, float) and not answer.is_integer():
        raise MalformedResponseError(f"Question {index} correctAnswer is not an index", index=index)
    answer = int(answer)
    if not 0 <= answer < len(options):
        raise MalformedResponseError(
            f"Question {index} correctAnswer {answer} is out of range", index=index
        )

    return QuizQuestion(question=question.strip(), options=options, correct_answer=answer)


def parse_quiz_questions(text: str) -> list[QuizQuestion]:
    """
    Parse and validate a completion's text.

    Raises MalformedResponseError when the payload is not JSON, is not a
    non-empty array, or any element has the wrong shape.
    """
    if not text or not text.strip():
        raise MalformedResponseError("Completion text is empty")

    payload = extract_json_payload(text)
    try:
        parsed = json.loads(payload)
    except ValueError as exc:
        raise MalformedResponseError(f"Completion is not valid JSON: {exc}") from exc

    if not isinstance(parsed, list):
        raise MalformedResponseError("Completion JSON is not an array")
    if not parsed:
        raise MalformedResponseError("Completion JSON array is empty")

    return [_validate_question(item, i) for i, item in enumerate(parsed)]
