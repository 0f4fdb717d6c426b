"""Prompt templates for quiz generation."""
from __future__ import annotations

from typing import Iterable, Mapping, Optional

SYSTEM_PROMPT = (
    "You are a helpful assistant that creates thoughtful quiz questions about "
    "spiritual experiences and insights. Always respond with valid JSON."
)

_FORMAT_INSTRUCTIONS = """Please format the response as a JSON array where each question has:
- question: string
- options: array of 4 strings
- correctAnswer: number (0-3, index of the correct option)"""

_IMPRESSIONS_TEMPLATE = """Based on these spiritual impressions and experiences, generate {count} quiz questions that test understanding and recall of the content. Each question should be multiple choice with 4 options.

Impressions:
{impressions}

{format_instructions}

Make the questions thoughtful and test both specific details and broader spiritual insights from the impressions."""

_TOPIC_TEMPLATE = """Generate {count} quiz questions about the following topic from the perspective of gospel study and personal spiritual growth. Each question should be multiple choice with 4 options.

Topic: {topic}

{format_instructions}

Make the questions accurate, thoughtful, and suitable for personal study or a church class discussion."""


def _labels_for(impression, labels: Mapping[int, str]) -> str:
    category_ids: Iterable[int] = getattr(impression, "categories", None) or ()
    names = [labels.get(cid, str(cid)) for cid in category_ids]
    return ", ".join(names) if names else "None"


def build_impressions_prompt(
    impressions,
    question_count: int,
    category_labels: Optional[Mapping[int, str]] = None,
) -> str:
    labels = category_labels or {}
    lines = [
        f"{n}. {imp.description} (Categories: {_labels_for(imp, labels)})"
        for n, imp in enumerate(impressions, start=1)
    ]
    return _IMPRESSIONS_TEMPLATE.format(
        count=question_count,
        impressions="\n".join(lines),
        format_instructions=_FORMAT_INSTRUCTIONS,
    )


def build_topic_prompt(topic: str, question_count: int) -> str:
    return _TOPIC_TEMPLATE.format(
        count=question_count,
        topic=topic,
        format_instructions=_FORMAT_INSTRUCTIONS,
    )
