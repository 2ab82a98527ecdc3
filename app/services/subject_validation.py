from __future__ import annotations

import json
from dataclasses import dataclass

import structlog

from app.generation.extractor import extract_text
from app.generation.orchestrator import ModelInvoker
from app.generation.prompts import PromptSpec
from app.generation.repairs import clean_response
from app.generation.strategies import ModelConfig

logger = structlog.get_logger(__name__)

SUGGESTION_COUNT = 5
DEFAULT_SUBJECT_SUGGESTIONS = (
    "Mathematics",
    "Science",
    "History",
    "Literature",
    "Computer Science",
)
UNAVAILABLE_REASONING = "Unable to validate subject at this time"
UNAVAILABLE_SUB_SUBJECT_REASONING = "Unable to validate sub-subject at this time"

VALIDATION_SYSTEM_PROMPT = """You are an educational expert specializing in curriculum and subject matter validation.
Your role is to verify if subjects are valid for educational quiz generation and suggest alternatives when needed.
Be strict but helpful. Only accept well-defined, educational subjects.
Never approve illegal subjects; politely refuse to test on such subjects."""

SUBJECT_USER_PROMPT = """Validate if "{subject}" is a valid educational subject for quiz generation.

Rules:
1. Accept well-defined academic subjects (e.g., Mathematics, Physics, History)
2. Accept professional/technical subjects (e.g., Programming, Marketing, Medicine)
3. Accept skill-based subjects (e.g., Critical Thinking, Public Speaking)
4. Reject vague, inappropriate, or non-educational topics
5. If valid, provide the properly capitalized/normalized form
6. If invalid, suggest 5 related valid subjects

Respond in JSON format:
{{
  "isValid": boolean,
  "normalizedSubject": "string or null",
  "suggestions": ["exactly 5 subject suggestions"],
  "reasoning": "brief explanation"
}}

Subject to validate: {subject}"""

SUB_SUBJECT_USER_PROMPT = """Determine if "{sub_subject}" is a valid sub-topic of "{subject}".

Rules:
1. The sub-subject must be directly related to the main subject
2. It should be a specific topic within the broader subject area
3. It should be appropriate for educational quiz generation
4. If valid, provide the properly formatted version
5. If invalid, suggest up to 5 related sub-topics for the main subject

Respond in JSON format:
{{
  "isValid": boolean,
  "normalizedSubSubject": "string or null",
  "suggestions": ["array of 0-5 sub-topic suggestions"],
  "reasoning": "brief explanation"
}}

Main Subject: {subject}
Sub-Subject to validate: {sub_subject}"""


@dataclass(frozen=True, slots=True)
class SubjectValidation:
    is_valid: bool
    normalized: str | None
    suggestions: tuple[str, ...]
    reasoning: str | None = None


def decode_json_object(raw_text: str) -> dict[str, object]:
    for candidate in (raw_text, clean_response(raw_text)):
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
    raise ValueError("model reply is not a JSON object")


def _string_list(value: object) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def _optional_string(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


async def _ask(invoke: ModelInvoker, model: ModelConfig, user_prompt: str) -> dict[str, object]:
    response = await invoke(PromptSpec(system=VALIDATION_SYSTEM_PROMPT, user=user_prompt), model)
    return decode_json_object(extract_text(response))


async def verify_subject(subject: str, *, invoke: ModelInvoker, model: ModelConfig) -> SubjectValidation:
    try:
        payload = await _ask(invoke, model, SUBJECT_USER_PROMPT.format(subject=subject))
    except Exception as exc:
        logger.warning("subject_validation_failed", error_type=type(exc).__name__)
        return SubjectValidation(
            is_valid=False,
            normalized=None,
            suggestions=DEFAULT_SUBJECT_SUGGESTIONS,
            reasoning=UNAVAILABLE_REASONING,
        )

    suggestions = _string_list(payload.get("suggestions"))
    if len(suggestions) != SUGGESTION_COUNT:
        suggestions = list(DEFAULT_SUBJECT_SUGGESTIONS)
    return SubjectValidation(
        is_valid=payload.get("isValid") is True,
        normalized=_optional_string(payload.get("normalizedSubject")),
        suggestions=tuple(suggestions),
        reasoning=_optional_string(payload.get("reasoning")),
    )


async def verify_sub_subject(
    subject: str,
    sub_subject: str,
    *,
    invoke: ModelInvoker,
    model: ModelConfig,
) -> SubjectValidation:
    try:
        payload = await _ask(
            invoke,
            model,
            SUB_SUBJECT_USER_PROMPT.format(subject=subject, sub_subject=sub_subject),
        )
    except Exception as exc:
        logger.warning("sub_subject_validation_failed", error_type=type(exc).__name__)
        return SubjectValidation(
            is_valid=False,
            normalized=None,
            suggestions=(),
            reasoning=UNAVAILABLE_SUB_SUBJECT_REASONING,
        )

    return SubjectValidation(
        is_valid=payload.get("isValid") is True,
        normalized=_optional_string(payload.get("normalizedSubSubject")),
        suggestions=tuple(_string_list(payload.get("suggestions"))[:SUGGESTION_COUNT]),
        reasoning=_optional_string(payload.get("reasoning")),
    )
