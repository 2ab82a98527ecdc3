"""Cascading recovery of a question batch from raw model text.

Strategies run in order and the first accepted batch wins:

1. direct ``json.loads`` of the raw text,
2. the same after cosmetic cleanup (:func:`app.generation.repairs.clean_response`),
3. the same after structural repair (:func:`app.generation.repairs.repair_structure`),
4. regex extraction of question / answers / correct-index triples.

Strategies 1-3 accept a batch only when every element is a well-formed
question. Strategy 4 keeps the well-formed subset and skips the rest.
"""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass
from typing import Any, Callable

import structlog

from app.generation.errors import RecoveryExhaustedError
from app.generation.repairs import clean_response, repair_structure
from app.generation.types import (
    MAX_DIFFICULTY_SCORE,
    MIN_DIFFICULTY_SCORE,
    OPTIONS_PER_QUESTION,
    ParseStrategy,
    Question,
    QuestionBatch,
)

logger = structlog.get_logger(__name__)

MAX_PATTERN_ITEMS = 10
MAX_CORRECT_INDEX = OPTIONS_PER_QUESTION - 1

_QUESTION_PATTERN = re.compile(r'"?question"?\s*:\s*"([^"]+)"', re.IGNORECASE)
_ANSWERS_PATTERN = re.compile(r'"?possibleAnswers"?\s*:\s*\[([^\]]+)\]', re.IGNORECASE)
_CORRECT_PATTERN = re.compile(r'"?correctAnswer"?\s*:\s*\[([^\]]+)\]', re.IGNORECASE)
_LEADING_INT = re.compile(r"\s*(-?\d+)")
_SURROUNDING_QUOTES = re.compile(r"^[\"']|[\"']$")


@dataclass(frozen=True, slots=True)
class RecoveryResult:
    batch: QuestionBatch
    strategy: ParseStrategy


def _is_index(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= MAX_CORRECT_INDEX


def _is_plausible_question(item: object) -> bool:
    if not isinstance(item, dict):
        return False
    text = item.get("question")
    if not isinstance(text, str) or not text.strip():
        return False
    options = item.get("possibleAnswers")
    if not isinstance(options, list) or len(options) != OPTIONS_PER_QUESTION:
        return False
    if not all(isinstance(option, str) and option.strip() for option in options):
        return False
    correct = item.get("correctAnswer")
    if not isinstance(correct, list) or not correct:
        return False
    return all(_is_index(index) for index in correct)


def is_plausible_batch(parsed: object) -> bool:
    """All-or-nothing gate: every element of ``questions`` must be well-formed."""
    if not isinstance(parsed, dict):
        return False
    questions = parsed.get("questions")
    if not isinstance(questions, list) or not questions:
        return False
    return all(_is_plausible_question(item) for item in questions)


def _optional_text(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    return value.strip() or None


def _difficulty_score(value: object) -> int | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    score = int(value)
    if MIN_DIFFICULTY_SCORE <= score <= MAX_DIFFICULTY_SCORE:
        return score
    return None


def _to_question(ordinal: int, item: dict[str, Any]) -> Question:
    return Question(
        ordinal=ordinal,
        text=item["question"].strip(),
        options=tuple(item["possibleAnswers"]),
        correct_indices=tuple(sorted(set(item["correctAnswer"]))),
        explanation=_optional_text(item.get("explanation")),
        difficulty_score=_difficulty_score(item.get("difficulty")),
        topic=_optional_text(item.get("topic")),
    )


def _batch_from_document(parsed: dict[str, Any]) -> QuestionBatch:
    return tuple(_to_question(index, item) for index, item in enumerate(parsed["questions"], start=1))


def _parse_document(text: str) -> QuestionBatch:
    parsed = json.loads(text)
    if not is_plausible_batch(parsed):
        raise ValueError("parsed document is not a fully valid question batch")
    return _batch_from_document(parsed)


def parse_direct(raw_text: str) -> QuestionBatch:
    return _parse_document(raw_text)


def parse_cleaned(raw_text: str) -> QuestionBatch:
    return _parse_document(clean_response(raw_text))


def parse_repaired(raw_text: str) -> QuestionBatch:
    return _parse_document(repair_structure(raw_text))


def _split_options(body: str) -> list[str]:
    pieces = (_SURROUNDING_QUOTES.sub("", piece.strip()) for piece in body.split(","))
    return [piece for piece in pieces if piece][:OPTIONS_PER_QUESTION]


def _split_indices(body: str) -> list[int]:
    indices: list[int] = []
    for piece in body.split(","):
        match = _LEADING_INT.match(piece)
        if match is None:
            continue
        value = int(match.group(1))
        if 0 <= value <= MAX_CORRECT_INDEX and value not in indices:
            indices.append(value)
    return indices


def extract_with_patterns(raw_text: str) -> QuestionBatch:
    texts = _QUESTION_PATTERN.findall(raw_text)
    answers = _ANSWERS_PATTERN.findall(raw_text)
    corrects = _CORRECT_PATTERN.findall(raw_text)

    questions: list[Question] = []
    for position, (text, answers_body, correct_body) in enumerate(zip(texts, answers, corrects)):
        if position >= MAX_PATTERN_ITEMS:
            break
        options = _split_options(answers_body)
        indices = _split_indices(correct_body)
        if not text.strip() or len(options) != OPTIONS_PER_QUESTION or not indices:
            logger.debug("quiz_pattern_item_skipped", position=position + 1)
            continue
        questions.append(
            Question(
                ordinal=len(questions) + 1,
                text=text.strip(),
                options=tuple(options),
                correct_indices=tuple(sorted(indices)),
            )
        )
    return tuple(questions)


def _parse_patterns(raw_text: str) -> QuestionBatch:
    batch = extract_with_patterns(raw_text)
    if not batch:
        raise ValueError("no question triples found")
    return batch


STRATEGIES: tuple[tuple[ParseStrategy, Callable[[str], QuestionBatch]], ...] = (
    (ParseStrategy.DIRECT, parse_direct),
    (ParseStrategy.CLEANED, parse_cleaned),
    (ParseStrategy.STRUCTURAL_REPAIR, parse_repaired),
    (ParseStrategy.PATTERN_EXTRACTION, _parse_patterns),
)


def parse_quiz_response(raw_text: str) -> RecoveryResult:
    reasons: list[str] = []
    for strategy, parse in STRATEGIES:
        try:
            batch = parse(raw_text)
        except (ValueError, RecursionError) as exc:
            reasons.append(f"{strategy.value}: {exc}")
            continue
        return RecoveryResult(batch=batch, strategy=strategy)
    raise RecoveryExhaustedError(reasons)
