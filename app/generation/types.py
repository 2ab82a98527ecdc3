from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Sequence, Union

OPTIONS_PER_QUESTION = 4
MIN_DIFFICULTY_SCORE = 1
MAX_DIFFICULTY_SCORE = 10


class DifficultyLevel(str, Enum):
    EASY = "easy"
    INTERMEDIATE = "intermediate"
    HARD = "hard"


class ParseStrategy(str, Enum):
    DIRECT = "direct"
    CLEANED = "cleaned"
    STRUCTURAL_REPAIR = "structural_repair"
    PATTERN_EXTRACTION = "pattern_extraction"


@dataclass(frozen=True, slots=True)
class Question:
    ordinal: int
    text: str
    options: tuple[str, ...]
    correct_indices: tuple[int, ...]
    explanation: str | None = None
    difficulty_score: int | None = None
    topic: str | None = None

    @property
    def is_multi_select(self) -> bool:
        return len(self.correct_indices) > 1


QuestionBatch = tuple[Question, ...]


@dataclass(frozen=True, slots=True)
class ContentPart:
    kind: str
    value: str | None = None


# A provider reply is either plain text or an ordered list of typed parts.
ModelResponse = Union[str, Sequence[ContentPart]]


@dataclass(frozen=True, slots=True)
class GenerationAttempt:
    number: int
    strategy_name: str
    prompt_shape: str
    raw_text: str = ""
    batch: QuestionBatch = ()
    parse_strategy: ParseStrategy | None = None
    failure_reason: str | None = None

    @property
    def size(self) -> int:
        return len(self.batch)
