from __future__ import annotations

import json
from typing import Any

from app.generation.strategies import GenerationStrategy, ModelConfig
from app.generation.types import Question


def question_item(
    number: int,
    *,
    label: str = "fact",
    options: list[str] | None = None,
    correct: list[int] | None = None,
    **extra: Any,
) -> dict[str, Any]:
    item: dict[str, Any] = {
        "question": f"Which {label} is number {number}?",
        "possibleAnswers": (
            options if options is not None else [f"{label} {number} option {letter}" for letter in "ABCD"]
        ),
        "correctAnswer": correct if correct is not None else [number % 4],
    }
    item.update(extra)
    return item


def questions_document(count: int, *, label: str = "fact") -> dict[str, Any]:
    return {"questions": [question_item(number, label=label) for number in range(1, count + 1)]}


def questions_json(count: int, *, label: str = "fact", indent: int | None = 2) -> str:
    return json.dumps(questions_document(count, label=label), indent=indent)


def make_question(ordinal: int = 1, **overrides: Any) -> Question:
    values: dict[str, Any] = {
        "ordinal": ordinal,
        "text": f"Question {ordinal}?",
        "options": ("A", "B", "C", "D"),
        "correct_indices": (0,),
    }
    values.update(overrides)
    return Question(**values)


def make_strategies(count: int) -> tuple[GenerationStrategy, ...]:
    return tuple(
        GenerationStrategy(
            name=f"strategy_{index}",
            model=ModelConfig(
                name=f"strategy_{index}",
                model=f"model-{index}",
                temperature=0.0,
                max_tokens=1000,
                timeout_seconds=5.0,
            ),
        )
        for index in range(count)
    )


class RecordingObserver:
    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []

    def emit(self, event: str, **fields: Any) -> None:
        self.events.append((event, fields))

    def named(self, event: str) -> list[dict[str, Any]]:
        return [fields for name, fields in self.events if name == event]

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.events]


class ScriptedInvoker:
    """Replays canned replies in order; exception instances are raised."""

    def __init__(self, replies: list[object]) -> None:
        self._replies = list(replies)
        self.calls: list[tuple[Any, ModelConfig]] = []

    async def __call__(self, prompt: Any, model: ModelConfig) -> Any:
        self.calls.append((prompt, model))
        reply = self._replies[len(self.calls) - 1]
        if isinstance(reply, BaseException):
            raise reply
        return reply
