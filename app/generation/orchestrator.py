"""Bounded, sequential quiz generation over an ordered list of model strategies.

Each attempt asks one strategy for a full batch and runs the reply through
extraction, recovery and validation. An attempt that yields exactly the
requested number of valid questions ends the call. Shorter valid batches are
kept as the best attempt so far and are surfaced through
:class:`InsufficientQuestionsError` when no attempt reaches the target.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, Sequence

from app.generation.errors import (
    GenerationExhaustedError,
    InsufficientQuestionsError,
    RecoveryExhaustedError,
    SchemaInvalidError,
)
from app.generation.extractor import extract_text
from app.generation.observer import GenerationObserver, LoggingGenerationObserver
from app.generation.prompts import PromptSpec, build_quiz_prompt, prompt_shape_for_attempt
from app.generation.recovery import RecoveryResult, parse_quiz_response
from app.generation.strategies import GenerationStrategy, ModelConfig
from app.generation.types import (
    DifficultyLevel,
    GenerationAttempt,
    ModelResponse,
    ParseStrategy,
    QuestionBatch,
)
from app.generation.validation import validate_batch

ModelInvoker = Callable[[PromptSpec, ModelConfig], Awaitable[ModelResponse]]

RAW_PREVIEW_CHARS = 200


@dataclass(frozen=True, slots=True)
class QuizRequest:
    target_count: int
    subject: str
    topics: tuple[str, ...]
    level: DifficultyLevel


def _recover_valid_batch(raw_text: str, *, target_count: int) -> RecoveryResult:
    recovered = parse_quiz_response(raw_text)
    report = validate_batch(recovered.batch, target_count)
    if not report.ok:
        raise SchemaInvalidError(report.reasons)
    return recovered


class QuizGenerator:
    def __init__(
        self,
        *,
        invoke: ModelInvoker,
        strategies: Sequence[GenerationStrategy],
        observer: GenerationObserver | None = None,
    ) -> None:
        if not strategies:
            raise ValueError("at least one generation strategy is required")
        self._invoke = invoke
        self._strategies = tuple(strategies)
        self._observer = observer if observer is not None else LoggingGenerationObserver()

    @property
    def max_attempts(self) -> int:
        return len(self._strategies)

    def _strategy_for(self, attempt_index: int) -> GenerationStrategy:
        if attempt_index < len(self._strategies):
            return self._strategies[attempt_index]
        return self._strategies[0]

    async def _run_attempt(self, attempt_index: int, request: QuizRequest) -> GenerationAttempt:
        number = attempt_index + 1
        strategy = self._strategy_for(attempt_index)
        shape = prompt_shape_for_attempt(attempt_index)
        self._observer.emit(
            "attempt_started",
            attempt=number,
            strategy=strategy.name,
            model=strategy.model.model,
            prompt_shape=shape.value,
        )
        prompt = build_quiz_prompt(
            shape,
            target_count=request.target_count,
            subject=request.subject,
            topics=request.topics,
            level=request.level,
        )

        try:
            response = await self._invoke(prompt, strategy.model)
        except Exception as exc:
            return GenerationAttempt(
                number=number,
                strategy_name=strategy.name,
                prompt_shape=shape.value,
                failure_reason=f"{type(exc).__name__}: {exc}",
            )

        raw_text = extract_text(response)
        try:
            recovered = _recover_valid_batch(raw_text, target_count=request.target_count)
        except (RecoveryExhaustedError, SchemaInvalidError) as exc:
            return GenerationAttempt(
                number=number,
                strategy_name=strategy.name,
                prompt_shape=shape.value,
                raw_text=raw_text,
                failure_reason=f"Invalid question format ({exc})",
            )

        if recovered.strategy is not ParseStrategy.DIRECT:
            self._observer.emit(
                "strategy_fallback",
                attempt=number,
                strategy=strategy.name,
                parse_strategy=recovered.strategy.value,
            )
        return GenerationAttempt(
            number=number,
            strategy_name=strategy.name,
            prompt_shape=shape.value,
            raw_text=raw_text,
            batch=recovered.batch,
            parse_strategy=recovered.strategy,
        )

    async def generate(
        self,
        *,
        target_count: int,
        subject: str,
        topics: Sequence[str],
        level: DifficultyLevel | str,
    ) -> QuestionBatch:
        if target_count < 1:
            raise ValueError("target_count must be positive")
        request = QuizRequest(
            target_count=target_count,
            subject=subject,
            topics=tuple(topics),
            level=DifficultyLevel(level),
        )
        self._observer.emit(
            "generation_started",
            target_count=target_count,
            level=request.level.value,
            topics_count=len(request.topics),
            max_attempts=self.max_attempts,
        )

        best: GenerationAttempt | None = None
        attempt_log: list[str] = []
        for attempt_index in range(self.max_attempts):
            attempt = await self._run_attempt(attempt_index, request)

            if attempt.failure_reason is not None:
                attempt_log.append(f"Attempt {attempt.number}: {attempt.failure_reason}")
                self._observer.emit(
                    "attempt_failed",
                    attempt=attempt.number,
                    strategy=attempt.strategy_name,
                    reason=attempt.failure_reason,
                    raw_preview=attempt.raw_text[:RAW_PREVIEW_CHARS],
                    best_count=best.size if best is not None else 0,
                )
                continue

            if attempt.size == target_count:
                self._observer.emit(
                    "generation_succeeded",
                    attempt=attempt.number,
                    strategy=attempt.strategy_name,
                    count=attempt.size,
                )
                return attempt.batch

            if best is None or attempt.size > best.size:
                best = attempt
            attempt_log.append(f"Attempt {attempt.number}: generated {attempt.size}/{target_count} questions")
            self._observer.emit(
                "attempt_partial",
                attempt=attempt.number,
                strategy=attempt.strategy_name,
                count=attempt.size,
                best_count=best.size,
            )

        if best is not None:
            self._observer.emit(
                "generation_insufficient",
                requested_count=target_count,
                achieved_count=best.size,
                best_attempt=best.number,
                attempts=len(attempt_log),
            )
            raise InsufficientQuestionsError(
                requested_count=target_count,
                partial_batch=best.batch,
                attempt_log=attempt_log,
            )

        self._observer.emit("generation_exhausted", requested_count=target_count, attempts=len(attempt_log))
        raise GenerationExhaustedError(attempt_log)
