from __future__ import annotations

from typing import Sequence

from app.generation.types import QuestionBatch

DEFAULT_INSUFFICIENT_HINT = (
    "The subject/topic combination may be too specific or complex. "
    "Try using a broader subject or different sub-topics."
)


class QuizGenerationError(Exception):
    pass


class RecoveryExhaustedError(QuizGenerationError):
    def __init__(self, reasons: Sequence[str]) -> None:
        self.reasons = tuple(reasons)
        super().__init__("no recovery strategy produced a valid question batch")


class SchemaInvalidError(QuizGenerationError):
    def __init__(self, reasons: Sequence[str]) -> None:
        self.reasons = tuple(reasons)
        detail = "; ".join(self.reasons) if self.reasons else "invalid question batch"
        super().__init__(detail)


class ExternalCallError(QuizGenerationError):
    pass


class InsufficientQuestionsError(QuizGenerationError):
    def __init__(
        self,
        *,
        requested_count: int,
        partial_batch: QuestionBatch,
        attempt_log: Sequence[str],
        hint: str = DEFAULT_INSUFFICIENT_HINT,
    ) -> None:
        self.requested_count = requested_count
        self.partial_batch = partial_batch
        self.achieved_count = len(partial_batch)
        self.attempt_log = tuple(attempt_log)
        self.hint = hint
        super().__init__(
            f"Unable to generate {requested_count} questions after {len(self.attempt_log)} attempts. "
            f"Only {self.achieved_count} questions could be generated."
        )


class GenerationExhaustedError(QuizGenerationError):
    def __init__(self, attempt_log: Sequence[str]) -> None:
        self.attempt_log = tuple(attempt_log)
        super().__init__("All quiz generation attempts failed - no questions could be generated")
