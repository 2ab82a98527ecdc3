from __future__ import annotations

from dataclasses import dataclass, field

from app.generation.types import OPTIONS_PER_QUESTION, Question, QuestionBatch


@dataclass(frozen=True, slots=True)
class ValidationReport:
    ok: bool
    valid_count: int
    reasons: tuple[str, ...] = field(default_factory=tuple)


def question_issues(question: Question) -> list[str]:
    issues: list[str] = []
    if question.ordinal < 1:
        issues.append(f"ordinal must be positive, got {question.ordinal}")
    if not question.text.strip():
        issues.append("question text is empty")
    if len(question.options) != OPTIONS_PER_QUESTION:
        issues.append(f"expected exactly {OPTIONS_PER_QUESTION} options, got {len(question.options)}")
    if not question.correct_indices:
        issues.append("no correct answers specified")
    out_of_range = [index for index in question.correct_indices if not 0 <= index < OPTIONS_PER_QUESTION]
    if out_of_range:
        issues.append(f"correct answer indices out of range: {out_of_range}")
    return issues


def validate_batch(batch: QuestionBatch, target_count: int) -> ValidationReport:
    """Check every question of ``batch``; batch size is not compared with ``target_count``."""
    if not batch:
        return ValidationReport(ok=False, valid_count=0, reasons=("batch contains no questions",))

    reasons: list[str] = []
    valid_count = 0
    for position, question in enumerate(batch, start=1):
        issues = question_issues(question)
        if not issues:
            valid_count += 1
            continue
        reasons.extend(f"Question {position}: {issue}" for issue in issues)

    if reasons:
        reasons.append(f"{valid_count}/{len(batch)} questions well-formed (target {target_count})")
    return ValidationReport(ok=not reasons, valid_count=valid_count, reasons=tuple(reasons))
