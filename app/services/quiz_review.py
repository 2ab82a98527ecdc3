from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Sequence

import structlog

from app.generation.extractor import extract_text
from app.generation.orchestrator import ModelInvoker
from app.generation.prompts import PromptSpec
from app.generation.strategies import ModelConfig

logger = structlog.get_logger(__name__)

REVIEW_SYSTEM_PROMPT = """You are an encouraging educational coach providing personalized feedback.
Analyze quiz performance thoughtfully and provide constructive, motivating feedback.
Focus on both achievements and areas for improvement.
Be specific and actionable in your recommendations."""

REVIEW_USER_PROMPT = """Generate a personalized reflection paragraph for a quiz taker based on their performance.

Quiz Performance:
- Score: {percentage}% ({correct_count}/{total_count} questions correct)
- Questions answered correctly: {correct_questions}
- Questions answered incorrectly: {incorrect_questions}

Detailed Results:
{details}

Create a thoughtful, encouraging reflection (100-300 words) that:
1. Acknowledges their performance level
2. Highlights specific strengths shown in correct answers
3. Identifies patterns in incorrect answers
4. Provides specific, actionable study recommendations
5. Encourages continued learning
6. Maintains a positive, constructive tone

The reflection should be personal and specific to their actual performance, not generic."""


@dataclass(frozen=True, slots=True)
class AnsweredQuestion:
    ordinal: int
    text: str
    options: tuple[str, ...]
    correct_indices: tuple[int, ...]
    selected_indices: tuple[int, ...]


@dataclass(frozen=True, slots=True)
class ScoreResult:
    correct_count: int
    total_count: int
    percentage: int


@dataclass(frozen=True, slots=True)
class QuestionReview:
    ordinal: int
    is_correct: bool
    explanation: str


@dataclass(frozen=True, slots=True)
class QuizReview:
    score: ScoreResult
    reflection: str
    question_reviews: tuple[QuestionReview, ...]


def is_answer_correct(answer: AnsweredQuestion) -> bool:
    return sorted(answer.selected_indices) == sorted(answer.correct_indices)


def score_answers(answers: Sequence[AnsweredQuestion]) -> ScoreResult:
    total = len(answers)
    correct = sum(1 for answer in answers if is_answer_correct(answer))
    percentage = int(correct * 100 / total + 0.5) if total else 0
    return ScoreResult(correct_count=correct, total_count=total, percentage=percentage)


def format_answer_indices(indices: Sequence[int], options: Sequence[str]) -> str:
    labels = [f'"{options[index]}"' for index in indices if 0 <= index < len(options)]
    if not labels:
        return "nothing"
    if len(labels) == 1:
        return labels[0]
    return f"{', '.join(labels[:-1])} and {labels[-1]}"


def explain_answer(answer: AnsweredQuestion) -> str:
    if is_answer_correct(answer):
        return f"Correct! You selected {format_answer_indices(answer.selected_indices, answer.options)}."

    correct_text = format_answer_indices(answer.correct_indices, answer.options)
    selected_text = (
        format_answer_indices(answer.selected_indices, answer.options) if answer.selected_indices else "no answer"
    )
    return f"Incorrect. You selected {selected_text}, but the correct answer is {correct_text}."


def fallback_reflection(score: ScoreResult) -> str:
    summary = (
        f"You scored {score.percentage}% by correctly answering "
        f"{score.correct_count} out of {score.total_count} questions."
    )
    if score.percentage >= 80:
        return (
            f"Excellent work! {summary} Your strong performance demonstrates a solid understanding "
            "of the material. To further enhance your knowledge, consider exploring more advanced topics "
            "or practicing with harder difficulty levels. Keep up the great work!"
        )
    if score.percentage >= 60:
        return (
            f"Good effort! {summary} You're showing a decent grasp of the material, with room for "
            "improvement. Review the questions you missed and focus on understanding the underlying "
            "concepts. With more practice, you'll definitely improve your score!"
        )
    return (
        f"{summary} While this might not be the score you hoped for, remember that learning is a "
        "process. Take time to review the material, especially the topics you found challenging. "
        "Consider starting with easier difficulty levels to build confidence. Every quiz is a "
        "learning opportunity!"
    )


def build_review_prompt(answers: Sequence[AnsweredQuestion], score: ScoreResult) -> PromptSpec:
    details = [
        {
            "questionNum": answer.ordinal,
            "question": answer.text,
            "userAnswer": list(answer.selected_indices),
            "correctAnswer": list(answer.correct_indices),
            "isCorrect": is_answer_correct(answer),
            "possibleAnswers": list(answer.options),
        }
        for answer in answers
    ]
    correct = [f"Q{answer.ordinal}" for answer in answers if is_answer_correct(answer)]
    incorrect = [f"Q{answer.ordinal}" for answer in answers if not is_answer_correct(answer)]
    return PromptSpec(
        system=REVIEW_SYSTEM_PROMPT,
        user=REVIEW_USER_PROMPT.format(
            percentage=score.percentage,
            correct_count=score.correct_count,
            total_count=score.total_count,
            correct_questions=", ".join(correct) or "none",
            incorrect_questions=", ".join(incorrect) or "none",
            details=json.dumps(details, indent=2, ensure_ascii=False),
        ),
    )


async def review_quiz(
    answers: Sequence[AnsweredQuestion],
    *,
    invoke: ModelInvoker,
    model: ModelConfig,
) -> QuizReview:
    score = score_answers(answers)
    reviews = tuple(
        QuestionReview(
            ordinal=answer.ordinal,
            is_correct=is_answer_correct(answer),
            explanation=explain_answer(answer),
        )
        for answer in answers
    )

    try:
        response = await invoke(build_review_prompt(answers, score), model)
        reflection = extract_text(response).strip()
    except Exception as exc:
        logger.warning("quiz_review_reflection_failed", error_type=type(exc).__name__)
        reflection = ""
    if not reflection:
        reflection = fallback_reflection(score)

    return QuizReview(score=score, reflection=reflection, question_reviews=reviews)
