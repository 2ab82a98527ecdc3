from __future__ import annotations

from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, HTTPException

from app.core.config import get_settings
from app.generation.errors import GenerationExhaustedError, InsufficientQuestionsError
from app.generation.orchestrator import ModelInvoker, QuizGenerator
from app.generation.strategies import build_default_strategies, creative_model, deterministic_model
from app.generation.types import Question, QuestionBatch
from app.llm.client import get_model_invoker
from app.services.quiz_review import AnsweredQuestion, review_quiz
from app.services.subject_validation import verify_sub_subject, verify_subject

from .quiz_models import (
    GenerateQuizRequest,
    GenerateQuizResponse,
    QuestionPayload,
    QuestionReviewPayload,
    QuizMetadata,
    ReviewQuizRequest,
    ReviewQuizResponse,
    SubjectVerificationResponse,
    UserAnswerPayload,
    VerifySubjectRequest,
    VerifySubSubjectRequest,
)

router = APIRouter(prefix="/api", tags=["quiz"])
logger = structlog.get_logger(__name__)

POSSIBLE_SOLUTIONS = (
    'Try using a broader subject (e.g., "Mathematics" instead of "Advanced Differential Equations")',
    "Reduce the number of sub-subjects",
    "Choose a different difficulty level",
    "Use more common educational topics",
)
RETRY_HINT = "Try simplifying your request or choose a different subject/topic combination."


def _resolve_invoker() -> ModelInvoker:
    try:
        return get_model_invoker()
    except RuntimeError as exc:
        logger.error("llm_not_configured")
        raise HTTPException(status_code=503, detail={"code": "E_LLM_NOT_CONFIGURED"}) from exc


def build_quiz_generator() -> QuizGenerator:
    return QuizGenerator(
        invoke=_resolve_invoker(),
        strategies=build_default_strategies(get_settings()),
    )


def to_question_payload(question: Question) -> QuestionPayload:
    return QuestionPayload(
        question_num=question.ordinal,
        question=question.text,
        possible_answers=list(question.options),
        correct_answer=list(question.correct_indices),
        explanation=question.explanation,
        difficulty=question.difficulty_score,
        topic=question.topic,
    )


def _payloads(batch: QuestionBatch) -> list[QuestionPayload]:
    return [to_question_payload(question) for question in batch]


def to_answered_question(payload: UserAnswerPayload) -> AnsweredQuestion:
    return AnsweredQuestion(
        ordinal=payload.question_num,
        text=payload.question,
        options=tuple(payload.possible_answers),
        correct_indices=tuple(payload.correct_answer),
        selected_indices=tuple(payload.user_answer),
    )


@router.post(
    "/generate-quiz",
    response_model=GenerateQuizResponse,
    response_model_exclude_none=True,
)
async def generate_quiz(payload: GenerateQuizRequest) -> GenerateQuizResponse:
    settings = get_settings()
    generator = build_quiz_generator()
    try:
        batch = await generator.generate(
            target_count=settings.quiz_question_count,
            subject=payload.subject,
            topics=payload.sub_subjects,
            level=payload.level,
        )
    except InsufficientQuestionsError as exc:
        raise HTTPException(
            status_code=422,
            detail={
                "code": "E_INSUFFICIENT_QUESTIONS",
                "message": str(exc),
                "requested": exc.requested_count,
                "generated": exc.achieved_count,
                "suggestion": exc.hint,
                "possibleSolutions": list(POSSIBLE_SOLUTIONS),
                "partialQuestions": [
                    item.model_dump(by_alias=True, exclude_none=True) for item in _payloads(exc.partial_batch)
                ],
            },
        ) from exc
    except GenerationExhaustedError as exc:
        raise HTTPException(
            status_code=502,
            detail={
                "code": "E_QUIZ_GENERATION_FAILED",
                "message": "Unable to generate quiz at this time. Please try again with different parameters.",
                "suggestion": RETRY_HINT,
            },
        ) from exc

    return GenerateQuizResponse(
        questions=_payloads(batch),
        metadata=QuizMetadata(
            subject=payload.subject,
            sub_subjects=payload.sub_subjects,
            level=payload.level,
            generated_at=datetime.now(timezone.utc),
        ),
    )


@router.post(
    "/review-quiz",
    response_model=ReviewQuizResponse,
)
async def review_quiz_answers(payload: ReviewQuizRequest) -> ReviewQuizResponse:
    review = await review_quiz(
        [to_answered_question(answer) for answer in payload.user_answers],
        invoke=_resolve_invoker(),
        model=creative_model(get_settings()),
    )
    return ReviewQuizResponse(
        score=review.score.percentage,
        correct_answers=review.score.correct_count,
        total_questions=review.score.total_count,
        reflection=review.reflection,
        question_reviews=[
            QuestionReviewPayload(
                question_num=item.ordinal,
                is_correct=item.is_correct,
                explanation=item.explanation,
            )
            for item in review.question_reviews
        ],
    )


@router.post(
    "/verify-subject",
    response_model=SubjectVerificationResponse,
    response_model_exclude_none=True,
)
async def verify_subject_route(payload: VerifySubjectRequest) -> SubjectVerificationResponse:
    result = await verify_subject(
        payload.subject,
        invoke=_resolve_invoker(),
        model=deterministic_model(get_settings()),
    )
    if result.is_valid:
        return SubjectVerificationResponse(
            valid=True,
            subject=result.normalized or payload.subject,
            message=f'"{payload.subject}" is a valid subject for quiz generation.',
        )
    return SubjectVerificationResponse(
        valid=False,
        subject=payload.subject,
        suggestions=list(result.suggestions),
        message=f'"{payload.subject}" is not recognized. Here are some related subjects you might be interested in.',
    )


@router.post(
    "/verify-sub-subject",
    response_model=SubjectVerificationResponse,
    response_model_exclude_none=True,
)
async def verify_sub_subject_route(payload: VerifySubSubjectRequest) -> SubjectVerificationResponse:
    result = await verify_sub_subject(
        payload.subject,
        payload.sub_subject,
        invoke=_resolve_invoker(),
        model=deterministic_model(get_settings()),
    )
    if result.is_valid:
        return SubjectVerificationResponse(
            valid=True,
            subject=payload.subject,
            sub_subject=result.normalized or payload.sub_subject,
            message=f'"{payload.sub_subject}" is a valid sub-topic of {payload.subject}.',
        )
    return SubjectVerificationResponse(
        valid=False,
        subject=payload.subject,
        sub_subject=payload.sub_subject,
        suggestions=list(result.suggestions),
        message=f'"{payload.sub_subject}" is not directly related to {payload.subject}. Here are some related sub-topics.',
    )
