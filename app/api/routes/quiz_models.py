from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from app.generation.types import DifficultyLevel

SUBJECT_PATTERN = r"^[a-zA-Z0-9\s\-&,.()]+$"
SUB_SUBJECT_PATTERN = r"^[a-zA-Z0-9\s\-&,.()/:]+$"

SubjectText = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=2, max_length=100, pattern=SUBJECT_PATTERN),
]
SubSubjectText = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=2, max_length=150, pattern=SUB_SUBJECT_PATTERN),
]
AnswerIndex = Annotated[int, Field(ge=0, le=3)]


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class VerifySubjectRequest(_WireModel):
    subject: SubjectText


class VerifySubSubjectRequest(_WireModel):
    subject: SubjectText
    sub_subject: SubSubjectText = Field(alias="subSubject")


class SubjectVerificationResponse(_WireModel):
    success: bool = True
    valid: bool
    subject: str
    sub_subject: str | None = Field(default=None, alias="subSubject")
    suggestions: list[str] = Field(default_factory=list)
    message: str


class GenerateQuizRequest(_WireModel):
    subject: SubjectText
    sub_subjects: list[SubSubjectText] = Field(default_factory=list, max_length=10, alias="subSubjects")
    level: DifficultyLevel


class QuestionPayload(_WireModel):
    question_num: int = Field(ge=1, alias="questionNum")
    question: str = Field(min_length=1, max_length=1000)
    possible_answers: list[str] = Field(min_length=4, max_length=4, alias="possibleAnswers")
    correct_answer: list[AnswerIndex] = Field(min_length=1, max_length=4, alias="correctAnswer")
    explanation: str | None = None
    difficulty: int | None = Field(default=None, ge=1, le=10)
    topic: str | None = None


class QuizMetadata(_WireModel):
    subject: str
    sub_subjects: list[str] = Field(alias="subSubjects")
    level: DifficultyLevel
    generated_at: datetime = Field(alias="generatedAt")


class GenerateQuizResponse(_WireModel):
    success: bool = True
    questions: list[QuestionPayload]
    metadata: QuizMetadata


class UserAnswerPayload(QuestionPayload):
    user_answer: list[AnswerIndex] = Field(default_factory=list, max_length=4, alias="userAnswer")


class ReviewQuizRequest(_WireModel):
    user_answers: list[UserAnswerPayload] = Field(min_length=1, max_length=50, alias="userAnswers")


class QuestionReviewPayload(_WireModel):
    question_num: int = Field(alias="questionNum")
    is_correct: bool = Field(alias="isCorrect")
    explanation: str


class ReviewQuizResponse(_WireModel):
    success: bool = True
    score: int = Field(ge=0, le=100)
    correct_answers: int = Field(ge=0, alias="correctAnswers")
    total_questions: int = Field(ge=0, alias="totalQuestions")
    reflection: str
    question_reviews: list[QuestionReviewPayload] = Field(alias="questionReviews")
