from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from app.generation.types import DifficultyLevel

DEFAULT_TOPICS_LABEL = "General topics"

DIFFICULTY_GUIDELINES = {
    DifficultyLevel.EASY: "Basic concepts, definitions, and simple applications. Difficulty 1-4.",
    DifficultyLevel.INTERMEDIATE: "Moderate complexity, analysis, and problem-solving. Difficulty 4-7.",
    DifficultyLevel.HARD: "Advanced concepts, synthesis, and complex reasoning. Difficulty 7-10.",
}

QUESTION_SYSTEM_PROMPT = """You are an expert quiz creator specializing in educational assessment.
Create engaging, clear, and pedagogically sound multiple-choice questions.
Ensure questions test understanding, not just memorization.
Include a mix of difficulty levels within the requested range.

IMPORTANT: You MUST respond with valid JSON only. No markdown blocks, no extra text, no comments in JSON.
Ensure all quotes are properly escaped and JSON syntax is perfect."""

FULL_USER_PROMPT = """Generate {count} multiple-choice questions for the subject "{subject}".

Subject: {subject}
Sub-topics to cover: {topics}
Difficulty Level: {level} - {guideline}

Requirements:
1. Each question must have exactly 4 answer options
2. Questions can have multiple correct answers (provide indices 0-3)
3. Mix question types: factual, conceptual, application, and analytical
4. Ensure questions are clear, unambiguous, and educational
5. Cover different aspects of the subject/sub-topics
6. Include brief explanations for learning purposes
7. Assign difficulty scores (1-10) based on the complexity
8. Specify which topic each question relates to

CRITICAL: Respond with VALID JSON only. No extra text, no markdown blocks, no comments.

JSON format:
{{
  "questions": [
    {{
      "question": "The question text",
      "possibleAnswers": ["Option A", "Option B", "Option C", "Option D"],
      "correctAnswer": [0],
      "explanation": "Brief explanation",
      "difficulty": 5,
      "topic": "Specific topic"
    }},
    {{
      "question": "Second question text",
      "possibleAnswers": ["Option A", "Option B", "Option C", "Option D"],
      "correctAnswer": [1, 2],
      "explanation": "Brief explanation",
      "difficulty": 6,
      "topic": "Specific topic"
    }}
  ]
}}

Ensure:
- Exactly {count} questions
- No trailing commas
- All quotes properly escaped
- Valid JSON syntax
- No comments in JSON

Generate diverse, engaging questions that test understanding, not just memorization."""

SIMPLIFIED_SYSTEM_PROMPT = """You are a quiz creator. You MUST respond with valid JSON only.
NO markdown blocks, NO extra text, NO explanations.
Create exactly {count} multiple-choice questions."""

SIMPLIFIED_USER_PROMPT = """Subject: {subject}
Topics: {topics}
Level: {level}

Return valid JSON with this structure:
{{
  "questions": [
    {{
      "question": "What is 2+2?",
      "possibleAnswers": ["3", "4", "5", "6"],
      "correctAnswer": [1]
    }}
  ]
}}

Create {count} questions following this exact format."""


class PromptShape(str, Enum):
    FULL = "full"
    SIMPLIFIED = "simplified"


@dataclass(frozen=True, slots=True)
class PromptSpec:
    system: str
    user: str


def prompt_shape_for_attempt(attempt_index: int) -> PromptShape:
    return PromptShape.FULL if attempt_index == 0 else PromptShape.SIMPLIFIED


def format_topics(topics: Sequence[str]) -> str:
    cleaned = [topic.strip() for topic in topics if topic and topic.strip()]
    return ", ".join(cleaned) if cleaned else DEFAULT_TOPICS_LABEL


def build_quiz_prompt(
    shape: PromptShape,
    *,
    target_count: int,
    subject: str,
    topics: Sequence[str],
    level: DifficultyLevel,
) -> PromptSpec:
    level = DifficultyLevel(level)
    values = {
        "count": target_count,
        "subject": subject,
        "topics": format_topics(topics),
        "level": level.value,
        "guideline": DIFFICULTY_GUIDELINES[level],
    }
    if shape is PromptShape.FULL:
        return PromptSpec(system=QUESTION_SYSTEM_PROMPT, user=FULL_USER_PROMPT.format(**values))
    return PromptSpec(
        system=SIMPLIFIED_SYSTEM_PROMPT.format(**values),
        user=SIMPLIFIED_USER_PROMPT.format(**values),
    )
