import asyncio
import json

import pytest

from app.generation import orchestrator
from app.generation.errors import (
    ExternalCallError,
    GenerationExhaustedError,
    InsufficientQuestionsError,
)
from app.generation.orchestrator import QuizGenerator
from app.generation.prompts import QUESTION_SYSTEM_PROMPT
from app.generation.recovery import RecoveryResult
from app.generation.types import ContentPart, ParseStrategy
from tests.generation.quiz_payload_fixtures import (
    RecordingObserver,
    ScriptedInvoker,
    make_question,
    make_strategies,
    question_item,
    questions_json,
)


def _generator(invoker: ScriptedInvoker, observer: RecordingObserver, attempts: int = 3) -> QuizGenerator:
    return QuizGenerator(invoke=invoker, strategies=make_strategies(attempts), observer=observer)


async def _generate(generator: QuizGenerator, target_count: int = 10):
    return await generator.generate(
        target_count=target_count,
        subject="Astronomy",
        topics=["Planets"],
        level="intermediate",
    )


@pytest.mark.asyncio
async def test_exact_count_on_first_attempt_stops_immediately() -> None:
    invoker = ScriptedInvoker([questions_json(10), questions_json(10), questions_json(10)])
    observer = RecordingObserver()

    batch = await _generate(_generator(invoker, observer))

    assert len(batch) == 10
    assert len(invoker.calls) == 1
    assert observer.named("generation_succeeded") == [{"attempt": 1, "strategy": "strategy_0", "count": 10}]


@pytest.mark.asyncio
async def test_attempts_walk_strategies_and_switch_to_simplified_prompt() -> None:
    invoker = ScriptedInvoker(["nope", "nope", questions_json(10)])
    observer = RecordingObserver()

    await _generate(_generator(invoker, observer))

    assert [model.name for _, model in invoker.calls] == ["strategy_0", "strategy_1", "strategy_2"]
    assert invoker.calls[0][0].system == QUESTION_SYSTEM_PROMPT
    assert invoker.calls[1][0].system.startswith("You are a quiz creator.")
    assert [fields["prompt_shape"] for fields in observer.named("attempt_started")] == [
        "full",
        "simplified",
        "simplified",
    ]


@pytest.mark.asyncio
async def test_best_attempt_never_shrinks() -> None:
    invoker = ScriptedInvoker(
        [
            questions_json(3, label="first"),
            questions_json(7, label="second"),
            questions_json(5, label="third"),
        ]
    )
    observer = RecordingObserver()

    with pytest.raises(InsufficientQuestionsError) as exc_info:
        await _generate(_generator(invoker, observer))

    assert [fields["best_count"] for fields in observer.named("attempt_partial")] == [3, 7, 7]
    assert exc_info.value.achieved_count == 7
    assert exc_info.value.partial_batch[0].text == "Which second is number 1?"


@pytest.mark.asyncio
async def test_insufficient_questions_carries_best_partial_batch_and_log() -> None:
    invoker = ScriptedInvoker(
        [
            questions_json(4, label="first"),
            questions_json(6, label="second"),
            ExternalCallError("fast model timed out after 30s"),
        ]
    )
    observer = RecordingObserver()

    with pytest.raises(InsufficientQuestionsError) as exc_info:
        await _generate(_generator(invoker, observer))

    error = exc_info.value
    assert error.requested_count == 10
    assert error.achieved_count == 6
    assert [question.ordinal for question in error.partial_batch] == [1, 2, 3, 4, 5, 6]
    assert error.partial_batch[-1].text == "Which second is number 6?"
    assert error.attempt_log == (
        "Attempt 1: generated 4/10 questions",
        "Attempt 2: generated 6/10 questions",
        "Attempt 3: ExternalCallError: fast model timed out after 30s",
    )
    assert error.hint
    assert "Only 6 questions could be generated" in str(error)
    assert observer.named("attempt_failed")[0]["best_count"] == 6
    assert observer.names[-1] == "generation_insufficient"


@pytest.mark.asyncio
async def test_every_attempt_failing_exhausts_generation() -> None:
    invoker = ScriptedInvoker(
        [
            ExternalCallError("creative model call failed: APIConnectionError"),
            "I'm sorry, I can't help with that.",
            RuntimeError("socket closed"),
        ]
    )
    observer = RecordingObserver()

    with pytest.raises(GenerationExhaustedError) as exc_info:
        await _generate(_generator(invoker, observer))

    log = exc_info.value.attempt_log
    assert len(log) == 3
    assert log[1].startswith("Attempt 2: Invalid question format")
    assert log[2] == "Attempt 3: RuntimeError: socket closed"
    failed = observer.named("attempt_failed")
    assert failed[1]["raw_preview"] == "I'm sorry, I can't help with that."
    assert [fields["best_count"] for fields in failed] == [0, 0, 0]
    assert observer.names[-1] == "generation_exhausted"


@pytest.mark.asyncio
async def test_structurally_broken_reply_succeeds_after_repair() -> None:
    items = "\n".join(json.dumps(question_item(number)) for number in range(1, 11))
    raw = 'Here you go:\n{\n "questions": [\n' + items + "\n ]\n}\nThanks"
    invoker = ScriptedInvoker([raw])
    observer = RecordingObserver()

    batch = await _generate(_generator(invoker, observer))

    assert len(batch) == 10
    assert len(invoker.calls) == 1
    assert observer.named("strategy_fallback") == [
        {"attempt": 1, "strategy": "strategy_0", "parse_strategy": ParseStrategy.STRUCTURAL_REPAIR.value}
    ]


@pytest.mark.asyncio
async def test_content_part_reply_is_flattened_before_parsing() -> None:
    raw = questions_json(4)
    invoker = ScriptedInvoker(
        [
            (
                ContentPart(kind="text", value=raw[:50]),
                ContentPart(kind="refusal", value="ignored"),
                ContentPart(kind="text", value=raw[50:]),
            )
        ]
    )

    batch = await _generate(_generator(invoker, RecordingObserver(), attempts=1), target_count=4)

    assert len(batch) == 4


@pytest.mark.asyncio
async def test_oversized_batch_counts_as_partial() -> None:
    invoker = ScriptedInvoker([questions_json(6)])

    with pytest.raises(InsufficientQuestionsError) as exc_info:
        await _generate(_generator(invoker, RecordingObserver(), attempts=1), target_count=5)

    assert exc_info.value.achieved_count == 6
    assert exc_info.value.attempt_log == ("Attempt 1: generated 6/5 questions",)


@pytest.mark.asyncio
async def test_schema_invalid_batch_counts_as_failed_attempt(monkeypatch: pytest.MonkeyPatch) -> None:
    broken = RecoveryResult(
        batch=(make_question(1, options=("A", "B")),),
        strategy=ParseStrategy.DIRECT,
    )
    monkeypatch.setattr(orchestrator, "parse_quiz_response", lambda raw_text: broken)
    invoker = ScriptedInvoker(["anything"])

    with pytest.raises(GenerationExhaustedError) as exc_info:
        await _generate(_generator(invoker, RecordingObserver(), attempts=1))

    assert "expected exactly 4 options, got 2" in exc_info.value.attempt_log[0]


@pytest.mark.asyncio
async def test_best_attempt_does_not_leak_between_calls() -> None:
    invoker = ScriptedInvoker(
        [
            questions_json(3),
            questions_json(2),
            "garbage",
            "garbage",
        ]
    )
    generator = _generator(invoker, RecordingObserver(), attempts=2)

    with pytest.raises(InsufficientQuestionsError) as first:
        await _generate(generator)
    with pytest.raises(GenerationExhaustedError):
        await _generate(generator)

    assert first.value.achieved_count == 3


@pytest.mark.asyncio
async def test_cancellation_propagates_without_further_attempts() -> None:
    started = asyncio.Event()

    class _HangingInvoker:
        def __init__(self) -> None:
            self.calls = 0

        async def __call__(self, prompt, model):
            self.calls += 1
            started.set()
            await asyncio.Event().wait()

    invoker = _HangingInvoker()
    observer = RecordingObserver()
    generator = QuizGenerator(invoke=invoker, strategies=make_strategies(3), observer=observer)

    task = asyncio.create_task(_generate(generator))
    await started.wait()
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert invoker.calls == 1
    assert "attempt_failed" not in observer.names
    assert "generation_exhausted" not in observer.names


def test_generator_requires_at_least_one_strategy() -> None:
    with pytest.raises(ValueError):
        QuizGenerator(invoke=ScriptedInvoker([]), strategies=())


@pytest.mark.asyncio
async def test_target_count_must_be_positive() -> None:
    generator = _generator(ScriptedInvoker([]), RecordingObserver())

    with pytest.raises(ValueError):
        await _generate(generator, target_count=0)


@pytest.mark.asyncio
async def test_infinite_difficulty_does_not_abort_remaining_attempts() -> None:
    overflowing = json.dumps({"questions": [question_item(1, difficulty="__difficulty__")]}).replace(
        '"__difficulty__"', "1e999"
    )
    invoker = ScriptedInvoker([overflowing, questions_json(2), questions_json(2)])

    with pytest.raises(InsufficientQuestionsError) as exc_info:
        await _generate(_generator(invoker, RecordingObserver()))

    assert len(invoker.calls) == 3
    assert exc_info.value.achieved_count == 2
