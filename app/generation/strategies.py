from __future__ import annotations

from dataclasses import dataclass

from app.core.config import Settings


@dataclass(frozen=True, slots=True)
class ModelConfig:
    name: str
    model: str
    temperature: float
    max_tokens: int
    timeout_seconds: float


@dataclass(frozen=True, slots=True)
class GenerationStrategy:
    name: str
    model: ModelConfig


def creative_model(settings: Settings) -> ModelConfig:
    return ModelConfig(
        name="creative",
        model=settings.openai_model_creative,
        temperature=settings.openai_creative_temperature,
        max_tokens=settings.openai_creative_max_tokens,
        timeout_seconds=settings.openai_creative_timeout_seconds,
    )


def deterministic_model(settings: Settings) -> ModelConfig:
    return ModelConfig(
        name="deterministic",
        model=settings.openai_model_deterministic,
        temperature=0.0,
        max_tokens=settings.openai_deterministic_max_tokens,
        timeout_seconds=settings.openai_deterministic_timeout_seconds,
    )


def fast_model(settings: Settings) -> ModelConfig:
    return ModelConfig(
        name="fast",
        model=settings.openai_model_fast,
        temperature=0.0,
        max_tokens=settings.openai_fast_max_tokens,
        timeout_seconds=settings.openai_fast_timeout_seconds,
    )


def build_default_strategies(settings: Settings) -> tuple[GenerationStrategy, ...]:
    models = (creative_model(settings), deterministic_model(settings), fast_model(settings))
    return tuple(GenerationStrategy(name=model.name, model=model) for model in models)
