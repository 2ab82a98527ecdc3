"""OpenAI chat-completions adapter for the generation pipeline.

The invoker sends one prompt to one model and returns the reply as a
:data:`ModelResponse`. It never retries on its own beyond the SDK's
``max_retries``; failures surface as :class:`ExternalCallError`.
"""

from __future__ import annotations

import asyncio
from functools import lru_cache
from typing import Any

import httpx
import openai
import structlog
from openai import AsyncOpenAI

from app.core.config import Settings, get_settings
from app.generation.errors import ExternalCallError
from app.generation.prompts import PromptSpec
from app.generation.strategies import ModelConfig
from app.generation.types import ContentPart, ModelResponse

logger = structlog.get_logger(__name__)

DEFAULT_REQUEST_TIMEOUT_SECONDS = 60.0
CONNECT_TIMEOUT_SECONDS = 10.0


def _part_field(part: Any, name: str) -> Any:
    if isinstance(part, dict):
        return part.get(name)
    return getattr(part, name, None)


def to_model_response(content: Any) -> ModelResponse:
    """Normalize provider message content into the string-or-parts variant."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, (list, tuple)):
        parts: list[ContentPart] = []
        for part in content:
            kind = _part_field(part, "type")
            value = _part_field(part, "text")
            parts.append(
                ContentPart(
                    kind=str(kind) if kind is not None else "",
                    value=value if isinstance(value, str) else None,
                )
            )
        return tuple(parts)
    return str(content)


def build_openai_client(settings: Settings) -> AsyncOpenAI:
    if not settings.openai_api_key:
        raise RuntimeError("OPENAI_API_KEY is not set. Add it to your .env file.")
    return AsyncOpenAI(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url or None,
        max_retries=settings.openai_max_retries,
        timeout=httpx.Timeout(DEFAULT_REQUEST_TIMEOUT_SECONDS, connect=CONNECT_TIMEOUT_SECONDS),
    )


class OpenAIModelInvoker:
    def __init__(self, client: AsyncOpenAI) -> None:
        self._client = client

    async def __call__(self, prompt: PromptSpec, model: ModelConfig) -> ModelResponse:
        request = self._client.chat.completions.create(
            model=model.model,
            messages=[
                {"role": "system", "content": prompt.system},
                {"role": "user", "content": prompt.user},
            ],
            temperature=model.temperature,
            max_tokens=model.max_tokens,
            timeout=model.timeout_seconds,
        )
        try:
            completion = await asyncio.wait_for(request, timeout=model.timeout_seconds)
        except asyncio.TimeoutError as exc:
            logger.warning(
                "llm_call_timeout",
                model=model.model,
                timeout_seconds=model.timeout_seconds,
            )
            raise ExternalCallError(f"{model.name} model timed out after {model.timeout_seconds:g}s") from exc
        except openai.OpenAIError as exc:
            logger.warning(
                "llm_call_failed",
                model=model.model,
                error_type=type(exc).__name__,
            )
            raise ExternalCallError(f"{model.name} model call failed: {type(exc).__name__}") from exc

        if not completion.choices:
            raise ExternalCallError(f"{model.name} model returned no choices")
        return to_model_response(completion.choices[0].message.content)


@lru_cache(maxsize=1)
def get_model_invoker() -> OpenAIModelInvoker:
    return OpenAIModelInvoker(build_openai_client(get_settings()))
