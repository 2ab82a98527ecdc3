from __future__ import annotations

from typing import Any, Protocol

import structlog

WARNING_EVENTS = frozenset(
    {
        "attempt_failed",
        "generation_insufficient",
        "generation_exhausted",
    }
)


class GenerationObserver(Protocol):
    def emit(self, event: str, **fields: Any) -> None: ...


class LoggingGenerationObserver:
    """Forwards generation events to structlog."""

    def __init__(self, logger: Any | None = None) -> None:
        self._logger = logger if logger is not None else structlog.get_logger("app.generation")

    def emit(self, event: str, **fields: Any) -> None:
        if event in WARNING_EVENTS:
            self._logger.warning(event, **fields)
        else:
            self._logger.info(event, **fields)
