from __future__ import annotations

from collections.abc import Sequence

from app.generation.types import ContentPart

TEXT_PART_KIND = "text"


def _is_part_sequence(value: object) -> bool:
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        return False
    return all(isinstance(part, ContentPart) for part in value)


def extract_text(response: object) -> str:
    """Flatten a model reply into plain text. Never raises."""
    if isinstance(response, str):
        return response
    if response is None:
        return ""
    if _is_part_sequence(response):
        return "".join(part.value or "" for part in response if part.kind == TEXT_PART_KIND)
    try:
        return str(response)
    except Exception:
        return ""
