"""String-to-string repair rules for malformed model JSON.

Every rule is a pure ``str -> str`` function. Rules that could corrupt
question text only rewrite the gaps between string literals.
"""

from __future__ import annotations

import re
from typing import Callable, Iterator

Rule = Callable[[str], str]

_STRING_LITERAL = re.compile(r'"(?:\\.|[^"\\])*"')
_CODE_FENCE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)
_TRAILING_COMMA = re.compile(r",\s*([}\]])")
_BARE_KEY = re.compile(r"\b([A-Za-z_][A-Za-z0-9_]*)(\s*):")
_BARE_KEY_AFTER_DELIMITER = re.compile(r"([{,]\s*)([A-Za-z_][A-Za-z0-9_]*)(\s*:)")
_BARE_VALUE = re.compile(r":(\s*)([^\"\[{\s,}\]][^,}\]\n]*)")
_JSON_NUMBER = re.compile(r"-?(?:0|[1-9]\d*)(?:\.\d+)?(?:[eE][+-]?\d+)?")
_ADJACENT_OBJECTS = re.compile(r"}\s*{")
_QUESTIONS_KEY = re.compile(r'"questions"\s*:\s*\[')
_LITERAL_KEYWORDS = {"true", "false"}


def _segments(text: str) -> Iterator[tuple[str, bool]]:
    cursor = 0
    for match in _STRING_LITERAL.finditer(text):
        yield text[cursor : match.start()], False
        yield match.group(0), True
        cursor = match.end()
    yield text[cursor:], False


def _rewrite_code(text: str, rewrite: Rule) -> str:
    return "".join(piece if is_literal else rewrite(piece) for piece, is_literal in _segments(text))


def _rewrite_gaps(text: str, rewrite: Rule) -> str:
    """Apply ``rewrite`` to every code segment that sits between two string literals."""
    pieces = list(_segments(text))
    out: list[str] = []
    for index, (piece, is_literal) in enumerate(pieces):
        between_literals = (
            not is_literal
            and 0 < index < len(pieces) - 1
            and pieces[index - 1][1]
            and pieces[index + 1][1]
        )
        out.append(rewrite(piece) if between_literals else piece)
    return "".join(out)


# --- cleanup (strategy B) -------------------------------------------------


def strip_code_fences(text: str) -> str:
    return _CODE_FENCE.sub("", text)


def trim_whitespace(text: str) -> str:
    return text.strip()


def _tighten_separator(gap: str) -> str:
    stripped = gap.strip()
    if stripped in {":", ","}:
        return stripped
    return gap


def normalize_quote_spacing(text: str) -> str:
    return _rewrite_gaps(text, _tighten_separator)


def remove_trailing_commas(text: str) -> str:
    return _rewrite_code(text, lambda code: _TRAILING_COMMA.sub(r"\1", code))


def quote_bare_keys(text: str) -> str:
    return _rewrite_code(text, lambda code: _BARE_KEY.sub(r'"\1"\2:', code))


def _is_json_scalar(value: str) -> bool:
    return value in _LITERAL_KEYWORDS or _JSON_NUMBER.fullmatch(value) is not None


def _quote_value(match: re.Match[str]) -> str:
    leading, raw_value = match.group(1), match.group(2)
    value = raw_value.strip()
    trailing = raw_value[len(raw_value.rstrip()) :]
    if _is_json_scalar(value):
        return f":{leading}{value}{trailing}"
    escaped = value.replace("\\", "\\\\")
    return f':{leading}"{escaped}"{trailing}'


def quote_bare_values(text: str) -> str:
    return _rewrite_code(text, lambda code: _BARE_VALUE.sub(_quote_value, code))


CLEANUP_RULES: tuple[Rule, ...] = (
    strip_code_fences,
    trim_whitespace,
    normalize_quote_spacing,
    remove_trailing_commas,
    quote_bare_keys,
    quote_bare_values,
)


def clean_response(text: str) -> str:
    for rule in CLEANUP_RULES:
        text = rule(text)
    return text


# --- structural repair (strategy C) ---------------------------------------


def narrow_to_questions_span(text: str) -> str:
    """Cut ``text`` down to the container around the first ``"questions": [`` key."""
    key = _QUESTIONS_KEY.search(text)
    if key is None:
        return text
    start = max(text.rfind("{", 0, key.start()), text.rfind("[", 0, key.start()))
    end = max(text.rfind("}"), text.rfind("]"))
    if start < 0 or text.rfind("]", key.end(), end) < 0:
        return text
    return text[start : end + 1]


def quote_keys_after_delimiters(text: str) -> str:
    return _rewrite_code(text, lambda code: _BARE_KEY_AFTER_DELIMITER.sub(r'\1"\2"\3', code))


def _comma_for_line_break(gap: str) -> str:
    if "\n" in gap and not gap.strip():
        return ", "
    return gap


def insert_missing_commas(text: str) -> str:
    text = _rewrite_gaps(text, _comma_for_line_break)
    return _rewrite_code(text, lambda code: _ADJACENT_OBJECTS.sub("}, {", code))


STRUCTURAL_RULES: tuple[Rule, ...] = (
    narrow_to_questions_span,
    quote_keys_after_delimiters,
    insert_missing_commas,
)


def repair_structure(text: str) -> str:
    text = clean_response(text)
    for rule in STRUCTURAL_RULES:
        text = rule(text)
    return text
