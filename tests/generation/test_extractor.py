from app.generation.extractor import extract_text
from app.generation.types import ContentPart


class _Unprintable:
    def __str__(self) -> str:
        raise RuntimeError("cannot render")


def test_plain_text_is_returned_unchanged() -> None:
    raw = '  {"questions": []}\n'

    assert extract_text(raw) == raw


def test_text_parts_are_concatenated_in_order() -> None:
    response = (
        ContentPart(kind="text", value='{"questions": '),
        ContentPart(kind="image", value="ignored"),
        ContentPart(kind="text", value=None),
        ContentPart(kind="text", value="[]}"),
    )

    assert extract_text(response) == '{"questions": []}'


def test_empty_part_sequence_gives_empty_text() -> None:
    assert extract_text(()) == ""
    assert extract_text([]) == ""


def test_missing_response_gives_empty_text() -> None:
    assert extract_text(None) == ""


def test_unexpected_shape_falls_back_to_str() -> None:
    assert extract_text(42) == "42"
    assert extract_text({"text": "hi"}) == "{'text': 'hi'}"


def test_unrenderable_response_gives_empty_text() -> None:
    assert extract_text(_Unprintable()) == ""
