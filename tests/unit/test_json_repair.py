"""Unit tests for JSON repair of model output."""

import json

import pytest

from itinerary_engine.utils.json_repair import (
    JSONRepairError,
    extract_json_fragment,
    parse_llm_json,
    repair_json,
    strip_fences,
)


def test_truncated_array_drops_incomplete_element_and_closes() -> None:
    """Trailing comma is stripped and brackets close innermost-first."""
    assert repair_json('{"a": [1, 2, ') == '{"a": [1, 2]}'


def test_strict_json_is_not_marked_repaired() -> None:
    outcome = parse_llm_json('{"waypoints": [{"name": "Lyon"}]}')

    assert outcome.ok
    assert outcome.repaired is False
    assert outcome.data == {"waypoints": [{"name": "Lyon"}]}


def test_markdown_fences_are_stripped() -> None:
    text = 'Here you go:\n```json\n{"city": "Nice"}\n```\nEnjoy!'

    assert strip_fences(text) == '{"city": "Nice"}'
    assert parse_llm_json(text).data == {"city": "Nice"}


def test_trailing_commentary_is_ignored() -> None:
    outcome = parse_llm_json('{"name": "Arles"} I hope this helps.')

    assert outcome.ok
    assert outcome.data == {"name": "Arles"}


def test_trailing_commas_are_removed() -> None:
    outcome = parse_llm_json('{"a": [1, 2,], "b": 3,}')

    assert outcome.ok
    assert outcome.repaired
    assert outcome.data == {"a": [1, 2], "b": 3}


def test_unterminated_string_is_closed() -> None:
    outcome = parse_llm_json('{"name": "Avig')

    assert outcome.ok
    assert outcome.data == {"name": "Avig"}


def test_brackets_inside_strings_are_not_counted() -> None:
    repaired = repair_json('{"why": "great [food] {and} wine", "highlights": ["x"')

    assert json.loads(repaired) == {
        "why": "great [food] {and} wine",
        "highlights": ["x"],
    }


def test_dangling_key_backs_off_to_previous_element() -> None:
    outcome = parse_llm_json('{"origin": "Aix", "destination":')

    assert outcome.ok
    assert outcome.data == {"origin": "Aix"}


def test_array_response_is_supported() -> None:
    outcome = parse_llm_json('[{"name": "Montpellier"}, {"name": "Girona"')

    assert outcome.ok
    assert outcome.data == [{"name": "Montpellier"}, {"name": "Girona"}]


def test_no_json_is_a_parse_failure() -> None:
    outcome = parse_llm_json("Sorry, I cannot help with that.")

    assert outcome.ok is False
    assert outcome.error


def test_empty_response_is_a_parse_failure() -> None:
    assert parse_llm_json("   ").ok is False
    assert parse_llm_json(None).ok is False


def test_extract_fragment_raises_without_brackets() -> None:
    with pytest.raises(JSONRepairError):
        extract_json_fragment("plain text")
