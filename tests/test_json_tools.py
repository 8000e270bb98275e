from __future__ import annotations

import pytest

from finpilot.core.errors import ResponseFormatError
from finpilot.utils.json_tools import extract_balanced_object, parse_with_recovery, strip_code_fences


def test_strict_parse() -> None:
    assert parse_with_recovery('{"a": 1, "b": [1, 2]}') == {"a": 1, "b": [1, 2]}


def test_code_fences_are_stripped() -> None:
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert parse_with_recovery('```json\n{"a": 1}\n```') == {"a": 1}


def test_recovers_object_wrapped_in_prose() -> None:
    text = 'Sure! Here is the result: {"merchantName": "Cafe", "totalAmount": 120} Hope it helps.'
    assert parse_with_recovery(text) == {"merchantName": "Cafe", "totalAmount": 120}


def test_recovery_ignores_braces_inside_strings() -> None:
    text = 'note {"name": "a } tricky { one", "amount": 5} trailing }'
    assert parse_with_recovery(text) == {"name": "a } tricky { one", "amount": 5}


def test_recovery_skips_unparseable_spans() -> None:
    text = "{not json} then {\"ok\": true}"
    assert extract_balanced_object(text) == {"ok": True}


def test_nested_object_is_kept_whole() -> None:
    text = 'x {"outer": {"inner": {"v": 1}}, "n": 2} y'
    assert parse_with_recovery(text) == {"outer": {"inner": {"v": 1}}, "n": 2}


@pytest.mark.parametrize("text", ["", "   ", "```json\n```"])
def test_empty_response_raises(text: str) -> None:
    with pytest.raises(ResponseFormatError):
        parse_with_recovery(text)


def test_no_json_raises() -> None:
    with pytest.raises(ResponseFormatError):
        parse_with_recovery("I could not read this receipt, sorry.")


def test_unbalanced_raises() -> None:
    with pytest.raises(ResponseFormatError):
        parse_with_recovery('{"a": [1, 2')
