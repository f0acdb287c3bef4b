import json

import pytest

from app.utils.json_sanitize import (
    anchor_object, sanitize, strip_comments, strip_fence_lines, strip_outer_fences,
    strip_trailing_commas,
)


def test_outer_fences_removed():
    assert strip_outer_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_outer_fences('```\n{"a": 1}\n```  ') == '{"a": 1}'


def test_outer_fences_leave_plain_text_alone():
    assert strip_outer_fences('  {"a": 1}  ') == '{"a": 1}'


def test_fence_lines_inside_text_removed():
    text = 'Here you go:\n```json\n{"a": 1}\n```\nThanks'
    assert strip_fence_lines(text) == 'Here you go:\n{"a": 1}\nThanks'


def test_comments_removed_outside_strings_only():
    text = '{\n  // note\n  "url": "https://x.test/a", /* block */ "b": 2\n}'
    out = strip_comments(text)
    assert "note" not in out and "block" not in out
    assert json.loads(out) == {"url": "https://x.test/a", "b": 2}


def test_anchor_object_drops_prose():
    assert anchor_object('Sure! {"a": {"b": 1}} Hope this helps.') == '{"a": {"b": 1}}'


def test_anchor_object_keeps_unbalanced_text():
    text = 'prefix {"a": [1, 2'
    assert anchor_object(text) == text


def test_trailing_commas_removed():
    assert strip_trailing_commas('{"a": [1, 2,], "b": 3,}') == '{"a": [1, 2], "b": 3}'
    assert strip_trailing_commas('{"a": [1,, ]}') == '{"a": [1 ]}'


def test_trailing_commas_inside_strings_kept():
    assert strip_trailing_commas('{"a": "x,}"}') == '{"a": "x,}"}'


def test_fenced_document_with_trailing_comma_parses():
    raw = '```json\n{"summary":"ok","problems":[],}\n```'
    assert json.loads(sanitize(raw))["summary"] == "ok"


def test_prose_around_fenced_document():
    raw = 'Here is the report:\n```json\n{"summary": "ok"}\n```\nLet me know.'
    assert json.loads(sanitize(raw)) == {"summary": "ok"}


@pytest.mark.parametrize("raw", [
    '```json\n{"a": [1, 2,], // c\n "b": "x"}\n```',
    'text {"a": {"b": "}"}} more',
    '{"a": 1,,}',
    "not json at all",
    "",
])
def test_sanitize_is_idempotent(raw):
    once = sanitize(raw)
    assert sanitize(once) == once
