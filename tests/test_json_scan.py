from app.utils.json_scan import (
    NOT_FOUND, iter_unquoted, scan_first_object, scan_last_complete_object, scan_truncated,
)


def test_first_object_ignores_braces_in_strings():
    text = 'noise {"a": "x}y{", "b": {"c": 1}} tail'
    span = scan_first_object(text)
    assert span.balanced
    assert span.slice(text) == '{"a": "x}y{", "b": {"c": 1}}'


def test_first_object_handles_escaped_quotes():
    text = r'{"a": "say \"}\" now"} trailing'
    span = scan_first_object(text)
    assert span.balanced
    assert span.slice(text) == r'{"a": "say \"}\" now"}'


def test_unbalanced_object_is_flagged():
    text = '{"a": {"b": 1}'
    span = scan_first_object(text)
    assert not span.balanced
    assert span.end == len(text)


def test_no_brace_returns_not_found():
    assert scan_first_object("no json here") is NOT_FOUND
    assert NOT_FOUND.slice("anything") == ""


def test_last_complete_object_skips_trailing_garbage():
    text = '{"a": 1} {"b": 2} {"c": '
    span = scan_last_complete_object(text)
    assert span.balanced
    assert span.slice(text) == '{"a": 1} {"b": 2}'


def test_last_complete_object_unbalanced():
    span = scan_last_complete_object('{"a": [1, 2')
    assert not span.balanced


def test_truncated_cuts_after_last_closed_entry():
    text = '{"items": [{"n": 1}, {"n": 2}, {"n": "thr'
    span = scan_truncated(text)
    assert not span.balanced
    assert span.pending == "]}"
    assert span.slice(text) == '{"items": [{"n": 1}, {"n": 2}]}'


def test_truncated_returns_whole_object_when_closed():
    text = '{"a": [1]} extra'
    span = scan_truncated(text)
    assert span.balanced
    assert span.slice(text) == '{"a": [1]}'


def test_truncated_without_any_closer():
    span = scan_truncated('{"a": "unterminated')
    assert not span.balanced
    assert span.pending == ""


def test_iter_unquoted_skips_string_contents():
    chars = "".join(ch for _, ch in iter_unquoted('{"k": "v,}"}'))
    assert chars == "{: }"


def test_truncated_drops_last_entry_with_closed_nested_object():
    text = '{"items": [{"a":1},{"b":{"c":1},"d":"tru'
    span = scan_truncated(text)
    assert span.pending == "]}"
    assert span.slice(text) == '{"items": [{"a":1}]}'


def test_truncated_inside_first_entry_gives_empty_array():
    text = '{"summary": "ok", "problems": [{"type": "scr'
    assert scan_truncated(text).slice(text) == '{"summary": "ok", "problems": []}'
