import json

from app.utils.json_parse import CascadeStage, parse_cascade, parse_json_lenient


def test_valid_document_parsed_raw_and_unchanged(document):
    raw = json.dumps(document)
    outcome = parse_cascade(raw)
    assert outcome.stage is CascadeStage.RAW
    assert outcome.document == document
    assert outcome.text == raw
    assert not outcome.truncated


def test_empty_input_fails_immediately():
    for raw in (None, "", "   \n"):
        outcome = parse_cascade(raw)
        assert outcome.stage is CascadeStage.FAILED
        assert not outcome.ok


def test_non_object_json_is_not_accepted():
    assert parse_cascade("[1, 2, 3]").stage is CascadeStage.FAILED
    assert parse_json_lenient('"just a string"') is None


def test_fenced_document_with_prose(document):
    raw = "Here is your report:\n```json\n" + json.dumps(document, indent=2) + "\n```\nAnything else?"
    outcome = parse_cascade(raw)
    assert outcome.stage is CascadeStage.SANITIZED
    assert outcome.document == document


def test_fenced_document_with_trailing_comma():
    raw = '```json\n{"summary":"ok","problems":[],}\n```'
    outcome = parse_cascade(raw)
    assert outcome.stage is CascadeStage.SANITIZED
    assert outcome.document["summary"] == "ok"


def test_valid_object_followed_by_truncated_garbage(document):
    raw = json.dumps(document) + '\n{"summary": "second attempt", "problems": [{"ty'
    outcome = parse_cascade(raw)
    assert outcome.ok
    assert outcome.document == document


def test_truncated_mid_string_keeps_complete_entries():
    entries = [
        {"type": "script", "title": f"Problem {i}", "severity": "high",
         "impact": "slow", "suggestion": "fix"}
        for i in range(3)
    ]
    full = json.dumps({"summary": "ok", "problems": entries + [
        {"type": "image", "title": "Unfinished", "severity": "low",
         "impact": "this text is cut off somewhere in the middle", "suggestion": "x"},
    ]})
    raw = full[:full.index("cut off") + 3]
    outcome = parse_cascade(raw)
    assert outcome.ok
    assert outcome.truncated
    assert outcome.document["problems"] == entries


def test_repair_stage_used_for_bare_values():
    raw = '{"summary": the page is slow, "prediction": "better"}'
    outcome = parse_cascade(raw)
    assert outcome.stage is CascadeStage.REPAIRED
    assert outcome.document == {"summary": "the page is slow", "prediction": "better"}
    assert len(outcome.errors) >= 2


def test_unrecoverable_text_fails_with_errors():
    outcome = parse_cascade("I'm sorry, I can't help with that.")
    assert outcome.stage is CascadeStage.FAILED
    assert outcome.document is None
    assert outcome.errors


def test_parse_json_lenient_returns_document(document):
    assert parse_json_lenient("```\n" + json.dumps(document) + "\n```") == document


def test_truncated_entry_with_nested_object_is_dropped_whole():
    entries = [{"metric": f"M{i}", "detail": {"before": i, "after": i}} for i in range(2)]
    full = json.dumps({"summary": "ok", "trends": entries + [
        {"metric": "LCP", "detail": {"before": 5200, "after": 3600}, "note": "this note is cut off here"},
    ]})
    raw = full[:full.index("cut off") + 3]
    outcome = parse_cascade(raw)
    assert outcome.truncated
    assert outcome.document == {"summary": "ok", "trends": entries}


def test_deeply_nested_input_fails_without_raising():
    depth = 100000
    raw = '{"summary": bad value, "problems": [{"a": ' + "[" * depth + "]" * depth + "}]}"
    outcome = parse_cascade(raw)
    assert outcome.stage is CascadeStage.FAILED
    assert outcome.errors
