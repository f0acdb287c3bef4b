import json

from app.services.prompts import SYSTEM_PROMPT, build_user_prompt
from schemas import compact_json_schema, load_json_schema


def test_system_prompt_embeds_report_schema():
    assert compact_json_schema() in SYSTEM_PROMPT
    schema = load_json_schema()
    assert "ai_insights" in schema["required"]
    assert json.loads(compact_json_schema()) == schema


def test_user_prompt_lists_audit_numbers(audit):
    prompt = build_user_prompt(audit)
    assert "URL: https://shop.example.com/" in prompt
    assert "LCP (Largest Contentful Paint): 5200ms" in prompt
    assert "CLS (Cumulative Layout Shift): 0.310" in prompt
    assert "1. https://cdn.example.com/app.js (1830ms, script)" in prompt
    # only audits scored below 0.9
    assert "Eliminate render-blocking resources" in prompt
    assert "Reduce unused JavaScript" in prompt
    assert "Enable text compression" not in prompt


def test_user_prompt_for_sparse_audit(minimal_audit):
    prompt = build_user_prompt(minimal_audit)
    assert "LCP (Largest Contentful Paint): n/a" in prompt
    assert prompt.count("(none)") == 2
