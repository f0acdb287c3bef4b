# services/analyzer/app/services/prompts.py
from typing import List, Optional

from schemas import compact_json_schema
from schemas.models import AuditMetrics

SYSTEM_PROMPT = f"""
You are a senior web performance engineer. From the Lighthouse audit you are
given, return one structured, actionable optimization report as pure JSON that
a front end renders directly.

Hard rules:
1. Return ONLY a JSON object that json.loads accepts. No code fences, no
   comments, no Markdown in any text field.
2. Keep every field of the structure below and fill all of them with real
   content. Never emit placeholder or comment fields such as _placeholder_ or
   _insights_.
3. Every string value must be wrapped in double quotes.
4. problems: 3-5 entries, type one of script|image|network|render|third-party|other,
   severity one of high|medium|low.
5. suggestions: at least 5 entries, each with a complete, commented code sample.
6. code_examples: at least 5 short, runnable, commented samples tied to the
   detected problems.
7. visualization.chartData.bottleneckDistribution values are percentages.
8. If you are running out of tokens, shorten code_examples but still close
   the JSON object.

JSON Schema of the expected object:
{compact_json_schema()}
""".strip()


def _ms(value: Optional[float], digits: int = 0) -> str:
    return "n/a" if value is None else f"{value:.{digits}f}"


def build_user_prompt(audit: AuditMetrics) -> str:
    m, res, req, mt = audit.metrics, audit.resources, audit.requests, audit.main_thread
    lines: List[str] = [
        "Analyze the following Lighthouse performance data:",
        "",
        f"URL: {audit.url}",
        f"Performance score: {audit.score}/100",
        "",
        "Core metrics:",
        f"- LCP (Largest Contentful Paint): {_ms(m.lcp)}ms",
        f"- FID (max potential First Input Delay): {_ms(m.fid)}ms",
        f"- CLS (Cumulative Layout Shift): {_ms(m.cls, 3)}",
        f"- FCP (First Contentful Paint): {_ms(m.fcp)}ms",
        f"- TBT (Total Blocking Time): {_ms(m.tbt)}ms",
        f"- Speed Index: {_ms(m.speed_index)}",
        "",
        "Resource sizes:",
        f"- JS total: {res.js_total_size} KB",
        f"- CSS total: {res.css_total_size} KB",
        f"- Images total: {res.image_total_size} KB",
        f"- Third-party: {res.third_party_size} KB",
        f"- Total: {res.total_size} KB",
        "",
        "Requests:",
        f"- Total requests: {req.total}",
        f"- Third-party requests: {req.third_party} ({req.third_party_ratio}%)",
        "",
        "Main thread:",
        f"- Script evaluation: {mt.script_evaluation:.0f}ms",
        f"- Layout: {mt.layout:.0f}ms",
        f"- Paint: {mt.paint:.0f}ms",
        f"- Style: {mt.style:.0f}ms",
        "",
        "Slowest requests (top 5):",
    ]
    lines += [
        f"{i}. {r.url} ({r.duration:.0f}ms, {r.type})"
        for i, r in enumerate(req.slow_requests[:5], start=1)
    ] or ["(none)"]
    lines += ["", "Failing audits:"]
    lines += [
        f"- {a.title}: {a.display_value or 'failed'} (score: {a.score})"
        for a in audit.failing_audits(10)
    ] or ["(none)"]
    lines += [
        "",
        "Infer root causes from the numbers (e.g. high TBT with large JS means",
        "script blocking; high LCP with large images means slow image delivery)",
        "and quantify the expected gains in prediction.",
    ]
    return "\n".join(lines)
