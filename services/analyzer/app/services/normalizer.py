# services/analyzer/app/services/normalizer.py
"""CandidateDocument -> Report.

Total over any input shape: every field is either kept (after coercion) or
replaced by a documented default. Problems and aiCards with a blank
mandatory field are dropped, never partially kept.
"""
from __future__ import annotations
import logging
import math
import re
from typing import Any, Dict, List, Mapping, Optional

from schemas.models import (
    AICard, AuditMetrics, CodeExample, Insights, MetricTrend,
    PROBLEM_TYPES, Problem, Report, Score, Suggestion, Visualization,
)
from .fallback import describe_metrics

logger = logging.getLogger("analyzer.normalizer")

DEFAULT_SUMMARY = "Performance analysis completed."
DEFAULT_PREDICTION = "Applying the suggested optimizations should improve performance by roughly 15-25%."
DEFAULT_BOTTLENECK = "Further analysis is needed to pinpoint the main bottleneck."
DEFAULT_CATEGORY = "general"
DEFAULT_EXAMPLE_TYPE = "general"

_LEVEL_ALIASES = {
    "high": "high", "medium": "medium", "low": "low",
    "med": "medium", "moderate": "medium", "critical": "high",
    "高": "high", "中": "medium", "低": "low",
}
_NUMERIC_RE = re.compile(r"^\s*(-?\d+(?:\.\d+)?)\s*(?:%|/\s*100)?\s*$")


# ----- scalar helpers -----
def _text(value: Any) -> str:
    """Stripped string for str/number scalars, '' for anything else."""
    if isinstance(value, bool) or value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)):
        return str(value)
    return ""


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        try:
            f = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        m = _NUMERIC_RE.match(value)
        if not m:
            return None
        f = float(m.group(1))
    else:
        return None
    return f if math.isfinite(f) else None


def _level(value: Any, default: str = "medium") -> str:
    key = _text(value).lower()
    return _LEVEL_ALIASES.get(key, default)


def _pick(d: Mapping[str, Any], *keys: str) -> Any:
    for k in keys:
        if k in d and d[k] is not None:
            return d[k]
    return None


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _strings(value: Any) -> List[str]:
    return [s for s in (_text(v) for v in _as_list(value)) if s]


# ----- field normalizers -----
def normalize_score(raw: Any, audit: Optional[AuditMetrics] = None) -> Score:
    # a bare number is taken as the performance score
    d = {"performance": raw} if _number(raw) is not None else _as_dict(raw)
    defaults = audit.scores if audit else None

    def one(value: Any, fallback: int) -> int:
        f = _number(value)
        if f is None:
            f = fallback
        return int(min(100, max(0, round(f))))

    return Score(
        performance=one(d.get("performance"), (audit.score or defaults.performance) if audit else 0),
        accessibility=one(d.get("accessibility"), defaults.accessibility if defaults else 0),
        best_practices=one(
            _pick(d, "bestPractices", "best_practices", "best-practices"),
            defaults.best_practices if defaults else 0,
        ),
        seo=one(d.get("seo"), defaults.seo if defaults else 0),
    )


def normalize_metrics(raw: Any, audit: Optional[AuditMetrics] = None) -> Dict[str, str]:
    out = {}
    for k, v in _as_dict(raw).items():
        key, val = _text(k), _text(v)
        if key and val:
            out[key] = val
    if not out and audit is not None:
        return describe_metrics(audit)
    return out


def normalize_problem(raw: Any) -> Optional[Problem]:
    d = _as_dict(raw)
    fields = {k: _text(d.get(k)) for k in ("type", "title", "severity", "impact", "suggestion")}
    if not all(fields.values()):
        return None
    ptype = fields["type"].lower().replace("_", "-").replace(" ", "-")
    if ptype == "thirdparty":
        ptype = "third-party"
    return Problem(
        type=ptype if ptype in PROBLEM_TYPES else "other",
        title=fields["title"],
        severity=_level(fields["severity"]),
        impact=fields["impact"],
        suggestion=fields["suggestion"],
    )


def normalize_insights(doc: Mapping[str, Any]) -> Insights:
    d = _as_dict(_pick(doc, "insights", "ai_insights", "aiInsights"))
    return Insights(
        main_bottleneck=_text(_pick(d, "mainBottleneck", "main_bottleneck")) or DEFAULT_BOTTLENECK,
        root_causes=_strings(_pick(d, "rootCauses", "root_causes")),
        quick_wins=_strings(_pick(d, "quickWins", "quick_wins")),
    )


def normalize_suggestion(raw: Any) -> Optional[Suggestion]:
    d = _as_dict(raw)
    title, desc = _text(d.get("title")), _text(_pick(d, "desc", "description"))
    if not title or not desc:
        return None
    return Suggestion(
        title=title,
        desc=desc,
        category=_text(d.get("category")) or DEFAULT_CATEGORY,
        code=_text(d.get("code")),
        benefit=_text(d.get("benefit")),
    )


def normalize_code_example(raw: Any) -> Optional[CodeExample]:
    d = _as_dict(raw)
    code = _text(d.get("code"))
    if not code:
        return None
    return CodeExample(
        type=_text(d.get("type")) or DEFAULT_EXAMPLE_TYPE,
        desc=_text(_pick(d, "desc", "description")),
        code=code,
    )


def _trend(raw: Any) -> Optional[MetricTrend]:
    d = _as_dict(raw)
    metric = _text(d.get("metric"))
    before, after = _number(d.get("before")), _number(d.get("after"))
    if not metric or before is None or after is None:
        return None
    return MetricTrend(metric=metric, before=before, after=after)


def _card(raw: Any) -> Optional[AICard]:
    d = _as_dict(raw)
    title, impact, suggestion = (_text(d.get(k)) for k in ("title", "impact", "suggestion"))
    if not (title and impact and suggestion):
        return None
    return AICard(title=title, impact=impact, suggestion=suggestion,
                  confidence=_level(d.get("confidence")))


def normalize_visualization(raw: Any) -> Visualization:
    d = _as_dict(raw)
    # the model nests trends/distribution under chartData; the renderer does not
    chart = {**d, **_as_dict(_pick(d, "chartData", "chart_data"))}
    distribution = {}
    for k, v in _as_dict(_pick(chart, "bottleneckDistribution", "bottleneck_distribution")).items():
        f = _number(v)
        if _text(k) and f is not None:
            distribution[_text(k)] = f
    return Visualization(
        metric_trends=[t for t in map(_trend, _as_list(_pick(chart, "metricTrends", "metric_trends"))) if t],
        bottleneck_distribution=distribution,
        ai_cards=[c for c in map(_card, _as_list(_pick(chart, "aiCards", "ai_cards"))) if c],
    )


def _kept(items: List[Any], fn) -> list:
    return [x for x in map(fn, items) if x is not None]


def normalize_report(document: Any, audit: Optional[AuditMetrics] = None) -> Report:
    """Fully-populated Report from a parsed (possibly incomplete) document."""
    doc = _as_dict(document)
    raw_problems = _as_list(doc.get("problems"))
    problems = _kept(raw_problems, normalize_problem)
    if len(problems) != len(raw_problems):
        logger.info(
            "Dropped incomplete problems",
            extra={"kept": len(problems), "received": len(raw_problems)},
        )
    return Report(
        summary=_text(doc.get("summary")) or DEFAULT_SUMMARY,
        score=normalize_score(doc.get("score"), audit),
        metrics=normalize_metrics(doc.get("metrics"), audit),
        problems=problems,
        insights=normalize_insights(doc),
        suggestions=_kept(_as_list(doc.get("suggestions")), normalize_suggestion),
        code_examples=_kept(_as_list(_pick(doc, "codeExamples", "code_examples")), normalize_code_example),
        visualization=normalize_visualization(doc.get("visualization")),
        prediction=_text(doc.get("prediction")) or DEFAULT_PREDICTION,
    )
