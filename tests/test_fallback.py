import pytest

from app.services.fallback import (
    CATEGORIES, CODE_EXAMPLES, SUGGESTIONS, bottleneck_distribution, build_fallback_report,
    describe_metrics, detect_problems,
)
from schemas.models import AuditMetrics, Problem


def test_same_audit_same_report(audit):
    assert build_fallback_report(audit) == build_fallback_report(audit)


def test_missing_audit_is_a_contract_violation():
    with pytest.raises(TypeError):
        build_fallback_report(None)
    with pytest.raises(TypeError):
        build_fallback_report({"url": "https://x.test"})


def test_minimal_audit_still_yields_complete_report(minimal_audit):
    report = build_fallback_report(minimal_audit)
    assert report.summary and report.prediction
    assert [p.type for p in report.problems] == ["script", "network"]
    assert all(p.severity == "medium" for p in report.problems)
    assert len(report.suggestions) == len(SUGGESTIONS) == 5
    assert len(report.code_examples) == len(CODE_EXAMPLES) == 5
    assert set(report.metrics) == {"LCP", "FID", "CLS", "TBT", "FCP", "SpeedIndex"}


def test_problems_follow_thresholds(audit):
    problems = {p.type: p.severity for p in detect_problems(audit)}
    assert problems == {
        "script": "high",        # TBT 950 > 600
        "network": "high",       # 3600 KB > 2000
        "image": "high",         # LCP 5200 > 4000
        "render": "high",        # CLS 0.31 > 0.25
        "third-party": "medium", # 42.7% between 30 and 50
    }


def test_image_problem_from_size_alone():
    audit = AuditMetrics(url="https://x.test", metrics={"lcp": 2000}, resources={"imageTotalSize": 1500})
    image = [p for p in detect_problems(audit) if p.type == "image"]
    assert len(image) == 1 and image[0].severity == "medium"


def test_render_problem_only_above_cls_threshold():
    at = AuditMetrics(url="https://x.test", metrics={"cls": 0.1})
    above = AuditMetrics(url="https://x.test", metrics={"cls": 0.15})
    assert "render" not in {p.type for p in detect_problems(at)}
    assert {p.type: p.severity for p in detect_problems(above)}["render"] == "medium"


def test_distribution_sums_to_100(audit):
    dist = build_fallback_report(audit).visualization.bottleneck_distribution
    assert set(dist) == set(CATEGORIES)
    assert sum(dist.values()) == 100
    assert all(v == int(v) for v in dist.values())


def test_distribution_is_severity_weighted():
    problems = [
        Problem(type="script", title="a", severity="high", impact="i", suggestion="s"),
        Problem(type="image", title="b", severity="low", impact="i", suggestion="s"),
        Problem(type="render", title="c", severity="medium", impact="i", suggestion="s"),
    ]
    assert bottleneck_distribution(problems) == {
        "script": 50.0, "image": 17.0, "network": 0.0, "render": 33.0, "third-party": 0.0,
    }
    assert sum(bottleneck_distribution([]).values()) == 0


def test_cards_and_bottleneck_from_highest_severity(audit):
    report = build_fallback_report(audit)
    assert len(report.visualization.ai_cards) == 3
    assert [c.title for c in report.visualization.ai_cards] == [p.title for p in report.problems[:3]]
    assert "JavaScript" in report.insights.main_bottleneck


def test_trends_project_improvement(audit):
    trends = {t.metric: t for t in build_fallback_report(audit).visualization.metric_trends}
    assert trends["LCP"].before == 5200.0 and trends["LCP"].after == 3640.0
    assert trends["TBT"].after == 570.0
    assert trends["FCP"].after == 1680.0


def test_scores_taken_from_audit_and_clamped():
    audit = AuditMetrics(url="https://x.test", score=130, scores={"seo": -5, "best-practices": 77})
    score = build_fallback_report(audit).score
    assert (score.performance, score.seo, score.best_practices) == (100, 0, 77)


def test_describe_metrics_verdicts(audit):
    metrics = describe_metrics(audit)
    assert metrics["LCP"].startswith("5200ms")
    assert metrics["CLS"].startswith("0.310")


@pytest.mark.parametrize("cls, severity", [(0.11, "medium"), (0.25, "medium"), (0.26, "high")])
def test_render_severity_boundaries(cls, severity):
    audit = AuditMetrics(url="https://x.test", metrics={"cls": cls})
    assert {p.type: p.severity for p in detect_problems(audit)}["render"] == severity
