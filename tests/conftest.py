import json

import pytest

from schemas.models import AuditMetrics


SAMPLE_AUDIT = {
    "url": "https://shop.example.com/",
    "score": 42,
    "scores": {"performance": 42, "accessibility": 88, "best-practices": 75, "seo": 91},
    "metrics": {
        "lcp": 5200.0, "fid": 180.0, "cls": 0.31, "fcp": 2100.0,
        "tti": 7400.0, "tbt": 950.0, "speedIndex": 4800.0,
    },
    "resources": {
        "jsTotalSize": 1450, "cssTotalSize": 210, "imageTotalSize": 1800,
        "thirdPartySize": 640, "totalSize": 3600,
    },
    "requests": {
        "total": 96, "thirdParty": 41, "thirdPartyRatio": 42.7,
        "slowRequests": [
            {"url": "https://cdn.example.com/app.js", "duration": 1830, "size": 812, "type": "script"},
            {"url": "https://cdn.example.com/hero.jpg", "duration": 1210, "size": 950, "type": "image"},
        ],
    },
    "mainThread": {"scriptEvaluation": 2300, "layout": 410, "paint": 120, "style": 260, "other": 300},
    "audits": {
        "render-blocking-resources": {
            "id": "render-blocking-resources", "title": "Eliminate render-blocking resources",
            "score": 0.3, "displayValue": "Potential savings of 1,200 ms",
        },
        "uses-text-compression": {
            "id": "uses-text-compression", "title": "Enable text compression", "score": 1,
        },
        "unused-javascript": {
            "id": "unused-javascript", "title": "Reduce unused JavaScript", "score": 0.45,
        },
    },
}


def make_document(**overrides):
    """A well-formed model answer for SAMPLE_AUDIT."""
    doc = {
        "summary": "The page loads slowly because of heavy scripts and images.",
        "score": {"performance": 42, "accessibility": 88, "bestPractices": 75, "seo": 91},
        "metrics": {"LCP": "5.2s, poor", "TBT": "950ms, severe blocking"},
        "problems": [
            {"type": "script", "title": "Large bundles", "severity": "high",
             "impact": "Blocks the main thread for 950ms", "suggestion": "Split the bundle"},
            {"type": "image", "title": "Oversized hero image", "severity": "medium",
             "impact": "Delays LCP", "suggestion": "Serve WebP"},
        ],
        "ai_insights": {
            "main_bottleneck": "Script execution",
            "root_causes": ["Large vendor bundle"],
            "quick_wins": ["Enable Brotli"],
        },
        "suggestions": [
            {"title": "Code splitting", "desc": "Use dynamic import()", "category": "frontend",
             "code": "const m = await import('./m.js');", "benefit": "LCP -20%"},
        ],
        "code_examples": [{"type": "lazy-load", "desc": "Lazy route", "code": "() => import('./Home.vue')"}],
        "visualization": {
            "chartData": {
                "metricTrends": [{"metric": "LCP", "before": 5200, "after": 3100}],
                "bottleneckDistribution": {"script": 60, "image": 40},
            },
            "aiCards": [{"title": "Split JS", "impact": "TBT -40%", "suggestion": "Lazy-load routes", "confidence": "high"}],
        },
        "prediction": "Performance score should rise to about 70.",
    }
    doc.update(overrides)
    return doc


@pytest.fixture
def audit_payload():
    return json.loads(json.dumps(SAMPLE_AUDIT))


@pytest.fixture
def audit(audit_payload):
    return AuditMetrics.model_validate(audit_payload)


@pytest.fixture
def minimal_audit():
    return AuditMetrics(url="https://minimal.example.com/")


@pytest.fixture
def document():
    return make_document()


@pytest.fixture
def document_factory():
    return make_document
