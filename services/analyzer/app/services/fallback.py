# services/analyzer/app/services/fallback.py
"""Deterministic Report built from the audit numbers alone.

Used when the model call fails or nothing it returned could be parsed. No
randomness, no I/O: the same audit always yields the same Report.
"""
from __future__ import annotations
import math
from typing import Dict, List, Tuple

from schemas.models import (
    AICard, AuditMetrics, CodeExample, Insights, MetricTrend, Problem,
    Report, Score, Suggestion, Visualization,
)

# thresholds (ms unless noted)
TBT_HIGH = 600
TOTAL_SIZE_HIGH_KB = 2000
IMAGE_SIZE_KB = 1000
LCP_POOR = 4000
CLS_NEEDS_WORK = 0.1
CLS_POOR = 0.25
THIRD_PARTY_RATIO = 30
THIRD_PARTY_RATIO_HIGH = 50

CATEGORIES = ("script", "image", "network", "render", "third-party")
_SEVERITY_WEIGHT = {"high": 3, "medium": 2, "low": 1}
_SEVERITY_RANK = {"high": 0, "medium": 1, "low": 2}

_BOTTLENECKS = {
    "script": "JavaScript execution is blocking the main thread.",
    "image": "Large images are delaying the largest contentful paint.",
    "network": "Page weight and request count are slowing down loading.",
    "render": "Layout shifts are making the page visually unstable.",
    "third-party": "Third-party resources take a large share of the requests.",
}

ROOT_CAUSES = (
    "Resources are too large or served uncompressed.",
    "JavaScript execution blocks the main thread.",
    "Too many network requests, or requests that are not optimized.",
)

QUICK_WINS = (
    "Enable Gzip/Brotli compression.",
    "Add width/height attributes to images.",
    "Remove unused CSS and JavaScript.",
)

SUGGESTIONS: Tuple[Dict[str, str], ...] = (
    {
        "title": "Code splitting and lazy loading",
        "desc": (
            "Split large JavaScript bundles and load them on demand to shrink the initial payload. "
            "Steps: 1. use dynamic import() 2. lazy-load routes 3. load heavy components on demand. "
            "Avoid over-splitting, which adds requests."
        ),
        "category": "frontend",
        "code": (
            "// router/index.js - lazy-loaded routes\n"
            "import { createRouter, createWebHistory } from 'vue-router';\n"
            "\n"
            "const routes = [\n"
            "  { path: '/home', component: () => import('@/views/Home.vue') },\n"
            "  { path: '/about', component: () => import('@/views/About.vue') },\n"
            "];\n"
            "\n"
            "export default createRouter({ history: createWebHistory(), routes });"
        ),
        "benefit": "Initial bundle 40-60% smaller, LCP 20-30% lower, first render 1-2 s faster.",
    },
    {
        "title": "Enable Gzip/Brotli compression",
        "desc": (
            "Compress text resources (HTML, CSS, JS) on the server to cut transfer size. "
            "Steps: 1. enable compression in the server or CDN 2. pick level and threshold 3. verify the "
            "Content-Encoding header. Images and already-compressed files need no extra compression."
        ),
        "category": "network",
        "code": (
            "// server.js - Express compression\n"
            "const express = require('express');\n"
            "const compression = require('compression');\n"
            "\n"
            "const app = express();\n"
            "app.use(compression({ level: 6, threshold: 1024 }));\n"
            "app.use(express.static('public'));\n"
            "app.listen(3000);"
        ),
        "benefit": "Transfer size 60-80% smaller, load time 30-50% shorter.",
    },
    {
        "title": "Image optimization and modern formats",
        "desc": (
            "Serve WebP/AVIF images resized to their display size. Steps: 1. add an image pipeline "
            "(sharp/imagemin) 2. convert and resize in bulk 3. keep a fallback format for old browsers."
        ),
        "category": "images",
        "code": (
            "// optimize-images.js\n"
            "const sharp = require('sharp');\n"
            "\n"
            "async function toWebp(input, output) {\n"
            "  await sharp(input)\n"
            "    .resize(1200, 1200, { fit: 'inside', withoutEnlargement: true })\n"
            "    .webp({ quality: 80 })\n"
            "    .toFile(output);\n"
            "}"
        ),
        "benefit": "Image bytes 50-70% smaller, LCP 15-25% better.",
    },
    {
        "title": "Build optimization (chunking, tree shaking, minification)",
        "desc": (
            "Configure the bundler to split vendor code, drop unused exports and minify output. "
            "Steps: 1. configure manualChunks 2. keep ES modules for tree shaking 3. minify with terser."
        ),
        "category": "build",
        "code": (
            "// vite.config.js\n"
            "export default {\n"
            "  build: {\n"
            "    rollupOptions: {\n"
            "      output: { manualChunks: { vendor: ['vue', 'vue-router'] } },\n"
            "    },\n"
            "    minify: 'terser',\n"
            "    terserOptions: { compress: { drop_console: true } },\n"
            "  },\n"
            "};"
        ),
        "benefit": "Bundle 30-50% smaller, TBT 20-40% lower.",
    },
    {
        "title": "Preload critical resources",
        "desc": (
            "Preload the resources needed for the first paint and prefetch what the next page needs. "
            "Steps: 1. identify critical CSS/fonts/scripts 2. add preload hints 3. add dns-prefetch for "
            "third-party origins. Do not preload everything."
        ),
        "category": "user experience",
        "code": (
            "<!-- index.html -->\n"
            "<link rel=\"preload\" href=\"/styles/critical.css\" as=\"style\">\n"
            "<link rel=\"preload\" href=\"/fonts/main.woff2\" as=\"font\" type=\"font/woff2\" crossorigin>\n"
            "<link rel=\"prefetch\" href=\"/js/next-page.js\">\n"
            "<link rel=\"dns-prefetch\" href=\"https://cdn.example.com\">"
        ),
        "benefit": "Critical resources load 20-30% sooner, FCP 15-20% better.",
    },
)

CODE_EXAMPLES: Tuple[Dict[str, str], ...] = (
    {
        "type": "lazy-load",
        "desc": "Vue 3 async component with delay and timeout",
        "code": (
            "import { defineAsyncComponent } from 'vue';\n"
            "\n"
            "const HeavyComponent = defineAsyncComponent({\n"
            "  loader: () => import('./HeavyComponent.vue'),\n"
            "  delay: 200,\n"
            "  timeout: 3000,\n"
            "});"
        ),
    },
    {
        "type": "lazy-load-react",
        "desc": "React lazy component with Suspense",
        "code": (
            "import { lazy, Suspense } from 'react';\n"
            "\n"
            "const HeavyComponent = lazy(() => import('./HeavyComponent'));\n"
            "\n"
            "export default function App() {\n"
            "  return (\n"
            "    <Suspense fallback={<div>Loading...</div>}>\n"
            "      <HeavyComponent />\n"
            "    </Suspense>\n"
            "  );\n"
            "}"
        ),
    },
    {
        "type": "build-optimization-vite",
        "desc": "Vite vendor chunking",
        "code": (
            "import { defineConfig } from 'vite';\n"
            "\n"
            "export default defineConfig({\n"
            "  build: {\n"
            "    rollupOptions: { output: { manualChunks: { vendor: ['vue', 'vue-router'] } } },\n"
            "    chunkSizeWarningLimit: 1000,\n"
            "  },\n"
            "});"
        ),
    },
    {
        "type": "compression-nginx",
        "desc": "Nginx gzip configuration",
        "code": (
            "gzip on;\n"
            "gzip_comp_level 6;\n"
            "gzip_min_length 1024;\n"
            "gzip_types text/css application/javascript application/json image/svg+xml;"
        ),
    },
    {
        "type": "image-lazy-loading",
        "desc": "Native image lazy loading with explicit dimensions",
        "code": (
            "<img src=\"hero.webp\" loading=\"lazy\" decoding=\"async\"\n"
            "     width=\"800\" height=\"600\" alt=\"Hero image\">"
        ),
    },
)


def _num(value) -> float:
    return float(value) if value is not None else 0.0


def _clamp(score) -> int:
    return int(min(100, max(0, score or 0)))


def _ms(value) -> str:
    return f"{_num(value):.0f}"


def describe_metrics(audit: AuditMetrics) -> Dict[str, str]:
    """Human-readable value + verdict for the six headline metrics."""
    m = audit.metrics
    lcp, fid, cls = _num(m.lcp), _num(m.fid), _num(m.cls)
    tbt, fcp, si = _num(m.tbt), _num(m.fcp), _num(m.speed_index)
    return {
        "LCP": f"{_ms(lcp)}ms, " + (
            "above the 4s threshold, hurts the first-screen experience" if lcp > LCP_POOR
            else "slightly above the recommended 2.5s" if lcp > 2500
            else "good"),
        "FID": f"{_ms(fid)}ms, " + (
            "high first-input delay" if fid > 300
            else "could be improved" if fid > 100
            else "responsive"),
        "CLS": f"{cls:.3f}, " + (
            "poor layout stability" if cls > CLS_POOR
            else "layout stability can be improved" if cls > CLS_NEEDS_WORK
            else "stable layout"),
        "TBT": f"{_ms(tbt)}ms, " + (
            "severe main-thread blocking" if tbt > TBT_HIGH
            else "some blocking" if tbt > 200
            else "little blocking"),
        "FCP": f"{_ms(fcp)}ms, " + (
            "slow first contentful paint" if fcp > 3000
            else "could be improved" if fcp > 1800
            else "good"),
        "SpeedIndex": f"{_ms(si)}, " + (
            "page loads slowly" if si > 4000 else "acceptable loading speed"),
    }


def detect_problems(audit: AuditMetrics) -> List[Problem]:
    m, res, req = audit.metrics, audit.resources, audit.requests
    tbt, lcp, cls = _num(m.tbt), _num(m.lcp), _num(m.cls)
    problems = [
        Problem(
            type="script",
            title="Long JavaScript execution",
            severity="high" if tbt > TBT_HIGH else "medium",
            impact=f"The main thread is blocked for {_ms(tbt)}ms, delaying responses to user input.",
            suggestion="Split bundles and lazy-load non-critical scripts.",
        ),
        Problem(
            type="network",
            title="Heavy page weight or too many requests",
            severity="high" if res.total_size > TOTAL_SIZE_HIGH_KB else "medium",
            impact=(
                f"Total resource size is {res.total_size:.0f} KB over {req.total} requests, "
                "which slows down loading."
            ),
            suggestion="Compress, minify and bundle resources.",
        ),
    ]
    if lcp > LCP_POOR or res.image_total_size > IMAGE_SIZE_KB:
        problems.append(Problem(
            type="image",
            title="Images delay the largest contentful paint",
            severity="high" if lcp > LCP_POOR else "medium",
            impact=f"LCP is {_ms(lcp)}ms with {res.image_total_size:.0f} KB of images.",
            suggestion="Serve resized WebP/AVIF images and lazy-load offscreen ones.",
        ))
    if cls > CLS_NEEDS_WORK:
        problems.append(Problem(
            type="render",
            title="Layout shifts during load",
            severity="high" if cls > CLS_POOR else "medium",
            impact=f"CLS is {cls:.3f}; content moves while the user reads or taps.",
            suggestion="Reserve space for images, ads and embeds with explicit dimensions.",
        ))
    if req.third_party_ratio > THIRD_PARTY_RATIO:
        problems.append(Problem(
            type="third-party",
            title="Heavy reliance on third-party resources",
            severity="high" if req.third_party_ratio > THIRD_PARTY_RATIO_HIGH else "medium",
            impact=(
                f"{req.third_party_ratio:.1f}% of requests ({req.third_party}) go to third parties, "
                f"adding {res.third_party_size:.0f} KB."
            ),
            suggestion="Defer or self-host third-party scripts and drop unused tags.",
        ))
    return problems


def _by_severity(problems: List[Problem]) -> List[Problem]:
    # sorted() is stable: detection order breaks ties
    return sorted(problems, key=lambda p: _SEVERITY_RANK[p.severity])


def bottleneck_distribution(problems: List[Problem]) -> Dict[str, float]:
    """Severity-weighted share per category, integer percentages summing to 100."""
    weights = {c: 0 for c in CATEGORIES}
    for p in problems:
        if p.type in weights:
            weights[p.type] += _SEVERITY_WEIGHT[p.severity]
    total = sum(weights.values())
    if total == 0:
        return {c: 0.0 for c in CATEGORIES}
    exact = {c: w * 100 / total for c, w in weights.items()}
    shares = {c: math.floor(v) for c, v in exact.items()}
    remainder = 100 - sum(shares.values())
    # largest remainder, category order breaks ties
    for c in sorted(CATEGORIES, key=lambda c: -(exact[c] - shares[c]))[:remainder]:
        shares[c] += 1
    return {c: float(v) for c, v in shares.items()}


def _trends(audit: AuditMetrics) -> List[MetricTrend]:
    m = audit.metrics
    return [
        MetricTrend(metric=name, before=round(_num(v), 1), after=round(_num(v) * factor, 1))
        for name, v, factor in (("LCP", m.lcp, 0.7), ("TBT", m.tbt, 0.6), ("FCP", m.fcp, 0.8))
    ]


def _prediction(performance: int) -> str:
    target = min(100, max(85, performance + 15)) if performance < 85 else min(100, performance + 5)
    return (
        f"Applying the suggested optimizations should raise the performance score from "
        f"{performance} to about {target} and cut first-screen time by roughly 1-2 seconds."
    )


def build_fallback_report(audit: AuditMetrics) -> Report:
    if not isinstance(audit, AuditMetrics):
        raise TypeError(f"build_fallback_report() needs AuditMetrics, got {type(audit).__name__}")

    performance = _clamp(audit.score or audit.scores.performance)
    problems = detect_problems(audit)
    ranked = _by_severity(problems)
    titles = ", ".join(p.title.lower() for p in ranked)

    return Report(
        summary=(
            f"Performance analysis of {audit.url}. Current performance score: {performance}/100. "
            f"Found {len(problems)} areas to optimize: {titles}."
        ),
        score=Score(
            performance=performance,
            accessibility=_clamp(audit.scores.accessibility),
            best_practices=_clamp(audit.scores.best_practices),
            seo=_clamp(audit.scores.seo),
        ),
        metrics=describe_metrics(audit),
        problems=problems,
        insights=Insights(
            main_bottleneck=_BOTTLENECKS[ranked[0].type],
            root_causes=list(ROOT_CAUSES),
            quick_wins=list(QUICK_WINS),
        ),
        suggestions=[Suggestion(**s) for s in SUGGESTIONS],
        code_examples=[CodeExample(**c) for c in CODE_EXAMPLES],
        visualization=Visualization(
            metric_trends=_trends(audit),
            bottleneck_distribution=bottleneck_distribution(problems),
            ai_cards=[
                AICard(
                    title=p.title,
                    impact=p.impact,
                    suggestion=p.suggestion,
                    confidence="high" if p.severity == "high" else "medium",
                )
                for p in ranked[:3]
            ],
        ),
        prediction=_prediction(performance),
    )
