# services/analyzer/app/services/report_pipeline.py
"""Model text (or nothing) -> Report. Never raises for a valid audit."""
from __future__ import annotations
import logging
from typing import Optional

from schemas.models import AuditMetrics, Report
from ..providers import BaseProvider
from ..settings import ProviderConfig
from ..utils.json_parse import CascadeStage, parse_cascade
from .fallback import build_fallback_report
from .llm_client import generate_report_text
from .normalizer import normalize_report

logger = logging.getLogger("analyzer.report_pipeline")


def build_report(text: Optional[str], audit: AuditMetrics) -> Report:
    if text is None or not text.strip():
        logger.warning("No model output, using fallback report", extra={"url": audit.url})
        return build_fallback_report(audit)

    outcome = parse_cascade(text)
    if outcome.stage is CascadeStage.FAILED:
        logger.warning(
            "Model output could not be parsed, using fallback report",
            extra={"url": audit.url, "errors": outcome.errors[-3:]},
        )
        return build_fallback_report(audit)

    logger.debug(
        "Parsed model output",
        extra={"stage": outcome.stage.value, "truncated": outcome.truncated},
    )
    try:
        return normalize_report(outcome.document, audit)
    except Exception as e:
        logger.warning(
            "Normalization failed, using fallback report",
            extra={"url": audit.url, "error_type": type(e).__name__, "error": str(e)},
            exc_info=True,
        )
        return build_fallback_report(audit)


def analyze_audit(
    audit: AuditMetrics,
    provider: Optional[BaseProvider] = None,
    config: Optional[ProviderConfig] = None,
) -> Report:
    """Call the model for this audit and turn whatever comes back into a Report."""
    try:
        text = generate_report_text(audit, provider=provider, config=config)
    except Exception as e:
        # timeouts, transport errors, malformed payloads, missing API key
        logger.warning(
            "Model call failed",
            extra={"url": audit.url, "error_type": type(e).__name__, "error": str(e)},
        )
        text = None
    if text is not None and not isinstance(text, str):
        logger.warning("Model returned non-text output", extra={"url": audit.url})
        text = None
    return build_report(text, audit)
