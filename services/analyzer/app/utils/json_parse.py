# services/analyzer/app/utils/json_parse.py
from __future__ import annotations
import json
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .json_repair import repair
from .json_sanitize import sanitize
from .json_scan import scan_last_complete_object, scan_truncated

logger = logging.getLogger("analyzer.json_parse")

_STRUCTURAL_ERRORS = (ValueError, RecursionError)   # JSONDecodeError is a ValueError
_POS_RE = re.compile(r"char (\d+)")


class CascadeStage(str, Enum):
    RAW = "raw"
    SANITIZED = "sanitized"
    REPAIRED = "repaired"
    FAILED = "failed"


@dataclass
class ParseOutcome:
    stage: CascadeStage
    document: Optional[Dict[str, Any]] = None
    text: Optional[str] = None          # the text that finally parsed
    truncated: bool = False             # recovered by cutting a truncated tail
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.document is not None


def loads_object(text: str) -> Dict[str, Any]:
    """json.loads that only accepts a top-level object."""
    doc = json.loads(text)
    if not isinstance(doc, dict):
        raise ValueError(f"expected a JSON object, got {type(doc).__name__}")
    return doc


def _error_context(text: str, err: Exception) -> str:
    m = _POS_RE.search(str(err))
    if not m:
        return ""
    pos = int(m.group(1))
    return text[max(0, pos - 100):pos + 100]


def _attempt(text: str, stage: CascadeStage, errors: List[str]) -> Optional[Dict[str, Any]]:
    try:
        return loads_object(text)
    except _STRUCTURAL_ERRORS as e:
        errors.append(f"{stage.value}: {e}")
        logger.debug(
            "JSON parse attempt failed",
            extra={"stage": stage.value, "error": str(e), "context": _error_context(text, e)},
        )
        return None


def _recover_truncated(text: str, stage: CascadeStage, errors: List[str]) -> Optional[tuple]:
    """Try the last complete top-level object, then a cut at the last closed value."""
    span = scan_last_complete_object(text)
    if span.balanced and span.end - span.start < len(text):
        doc = _attempt(span.slice(text), stage, errors)
        if doc is not None:
            return doc, span.slice(text)
    span = scan_truncated(text)
    if span.start >= 0 and span.end > span.start and (span.pending or span.balanced):
        candidate = span.slice(text)
        if candidate != text:
            doc = _attempt(candidate, stage, errors)
            if doc is not None:
                return doc, candidate
    return None


def parse_cascade(raw: Optional[str]) -> ParseOutcome:
    """RAW -> SANITIZED -> REPAIRED -> FAILED, stopping at the first parse.

    Cheaper, less invasive transformations go first so a response that was
    already valid (or nearly so) is never rewritten by the repair rules.
    """
    errors: List[str] = []
    if raw is None or not raw.strip():
        return ParseOutcome(CascadeStage.FAILED, errors=["raw: empty response"])

    doc = _attempt(raw, CascadeStage.RAW, errors)
    if doc is not None:
        return ParseOutcome(CascadeStage.RAW, doc, raw)

    cleaned = sanitize(raw)
    doc = _attempt(cleaned, CascadeStage.SANITIZED, errors)
    if doc is not None:
        return ParseOutcome(CascadeStage.SANITIZED, doc, cleaned, errors=errors)
    recovered = _recover_truncated(cleaned, CascadeStage.SANITIZED, errors)
    if recovered is not None:
        logger.info("Recovered JSON from truncated response", extra={"stage": "sanitized"})
        return ParseOutcome(CascadeStage.SANITIZED, recovered[0], recovered[1], True, errors)

    try:
        repaired = repair(cleaned)
    except _STRUCTURAL_ERRORS as e:
        errors.append(f"{CascadeStage.REPAIRED.value}: {e!r}")
        logger.debug("Repair rules failed", extra={"error": repr(e)})
        return ParseOutcome(CascadeStage.FAILED, errors=errors)
    doc = _attempt(repaired, CascadeStage.REPAIRED, errors)
    if doc is not None:
        return ParseOutcome(CascadeStage.REPAIRED, doc, repaired, errors=errors)
    recovered = _recover_truncated(repaired, CascadeStage.REPAIRED, errors)
    if recovered is not None:
        logger.info("Recovered JSON from truncated response", extra={"stage": "repaired"})
        return ParseOutcome(CascadeStage.REPAIRED, recovered[0], recovered[1], True, errors)

    logger.debug(
        "All parse stages failed",
        extra={"head": cleaned[:1000], "tail": cleaned[-500:], "errors": errors},
    )
    return ParseOutcome(CascadeStage.FAILED, errors=errors)


def parse_json_lenient(raw: Optional[str]) -> Optional[Dict[str, Any]]:
    """Document from the first cascade stage that parses, else None."""
    return parse_cascade(raw).document
