from __future__ import annotations
import contextvars
import logging
from typing import Any, Dict, Optional
from langfuse import Langfuse

from ..settings import settings

logger = logging.getLogger("analyzer.observability")

# cached client
_LF: Optional[Langfuse] = None
# context-local current trace id
_CURRENT_TRACE_ID: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("lf_trace_id", default=None)


def lf() -> Optional[Langfuse]:
    """Singleton Langfuse client, or None when tracing is switched off."""
    global _LF
    if not settings.LANGFUSE_ENABLED:
        return None
    if _LF is None:
        _LF = Langfuse(
            public_key=settings.LANGFUSE_PUBLIC_KEY,
            secret_key=settings.LANGFUSE_SECRET_KEY,
            host=settings.LANGFUSE_HOST,
            enabled=True,
            sdk_integration="perf-analyzer",
        )
    return _LF


def start_trace(name: str, metadata: Optional[Dict[str, Any]] = None) -> Any:
    client = lf()
    if client is None:
        return None
    t = client.trace(name=name, metadata=(metadata or {}))
    _CURRENT_TRACE_ID.set(getattr(t, "id", None))
    return t


def get_current_trace_id() -> Optional[str]:
    return _CURRENT_TRACE_ID.get()


def generation(
    name: str,
    model: str,
    prompt: str,
    system: str = "",
    trace_id: Optional[str] = None,
    **meta,
) -> Any:
    client = lf()
    if client is None:
        return None
    tid = trace_id if trace_id is not None else get_current_trace_id()
    return client.generation(
        trace_id=tid,
        name=name,
        model=model or "unknown",
        input={"system": system, "prompt": prompt},
        metadata=meta or {},
    )


def update_safe(obj: Any, **fields) -> None:
    if obj is None:
        return
    try:
        obj.update(**fields)
    except Exception:
        logger.debug("langfuse update failed", exc_info=True)


def end_safe(obj: Any) -> None:
    if obj is None:
        return
    try:
        obj.end()
    except Exception:
        logger.debug("langfuse end failed", exc_info=True)
