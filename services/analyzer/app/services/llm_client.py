# services/analyzer/app/services/llm_client.py
import logging
from typing import Optional

from schemas.models import AuditMetrics
from ..observability.langfuse import end_safe, generation, start_trace, update_safe
from ..providers import BaseProvider, choose_provider
from ..settings import ProviderConfig, settings
from .prompts import SYSTEM_PROMPT, build_user_prompt

logger = logging.getLogger("analyzer.llm_client")


def generate_report_text(
    audit: AuditMetrics,
    provider: Optional[BaseProvider] = None,
    config: Optional[ProviderConfig] = None,
) -> str:
    """
    One model call for one audit. Returns the raw response text;
    transport and provider errors propagate to the caller.
    """
    config = config or settings.provider_config()
    provider = provider or choose_provider(config.provider)
    prompt = build_user_prompt(audit)

    trace = start_trace(
        name="analyzer.analyze",
        metadata={"url": audit.url, "provider": config.provider, "model": config.model},
    )
    # 📈 Langfuse generation
    gen = generation(
        name="analyzer.generate_report",
        model=config.model,
        prompt=prompt,
        system=SYSTEM_PROMPT,
        component="analyzer.llm_client",
    )
    try:
        text, finish = provider.generate(prompt=prompt, system=SYSTEM_PROMPT, config=config)
        update_safe(gen, output=text, metadata={"finish_reason": finish})
    finally:
        end_safe(gen)
        end_safe(trace)

    if finish == "length":
        logger.warning(
            "Model output hit the token limit; expect a truncated document",
            extra={"url": audit.url, "model": config.model, "chars": len(text)},
        )
    logger.info(
        "Model response received",
        extra={"url": audit.url, "provider": config.provider, "chars": len(text), "finish": finish},
    )
    return text
