from typing import Tuple
import requests
from .base import BaseProvider, ProviderError
from ..settings import ProviderConfig


class OpenAIProvider(BaseProvider):
    """Any OpenAI-compatible /chat/completions endpoint (DeepSeek, OpenAI, ...)."""
    name = "openai"

    def _headers(self, config: ProviderConfig):
        return {"Authorization": f"Bearer {config.api_key}"}

    def generate(self, *, prompt, system, config) -> Tuple[str, str]:
        if not config.api_key:
            raise ProviderError("LLM_API_KEY is not configured")
        url = f"{config.base_url.rstrip('/')}/chat/completions"
        msgs = []
        if system:
            msgs.append({"role": "system", "content": system})
        msgs.append({"role": "user", "content": prompt})

        payload = {
            "model": config.model,
            "messages": msgs,
            "stream": False
        }
        if config.max_tokens is not None: payload["max_tokens"] = config.max_tokens
        if config.temperature is not None: payload["temperature"] = config.temperature

        # JSON mode keeps most answers parseable; the ingestion cascade handles the rest
        if config.json_mode:
            payload["response_format"] = {"type": "json_object"}

        r = requests.post(url, headers=self._headers(config), json=payload, timeout=self._timeout(config))
        r.raise_for_status()
        data = r.json()
        choices = data.get("choices") or []
        if not choices or not (choices[0].get("message") or {}).get("content"):
            raise ProviderError("No valid response from chat completions API")
        text = choices[0]["message"]["content"]
        if not isinstance(text, str):
            raise ProviderError("Chat completions content is not text")
        finish = choices[0].get("finish_reason") or "stop"
        return text.strip(), finish
