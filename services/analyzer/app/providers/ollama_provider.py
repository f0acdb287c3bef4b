from typing import Tuple
import requests
from .base import BaseProvider, ProviderError
from ..settings import ProviderConfig


class OllamaProvider(BaseProvider):
    name = "ollama"

    def _options(self, config: ProviderConfig):
        opts = {}
        if config.temperature is not None: opts["temperature"] = config.temperature
        if config.max_tokens is not None: opts["num_predict"] = config.max_tokens
        return opts

    def generate(self, *, prompt, system, config) -> Tuple[str, str]:
        url = f"{config.base_url.rstrip('/')}/api/generate"
        prompt_text = prompt if not system else f"System:\n{system}\n\nUser:\n{prompt}"
        payload = {
            "model": config.model,
            "prompt": prompt_text,
            "stream": False,
            "options": self._options(config)
        }
        if config.json_mode:
            # basic JSON guard
            payload["format"] = "json"

        r = requests.post(url, json=payload, timeout=self._timeout(config))
        r.raise_for_status()
        data = r.json()
        text = data.get("response") or ""
        if not isinstance(text, str):
            raise ProviderError("Ollama response is not text")
        return text, data.get("done_reason") or "stop"
