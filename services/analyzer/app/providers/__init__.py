from .base import BaseProvider, ProviderError
from .ollama_provider import OllamaProvider
from .openai_provider import OpenAIProvider

_PROVIDERS = {
    OpenAIProvider.name: OpenAIProvider,
    OllamaProvider.name: OllamaProvider,
}


def choose_provider(name: str) -> BaseProvider:
    """Provider instance by name; unknown names get the OpenAI-compatible one."""
    return _PROVIDERS.get(name, OpenAIProvider)()


__all__ = ["BaseProvider", "ProviderError", "OpenAIProvider", "OllamaProvider", "choose_provider"]
