from abc import ABC, abstractmethod
from typing import Tuple

from ..settings import ProviderConfig


class ProviderError(RuntimeError):
    """The provider answered, but not with usable text."""


class BaseProvider(ABC):
    name: str

    @abstractmethod
    def generate(self, *, prompt: str, system: str | None,
                 config: ProviderConfig) -> Tuple[str, str]:
        """Return (text, finish_reason)."""

    @staticmethod
    def _timeout(config: ProviderConfig) -> float:
        return (config.timeout_ms / 1000) if config.timeout_ms and config.timeout_ms > 0 else 120
