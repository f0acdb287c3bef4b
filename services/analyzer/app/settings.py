from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class ProviderConfig(BaseModel):
    """Everything a provider needs for one call; passed explicitly, never read from env."""
    provider: str = "openai"          # "openai" (any OpenAI-compatible API) | "ollama"
    model: str = "deepseek-chat"
    base_url: str = "https://api.deepseek.com"
    api_key: str = ""
    timeout_ms: int = 300_000
    max_tokens: int | None = 8000
    temperature: float | None = 0.7
    json_mode: bool = True


class Settings(BaseSettings):
    # Server
    ANALYZER_HOST: str = "0.0.0.0"
    ANALYZER_PORT: int = 8010
    ALLOWED_ORIGINS: str = "*"
    LOG_LEVEL: str = "INFO"

    # Defaults
    DEFAULT_PROVIDER: str = "openai"          # "openai" | "ollama"
    DEFAULT_MODEL: str = "deepseek-chat"

    # OpenAI-compatible endpoint (DeepSeek by default)
    LLM_API_KEY: str = ""
    LLM_BASE_URL: str = "https://api.deepseek.com"
    LLM_TIMEOUT_MS: int = 300_000
    LLM_MAX_TOKENS: int = 8000
    LLM_TEMPERATURE: float = 0.7
    LLM_JSON_MODE: bool = True

    # Ollama
    OLLAMA_ENDPOINT: str = "http://ollama:11434"

    # Saved analyses ("" disables)
    REPORTS_DIR: str = ""

    # Langfuse (Cloud)
    LANGFUSE_ENABLED: bool = False
    LANGFUSE_PUBLIC_KEY: str | None = None
    LANGFUSE_SECRET_KEY: str | None = None
    LANGFUSE_HOST: str = "https://cloud.langfuse.com"

    # Optional: allow .env and ignore unknown envs
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def allowed_origins_list(self) -> List[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    def provider_config(self) -> ProviderConfig:
        # "ollama:<model>" selects Ollama regardless of DEFAULT_PROVIDER
        provider, model = self.DEFAULT_PROVIDER, self.DEFAULT_MODEL
        if model.startswith("ollama:"):
            provider, model = "ollama", model[len("ollama:"):]
        return ProviderConfig(
            provider=provider,
            model=model,
            base_url=self.OLLAMA_ENDPOINT if provider == "ollama" else self.LLM_BASE_URL,
            api_key=self.LLM_API_KEY,
            timeout_ms=self.LLM_TIMEOUT_MS,
            max_tokens=self.LLM_MAX_TOKENS,
            temperature=self.LLM_TEMPERATURE,
            json_mode=self.LLM_JSON_MODE,
        )


settings = Settings()
