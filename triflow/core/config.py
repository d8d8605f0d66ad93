"""Application configuration using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="TRIFLOW_",
    )

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = True
    log_level: Literal["debug", "info", "warning", "error"] = "info"

    # Application settings
    app_name: str = "TriFlow"
    app_version: str = "0.1.0"
    debug: bool = False

    # CORS settings
    cors_origins: list[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    # Storage settings
    database_url: str = "sqlite+aiosqlite:///./triflow.db"
    max_execution_records: int = 100

    # Execution settings
    node_timeout_seconds: float = 60.0
    run_timeout_seconds: float = 300.0
    max_concurrency: int = 8

    # API key -> user id
    api_keys: dict[str, str] = {}

    # Provider credentials (process-wide fallbacks)
    anthropic_api_key: str | None = None
    openai_api_key: str | None = None
    groq_api_key: str | None = None
    hf_api_token: str | None = None
    cloudflare_api_token: str | None = None
    cloudflare_account_id: str | None = None
    firecrawl_api_key: str | None = None

    # Provider endpoints
    hf_chat_url: str = "https://api-inference.huggingface.co/v1/chat/completions"
    hf_models_url: str = "https://api-inference.huggingface.co/models"
    hf_image_model: str = "black-forest-labs/FLUX.1-schnell"
    cloudflare_api_base: str = "https://api.cloudflare.com/client/v4/accounts"
    groq_base_url: str = "https://api.groq.com/openai/v1"
    firecrawl_base_url: str = "https://api.firecrawl.dev/v1"

    def provider_keys(self) -> dict[str, str | None]:
        """Process-wide credential per provider name."""
        return {
            "anthropic": self.anthropic_api_key,
            "openai": self.openai_api_key,
            "groq": self.groq_api_key,
            "huggingface": self.hf_api_token,
            "cloudflare": self.cloudflare_api_token,
            "firecrawl": self.firecrawl_api_key,
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
