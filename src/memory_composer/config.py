"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    openai_api_key: str | None = None
    openai_model: str = "gpt-4.1"
    openai_image_quality: str = "auto"
    openai_store: bool = False
    request_timeout_seconds: float = 120.0
    max_output_tokens: int = 1290
    temperature: float = 0.7
    edit_temperature: float = 0.6
    enhance_temperature: float = 0.3
    demo_mode: bool = False
    demo_delay_seconds: float = 2.0
    demo_edit_delay_seconds: float = 1.5
    batch_delay_seconds: float = 1.0
    cost_per_operation: float = 0.0387
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def live_backend_configured(self) -> bool:
        """Return whether a credential for the image service is present."""
        return bool(self.openai_api_key and self.openai_api_key.strip())
