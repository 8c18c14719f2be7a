from __future__ import annotations

from typing import Optional

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings.

    Values may be provided via environment variables or a `.env` file in the
    working directory. Names match the env vars the service has always used
    (GEMINI_API_KEY, PORT, ...), so there is no prefix.
    """

    # Upstream AI service
    gemini_api_key: Optional[str] = Field(None, description="API key for the Gemini API")
    gemini_model: str = Field("gemini-2.5-flash", description="Model id used for extraction")
    gemini_api_base: str = Field("https://generativelanguage.googleapis.com", description="Gemini REST base URL")
    gemini_timeout_s: float = Field(60.0, description="Socket timeout for the upstream call")

    # HTTP
    host: str = "0.0.0.0"
    port: int = 3000
    cors_allow_origins: str = Field("*", description="Comma-separated origins")
    serve_frontend: bool = Field(True, description="Mount the demo UI at /ui")

    # development|production; anything but production exposes error details
    environment: str = "production"

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() == "production"


def load_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
