"""Configuration management for the scan-to-document pipeline."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from scan2doc.errors import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SCAN2DOC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # AI service (OpenAI-compatible endpoint, Ollama by default)
    ai_base_url: Optional[str] = "http://localhost:11434/v1"
    ai_api_key: Optional[str] = None
    layout_model: str = "gemini-2.0-flash"
    ranking_model: str = "gemini-2.0-flash"
    summary_model: str = "gemini-2.0-flash"
    request_timeout_seconds: float = 120.0

    # Extraction
    render_scale: float = 2.0
    jpeg_quality: int = 95

    # Cropping
    crop_padding: int = 5
    crop_max_display: int = 450

    # Reordering and summary
    excerpt_chars: int = 100
    summary_max_chars: int = 60000
    target_language: str = "Original"
    summary_fallback_language: str = "English"
    generate_summary: bool = True

    # Logging
    log_level: str = "INFO"

    def require_ai_credentials(self) -> None:
        """Fail fast when the AI endpoint or its credential is missing."""
        if not self.ai_base_url:
            raise ConfigurationError("AI endpoint is not configured (SCAN2DOC_AI_BASE_URL)")
        if not self.ai_api_key:
            raise ConfigurationError("AI API key is not configured (SCAN2DOC_AI_API_KEY)")

    def summary_language(self, language: Optional[str] = None) -> str:
        """Language the summary is written in for a given target language."""
        language = language or self.target_language
        if language == "Original":
            return self.summary_fallback_language
        return language


settings = Settings()
