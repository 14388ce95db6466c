from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Loads keys from process env, and also from a local .env file for convenience.
    model_config = SettingsConfigDict(env_prefix="", extra="ignore", env_file=".env", env_file_encoding="utf-8")

    log_level: str = "info"

    # Keys
    gemini_api_key: str | None = None
    openai_api_key: str | None = None

    # Models
    gemini_text_model: str = "gemini-2.5-flash"
    gemini_image_model: str = "gemini-2.5-flash-image-preview"
    openai_text_model: str = "gpt-4.1-mini"

    # Which provider writes concept suggestions: "gemini" or "openai".
    concept_provider: str = "gemini"

    # Suggestions
    suggestion_quiet_period_s: float = 0.5

    # Viewport
    zoom_sensitivity: float = 0.001
    min_scale: float = 0.5
    max_scale: float = 4.0

    # Rendering
    blank_canvas_edge: int = 1024
    quality_tiers: dict[str, int] = {
        "Normal": 2000,
        "High": 4000,
        "Ultra High": 6000,
    }


settings = Settings()
