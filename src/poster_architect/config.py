from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Loads keys from process env, and also from a local .env file for convenience.
    model_config = SettingsConfigDict(env_prefix="", extra="ignore", env_file=".env", env_file_encoding="utf-8")

    # Keys
    gemini_api_key: str | None = None

    # Models
    gemini_text_model: str = "gemini-2.5-flash"
    gemini_image_model: str = "gemini-2.5-flash-image-preview"

    # Poster options
    aspect_ratios: list[str] = ["9:16", "1:1", "16:9", "3:4", "4:3"]
    default_aspect_ratio: str = "9:16"
    max_reference_images: int = 8

    log_level: str = "INFO"


settings = Settings()
