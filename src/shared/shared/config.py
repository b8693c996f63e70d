from __future__ import annotations

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    NOTE:
    - Do NOT instantiate Settings() at import time.
    - Use get_settings() so the app can boot even when the model key is missing.
    - A missing GOOGLE_AI_API_KEY is not a validation error: the API starts in
      degraded mode and answers generation requests with a 500.
    """

    model_config = SettingsConfigDict(env_file=None)

    ENV_NAME: str = "dev"

    # App behavior
    LOG_LEVEL: str = "INFO"
    CORS_ALLOW_ORIGINS: str = "*"

    # Google Gemini (required for generation)
    GOOGLE_AI_API_KEY: str | None = None
    GEMINI_API_BASE: str = "https://generativelanguage.googleapis.com/v1beta"
    GEMINI_MODEL: str = "gemini-2.0-flash-preview-image-generation"
    MODEL_TIMEOUT_SECONDS: float = 120.0

    # Supabase (auth, storage and the default records backend)
    SUPABASE_URL: str | None = None
    SUPABASE_SERVICE_ROLE_KEY: str | None = None

    # Storage
    STORAGE_PUBLIC_BUCKET: str = "public-images"
    STORAGE_PRIVATE_BUCKET: str = "private-images"
    STORAGE_CACHE_CONTROL: str = "3600"
    CLEANUP_ORPHANED_UPLOADS: bool = True

    # Records: 'supabase' (REST) or 'sqlalchemy' (direct Postgres via DATABASE_URL)
    RECORDS_BACKEND: str = "supabase"
    RECORDS_TABLE: str = "generated_images"
    DATABASE_URL: str | None = None

    def model_configured(self) -> bool:
        return bool(self.GOOGLE_AI_API_KEY)

    def supabase_configured(self) -> bool:
        return bool(self.SUPABASE_URL and self.SUPABASE_SERVICE_ROLE_KEY)

    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ALLOW_ORIGINS.split(",") if o.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Cached settings loader.
    Reads the environment once, the first time the app asks for settings.
    """
    return Settings()
