from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = Field(default="String Analyzer Service", alias="APP_NAME")

    # Storage: "file" (JSON snapshot), "sqlite" (SQLAlchemy) or "memory"
    storage_backend: str = Field(default="file", alias="STORAGE_BACKEND")
    data_file: Path = Field(default=Path("data.json"), alias="DATA_FILE")
    database_url: str = Field(default="sqlite:///./strings.db", alias="DATABASE_URL")

    # Logging configuration used by string_registry.logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    console_log_level: str = Field(default="INFO", alias="CONSOLE_LOG_LEVEL")

    # Comma-separated list, "*" allows any origin
    cors_origins: str = Field(default="*", alias="CORS_ORIGINS")

    rate_limit_enabled: bool = Field(default=True, alias="RATE_LIMIT_ENABLED")
    rate_limit: int = Field(default=120, alias="RATE_LIMIT")
    rate_limit_window: int = Field(default=60, alias="RATE_LIMIT_WINDOW")

    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def cors_origin_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def default_rate_limit(self) -> str:
        return f"{self.rate_limit} per {self.rate_limit_window} seconds"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
