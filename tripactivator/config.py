from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # --- GTFS ---
    GTFS_RAW_DIR: str = "data/gtfs"
    GTFS_DELIMITER: str = ","
    GTFS_ENCODING: str = "utf-8"

    # --- Agency ---
    AGENCY_ID: str | None = None
    AGENCY_TIMEZONE: str | None = None

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )


settings = Settings()
