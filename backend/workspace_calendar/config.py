from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_ignore_empty=True, extra="ignore")

    DATABASE_URL: str = "postgresql+asyncpg://localhost:5432/workspace_calendar"

    JWT_SECRET: str = "change-me"

    CORS_ORIGINS: str = "http://localhost:3000"

    # Cross-workspace aggregation
    CALENDAR_FETCH_CONCURRENCY: int = 8
    CALENDAR_FETCH_TIMEOUT_SECONDS: float = 10.0
    CALENDAR_TIMEZONE: str = "UTC"

    CALENDAR_REPORT_ITEMS_LIMIT: int = 8
    CALENDAR_USER_REPORTS_LIMIT: int = 10
    CALENDAR_WORKSPACE_REPORTS_LIMIT: int = 5

    CALENDAR_UPCOMING_DAYS: int = 7
    CALENDAR_UPCOMING_LIMIT: int = 10

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


settings = Settings()
