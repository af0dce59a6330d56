from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    APP_NAME: str = "Zoo School Carpool"
    DEBUG: bool = False
    DATABASE_URL: str = "sqlite+aiosqlite:///./carpool.db"
    # "sql" persists through DATABASE_URL, "memory" keeps trips in-process (dev only)
    STORE_BACKEND: str = "sql"
    # single time reference for calendar days and naive departure times
    CALENDAR_TIMEZONE: str = "UTC"
    # bounded re-read/retry after a version conflict when the caller asks for it
    JOIN_RETRY_LIMIT: int = 1
    LOG_LEVEL: str = "INFO"
    SENTRY_DSN: str = ""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


settings = Settings()
