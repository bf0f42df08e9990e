"""Application configuration settings."""

from datetime import date
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Application
    APP_NAME: str = "Table Hold API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    CREATE_TABLES: bool = True

    # Database
    DATABASE_URL: str | None = None
    DB_HOST: str = "localhost"
    DB_PORT: int = 3306
    DB_USER: str = "root"
    DB_PASSWORD: str = "password"
    DB_NAME: str = "tablehold"

    # Redis
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_PASSWORD: str | None = None
    REDIS_DB: int = 0

    # Time grid
    TIME_SLOTS: list[str] = [
        "18:00",
        "18:30",
        "19:00",
        "19:30",
        "20:00",
        "20:30",
        "21:00",
        "21:30",
        "22:00",
    ]
    SLOT_INTERVAL_MINUTES: int = 30
    RESERVATION_DURATION_MINUTES: int = 120
    DATE_RANGE_START: date = date(2025, 7, 24)
    DATE_RANGE_END: date = date(2025, 7, 31)

    # Hold / reservation settings
    HOLD_DURATION_MINUTES: int = 5
    SWEEP_INTERVAL_SECONDS: int = 60
    MIN_PARTY_SIZE: int = 1
    MAX_PARTY_SIZE: int = 12

    # Distributed Lock settings
    LOCK_TIMEOUT_SECONDS: int = 30
    LOCK_RETRY_DELAY_MS: int = 100
    LOCK_MAX_RETRIES: int = 50

    @property
    def database_url(self) -> str:
        """Get async database URL."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"mysql+aiomysql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    @property
    def redis_url(self) -> str:
        """Get Redis URL."""
        if self.REDIS_PASSWORD:
            return f"redis://:{self.REDIS_PASSWORD}@{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
