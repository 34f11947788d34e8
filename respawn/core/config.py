from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from respawn.db.models import friendship


class Settings(BaseSettings):
    DB_URL: str = "sqlite+aiosqlite:///./respawn.db"
    DB_CREATE_ALL: bool = False
    LOG_LEVEL: str = "INFO"

    REDIS_URL: str = "redis://localhost:6379/0"
    COOLDOWN_LOCK_BACKEND: str = "local"  # local | redis
    COOLDOWN_LOCK_TIMEOUT_SECONDS: int = 30

    DEFAULT_COOLDOWN_MINUTES: int = friendship.DEFAULT_COOLDOWN_MINUTES
    MIN_COOLDOWN_MINUTES: int = 1
    MAX_COOLDOWN_MINUTES: int = 1440
    ALLOW_REREQUEST_AFTER_REJECTION: bool = False

    COOLDOWN_SWEEP_ENABLED: bool = True
    COOLDOWN_SWEEP_INTERVAL_SECONDS: int = 3600

    SESSION_TTL_DAYS: int = 30
    SESSION_SWEEP_INTERVAL_SECONDS: int = 3600
    BCRYPT_ROUNDS: int = 12

    SEARCH_RESULT_LIMIT: int = 20
    SEARCH_MIN_CHARS: int = 2

    VAPID_PUBLIC_KEY: str | None = None
    VAPID_PRIVATE_KEY: str | None = None
    VAPID_EMAIL: str | None = None
    PUSH_TITLE: str = "Return By Death!"

    CORS_ORIGINS: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("CORS_ORIGINS", "ALLOWED_ORIGINS"),
    )

    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parents[1].parent / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()
