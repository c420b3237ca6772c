"""Application configuration via Pydantic Settings.

NOTE: Every field maps to an explicit env variable name (STORAGE_BACKEND,
REDIS_URL, ...) so a typo in .env fails loudly instead of silently using
the default.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Storage
    storage_backend: Literal["memory", "redis"] = Field(
        default="memory",
        validation_alias="STORAGE_BACKEND",
    )
    redis_url: str = Field(default="redis://localhost:6379/0", validation_alias="REDIS_URL")
    redis_key_prefix: str = Field(default="distributor:", validation_alias="REDIS_KEY_PREFIX")

    # Team locks (redis backend only)
    lock_timeout_seconds: float = Field(default=10.0, validation_alias="LOCK_TIMEOUT_SECONDS")
    lock_blocking_timeout_seconds: float = Field(
        default=5.0,
        validation_alias="LOCK_BLOCKING_TIMEOUT_SECONDS",
    )

    # Notifications
    notifier_queue_size: int = Field(default=100, validation_alias="NOTIFIER_QUEUE_SIZE")

    # App
    cors_origins: list[str] = Field(
        default=[
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ],
        validation_alias="CORS_ORIGINS",
    )
    debug: bool = Field(default=False, validation_alias="DEBUG")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
