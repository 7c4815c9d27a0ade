from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator, model_validator
from typing import Any, ClassVar, Literal
import json
from pathlib import Path
import os


class Settings(BaseSettings):
    API_V1_STR: str = "/api/v1"

    # JWT configuration (provide a fallback for local development)
    SECRET_KEY: str = "fallback_secret_for_dev_only"
    ALGORITHM: str = "HS256"
    # Tokens are long lived (7 days); the web client has no refresh flow.
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    # Database URL
    # Use an absolute path so running the app from different directories
    # (e.g., repo root or backend/) always resolves the same DB file.
    BASE_DIR: ClassVar[Path] = Path(__file__).resolve().parents[2]
    SQLALCHEMY_DATABASE_URL: str = f"sqlite:///{BASE_DIR / 'craftsmen.db'}"

    # Pool tuning for non-SQLite databases
    DB_POOL_SIZE: int = 6
    DB_MAX_OVERFLOW: int = 6
    DB_POOL_RECYCLE: int = 300
    DB_POOL_TIMEOUT: float = 5.0

    # Redis connection URL for the realtime bus
    REDIS_URL: str = "redis://localhost:6379/0"

    # "memory" keeps pushes inside this process; "redis" fans them out
    # through pub/sub so every API instance can reach its own sockets.
    REALTIME_BACKEND: Literal["memory", "redis"] = "memory"
    REALTIME_CHANNEL_PREFIX: str = "ws-topic:"

    # CORS origins
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]
    CORS_ALLOW_ALL: bool = False

    # Default currency code used for payments
    DEFAULT_CURRENCY: str = "SAR"

    # Simulated payment provider
    PAYMENT_SIMULATED_DELAY_SECONDS: float = 0.0
    PAYMENT_FAILURE_RATE: float = 0.05

    BCRYPT_ROUNDS: int = 12
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(extra="ignore", case_sensitive=True)

    @field_validator("CORS_ORIGINS", mode="before")
    def split_origins(cls, v: Any) -> list[str]:
        """Parse comma-separated or JSON list of origins from environment."""
        if isinstance(v, str):
            try:
                parsed = json.loads(v)
                if isinstance(parsed, list):
                    return parsed
            except json.JSONDecodeError:
                pass
            return [s.strip() for s in v.split(",") if s.strip()]
        return v

    @field_validator("PAYMENT_FAILURE_RATE")
    def clamp_failure_rate(cls, v: float) -> float:
        return min(1.0, max(0.0, v))

    @model_validator(mode="after")
    def allow_all_if_requested(cls, values: "Settings") -> "Settings":
        if values.CORS_ALLOW_ALL:
            values.CORS_ORIGINS = ["*"]
        return values


def load_settings() -> "Settings":
    return Settings(_env_file=os.getenv("ENV_FILE", str(Path(__file__).resolve().parents[3] / ".env")))


settings = load_settings()
