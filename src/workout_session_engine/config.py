"""Configuration settings for the workout session engine."""
import os
from typing import List, Literal, Optional


EnvironmentType = Literal["development", "staging", "production"]

DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://localhost:3001"


def _non_negative_int(value: Optional[str], default: int) -> int:
    if value is None or value.strip() == "":
        return default
    try:
        parsed = int(value)
    except ValueError:
        return default
    return parsed if parsed >= 0 else default


class Settings:
    """Application settings."""

    # Environment
    ENVIRONMENT: EnvironmentType = "development"
    LOG_LEVEL: str = "INFO"

    # Session engine
    TICK_INTERVAL_MS: int = 1000
    EXPAND_GROUP_ROUNDS: bool = False

    # Session registry retention, in seconds; 0 disables the rule
    FINISHED_SESSION_TTL_SECONDS: int = 600
    SESSION_IDLE_TIMEOUT_SECONDS: int = 3600

    # Exercise metadata lookup table (JSON list of exercises)
    EXERCISE_LIBRARY_PATH: str | None = None

    CORS_ORIGINS: List[str] = []

    def __init__(self):
        # Environment
        env = os.getenv("ENVIRONMENT", "development").lower()
        if env in ("development", "staging", "production"):
            self.ENVIRONMENT = env  # type: ignore
        else:
            self.ENVIRONMENT = "development"
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

        # Session engine
        try:
            self.TICK_INTERVAL_MS = int(os.getenv("TICK_INTERVAL_MS", "1000"))
        except ValueError:
            self.TICK_INTERVAL_MS = 1000
        if self.TICK_INTERVAL_MS <= 0:
            self.TICK_INTERVAL_MS = 1000
        self.EXPAND_GROUP_ROUNDS = os.getenv("EXPAND_GROUP_ROUNDS", "false").lower() == "true"

        self.FINISHED_SESSION_TTL_SECONDS = _non_negative_int(
            os.getenv("FINISHED_SESSION_TTL_SECONDS"), 600
        )
        self.SESSION_IDLE_TIMEOUT_SECONDS = _non_negative_int(
            os.getenv("SESSION_IDLE_TIMEOUT_SECONDS"), 3600
        )

        self.EXERCISE_LIBRARY_PATH = os.getenv("EXERCISE_LIBRARY_PATH") or None

        origins = os.getenv("CORS_ORIGINS", DEFAULT_CORS_ORIGINS)
        self.CORS_ORIGINS = [o.strip() for o in origins.split(",") if o.strip()]


settings = Settings()
