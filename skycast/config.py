"""Settings read from the environment (load `.env` first in the entry script) and logging setup."""

import logging
import os
from dataclasses import dataclass

from skycast.errors import ConfigurationError
from skycast.suggestions import DEFAULT_MODEL

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
WEATHER_PROVIDERS = ("simulated", "openmeteo")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def _number(env, name: str, default, cast=float):
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    api_key: str | None = None
    model: str = DEFAULT_MODEL
    weather_provider: str = "simulated"
    max_retries: int = 5
    initial_delay: float = 1.0
    request_timeout: float = 10.0
    total_timeout: float | None = None
    log_level: str = "INFO"

    def __post_init__(self):
        if self.max_retries < 1:
            raise ConfigurationError("SKYCAST_MAX_RETRIES must be at least 1")
        if self.initial_delay < 0:
            raise ConfigurationError("SKYCAST_INITIAL_DELAY must not be negative")
        if self.request_timeout <= 0:
            raise ConfigurationError("SKYCAST_REQUEST_TIMEOUT must be positive")
        if self.total_timeout is not None and self.total_timeout <= 0:
            raise ConfigurationError("SKYCAST_TOTAL_TIMEOUT must be positive when set")
        if self.log_level.upper() not in LOG_LEVELS:
            raise ConfigurationError(
                f"SKYCAST_LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {self.log_level!r}"
            )

    @classmethod
    def from_env(cls, env=None) -> "Settings":
        env = os.environ if env is None else env
        provider = (env.get("SKYCAST_WEATHER_PROVIDER") or "simulated").strip().lower()
        if provider not in WEATHER_PROVIDERS:
            raise ConfigurationError(
                f"SKYCAST_WEATHER_PROVIDER must be one of {', '.join(WEATHER_PROVIDERS)}"
            )
        return cls(
            api_key=env.get("GEMINI_API_KEY") or env.get("GOOGLE_API_KEY") or None,
            model=env.get("GEMINI_MODEL") or DEFAULT_MODEL,
            weather_provider=provider,
            max_retries=_number(env, "SKYCAST_MAX_RETRIES", 5, int),
            initial_delay=_number(env, "SKYCAST_INITIAL_DELAY", 1.0),
            request_timeout=_number(env, "SKYCAST_REQUEST_TIMEOUT", 10.0),
            total_timeout=_number(env, "SKYCAST_TOTAL_TIMEOUT", None),
            log_level=(env.get("SKYCAST_LOG_LEVEL") or "INFO").strip().upper(),
        )

    def require_api_key(self) -> str:
        if not self.api_key:
            raise ConfigurationError(
                "Set GEMINI_API_KEY (or GOOGLE_API_KEY) in .env or environment."
            )
        return self.api_key
