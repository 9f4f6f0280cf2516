"""Environment driven settings for the dengue dashboard services."""
from __future__ import annotations

import logging
import logging.config
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .exceptions import ConfigurationError


def env(name: str, default: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> str:
    """Fetch environment variables while allowing explicit defaults."""

    source = os.environ if environ is None else environ
    value = source.get(name, default)
    if value is None:
        raise ConfigurationError(f"Environment variable {name} is required")
    return value


def _number(name: str, default: str, environ: Optional[Mapping[str, str]], cast=float):
    raw = env(name, default, environ)
    try:
        return cast(raw)
    except ValueError as exc:
        raise ConfigurationError(f"Environment variable {name} must be numeric, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    api_base_url: str = "http://localhost:8002"
    weatherstack_api_key: Optional[str] = None
    weatherstack_base_url: str = "http://api.weatherstack.com"
    malaysia_api_base_url: str = "https://api.data.gov.my"
    weather_cache_ttl: float = 600.0
    http_timeout: float = 8.0
    http_retries: int = 0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        return cls(
            api_base_url=env("DENGUE_API_URL", cls.api_base_url, environ),
            weatherstack_api_key=env("WEATHERSTACK_API_KEY", "", environ) or None,
            weatherstack_base_url=env("WEATHERSTACK_BASE_URL", cls.weatherstack_base_url, environ),
            malaysia_api_base_url=env("MALAYSIA_API_BASE_URL", cls.malaysia_api_base_url, environ),
            weather_cache_ttl=_number("WEATHER_CACHE_TTL", "600", environ),
            http_timeout=_number("HTTP_TIMEOUT", "8", environ),
            http_retries=_number("HTTP_RETRIES", "0", environ, cast=int),
            log_level=env("LOG_LEVEL", cls.log_level, environ).upper(),
        )


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"default": {"format": LOG_FORMAT}},
            "handlers": {
                "console": {"class": "logging.StreamHandler", "formatter": "default"},
            },
            "root": {"handlers": ["console"], "level": level},
        }
    )


__all__ = ["LOG_FORMAT", "Settings", "configure_logging", "env"]
