from __future__ import annotations

import logging

import pytest

from dengueguard.exceptions import ConfigurationError
from dengueguard.providers import MalaysiaForecastProvider, WeatherStackProvider
from dengueguard.services import build_prediction_client, build_report_client, build_weather_gateway
from dengueguard.settings import LOG_FORMAT, Settings, configure_logging, env


def test_defaults_without_environment():
    settings = Settings.from_env({})

    assert settings.api_base_url == "http://localhost:8002"
    assert settings.weatherstack_api_key is None
    assert settings.weather_cache_ttl == 600
    assert settings.http_timeout == 8
    assert settings.http_retries == 0
    assert settings.log_level == "INFO"


def test_values_read_from_environment():
    settings = Settings.from_env(
        {
            "DENGUE_API_URL": "https://api.dengue.my",
            "WEATHERSTACK_API_KEY": "abc",
            "WEATHER_CACHE_TTL": "120",
            "HTTP_TIMEOUT": "5.5",
            "HTTP_RETRIES": "2",
            "LOG_LEVEL": "debug",
        }
    )

    assert settings.api_base_url == "https://api.dengue.my"
    assert settings.weatherstack_api_key == "abc"
    assert settings.weather_cache_ttl == 120
    assert settings.http_timeout == 5.5
    assert settings.http_retries == 2
    assert settings.log_level == "DEBUG"


def test_non_numeric_setting_is_rejected():
    with pytest.raises(ConfigurationError, match="HTTP_TIMEOUT"):
        Settings.from_env({"HTTP_TIMEOUT": "soon"})


def test_required_variable_without_default():
    with pytest.raises(ConfigurationError, match="DENGUE_API_URL is required"):
        env("DENGUE_API_URL", environ={})


def test_gateway_skips_weatherstack_without_key():
    gateway = build_weather_gateway(Settings.from_env({}))

    assert [type(p) for p in gateway.providers] == [MalaysiaForecastProvider]


def test_gateway_uses_weatherstack_first_with_key():
    settings = Settings.from_env({"WEATHERSTACK_API_KEY": "abc", "WEATHER_CACHE_TTL": "60", "HTTP_TIMEOUT": "4"})

    gateway = build_weather_gateway(settings)

    assert [type(p) for p in gateway.providers] == [WeatherStackProvider, MalaysiaForecastProvider]
    assert gateway.cache.ttl == 60
    assert gateway.providers[0].request_config.timeout == 4


def test_factories_build_independent_instances():
    settings = Settings.from_env({"DENGUE_API_URL": "https://api.dengue.my"})

    first, second = build_prediction_client(settings), build_prediction_client(settings)

    assert first is not second
    assert first.session is not second.session
    assert build_report_client(settings).base_url == "https://api.dengue.my"
    assert build_weather_gateway(settings).cache is not build_weather_gateway(settings).cache


def test_configure_logging_installs_console_handler():
    root = logging.getLogger()
    previous_handlers, previous_level = root.handlers[:], root.level
    try:
        configure_logging("WARNING")
        assert root.level == logging.WARNING
        assert any(handler.formatter and handler.formatter._fmt == LOG_FORMAT for handler in root.handlers)
    finally:
        root.handlers[:] = previous_handlers
        root.setLevel(previous_level)
