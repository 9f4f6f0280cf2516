"""Factories that build independent, fully configured service instances."""
from __future__ import annotations

from typing import List, Optional

from .backend import BackendClient
from .prediction import PredictionClient
from .report import ReportClient
from .weather import WeatherGateway
from ..cache import TTLCache
from ..health import HealthRegistry
from ..http import RequestConfig
from ..providers import MalaysiaForecastProvider, WeatherProvider, WeatherStackProvider
from ..settings import Settings


def _request_config(settings: Settings) -> RequestConfig:
    return RequestConfig(timeout=settings.http_timeout, retries=settings.http_retries)


def build_weather_gateway(settings: Settings, registry: Optional[HealthRegistry] = None) -> WeatherGateway:
    config = _request_config(settings)
    providers: List[WeatherProvider] = []
    if settings.weatherstack_api_key:
        providers.append(
            WeatherStackProvider(
                api_key=settings.weatherstack_api_key,
                base_url=settings.weatherstack_base_url,
                request_config=config,
            )
        )
    providers.append(MalaysiaForecastProvider(base_url=settings.malaysia_api_base_url, request_config=config))
    return WeatherGateway(
        providers,
        cache=TTLCache(ttl=settings.weather_cache_ttl),
        registry=registry,
    )


def build_prediction_client(settings: Settings, registry: Optional[HealthRegistry] = None) -> PredictionClient:
    return PredictionClient(settings.api_base_url, registry=registry, request_config=_request_config(settings))


def build_report_client(settings: Settings, registry: Optional[HealthRegistry] = None) -> ReportClient:
    return ReportClient(settings.api_base_url, registry=registry, request_config=_request_config(settings))


__all__ = [
    "BackendClient",
    "PredictionClient",
    "ReportClient",
    "WeatherGateway",
    "build_prediction_client",
    "build_report_client",
    "build_weather_gateway",
]
