from __future__ import annotations

import logging
import random
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..cache import TTLCache
from ..entities import WeatherReading, WeatherSnapshot
from ..exceptions import ProviderError, QuotaExceeded
from ..health import HealthRegistry
from ..outcome import Outcome, attempt
from ..providers.base import WeatherProvider
from ..risk import assess_risk


# Typical Malaysian conditions used when every provider is down.
FALLBACK_TEMPERATURE = (28.0, 34.0)
FALLBACK_HUMIDITY = (65.0, 85.0)
FALLBACK_RAINFALL = (0.0, 20.0)
FALLBACK_WIND_SPEED = (3.0, 15.0)


class WeatherGateway:
    CURRENT_TTL = 10 * 60

    def __init__(
        self,
        providers: Sequence[WeatherProvider],
        *,
        cache: Optional[TTLCache[WeatherReading]] = None,
        registry: Optional[HealthRegistry] = None,
        rng: Optional[random.Random] = None,
        now_func: Callable[[], datetime] = lambda: datetime.now(tz=timezone.utc),
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.providers: List[WeatherProvider] = list(providers)
        self.cache = cache if cache is not None else TTLCache(ttl=self.CURRENT_TTL)
        self.registry = registry
        self._rng = rng or random.Random()
        self._now = now_func
        self._log = logger or logging.getLogger(self.__class__.__name__)

    # Public API ---------------------------------------------------------
    def get_current_weather(self, location: str) -> WeatherReading:
        """Return current conditions for ``location``; never raises.

        Order: fresh cache entry, primary provider, secondary provider, then a
        locally estimated reading that is never cached.
        """
        for provider in self.providers:
            cached = self.cache.get(self._cache_key(provider, location))
            if cached is not None:
                self._publish_cache_stats()
                return cached
        outcome = self.fetch(location).or_else(lambda exc: self._estimated_reading(location))
        if outcome.degraded:
            self._log.warning("All weather providers failed for %s, using estimated reading", location)
            if self.registry is not None:
                self.registry.record_fallback("weather")
        self._publish_cache_stats()
        return outcome.unwrap()

    def get_weather_with_risk(self, location: str) -> WeatherSnapshot:
        reading = self.get_current_weather(location)
        risk = assess_risk(reading.temperature, reading.humidity, reading.rainfall_mm)
        return WeatherSnapshot(reading=reading, risk=risk)

    def fetch(self, location: str) -> Outcome[WeatherReading]:
        """Try every provider in order, caching the first success."""
        return attempt(lambda: self._fetch_with_fallback(location), label=f"weather fetch for {location}")

    def get_warnings(self) -> List[Dict[str, Any]]:
        for provider in self.providers:
            warnings = getattr(provider, "warnings", None)
            if not callable(warnings):
                continue
            outcome = attempt(warnings, label=f"{provider.name} warnings")
            if outcome.ok:
                return outcome.unwrap()
            self._record_error(provider)
        return []

    # Helpers ------------------------------------------------------------
    def _fetch_with_fallback(self, location: str) -> WeatherReading:
        for provider in self.providers:
            try:
                reading = provider.current(location)
            except QuotaExceeded:
                self._log.warning("Provider %s quota exceeded", provider.name)
                self._record_error(provider)
                continue
            except ProviderError as exc:
                self._log.error("Provider %s failed: %s", provider.name, exc)
                self._record_error(provider)
                continue
            self.cache.put(self._cache_key(provider, location), reading)
            return reading
        raise ProviderError("all providers failed")

    def _estimated_reading(self, location: str) -> WeatherReading:
        return WeatherReading(
            temperature=round(self._rng.uniform(*FALLBACK_TEMPERATURE), 1),
            humidity=round(self._rng.uniform(*FALLBACK_HUMIDITY), 1),
            rainfall_mm=round(self._rng.uniform(*FALLBACK_RAINFALL), 1),
            wind_speed_kmh=round(self._rng.uniform(*FALLBACK_WIND_SPEED), 1),
            observed_at=self._now(),
            location=location,
            source="estimated",
            estimated=True,
        )

    def _record_error(self, provider: WeatherProvider) -> None:
        if self.registry is not None:
            self.registry.record_upstream_error(provider.name)

    def _publish_cache_stats(self) -> None:
        if self.registry is not None:
            self.registry.set_cache_stats(self.cache.stats())

    @staticmethod
    def _cache_key(provider: WeatherProvider, location: str) -> str:
        return f"{provider.name}:{location}"


__all__ = ["WeatherGateway"]
