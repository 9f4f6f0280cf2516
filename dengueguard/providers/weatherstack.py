from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from .base import WeatherProvider, first_float, safe_float
from ..entities import WeatherReading
from ..exceptions import ProviderError, QuotaExceeded
from ..http import join_url

# WeatherStack error codes for exhausted or rate-limited plans.
_QUOTA_CODES = {104, 429}


class WeatherStackProvider(WeatherProvider):
    name = "weatherstack"
    base_url = "http://api.weatherstack.com"

    def __init__(self, api_key: str, base_url: Optional[str] = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self.api_key = api_key
        self.base_url = base_url or self.base_url

    def current(self, location: str) -> WeatherReading:
        params = {"access_key": self.api_key, "query": location}
        response = self._request("GET", join_url(self.base_url, "current"), params=params)
        data = self._json(response)
        if not isinstance(data, dict):
            raise ProviderError("unexpected payload")
        # WeatherStack reports API errors with a 200 status.
        if data.get("success") is False or "error" in data:
            self._raise_api_error(data.get("error"))
        current = data.get("current")
        if not current or not isinstance(current, dict):
            raise ProviderError("missing current conditions")
        temperature = safe_float(current.get("temperature"))
        humidity = safe_float(current.get("humidity"))
        if temperature is None or humidity is None:
            raise ProviderError("missing temperature or humidity")
        return WeatherReading(
            temperature=temperature,
            humidity=humidity,
            rainfall_mm=first_float(current.get("precip")),
            wind_speed_kmh=first_float(current.get("wind_speed")),
            observed_at=datetime.now(tz=timezone.utc),
            location=self._location_label(data.get("location"), location),
            source=self.name,
        )

    def _raise_api_error(self, error: object) -> None:
        if not isinstance(error, dict):
            self._log.error("WeatherStack error: %s", error)
            raise ProviderError(str(error or "unknown error"))
        code = error.get("code")
        info = error.get("info") or error.get("type") or "unknown error"
        if code in _QUOTA_CODES:
            self._log.warning("WeatherStack quota exceeded: %s", info)
            raise QuotaExceeded(str(info), status_code=code)
        self._log.error("WeatherStack error %s: %s", code, info)
        raise ProviderError(str(info), status_code=code)

    @staticmethod
    def _location_label(payload: object, requested: str) -> str:
        if isinstance(payload, str):
            return payload or requested
        if not isinstance(payload, dict):
            return requested
        parts = [payload.get("name"), payload.get("region")]
        label = ", ".join(str(part) for part in parts if part)
        return label or requested


__all__ = ["WeatherStackProvider"]
