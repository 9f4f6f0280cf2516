from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .base import WeatherProvider, first_float, safe_float
from ..entities import WeatherReading
from ..exceptions import ProviderError
from ..http import join_url


class MalaysiaForecastProvider(WeatherProvider):
    """Malaysian government open data forecast (data.gov.my).

    The forecast is not location-specific; the first record stands in for the
    current conditions.
    """

    name = "malaysia"
    base_url = "https://api.data.gov.my"

    def __init__(self, base_url: Optional[str] = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self.base_url = base_url or self.base_url

    def current(self, location: str) -> WeatherReading:
        records = self._records("weather/forecast")
        if not records:
            raise ProviderError("missing forecast data")
        latest = records[0]
        t_max = safe_float(latest.get("temperature_max"))
        t_min = safe_float(latest.get("temperature_min"))
        humidity = safe_float(latest.get("humidity"))
        temps = [value for value in (t_max, t_min) if value is not None]
        if not temps or humidity is None:
            raise ProviderError("missing temperature or humidity")
        return WeatherReading(
            temperature=sum(temps) / len(temps),
            humidity=humidity,
            rainfall_mm=first_float(latest.get("rainfall")),
            wind_speed_kmh=first_float(latest.get("wind_speed")),
            observed_at=self._parse_date(latest.get("date")),
            location=self._location_label(latest.get("location"), location),
            source=self.name,
        )

    def warnings(self) -> List[Dict[str, Any]]:
        return self._records("weather/warning")

    # helpers ------------------------------------------------------------
    def _records(self, path: str) -> List[Dict[str, Any]]:
        response = self._request("GET", join_url(self.base_url, path))
        data = self._json(response)
        if isinstance(data, dict):
            data = data.get("data")
        if not isinstance(data, list):
            raise ProviderError("unexpected payload")
        return [record for record in data if isinstance(record, dict)]

    @staticmethod
    def _location_label(value: object, requested: str) -> str:
        if isinstance(value, str) and value:
            return value
        if isinstance(value, dict) and isinstance(value.get("location_name"), str):
            return value["location_name"]
        return requested

    @staticmethod
    def _parse_date(value: object) -> datetime:
        if not value or not isinstance(value, str):
            return datetime.now(tz=timezone.utc)
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return datetime.now(tz=timezone.utc)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed


__all__ = ["MalaysiaForecastProvider"]
