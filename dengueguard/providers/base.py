from __future__ import annotations

from typing import Optional

from ..entities import WeatherReading
from ..http import HTTPClient


class WeatherProvider(HTTPClient):
    """An upstream source of current weather conditions."""

    name = "provider"

    def current(self, location: str) -> WeatherReading:
        raise NotImplementedError


def safe_float(value: Optional[object]) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def first_float(*values: Optional[object], default: float = 0.0) -> float:
    for value in values:
        number = safe_float(value)
        if number is not None:
            return number
    return default


__all__ = ["WeatherProvider", "first_float", "safe_float"]
