from .base import WeatherProvider
from .malaysia import MalaysiaForecastProvider
from .weatherstack import WeatherStackProvider

__all__ = ["MalaysiaForecastProvider", "WeatherProvider", "WeatherStackProvider"]
