from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class RiskLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class PredictionSource(str, Enum):
    BACKEND = "Backend"
    SIMULATED = "Simulated"


class ReportCategory(str, Enum):
    HOTSPOT = "Hotspot"
    POTENTIAL = "Potential"
    NOT_HOTSPOT = "Not Hotspot"
    INVALID = "Invalid"


@dataclass(frozen=True)
class WeatherReading:
    """Normalized current-conditions snapshot.

    Units are fixed so providers are interchangeable:
    - temperature in Celsius
    - humidity in percent
    - rainfall in millimetres
    - wind speed in kilometres per hour

    ``estimated`` is set when the reading was generated locally because every
    provider failed.
    """

    temperature: float
    humidity: float
    rainfall_mm: float
    wind_speed_kmh: float
    observed_at: datetime
    location: str
    source: str
    estimated: bool = False


@dataclass(frozen=True)
class RiskAssessment:
    level: RiskLevel
    score: int
    reasons: Tuple[str, ...]
    historical_context: str


@dataclass(frozen=True)
class WeatherSnapshot:
    reading: WeatherReading
    risk: RiskAssessment


@dataclass(frozen=True)
class EnvironmentalFactors:
    temperature_impact: float
    humidity_impact: float
    rainfall_impact: float
    population_density_impact: float = 0.6


@dataclass(frozen=True)
class PredictionRequest:
    location: str
    state: str = "Selangor"
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    rainfall: Optional[float] = None
    wind_speed: Optional[float] = None

    def as_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"location": self.location, "state": self.state}
        optional = {
            "temperature": self.temperature,
            "humidity": self.humidity,
            "rainfall": self.rainfall,
            "wind_speed": self.wind_speed,
        }
        payload.update({key: value for key, value in optional.items() if value is not None})
        return payload


@dataclass(frozen=True)
class PredictionResult:
    outbreak_probability: float
    risk_level: RiskLevel
    predicted_cases: int
    confidence: float
    environmental_factors: EnvironmentalFactors
    recommendations: Tuple[str, ...]
    source: PredictionSource
    timestamp: datetime
    location: str = ""

    @property
    def simulated(self) -> bool:
        return self.source is PredictionSource.SIMULATED


@dataclass(frozen=True)
class Rewards:
    points: int = 50
    xp: int = 25
    achievement: Optional[str] = None
    level_up: bool = False


@dataclass(frozen=True)
class AnalysisResult:
    category: ReportCategory
    confidence: float
    risk_level: RiskLevel
    recommendations: Tuple[str, ...]
    rewards: Rewards
    timestamp: datetime
    report_id: str
    description: str = ""
    features: Tuple[str, ...] = ()
    weather_snapshot: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class ImageUpload:
    """Raw image bytes attached to a citizen report."""

    filename: str
    content: bytes = field(repr=False)
    content_type: str = "image/jpeg"

    @property
    def size(self) -> int:
        return len(self.content)


__all__ = [
    "AnalysisResult",
    "EnvironmentalFactors",
    "ImageUpload",
    "PredictionRequest",
    "PredictionResult",
    "PredictionSource",
    "ReportCategory",
    "Rewards",
    "RiskAssessment",
    "RiskLevel",
    "WeatherReading",
    "WeatherSnapshot",
]
