"""Resilient dengue risk assessment and outbreak prediction clients."""
from .entities import (
    AnalysisResult,
    ImageUpload,
    PredictionRequest,
    PredictionResult,
    PredictionSource,
    ReportCategory,
    RiskAssessment,
    RiskLevel,
    WeatherReading,
    WeatherSnapshot,
)
from .risk import assess_risk

__version__ = "0.1.0"

__all__ = [
    "AnalysisResult",
    "ImageUpload",
    "PredictionRequest",
    "PredictionResult",
    "PredictionSource",
    "ReportCategory",
    "RiskAssessment",
    "RiskLevel",
    "WeatherReading",
    "WeatherSnapshot",
    "assess_risk",
]
