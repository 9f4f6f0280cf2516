from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Callable, List, Mapping, Optional, Sequence

from .backend import BackendClient
from ..entities import (
    EnvironmentalFactors,
    PredictionRequest,
    PredictionResult,
    PredictionSource,
    RiskLevel,
)
from ..exceptions import BackendError, UpstreamError
from ..normalization import (
    FieldMapping,
    as_float,
    as_int,
    as_str_tuple,
    clamp_unit,
    first_block,
    normalize,
)
from ..outcome import Outcome, attempt


DEFAULT_RECOMMENDATIONS = (
    "Remove all sources of standing water",
    "Use mosquito repellent during peak hours",
    "Keep surroundings clean and dry",
    "Monitor for fever symptoms",
)

SIMULATED_RECOMMENDATIONS = DEFAULT_RECOMMENDATIONS + ("Contact local health authorities if symptoms appear",)

SIMULATED_CONFIDENCE = 0.75
POPULATION_DENSITY_IMPACT = 0.6

_RISK_SYNONYMS = {
    "low": RiskLevel.LOW,
    "very low": RiskLevel.LOW,
    "medium": RiskLevel.MEDIUM,
    "moderate": RiskLevel.MEDIUM,
    "high": RiskLevel.HIGH,
    "critical": RiskLevel.CRITICAL,
    "very high": RiskLevel.CRITICAL,
}


def parse_risk_level(_: str, value: Any) -> Optional[RiskLevel]:
    if isinstance(value, RiskLevel):
        return value
    if not isinstance(value, str):
        return None
    return _RISK_SYNONYMS.get(value.strip().replace("_", " ").lower())


def as_fraction(name: str, value: Any) -> Optional[float]:
    """Accept both 0-1 fractions and 0-100 percentages."""
    number = as_float(name, value)
    if number is None:
        return None
    if number > 1:
        number = number / 100
    return clamp_unit(number)


# Where the prediction and weather blocks live, newest response variant first.
PREDICTION_BLOCKS = ("ai_analysis", "risk_assessment", "basic_prediction", "prediction")
WEATHER_BLOCKS = ("real_weather_data", "weather_data", "weather_factors")

PREDICTION_FIELDS = (
    FieldMapping("outbreak_probability", ("outbreak_probability", "probability", "risk_score"), 0.7, as_fraction),
    FieldMapping("risk_level", ("risk_level", "level"), RiskLevel.MEDIUM, parse_risk_level),
    FieldMapping("predicted_cases", ("predicted_cases", "cases"), 85, as_int),
    FieldMapping("confidence", ("confidence", "confidence_score"), 0.85, as_fraction),
    FieldMapping("recommendations", ("recommendations",), DEFAULT_RECOMMENDATIONS, as_str_tuple),
)

FACTOR_FIELDS = (
    FieldMapping("temperature_impact", ("temperature_impact",), None, as_fraction),
    FieldMapping("humidity_impact", ("humidity_impact",), None, as_fraction),
    FieldMapping("rainfall_impact", ("rainfall_impact",), None, as_fraction),
    FieldMapping("population_density_impact", ("population_density_impact",), POPULATION_DENSITY_IMPACT, as_fraction),
)

WEATHER_FIELDS = (
    FieldMapping("temperature", ("temperature", "temp"), None, as_float),
    FieldMapping("humidity", ("humidity",), None, as_float),
    FieldMapping("rainfall", ("rainfall", "precipitation", "precip"), None, as_float),
)

# Used when neither explicit factors nor weather values are present.
DEFAULT_IMPACTS = {"temperature_impact": 0.75, "humidity_impact": 0.8, "rainfall_impact": 0.3}


def _risk_from_probability(probability: float) -> RiskLevel:
    if probability > 0.8:
        return RiskLevel.CRITICAL
    if probability > 0.6:
        return RiskLevel.HIGH
    if probability > 0.4:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def _exceeds(value: Optional[float], threshold: float) -> bool:
    return value is not None and value > threshold


class PredictionClient(BackendClient):
    """Outbreak prediction with a local simulation when the backend is unavailable."""

    name = "prediction"
    predict_path = "/predict/live-weather"
    batch_path = "/api/batch-predict"

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        predict_path: Optional[str] = None,
        now_func: Callable[[], datetime] = lambda: datetime.now(tz=timezone.utc),
        **kwargs,
    ) -> None:
        super().__init__(base_url, **kwargs)
        self.predict_path = predict_path or self.predict_path
        self._now = now_func

    # Public API ---------------------------------------------------------
    def predict_outbreak(self, request: PredictionRequest) -> PredictionResult:
        """Return a prediction for ``request``; never raises.

        The result's ``source`` records whether the backend answered or the
        prediction was simulated locally.
        """
        return self.predict_with_outcome(request).unwrap()

    def predict_with_outcome(self, request: PredictionRequest) -> Outcome[PredictionResult]:
        outcome = attempt(lambda: self._predict_remote(request), label=f"prediction for {request.location}")
        if not outcome.ok:
            self._log.info("Falling back to simulated prediction for %s", request.location)
            self._record_error()
            if self.registry is not None:
                self.registry.record_fallback("prediction")
        return outcome.or_else(lambda exc: self.simulate(request))

    def batch_predict(self, batch: Sequence[PredictionRequest]) -> List[PredictionResult]:
        """Predict several locations in one backend call.

        There is no simulated fallback here: failures raise :class:`BackendError`.
        """
        if not batch:
            return []
        payload = {"locations": [request.as_payload() for request in batch]}
        try:
            response = self._request("POST", self.url(self.batch_path), json=payload)
            body = self._json(response)
        except UpstreamError as exc:
            self._record_error()
            message = exc.detail or str(exc)
            raise BackendError(f"Batch prediction failed: {message}", status_code=exc.status_code) from exc
        if not isinstance(body, dict):
            raise BackendError("Batch prediction failed: unexpected payload")
        if body.get("error"):
            raise BackendError(f"Batch prediction failed: {body['error']}")
        items = body.get("predictions")
        if not isinstance(items, list) or len(items) != len(batch):
            raise BackendError("Batch prediction failed: prediction count does not match request")
        results = []
        for item, request in zip(items, batch):
            if not isinstance(item, dict):
                raise BackendError("Batch prediction failed: unexpected prediction entry")
            results.append(self.from_backend(item, request))
        return results

    def simulate(self, request: PredictionRequest) -> PredictionResult:
        temperature_risk = 0.8 if _exceeds(request.temperature, 28) else 0.5
        humidity_risk = 0.9 if _exceeds(request.humidity, 70) else 0.6
        rainfall_risk = 0.7 if _exceeds(request.rainfall, 5) else 0.4
        probability = (temperature_risk + humidity_risk + rainfall_risk) / 3
        return PredictionResult(
            outbreak_probability=probability,
            risk_level=_risk_from_probability(probability),
            predicted_cases=math.floor(probability * 150),
            confidence=SIMULATED_CONFIDENCE,
            environmental_factors=EnvironmentalFactors(
                temperature_impact=temperature_risk,
                humidity_impact=humidity_risk,
                rainfall_impact=rainfall_risk,
                population_density_impact=POPULATION_DENSITY_IMPACT,
            ),
            recommendations=SIMULATED_RECOMMENDATIONS,
            source=PredictionSource.SIMULATED,
            timestamp=self._now(),
            location=request.location,
        )

    # Helpers ------------------------------------------------------------
    def _predict_remote(self, request: PredictionRequest) -> PredictionResult:
        # A failed probe raises before the prediction call is attempted.
        self.probe()
        response = self._request("POST", self.url(self.predict_path), json=request.as_payload())
        body = self._json(response)
        if not isinstance(body, dict):
            raise UpstreamError("unexpected prediction payload", status_code=response.status_code)
        if body.get("error"):
            raise UpstreamError("backend reported an error", detail=str(body["error"]))
        return self.from_backend(body, request)

    def from_backend(self, body: Mapping[str, Any], request: PredictionRequest) -> PredictionResult:
        block = first_block(body, PREDICTION_BLOCKS, default={})
        fields = normalize({**body, **block}, PREDICTION_FIELDS)
        return PredictionResult(
            outbreak_probability=fields["outbreak_probability"],
            risk_level=fields["risk_level"],
            predicted_cases=fields["predicted_cases"],
            confidence=fields["confidence"],
            environmental_factors=self._factors(body),
            recommendations=tuple(fields["recommendations"]),
            source=PredictionSource.BACKEND,
            timestamp=self._now(),
            location=str(body.get("location") or request.location),
        )

    def _factors(self, body: Mapping[str, Any]) -> EnvironmentalFactors:
        explicit = normalize(first_block(body, ("environmental_factors",), default={}), FACTOR_FIELDS)
        weather = normalize(first_block(body, WEATHER_BLOCKS, default={}), WEATHER_FIELDS)
        derived = {
            "temperature_impact": None if weather["temperature"] is None else clamp_unit(weather["temperature"] / 40),
            "humidity_impact": None if weather["humidity"] is None else clamp_unit(weather["humidity"] / 100),
            "rainfall_impact": None if weather["rainfall"] is None else clamp_unit(weather["rainfall"] / 50),
        }
        impacts = {}
        for key, default in DEFAULT_IMPACTS.items():
            for candidate in (explicit[key], derived[key], default):
                if candidate is not None:
                    impacts[key] = candidate
                    break
        return EnvironmentalFactors(
            population_density_impact=explicit["population_density_impact"],
            **impacts,
        )


__all__ = ["PredictionClient", "DEFAULT_RECOMMENDATIONS", "SIMULATED_RECOMMENDATIONS"]
