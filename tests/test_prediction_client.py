from __future__ import annotations

import math

import pytest
import requests

from dengueguard.entities import PredictionRequest, PredictionSource, RiskLevel
from dengueguard.exceptions import BackendError
from dengueguard.health import HealthRegistry
from dengueguard.services.prediction import (
    DEFAULT_RECOMMENDATIONS,
    SIMULATED_RECOMMENDATIONS,
    PredictionClient,
)


BASE_URL = "https://dengue-api.test"
HEALTH_URL = f"{BASE_URL}/health"
PREDICT_URL = f"{BASE_URL}/predict/live-weather"
BATCH_URL = f"{BASE_URL}/api/batch-predict"

KL_REQUEST = PredictionRequest(location="Kuala Lumpur", state="Selangor", temperature=32, humidity=80, rainfall=10)


@pytest.fixture
def client(fixed_now) -> PredictionClient:
    return PredictionClient(BASE_URL, now_func=fixed_now)


def test_failed_health_probe_skips_prediction_call(requests_mock, client):
    requests_mock.get(HEALTH_URL, status_code=503)
    predict = requests_mock.post(PREDICT_URL, json={"risk_level": "Low"})

    result = client.predict_outbreak(KL_REQUEST)

    assert result.source is PredictionSource.SIMULATED
    assert predict.call_count == 0


def test_simulated_prediction_arithmetic(requests_mock, client):
    requests_mock.get(HEALTH_URL, exc=requests.ConnectionError("refused"))

    result = client.predict_outbreak(KL_REQUEST)

    assert result.risk_level is RiskLevel.CRITICAL
    assert result.outbreak_probability == pytest.approx(0.8)
    assert result.predicted_cases == 120
    assert result.confidence == 0.75
    assert result.environmental_factors.temperature_impact == 0.8
    assert result.environmental_factors.humidity_impact == 0.9
    assert result.environmental_factors.rainfall_impact == 0.7
    assert result.environmental_factors.population_density_impact == 0.6
    assert result.recommendations == SIMULATED_RECOMMENDATIONS
    assert result.location == "Kuala Lumpur"
    assert result.simulated


@pytest.mark.parametrize(
    "temperature, humidity, rainfall, level",
    [
        (25, 60, 1, RiskLevel.MEDIUM),
        (30, 75, 1, RiskLevel.HIGH),
        (25, 75, 10, RiskLevel.HIGH),
        (None, None, None, RiskLevel.MEDIUM),
    ],
)
def test_simulated_levels(client, temperature, humidity, rainfall, level):
    request = PredictionRequest(location="Klang", temperature=temperature, humidity=humidity, rainfall=rainfall)

    result = client.simulate(request)

    assert result.risk_level is level
    assert result.predicted_cases == math.floor(result.outbreak_probability * 150)
    assert result.source is PredictionSource.SIMULATED


def test_backend_success_is_normalized(requests_mock, client):
    requests_mock.get(HEALTH_URL, json={"status": "healthy"})
    predict = requests_mock.post(
        PREDICT_URL,
        json={
            "ai_analysis": {"risk_score": 72, "risk_level": "High", "predicted_cases": 140, "confidence": 0.91},
            "real_weather_data": {"temperature": 32, "humidity": 80, "rainfall": 10},
            "recommendations": ["Fog the area"],
        },
    )

    result = client.predict_outbreak(KL_REQUEST)

    assert result.source is PredictionSource.BACKEND
    assert result.outbreak_probability == pytest.approx(0.72)
    assert result.risk_level is RiskLevel.HIGH
    assert result.predicted_cases == 140
    assert result.confidence == pytest.approx(0.91)
    assert result.environmental_factors.temperature_impact == pytest.approx(0.8)
    assert result.environmental_factors.humidity_impact == pytest.approx(0.8)
    assert result.environmental_factors.rainfall_impact == pytest.approx(0.2)
    assert result.recommendations == ("Fog the area",)
    assert predict.last_request.json() == {
        "location": "Kuala Lumpur",
        "state": "Selangor",
        "temperature": 32,
        "humidity": 80,
        "rainfall": 10,
    }


def test_missing_fields_are_defaulted(requests_mock, client):
    requests_mock.get(HEALTH_URL, json={"status": "ok"})
    requests_mock.post(PREDICT_URL, json={"status": "success"})

    result = client.predict_outbreak(PredictionRequest(location="Klang"))

    assert result.source is PredictionSource.BACKEND
    assert result.outbreak_probability == 0.7
    assert result.risk_level is RiskLevel.MEDIUM
    assert result.predicted_cases == 85
    assert result.confidence == 0.85
    assert result.environmental_factors.temperature_impact == 0.75
    assert result.environmental_factors.humidity_impact == 0.8
    assert result.environmental_factors.rainfall_impact == 0.3
    assert result.recommendations == DEFAULT_RECOMMENDATIONS


def test_block_precedence_prefers_newest_variant(requests_mock, client):
    requests_mock.get(HEALTH_URL, json={"status": "ok"})
    requests_mock.post(
        PREDICT_URL,
        json={
            "ai_analysis": {"risk_level": "Critical"},
            "basic_prediction": {"risk_level": "Low", "predicted_cases": 12},
            "risk_level": "Medium",
        },
    )

    result = client.predict_outbreak(KL_REQUEST)

    assert result.risk_level is RiskLevel.CRITICAL
    # Fields absent from the chosen block fall back to the root, not to older blocks.
    assert result.predicted_cases == 85


def test_flat_legacy_response(requests_mock, client):
    requests_mock.get(HEALTH_URL, json={"status": "ok"})
    requests_mock.post(
        PREDICT_URL,
        json={
            "prediction_id": "p-1",
            "location": "Petaling Jaya",
            "risk_level": "Very High",
            "predicted_cases": "64",
            "confidence": 88,
            "weather_factors": {"temp": 20, "humidity": 50, "precipitation": 100},
            "environmental_factors": {"rainfall_impact": 0.5},
        },
    )

    result = client.predict_outbreak(KL_REQUEST)

    assert result.risk_level is RiskLevel.CRITICAL
    assert result.predicted_cases == 64
    assert result.confidence == pytest.approx(0.88)
    assert result.location == "Petaling Jaya"
    assert result.environmental_factors.temperature_impact == pytest.approx(0.5)
    assert result.environmental_factors.humidity_impact == pytest.approx(0.5)
    assert result.environmental_factors.rainfall_impact == 0.5


def test_error_field_in_200_payload_simulates(requests_mock, client):
    requests_mock.get(HEALTH_URL, json={"status": "ok"})
    requests_mock.post(PREDICT_URL, json={"error": "model not loaded"})

    outcome = client.predict_with_outcome(KL_REQUEST)

    assert outcome.degraded
    assert outcome.value.source is PredictionSource.SIMULATED
    assert "model not loaded" in outcome.error.detail


def test_non_ok_prediction_response_simulates(requests_mock, fixed_now):
    registry = HealthRegistry()
    client = PredictionClient(BASE_URL, registry=registry, now_func=fixed_now)
    requests_mock.get(HEALTH_URL, json={"status": "ok"})
    requests_mock.post(PREDICT_URL, status_code=422, json={"detail": "state is required"})

    result = client.predict_outbreak(KL_REQUEST)

    assert result.source is PredictionSource.SIMULATED
    snapshot = registry.snapshot()
    assert snapshot["fallbacks"] == {"prediction": 1}
    assert snapshot["upstream_errors"] == {"prediction": 1}


def test_malformed_health_body_counts_as_unhealthy(requests_mock, client):
    requests_mock.get(HEALTH_URL, text="OK")
    predict = requests_mock.post(PREDICT_URL, json={})

    result = client.predict_outbreak(KL_REQUEST)

    assert result.source is PredictionSource.SIMULATED
    assert predict.call_count == 0


def test_non_json_prediction_body_simulates(requests_mock, client):
    requests_mock.get(HEALTH_URL, json={"status": "ok"})
    requests_mock.post(PREDICT_URL, text="<html>502</html>")

    assert client.predict_outbreak(KL_REQUEST).source is PredictionSource.SIMULATED


def test_successful_outcome_is_not_degraded(requests_mock, client, fixed_now):
    requests_mock.get(HEALTH_URL, json={"status": "ok"})
    requests_mock.post(PREDICT_URL, json={"outbreak_probability": 0.4, "risk_level": "Low"})

    outcome = client.predict_with_outcome(KL_REQUEST)

    assert outcome.ok
    assert outcome.value.outbreak_probability == 0.4
    assert outcome.value.timestamp == fixed_now()


def test_request_payload_omits_missing_weather():
    request = PredictionRequest(location="Klang", state="Selangor", wind_speed=12)

    assert request.as_payload() == {"location": "Klang", "state": "Selangor", "wind_speed": 12}


@pytest.mark.parametrize(
    "body",
    [
        '{"risk_level": "High", "predicted_cases": NaN, "confidence": Infinity}',
        '{"risk_level": "High", "predicted_cases": Infinity, "probability": -Infinity}',
        '{"risk_level": "High", "predicted_cases": "nan", "confidence": "inf"}',
    ],
)
def test_non_finite_numbers_take_defaults(requests_mock, client, body):
    requests_mock.get(HEALTH_URL, json={"status": "ok"})
    requests_mock.post(PREDICT_URL, text=body, headers={"Content-Type": "application/json"})

    result = client.predict_outbreak(KL_REQUEST)

    assert result.source is PredictionSource.BACKEND
    assert result.risk_level is RiskLevel.HIGH
    assert result.predicted_cases == 85
    assert result.outbreak_probability == 0.7
    assert result.confidence == 0.85


def test_batch_predict_normalizes_each_location(requests_mock, client):
    klang = PredictionRequest(location="Klang", humidity=90)
    batch = requests_mock.post(
        BATCH_URL,
        json={
            "predictions": [
                {"risk_level": "Very High", "outbreak_probability": 0.9, "predicted_cases": 140},
                {"risk_assessment": {"risk_level": "Low", "probability": 12}},
            ],
            "batch_size": 2,
        },
    )

    results = client.batch_predict([KL_REQUEST, klang])

    assert batch.last_request.json() == {"locations": [KL_REQUEST.as_payload(), klang.as_payload()]}
    assert [r.location for r in results] == ["Kuala Lumpur", "Klang"]
    assert results[0].risk_level is RiskLevel.CRITICAL
    assert results[0].predicted_cases == 140
    assert results[1].risk_level is RiskLevel.LOW
    assert results[1].outbreak_probability == pytest.approx(0.12)
    assert all(r.source is PredictionSource.BACKEND for r in results)


def test_batch_predict_empty_makes_no_call(requests_mock, client):
    assert client.batch_predict([]) == []
    assert requests_mock.call_count == 0


def test_batch_predict_failure_raises(requests_mock):
    requests_mock.post(BATCH_URL, status_code=500, json={"error": "model not loaded"})
    registry = HealthRegistry()
    client = PredictionClient(BASE_URL, registry=registry)

    with pytest.raises(BackendError, match="Batch prediction failed: model not loaded") as excinfo:
        client.batch_predict([KL_REQUEST])

    assert excinfo.value.status_code == 500
    assert registry.snapshot()["upstream_errors"] == {"prediction": 1}
    assert registry.snapshot()["fallbacks"] == {}


@pytest.mark.parametrize(
    "payload",
    [
        {"predictions": []},
        {"predictions": ["High"]},
        {"error": "quota exhausted"},
        [{"risk_level": "High"}],
    ],
)
def test_batch_predict_malformed_payload_raises(requests_mock, client, payload):
    requests_mock.post(BATCH_URL, json=payload)

    with pytest.raises(BackendError, match="Batch prediction failed"):
        client.batch_predict([KL_REQUEST])
