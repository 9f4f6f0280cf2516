"""Heuristic Aedes breeding-risk scoring from weather variables.

The thresholds follow Selangor weather patterns observed between June and
September 2025. Scoring is additive and the result is a pure function of the
three inputs; it never raises, even for nonsensical values.
"""
from __future__ import annotations

from typing import Dict, List

from .entities import RiskAssessment, RiskLevel


_CONTEXT_PREFIX = "Based on Selangor weather patterns (June-September 2025): "

HISTORICAL_CONTEXT: Dict[RiskLevel, str] = {
    RiskLevel.CRITICAL: _CONTEXT_PREFIX
    + "Similar to July 2025 heatwave (36°C, 94% humidity) and September flash floods that caused 12 fatalities.",
    RiskLevel.HIGH: _CONTEXT_PREFIX
    + "Comparable to August 2025 conditions with 19 rainy days and consistent warm temperatures.",
    RiskLevel.MEDIUM: _CONTEXT_PREFIX
    + "Moderate conditions, monitor for increases in temperature/humidity combination.",
    RiskLevel.LOW: _CONTEXT_PREFIX + "Low risk conditions, continue standard prevention measures.",
}

_LEVEL_NOTES: Dict[RiskLevel, str] = {
    RiskLevel.CRITICAL: "Conditions match July 2025 heatwave/September flood patterns",
    RiskLevel.HIGH: "Similar to peak monsoon conditions in Selangor",
}


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"


def _level_for(score: int) -> RiskLevel:
    if score >= 7:
        return RiskLevel.CRITICAL
    if score >= 5:
        return RiskLevel.HIGH
    if score >= 3:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def assess_risk(temperature: float, humidity: float, rainfall: float) -> RiskAssessment:
    """Score breeding conditions and explain the contributing rules.

    Reasons are ordered temperature, humidity, rainfall, then an optional note
    for High/Critical levels.
    """
    score = 0
    reasons: List[str] = []

    if 25 <= temperature <= 30:
        score += 3
        reasons.append("Temperature in optimal Aedes breeding range (25-30°C)")
    elif 30 < temperature <= 35:
        score += 2
        reasons.append("High temperature accelerates mosquito development")
    elif temperature > 35:
        score += 1
        reasons.append("Extreme heat may reduce mosquito activity")

    if humidity >= 70:
        score += 3
        reasons.append(f"High humidity ({_format_number(humidity)}%) supports mosquito survival")
    elif humidity >= 60:
        score += 2
        reasons.append("Moderate humidity suitable for mosquito breeding")
    elif humidity < 50:
        score -= 1
        reasons.append("Low humidity inhibits mosquito survival")

    if rainfall > 100:
        score += 3
        reasons.append("Heavy rainfall creates multiple breeding sites")
    elif rainfall > 50:
        score += 2
        reasons.append("Moderate rainfall provides water accumulation")

    level = _level_for(score)
    note = _LEVEL_NOTES.get(level)
    if note:
        reasons.append(note)

    return RiskAssessment(
        level=level,
        score=score,
        reasons=tuple(reasons),
        historical_context=HISTORICAL_CONTEXT[level],
    )


def breeding_risk(temperature: float, humidity: float, rainfall: float) -> RiskLevel:
    return assess_risk(temperature, humidity, rainfall).level


__all__ = ["HISTORICAL_CONTEXT", "assess_risk", "breeding_risk"]
