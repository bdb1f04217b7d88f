"""Scoring logic for the City Health Index."""

from __future__ import annotations

import math
from typing import Dict

from .constants import RISK_THRESHOLDS
from .models import AgricultureMetrics, CityHealthIndex, HealthMetrics, UrbanMetrics

PILLAR_WEIGHTS = {
    "urban": 0.35,
    "health": 0.35,
    "agriculture": 0.30,
}


def clamp_value(value: float, minimum: float, maximum: float) -> float:
    return max(minimum, min(maximum, value))


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def urban_score(urban: UrbanMetrics) -> float:
    return (
        (100 - urban.traffic_congestion) * 0.3
        + (100 - min(100.0, urban.air_quality_index / 3)) * 0.4
        + urban.public_transport_usage * 0.3
    )


def health_score(health: HealthMetrics) -> float:
    return (
        (100 - health.hospital_capacity) * 0.3
        + (100 - health.emergency_load) * 0.3
        + health.vaccination_rate * 0.2
        + (100 - min(100.0, health.disease_incidence / 3)) * 0.2
    )


def agriculture_score(agriculture: AgricultureMetrics) -> float:
    return (
        agriculture.crop_yield_index * 0.35
        + agriculture.food_supply_level * 0.35
        + (200 - agriculture.price_index) * 0.3
    )


def compute_scores(
    urban: UrbanMetrics, health: HealthMetrics, agriculture: AgricultureMetrics
) -> Dict[str, float]:
    """Unrounded pillar scores on a 0-100 scale."""

    return {
        "urban": urban_score(urban),
        "health": health_score(health),
        "agriculture": agriculture_score(agriculture),
    }


def composite(scores: Dict[str, float]) -> float:
    return sum(scores[key] * PILLAR_WEIGHTS.get(key, 0) for key in scores)


def risk_level_for(overall: float) -> str:
    for threshold, level in RISK_THRESHOLDS:
        if overall >= threshold:
            return level
    return "critical"


def trend_for(agriculture: AgricultureMetrics) -> str:
    # Crop yield is the only leading indicator the index tracks.
    return "up" if agriculture.crop_yield_index > 70 else "stable"


def calculate_city_health_index(
    urban: UrbanMetrics, health: HealthMetrics, agriculture: AgricultureMetrics
) -> CityHealthIndex:
    """Combine the three metric groups into the weighted City Health Index."""

    scores = compute_scores(urban, health, agriculture)
    overall = composite(scores)
    return CityHealthIndex(
        overall=round_half_up(overall),
        urban=round_half_up(scores["urban"]),
        health=round_half_up(scores["health"]),
        agriculture=round_half_up(scores["agriculture"]),
        trend=trend_for(agriculture),
        risk_level=risk_level_for(overall),
    )


__all__ = [
    "PILLAR_WEIGHTS",
    "clamp_value",
    "round_half_up",
    "urban_score",
    "health_score",
    "agriculture_score",
    "compute_scores",
    "composite",
    "risk_level_for",
    "trend_for",
    "calculate_city_health_index",
]
