"""Flood risk blending forecast, ground saturation and current conditions."""

from __future__ import annotations

from typing import Optional, Sequence

from .constants import FLOOD_LEVELS
from .models import FloodRisk, WeatherReading, WeatherSample
from .scoring import clamp_value, round_half_up

DEFAULT_PRESSURE = 1013.0
LOW_PRESSURE_RISK = 1005.0
LOW_PRESSURE_MESSAGE = 1008.0
SATURATION_ALERT_MM = 30.0
HEAVY_RAIN_POP = 0.6

DEFAULT_MESSAGE = "Regional drainage systems operating within nominal capacity."


def saturation_multiplier(historical_rainfall: float) -> float:
    if historical_rainfall > 50:
        return 1.5
    if historical_rainfall > 20:
        return 1.2
    return 1.0


def flood_level(probability: float) -> str:
    for threshold, level in FLOOD_LEVELS:
        if probability > threshold:
            return level
    return "low"


def calculate_flood_risk(
    history: Sequence[WeatherSample],
    current_rainfall_pct: float,
    current: Optional[WeatherReading] = None,
) -> FloodRisk:
    """Score flood risk 0-100 for the next forecast window.

    ``history`` is the last few days of observations (may be empty),
    ``current_rainfall_pct`` is the rainfall scenario slider and ``current``
    carries the live conditions and forecast when they are available.
    """

    historical_rainfall = sum(sample.prcp or 0 for sample in history)
    multiplier = saturation_multiplier(historical_rainfall)
    saturated = historical_rainfall > SATURATION_ALERT_MM

    pressure = DEFAULT_PRESSURE
    description = ""
    pop = 0.0
    if current is not None:
        pressure = current.pressure or DEFAULT_PRESSURE
        description = (current.description or "").lower()
        if current.forecast:
            pop = current.forecast[0].pop or 0.0

    raining = "rain" in description or "drizzle" in description
    stormy = "storm" in description or "thunder" in description

    risk = pop * 100 * multiplier
    if raining:
        risk = max(risk, 40 * multiplier)
    if stormy:
        risk = max(risk, 75 * multiplier)
    if pressure < LOW_PRESSURE_RISK:
        risk += 15
    if saturated:
        risk += 20
    risk += current_rainfall_pct * 0.4

    probability = round_half_up(clamp_value(risk, 0, 100))

    if saturated:
        message = (
            f"Ground saturated ({historical_rainfall:.1f} mm over recent days). "
            "Absorption limited."
        )
    elif stormy:
        message = "Severe convection patterns detected."
    elif raining:
        message = "High precipitation density confirmed."
    elif pop > HEAVY_RAIN_POP:
        message = "Forecast predicts incoming heavy rain."
    elif pressure < LOW_PRESSURE_MESSAGE:
        message = "Low pressure trough detected."
    else:
        message = DEFAULT_MESSAGE

    return FloodRisk(probability=probability, level=flood_level(probability), message=message)


__all__ = ["saturation_multiplier", "flood_level", "calculate_flood_risk"]
