"""Next-year AQI projection from a short yearly history."""

from __future__ import annotations

from typing import Optional, Sequence

from .models import AQIHistoryPoint, AQIProjection
from .scoring import round_half_up

DEFAULT_AQI = 50
MIN_PREDICTED_AQI = 10


def predict_next_year_aqi(points: Sequence[AQIHistoryPoint]) -> int:
    """Least-squares fit of AQI against sample index, extrapolated one step.

    The x axis is the 0-based position in ``points``, not the calendar year.
    Fewer than two points return the first AQI (or 50 when there is none).
    """

    n = len(points)
    if n < 2:
        first = points[0].aqi if points else 0
        return round_half_up(first) if first else DEFAULT_AQI

    sum_x = sum_y = sum_xy = sum_xx = 0.0
    for i, point in enumerate(points):
        sum_x += i
        sum_y += point.aqi
        sum_xy += i * point.aqi
        sum_xx += i * i

    slope = (n * sum_xy - sum_x * sum_y) / (n * sum_xx - sum_x * sum_x)
    intercept = (sum_y - slope * sum_x) / n
    prediction = slope * n + intercept
    return round_half_up(max(MIN_PREDICTED_AQI, prediction))


def percent_change(points: Sequence[AQIHistoryPoint]) -> int:
    if len(points) < 2 or not points[0].aqi:
        return 0
    first, last = points[0].aqi, points[-1].aqi
    return round_half_up((last - first) / first * 100)


def aqi_trend_analysis(
    history: Sequence[AQIHistoryPoint],
    city_name: str,
    next_year: Optional[int] = None,
) -> AQIProjection:
    """Project next year's AQI and describe the multi-year trend in one paragraph."""

    predicted = predict_next_year_aqi(history)
    if next_year is None:
        next_year = history[-1].year + 1 if history else 2026
    change = percent_change(history)

    if change > 5:
        analysis = (
            f"Air pollution in {city_name} has risen by {change}% across the recorded years. "
            f"If current growth patterns persist the regression projects an AQI of "
            f"{predicted} in {next_year}."
        )
    elif change < -5:
        analysis = (
            f"Air quality in {city_name} improved by {abs(change)}% across the recorded years. "
            f"The projection continues the decline to {predicted} in {next_year}."
        )
    else:
        analysis = (
            f"Air quality in {city_name} has stayed broadly stable. "
            f"The regression forecasts a neutral trend with an AQI of {predicted} in {next_year}."
        )

    return AQIProjection(history=tuple(history), year=next_year, aqi=predicted, analysis=analysis)


__all__ = ["predict_next_year_aqi", "percent_change", "aqi_trend_analysis"]
