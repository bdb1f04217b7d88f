"""Snapshot assembly: simulated baseline, live overlays and chart frames."""

from __future__ import annotations

import logging
from dataclasses import fields, replace
from datetime import datetime
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple, TypeVar

import numpy as np
import pandas as pd

from .agriculture import fetch_fao_agriculture
from .constants import DEFAULT_SERIES_LENGTH
from .health import fetch_who_health
from .models import (
    DEFAULT_SCENARIO,
    CitySnapshot,
    HeatmapCell,
    ScenarioParams,
    TimeSeriesData,
    TrafficReading,
    WeatherReading,
    bound_metric,
    coerce_overrides,
    metric_names,
)
from .scoring import calculate_city_health_index
from .simulator import (
    Clock,
    apply_agriculture_scenario,
    apply_health_scenario,
    apply_urban_scenario,
    clock_at,
    freeze_clock,
    generate_agriculture_metrics,
    generate_health_metrics,
    generate_heatmap,
    generate_urban_metrics,
)
from .traffic import fetch_traffic
from .weather import fetch_weather_and_aqi

log = logging.getLogger(__name__)

M = TypeVar("M")


def merge_metrics(baseline: M, overrides: Optional[Mapping[str, object]]) -> M:
    """Replace baseline fields with live values; unknown or missing keys are ignored."""

    if not overrides:
        return baseline
    known = set(metric_names(type(baseline)))
    updates = {
        name: bound_metric(name, value)
        for name, value in coerce_overrides(overrides).items()
        if name in known
    }
    return replace(baseline, **updates) if updates else baseline  # type: ignore[type-var]


def _is_live(reading: Optional[object]) -> bool:
    return reading is not None and getattr(reading, "source", "simulated") != "simulated"


def build_snapshot(
    lat: float,
    lon: float,
    scenario: ScenarioParams = DEFAULT_SCENARIO,
    clock: Optional[Clock] = None,
    live: bool = False,
    weather: Optional[WeatherReading] = None,
    traffic: Optional[TrafficReading] = None,
    health_overrides: Optional[Mapping[str, object]] = None,
    agriculture_overrides: Optional[Mapping[str, object]] = None,
    now: Optional[datetime] = None,
) -> CitySnapshot:
    """Assemble one refresh of the dashboard.

    The baseline is generated without the scenario, live values replace
    baseline fields, and only then are scenario deltas applied, so the
    sliders move real readings exactly as they move simulated ones. With
    ``live=True`` any reading not passed in is fetched.
    """

    timestamp = now or datetime.now()
    # One reading so all three groups and the heatmap agree.
    clock = freeze_clock(clock or clock_at(timestamp))

    if live:
        weather = weather or fetch_weather_and_aqi(lat, lon)
        traffic = traffic or fetch_traffic(lat, lon)
        if health_overrides is None:
            health_overrides = fetch_who_health(lat, lon)
        if agriculture_overrides is None:
            agriculture_overrides = fetch_fao_agriculture()

    urban_live = {}
    notes: List[str] = []
    if _is_live(weather):
        urban_live["air_quality_index"] = weather.aqi
        notes.append(f"Air quality: {weather.source}")
    if _is_live(traffic):
        urban_live["traffic_congestion"] = traffic.congestion
        notes.append(f"Traffic: {traffic.source}")

    urban = apply_urban_scenario(
        merge_metrics(generate_urban_metrics(lat, lon, None, clock), urban_live), scenario
    )
    health = apply_health_scenario(
        merge_metrics(generate_health_metrics(lat, lon, None, clock), health_overrides), scenario
    )
    agriculture = apply_agriculture_scenario(
        merge_metrics(generate_agriculture_metrics(lat, lon, None, clock), agriculture_overrides),
        scenario,
    )

    data_source = "live" if urban_live else "simulated"
    log.debug("Snapshot for %.4f, %.4f built from %s data", lat, lon, data_source)

    return CitySnapshot(
        urban=urban,
        health=health,
        agriculture=agriculture,
        city_health=calculate_city_health_index(urban, health, agriculture),
        heatmap=tuple(generate_heatmap(lat, lon, clock=clock)),
        timestamp=timestamp,
        data_source=data_source,
        weather=weather,
        traffic=traffic,
        notes=tuple(notes),
    )


def append_sample(
    series: Sequence[TimeSeriesData],
    sample: TimeSeriesData,
    limit: int = DEFAULT_SERIES_LENGTH,
) -> Tuple[TimeSeriesData, ...]:
    """Append a sample and keep only the most recent ``limit`` entries."""

    if limit <= 0:
        return ()
    combined = tuple(series) + (sample,)
    return combined[-limit:]


def time_series_frame(series: Iterable[TimeSeriesData]) -> pd.DataFrame:
    """One row per sample, one column per metric field, indexed by timestamp."""

    rows = []
    for sample in series:
        row = {"timestamp": sample.timestamp}
        for group in (sample.urban, sample.health, sample.agriculture):
            row.update({item.name: getattr(group, item.name) for item in fields(group)})
        rows.append(row)
    if not rows:
        return pd.DataFrame(columns=["timestamp"]).set_index("timestamp")
    return pd.DataFrame(rows).set_index("timestamp").sort_index()


def heatmap_frame(cells: Iterable[HeatmapCell]) -> pd.DataFrame:
    return pd.DataFrame(
        [{"x": cell.x, "y": cell.y, "value": cell.value, "label": cell.label} for cell in cells],
        columns=["x", "y", "value", "label"],
    )


def heatmap_matrix(cells: Sequence[HeatmapCell]) -> np.ndarray:
    """Rows are districts, columns are hour slots."""

    if not cells:
        return np.zeros((0, 0))
    rows = max(cell.y for cell in cells) + 1
    cols = max(cell.x for cell in cells) + 1
    matrix = np.full((rows, cols), np.nan)
    for cell in cells:
        matrix[cell.y, cell.x] = cell.value
    return matrix


__all__ = [
    "merge_metrics",
    "build_snapshot",
    "append_sample",
    "time_series_frame",
    "heatmap_frame",
    "heatmap_matrix",
]
