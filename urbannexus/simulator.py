"""Deterministic metric simulation and scenario application.

Every value produced here is a pure function of the coordinate, the clock
reading (hour and minute), a per-field seed suffix and the scenario. The
clock is injected so callers and tests can pin the sample moment.
"""

from __future__ import annotations

import math
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Tuple

from .constants import HEATMAP_DISTRICTS, HEATMAP_HOURS
from .models import (
    AgricultureMetrics,
    HealthMetrics,
    HeatmapCell,
    ScenarioParams,
    TimeSeriesData,
    UrbanMetrics,
)
from .scoring import clamp_value

Clock = Callable[[], Tuple[int, int]]

_CYCLE_SLOTS = 48
_WAVE_WEIGHT = 0.7
_LOCATION_WEIGHT = 0.3
_MICRO_NOISE_AMPLITUDE = 0.05
_LOCATION_PRECISION = 100_000


def system_clock() -> Tuple[int, int]:
    now = datetime.now()
    return now.hour, now.minute


def fixed_clock(hour: int, minute: int = 0) -> Clock:
    """Return a clock that always reads ``hour:minute``."""

    def _clock() -> Tuple[int, int]:
        return hour, minute

    return _clock


def clock_at(moment: datetime) -> Clock:
    return fixed_clock(moment.hour, moment.minute)


def _finite(value: float) -> float:
    return value if math.isfinite(value) else 0.0


def location_seed(lat: float, lon: float, precision: int = _LOCATION_PRECISION) -> int:
    # NaN or infinite coordinates seed like the origin.
    lat, lon = _finite(lat), _finite(lon)
    return abs(math.floor(lat * precision) + math.floor(lon * precision))


def deterministic_value(
    minimum: float,
    maximum: float,
    lat: float = 0.0,
    lon: float = 0.0,
    seed_suffix: int = 0,
    clock: Clock = system_clock,
) -> float:
    """Return a smoothly varying, location-specific value in ``[minimum, maximum]``."""

    hour, minute = clock()
    loc_seed = location_seed(lat, lon)
    index = (hour + seed_suffix + loc_seed % _CYCLE_SLOTS) % _CYCLE_SLOTS

    wave = (math.sin(index * math.pi / 12) + 1) / 2
    loc_offset = (loc_seed % 1000) / 1000
    micro_noise = 1.0 + math.sin(minute * 0.5 + loc_seed) * _MICRO_NOISE_AMPLITUDE

    final_factor = (wave * _WAVE_WEIGHT + loc_offset * _LOCATION_WEIGHT) * micro_noise
    return clamp_value(minimum + (maximum - minimum) * final_factor, minimum, maximum)


def freeze_clock(clock: Clock) -> Clock:
    # One reading per refresh so every field shares the same sample moment.
    reading = clock()
    return lambda: reading


def urban_deltas(scenario: Optional[ScenarioParams]) -> Tuple[float, float, float]:
    """Scenario offsets for traffic congestion, AQI and energy usage."""

    if scenario is None:
        return 0.0, 0.0, 0.0
    traffic = scenario.population_density * 0.5 + scenario.rainfall * -0.1
    aqi = scenario.temperature * 3 + scenario.energy_demand * 0.8
    energy = scenario.temperature * 20 + scenario.population_density * 10
    return traffic, aqi, energy


def health_deltas(scenario: Optional[ScenarioParams]) -> Tuple[float, float, float]:
    """Scenario offsets for hospital capacity, emergency load and disease incidence."""

    if scenario is None:
        return 0.0, 0.0, 0.0
    hospital = scenario.temperature * 1.5 + scenario.population_density * 0.5
    emergency = scenario.rainfall * 0.3 + scenario.temperature * 0.8
    disease = scenario.temperature * 5 + scenario.population_density * 2
    return hospital, emergency, disease


def agriculture_deltas(scenario: Optional[ScenarioParams]) -> Tuple[float, float, float]:
    """Scenario offsets for crop yield, food supply and price index."""

    if scenario is None:
        return 0.0, 0.0, 0.0
    crop_yield = (
        scenario.rainfall * 0.3
        - abs(scenario.temperature - 2) * 2
        + scenario.food_supply_shock * 0.5
    )
    supply = scenario.food_supply_shock + scenario.temperature * -0.5
    price = -scenario.food_supply_shock * 0.8 + scenario.temperature * 1.2
    return crop_yield, supply, price


def apply_urban_scenario(metrics: UrbanMetrics, scenario: Optional[ScenarioParams]) -> UrbanMetrics:
    traffic_mod, aqi_mod, energy_mod = urban_deltas(scenario)
    return replace(
        metrics,
        traffic_congestion=clamp_value(metrics.traffic_congestion + traffic_mod, 0, 100),
        air_quality_index=clamp_value(metrics.air_quality_index + aqi_mod, 0, 500),
        energy_usage=max(500.0, metrics.energy_usage + energy_mod),
    )


def apply_health_scenario(metrics: HealthMetrics, scenario: Optional[ScenarioParams]) -> HealthMetrics:
    hospital_mod, emergency_mod, disease_mod = health_deltas(scenario)
    return replace(
        metrics,
        disease_incidence=max(10.0, metrics.disease_incidence + disease_mod),
        hospital_capacity=clamp_value(metrics.hospital_capacity + hospital_mod, 30, 100),
        emergency_load=clamp_value(metrics.emergency_load + emergency_mod, 20, 100),
    )


def apply_agriculture_scenario(
    metrics: AgricultureMetrics, scenario: Optional[ScenarioParams]
) -> AgricultureMetrics:
    yield_mod, supply_mod, price_mod = agriculture_deltas(scenario)
    return replace(
        metrics,
        crop_yield_index=clamp_value(metrics.crop_yield_index + yield_mod, 20, 100),
        food_supply_level=clamp_value(metrics.food_supply_level + supply_mod, 50, 100),
        price_index=clamp_value(metrics.price_index + price_mod, 80, 200),
    )


def generate_urban_metrics(
    lat: float = 0.0,
    lon: float = 0.0,
    scenario: Optional[ScenarioParams] = None,
    clock: Clock = system_clock,
) -> UrbanMetrics:
    clock = freeze_clock(clock)
    baseline = UrbanMetrics(
        traffic_congestion=deterministic_value(30, 80, lat, lon, 1, clock),
        air_quality_index=deterministic_value(50, 150, lat, lon, 2, clock),
        energy_usage=deterministic_value(800, 1500, lat, lon, 3, clock),
        noise_level=deterministic_value(45, 85, lat, lon, 4, clock),
        public_transport_usage=deterministic_value(20, 60, lat, lon, 5, clock),
    )
    return apply_urban_scenario(baseline, scenario)


def generate_health_metrics(
    lat: float = 0.0,
    lon: float = 0.0,
    scenario: Optional[ScenarioParams] = None,
    clock: Clock = system_clock,
) -> HealthMetrics:
    clock = freeze_clock(clock)
    baseline = HealthMetrics(
        disease_incidence=deterministic_value(50, 200, lat, lon, 8, clock),
        hospital_capacity=deterministic_value(60, 85, lat, lon, 6, clock),
        emergency_load=deterministic_value(40, 70, lat, lon, 7, clock),
        vaccination_rate=deterministic_value(65, 92, lat, lon, 9, clock),
        avg_response_time=deterministic_value(5, 15, lat, lon, 10, clock),
    )
    return apply_health_scenario(baseline, scenario)


def generate_agriculture_metrics(
    lat: float = 0.0,
    lon: float = 0.0,
    scenario: Optional[ScenarioParams] = None,
    clock: Clock = system_clock,
) -> AgricultureMetrics:
    clock = freeze_clock(clock)
    baseline = AgricultureMetrics(
        crop_yield_index=deterministic_value(60, 90, lat, lon, 11, clock),
        food_supply_level=deterministic_value(85, 98, lat, lon, 12, clock),
        price_index=deterministic_value(95, 115, lat, lon, 13, clock),
        water_usage=deterministic_value(100, 300, lat, lon, 14, clock),
        soil_health=deterministic_value(55, 90, lat, lon, 15, clock),
    )
    return apply_agriculture_scenario(baseline, scenario)


def generate_time_series(
    lat: float = 0.0,
    lon: float = 0.0,
    points: int = 24,
    scenario: Optional[ScenarioParams] = None,
    now: Optional[datetime] = None,
) -> List[TimeSeriesData]:
    """Hourly samples ending at ``now``, each generated at its own timestamp."""

    end = now or datetime.now()
    series: List[TimeSeriesData] = []
    for offset in range(points - 1, -1, -1):
        timestamp = end - timedelta(hours=offset)
        clock = clock_at(timestamp)
        series.append(
            TimeSeriesData(
                timestamp=timestamp,
                urban=generate_urban_metrics(lat, lon, scenario, clock),
                health=generate_health_metrics(lat, lon, scenario, clock),
                agriculture=generate_agriculture_metrics(lat, lon, scenario, clock),
            )
        )
    return series


def generate_heatmap(
    lat: float = 0.0,
    lon: float = 0.0,
    rows: int = 8,
    cols: int = 12,
    clock: Clock = system_clock,
) -> List[HeatmapCell]:
    """District-by-hour risk grid; each cell gets its own seed suffix."""

    clock = freeze_clock(clock)
    cells: List[HeatmapCell] = []
    for y in range(rows):
        for x in range(cols):
            cells.append(
                HeatmapCell(
                    x=x,
                    y=y,
                    value=deterministic_value(0, 100, lat, lon, y * cols + x, clock),
                    label=(
                        f"{HEATMAP_DISTRICTS[y % len(HEATMAP_DISTRICTS)]} - "
                        f"{HEATMAP_HOURS[x % len(HEATMAP_HOURS)]}"
                    ),
                )
            )
    return cells


__all__ = [
    "Clock",
    "system_clock",
    "fixed_clock",
    "clock_at",
    "freeze_clock",
    "location_seed",
    "deterministic_value",
    "urban_deltas",
    "health_deltas",
    "agriculture_deltas",
    "apply_urban_scenario",
    "apply_health_scenario",
    "apply_agriculture_scenario",
    "generate_urban_metrics",
    "generate_health_metrics",
    "generate_agriculture_metrics",
    "generate_time_series",
    "generate_heatmap",
]
