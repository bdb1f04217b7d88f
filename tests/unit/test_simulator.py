"""Tests for the deterministic metric simulator."""

from dataclasses import fields
from datetime import datetime, timedelta

import pytest

from urbannexus.models import METRIC_BOUNDS, ScenarioParams
from urbannexus.simulator import (
    deterministic_value,
    fixed_clock,
    freeze_clock,
    generate_agriculture_metrics,
    generate_health_metrics,
    generate_heatmap,
    generate_time_series,
    generate_urban_metrics,
    location_seed,
)

NEW_DELHI = (28.6139, 77.2090)
LOCATIONS = [(0.0, 0.0), NEW_DELHI, (-33.8688, 151.2093), (40.7128, -74.0060), (64.1466, -21.9426)]

EXTREME_SCENARIOS = [
    ScenarioParams(),
    ScenarioParams(rainfall=100, temperature=15, population_density=50, food_supply_shock=-50, energy_demand=50),
    ScenarioParams(rainfall=-50, temperature=-10, population_density=-20, food_supply_shock=0, energy_demand=-30),
    ScenarioParams(rainfall=-50, temperature=15, population_density=-20, food_supply_shock=-50, energy_demand=50),
]


class TestDeterministicValue:
    """The waveform generator stays in range and is reproducible."""

    def test_within_bounds_everywhere(self):
        for lat, lon in LOCATIONS:
            for hour in range(0, 24, 5):
                for minute in (0, 17, 59):
                    clock = fixed_clock(hour, minute)
                    for seed in range(0, 60, 7):
                        value = deterministic_value(10, 20, lat, lon, seed, clock)
                        assert 10 <= value <= 20

    def test_same_inputs_same_output(self):
        clock = fixed_clock(9, 30)
        first = deterministic_value(0, 100, *NEW_DELHI, seed_suffix=3, clock=clock)
        second = deterministic_value(0, 100, *NEW_DELHI, seed_suffix=3, clock=clock)
        assert first == second

    def test_varies_with_hour(self):
        values = {round(deterministic_value(0, 100, *NEW_DELHI, clock=fixed_clock(hour)), 6) for hour in range(24)}
        assert len(values) > 1

    def test_location_seed(self):
        assert location_seed(0.0, 0.0) == 0
        assert location_seed(1.5, 2.25) == 375000
        assert location_seed(-1.0, 0.0) == 100000

    @pytest.mark.parametrize("bad", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_coordinates_seed_like_origin(self, bad):
        clock = fixed_clock(1)
        assert location_seed(bad, 2.25) == location_seed(0.0, 2.25)
        assert deterministic_value(0, 100, bad, 0.0, 1, clock) == deterministic_value(0, 100, 0.0, 0.0, 1, clock)
        assert 0 <= generate_urban_metrics(bad, bad, None, clock).air_quality_index <= 500

    def test_freeze_clock_reads_once(self):
        calls = []

        def clock():
            calls.append(1)
            return 4, 20

        frozen = freeze_clock(clock)
        assert frozen() == (4, 20)
        assert frozen() == (4, 20)
        assert len(calls) == 1


class TestMetricGenerators:
    """Clamp ranges and scenario deltas of the three generators."""

    @pytest.mark.parametrize("scenario", EXTREME_SCENARIOS)
    def test_fields_within_bounds(self, scenario):
        for lat, lon in LOCATIONS:
            for hour in (0, 8, 18):
                clock = fixed_clock(hour, 45)
                for metrics in (
                    generate_urban_metrics(lat, lon, scenario, clock),
                    generate_health_metrics(lat, lon, scenario, clock),
                    generate_agriculture_metrics(lat, lon, scenario, clock),
                ):
                    for item in fields(metrics):
                        low, high = METRIC_BOUNDS[item.name]
                        value = getattr(metrics, item.name)
                        if low is not None:
                            assert value >= low, item.name
                        if high is not None:
                            assert value <= high, item.name

    def test_temperature_shifts_aqi_by_thirty(self):
        clock = fixed_clock(14, 10)
        baseline = generate_urban_metrics(*NEW_DELHI, ScenarioParams(), clock)
        warmer = generate_urban_metrics(*NEW_DELHI, ScenarioParams(temperature=10), clock)
        assert warmer.air_quality_index == pytest.approx(baseline.air_quality_index + 30)
        assert warmer.energy_usage == pytest.approx(baseline.energy_usage + 200)
        assert warmer.noise_level == baseline.noise_level

    def test_no_scenario_equals_zero_scenario(self):
        clock = fixed_clock(6)
        assert generate_health_metrics(1.5, 2.5, None, clock) == generate_health_metrics(
            1.5, 2.5, ScenarioParams(), clock
        )

    def test_food_shock_lowers_supply_and_raises_price(self):
        clock = fixed_clock(12)
        baseline = generate_agriculture_metrics(*NEW_DELHI, None, clock)
        shocked = generate_agriculture_metrics(*NEW_DELHI, ScenarioParams(food_supply_shock=-20), clock)
        assert shocked.food_supply_level < baseline.food_supply_level
        assert shocked.price_index > baseline.price_index
        assert shocked.soil_health == baseline.soil_health


class TestTimeSeriesAndHeatmap:
    def test_time_series_is_hourly_and_oldest_first(self):
        now = datetime(2024, 3, 1, 12, 0)
        series = generate_time_series(*NEW_DELHI, points=24, now=now)

        assert len(series) == 24
        assert series[-1].timestamp == now
        assert series[0].timestamp == now - timedelta(hours=23)
        assert all(b.timestamp - a.timestamp == timedelta(hours=1) for a, b in zip(series, series[1:]))

    def test_each_point_sampled_at_its_own_hour(self):
        now = datetime(2024, 3, 1, 12, 0)
        series = generate_time_series(*NEW_DELHI, points=3, now=now)
        expected = generate_urban_metrics(*NEW_DELHI, None, fixed_clock(10, 0))
        assert series[0].urban == expected

    def test_empty_series(self):
        assert generate_time_series(points=0) == []

    def test_heatmap_grid(self):
        cells = generate_heatmap(*NEW_DELHI, clock=fixed_clock(8))

        assert len(cells) == 8 * 12
        assert cells[0].label == "North - 00:00"
        assert cells[12].label == "South - 00:00"
        assert cells[13].label == "South - 02:00"
        assert (cells[13].x, cells[13].y) == (1, 1)
        assert all(0 <= cell.value <= 100 for cell in cells)

    def test_heatmap_seed_follows_cell_index(self):
        clock = fixed_clock(8)
        cells = generate_heatmap(*NEW_DELHI, rows=2, cols=3, clock=clock)
        assert cells[4].value == deterministic_value(0, 100, *NEW_DELHI, 4, clock)
