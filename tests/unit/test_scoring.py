import pytest

from urbannexus.models import AgricultureMetrics, HealthMetrics, UrbanMetrics
from urbannexus.scoring import (
    calculate_city_health_index,
    clamp_value,
    compute_scores,
    composite,
    risk_level_for,
    round_half_up,
    trend_for,
)


@pytest.fixture
def urban():
    return UrbanMetrics(
        traffic_congestion=50, air_quality_index=150, energy_usage=1000, noise_level=60, public_transport_usage=40
    )


@pytest.fixture
def health():
    return HealthMetrics(
        disease_incidence=150, hospital_capacity=70, emergency_load=50, vaccination_rate=80, avg_response_time=10
    )


@pytest.fixture
def agriculture():
    return AgricultureMetrics(
        crop_yield_index=80, food_supply_level=80, price_index=110, water_usage=200, soil_health=70
    )


def test_pillar_scores(urban, health, agriculture):
    scores = compute_scores(urban, health, agriculture)
    assert scores["urban"] == pytest.approx(47.0)
    assert scores["health"] == pytest.approx(50.0)
    assert scores["agriculture"] == pytest.approx(83.0)
    assert composite(scores) == pytest.approx(58.85)


def test_city_health_index(urban, health, agriculture):
    index = calculate_city_health_index(urban, health, agriculture)
    assert index.overall == 59
    assert index.urban == 47
    assert index.health == 50
    assert index.agriculture == 83
    assert index.risk_level == "medium"
    assert index.trend == "up"


def test_index_is_referentially_transparent(urban, health, agriculture):
    assert calculate_city_health_index(urban, health, agriculture) == calculate_city_health_index(
        urban, health, agriculture
    )


def test_aqi_contribution_saturates():
    dirty = UrbanMetrics(50, 500, 1000, 60, 40)
    very_dirty = UrbanMetrics(50, 300, 1000, 60, 40)
    assert compute_scores(dirty, *_defaults())["urban"] == compute_scores(very_dirty, *_defaults())["urban"]


def _defaults():
    return (
        HealthMetrics(100, 70, 50, 80, 10),
        AgricultureMetrics(60, 90, 100, 200, 70),
    )


@pytest.mark.parametrize(
    "overall, expected",
    [(100, "low"), (70, "low"), (69.9, "medium"), (55, "medium"), (54.99, "high"), (40, "high"), (39.9, "critical"), (0, "critical")],
)
def test_risk_level(overall, expected):
    assert risk_level_for(overall) == expected


def test_trend_follows_crop_yield():
    assert trend_for(AgricultureMetrics(71, 90, 100, 200, 70)) == "up"
    assert trend_for(AgricultureMetrics(70, 90, 100, 200, 70)) == "stable"


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(-0.5) == 0
    assert round_half_up(7.49) == 7


def test_clamp_value():
    assert clamp_value(5, 0, 10) == 5
    assert clamp_value(-1, 0, 10) == 0
    assert clamp_value(11, 0, 10) == 10
