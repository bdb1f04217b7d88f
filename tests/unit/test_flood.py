"""Tests for the flood risk estimator."""

import math

import pytest

from urbannexus.flood import DEFAULT_MESSAGE, calculate_flood_risk, flood_level, saturation_multiplier
from urbannexus.models import ForecastEntry, WeatherReading, WeatherSample


def _reading(description="clear sky", pressure=1013.0, pop=None):
    forecast = () if pop is None else (ForecastEntry(dt=0, temp=25.0, description="", icon="01d", pop=pop),)
    return WeatherReading(
        aqi=50, pm25=10, pm10=20, no2=5, pressure=pressure, description=description, forecast=forecast, source="test"
    )


def _rain_history(*amounts):
    return [
        WeatherSample(dt=day, temp=25.0, humidity=60.0, wind_speed=2.0, description="Observed", prcp=amount)
        for day, amount in enumerate(amounts)
    ]


def test_empty_inputs_do_not_raise():
    risk = calculate_flood_risk([], 0)

    assert math.isfinite(risk.probability)
    assert 0 <= risk.probability <= 100
    assert risk.probability == 0
    assert risk.level == "low"
    assert risk.message == DEFAULT_MESSAGE


def test_saturated_ground():
    risk = calculate_flood_risk(_rain_history(20, 15, None), 0)

    assert risk.probability == 20
    assert risk.level == "low"
    assert risk.message.startswith("Ground saturated (35.0 mm")


def test_storm_and_low_pressure():
    risk = calculate_flood_risk([], 0, _reading("thunderstorm", pressure=1000))

    assert risk.probability == 90
    assert risk.level == "critical"
    assert risk.message == "Severe convection patterns detected."


def test_rain_scaled_by_saturation():
    risk = calculate_flood_risk(_rain_history(25), 0, _reading("light rain"))

    assert risk.probability == 48
    assert risk.message == "High precipitation density confirmed."


def test_forecast_probability_of_precipitation():
    risk = calculate_flood_risk([], 0, _reading(pop=0.7))

    assert risk.probability == 70
    assert risk.level == "high"
    assert risk.message == "Forecast predicts incoming heavy rain."


def test_low_pressure_message_only():
    risk = calculate_flood_risk([], 0, _reading(pressure=1007))

    assert risk.probability == 0
    assert risk.message == "Low pressure trough detected."


def test_missing_pressure_uses_default():
    risk = calculate_flood_risk([], 0, _reading(pressure=None))
    assert risk.message == DEFAULT_MESSAGE


@pytest.mark.parametrize("rainfall_pct, expected", [(100, 40), (50, 20), (-50, 0)])
def test_rainfall_scenario(rainfall_pct, expected):
    assert calculate_flood_risk([], rainfall_pct).probability == expected


def test_probability_clamped():
    risk = calculate_flood_risk(_rain_history(60), 100, _reading("heavy thunderstorm rain", pressure=990, pop=1.0))
    assert risk.probability == 100
    assert risk.level == "critical"


def test_saturation_multiplier():
    assert saturation_multiplier(0) == 1.0
    assert saturation_multiplier(21) == 1.2
    assert saturation_multiplier(51) == 1.5


@pytest.mark.parametrize("probability, level", [(81, "critical"), (80, "high"), (51, "high"), (50, "moderate"), (26, "moderate"), (25, "low")])
def test_flood_level(probability, level):
    assert flood_level(probability) == level
