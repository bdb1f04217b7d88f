"""Tests for OpenWeatherMap parsing, chains and the Meteostat history fetch."""

from datetime import date
from unittest.mock import patch

import pytest

from urbannexus.config import Settings
from urbannexus.providers import ProviderError, registry
from urbannexus.weather import (
    CURRENT_CHAIN,
    FORECAST_CHAIN,
    deterministic_weather,
    fetch_weather_and_aqi,
    fetch_weather_history,
    parse_daily_history,
    parse_forecast,
    parse_weather,
)

POLLUTION = {"list": [{"components": {"pm2_5": 12, "pm10": 30, "no2": 8}}]}
WEATHER = {
    "main": {"temp": 31.5, "feels_like": 35.0, "humidity": 62, "pressure": 1004},
    "weather": [{"description": "light rain", "icon": "10d"}],
    "wind": {"speed": 3.1},
    "clouds": {"all": 75},
    "sys": {"sunrise": 1700000000, "sunset": 1700040000},
}


def test_parse_weather():
    reading = parse_weather(POLLUTION, WEATHER, source="openweathermap")

    assert reading.aqi == 50
    assert reading.pm25 == 12.0
    assert reading.temp == 31.5
    assert reading.pressure == 1004
    assert reading.description == "light rain"
    assert reading.icon == "10d"
    assert reading.clouds == 75
    assert reading.source == "openweathermap"


def test_parse_weather_tolerates_empty_payloads():
    reading = parse_weather({}, {}, source="proxy")
    assert reading.aqi == 0
    assert reading.description == "Clear"
    assert reading.temp is None


def test_deterministic_weather():
    reading = deterministic_weather(28.6139, 77.2090)

    assert reading.source == "simulated"
    assert reading.description == "Atmospheric Data Offline"
    assert reading.aqi == 61
    assert reading.pressure == 1011.0
    assert deterministic_weather(28.6139, 77.2090).aqi == reading.aqi
    assert deterministic_weather(-28.6139, 77.2090).aqi != reading.aqi


def test_deterministic_weather_with_non_finite_coordinate():
    assert deterministic_weather(float("nan"), 0.0).aqi == deterministic_weather(0.0, 0.0).aqi == 40


class TestCurrentChain:
    def test_direct_openweather(self):
        with patch("urbannexus.weather.get_settings", return_value=Settings(openweather_api_key="key")), patch(
            "urbannexus.weather.get_json", side_effect=[POLLUTION, WEATHER]
        ) as get_json:
            reading = CURRENT_CHAIN.run(10.0, 20.0)

        assert reading.source == "openweathermap"
        assert get_json.call_count == 2
        assert get_json.call_args.kwargs["params"]["units"] == "metric"

    def test_proxy_preferred(self):
        settings = Settings(backend_url="http://proxy.test", openweather_api_key="key")
        with patch("urbannexus.weather.get_settings", return_value=settings), patch(
            "urbannexus.weather.get_json", side_effect=[POLLUTION, WEATHER]
        ) as get_json:
            reading = CURRENT_CHAIN.run(10.0, 20.0)

        assert reading.source == "proxy"
        assert get_json.call_args_list[0].args[0] == "http://proxy.test/weather/pollution"

    def test_fallback_when_offline(self):
        with patch("urbannexus.weather.get_settings", return_value=Settings()):
            reading = fetch_weather_and_aqi(10.0, 20.0)
        assert reading.source == "simulated"


def test_parse_forecast_limits_entries():
    payload = {
        "list": [
            {"dt": 1000 + i, "main": {"temp": 20 + i}, "weather": [{"description": "rain", "icon": "10n"}], "pop": 0.5}
            for i in range(40)
        ]
    }
    entries = parse_forecast(payload)

    assert len(entries) == 16
    assert entries[0].dt == 1000
    assert entries[0].pop == 0.5
    assert entries[3].temp == 23.0


def test_forecast_chain_empty_when_offline():
    with patch("urbannexus.weather.get_settings", return_value=Settings()):
        assert FORECAST_CHAIN.run(1.0, 1.0) == []


class TestWeatherHistory:
    PAYLOAD = {
        "data": [
            {"date": "2024-06-01", "tavg": 30.5, "rhum": 70, "wspd": 12, "prcp": 12.4},
            {"date": "2024-06-02", "tavg": None, "prcp": 40},
            {"date": "not a date", "tavg": 29},
            {"date": "2024-06-03 00:00:00", "tavg": 28, "prcp": None},
        ]
    }

    def test_parse_daily_history(self):
        samples = parse_daily_history(self.PAYLOAD)

        assert len(samples) == 2
        assert samples[0].prcp == 12.4
        assert samples[0].humidity == 70.0
        assert samples[1].prcp == 0.0
        assert samples[1].humidity == 50.0
        assert samples[1].dt - samples[0].dt == 2 * 86400

    def test_meteostat_direct(self):
        settings = Settings(meteostat_api_key="rapid")
        with patch("urbannexus.weather.get_settings", return_value=settings), patch(
            "urbannexus.weather.get_json", return_value=self.PAYLOAD
        ) as get_json:
            samples = fetch_weather_history(1.0, 2.0, days=5, today=date(2024, 6, 6))

        assert len(samples) == 2
        params = get_json.call_args.kwargs["params"]
        assert params["start"] == "2024-06-01"
        assert params["end"] == "2024-06-05"
        assert get_json.call_args.kwargs["headers"]["x-rapidapi-key"] == "rapid"

    def test_no_credentials(self):
        with patch("urbannexus.weather.get_settings", return_value=Settings()), patch(
            "urbannexus.weather.get_json"
        ) as get_json:
            assert fetch_weather_history(1.0, 2.0, today=date(2024, 6, 6)) == []
        get_json.assert_not_called()

    @pytest.mark.parametrize("status, disabled", [(403, True), (500, False)])
    def test_errors_return_empty(self, status, disabled):
        settings = Settings(meteostat_api_key="rapid")
        with patch("urbannexus.weather.get_settings", return_value=settings), patch(
            "urbannexus.weather.get_json", side_effect=ProviderError("failed", status=status)
        ):
            assert fetch_weather_history(3.0, 4.0, today=date(2024, 6, 6)) == []
        assert registry.is_disabled("meteostat") is disabled
