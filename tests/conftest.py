import pytest

from urbannexus.airquality import fetch_aqi_history
from urbannexus.agriculture import fetch_fao_agriculture
from urbannexus.health import fetch_who_health
from urbannexus.location import search_locations
from urbannexus.providers import registry
from urbannexus.traffic import fetch_traffic, fetch_traffic_incidents
from urbannexus.weather import fetch_forecast, fetch_weather_and_aqi, fetch_weather_history


@pytest.fixture(autouse=True)
def clean_providers(monkeypatch):
    """Every test starts with all services enabled and empty fetch caches."""
    monkeypatch.setattr(registry, "force_simulation", False)
    registry.reset()
    for fetcher in (
        fetch_aqi_history,
        fetch_fao_agriculture,
        fetch_who_health,
        fetch_traffic,
        fetch_traffic_incidents,
        fetch_forecast,
        fetch_weather_and_aqi,
        fetch_weather_history,
        search_locations,
    ):
        fetcher.clear()
    yield
    registry.reset()
