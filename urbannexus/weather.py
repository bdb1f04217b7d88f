"""OpenWeatherMap and Meteostat helpers.

Current conditions go through three layers: the backend proxy (which holds
the API key), a direct OpenWeatherMap call, then a deterministic reading
derived from the coordinate so the dashboard always has something to show.
"""

from __future__ import annotations

import logging
import time
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional

import streamlit as st

from .airquality import aqi_from_components
from .config import get_settings
from .constants import METEOSTAT_DAILY_URL, METEOSTAT_HOST, OPENWEATHER_BASE_URL
from .models import ForecastEntry, WeatherReading, WeatherSample
from .providers import Provider, ProviderChain, ProviderError, get_json, registry
from .simulator import location_seed

log = logging.getLogger(__name__)

FORECAST_LIMIT = 16


def _proxy_url(path: str) -> str:
    settings = get_settings()
    if not settings.backend_url:
        raise ProviderError("No backend proxy configured")
    return f"{settings.backend_url}{path}"


def _openweather_key() -> str:
    key = get_settings().openweather_api_key
    if not key:
        raise ProviderError("OPENWEATHER_API_KEY is not set")
    return key


def parse_weather(pollution: Mapping[str, Any], weather: Mapping[str, Any], source: str) -> WeatherReading:
    """Build a reading from OpenWeatherMap ``air_pollution`` and ``weather`` payloads."""

    samples = pollution.get("list") or [{}]
    components = samples[0].get("components") or {}
    main = weather.get("main") or {}
    conditions = (weather.get("weather") or [{}])[0]
    sys_block = weather.get("sys") or {}

    return WeatherReading(
        aqi=aqi_from_components(components),
        pm25=float(components.get("pm2_5") or 0),
        pm10=float(components.get("pm10") or 0),
        no2=float(components.get("no2") or 0),
        temp=main.get("temp"),
        feels_like=main.get("feels_like"),
        humidity=main.get("humidity"),
        pressure=main.get("pressure"),
        wind_speed=(weather.get("wind") or {}).get("speed"),
        clouds=(weather.get("clouds") or {}).get("all"),
        description=conditions.get("description") or "Clear",
        icon=conditions.get("icon") or "01d",
        sunrise=sys_block.get("sunrise"),
        sunset=sys_block.get("sunset"),
        source=source,
    )


def _current_from_proxy(lat: float, lon: float) -> WeatherReading:
    params = {"lat": lat, "lon": lon}
    pollution = get_json(_proxy_url("/weather/pollution"), params=params)
    weather = get_json(_proxy_url("/weather/current"), params=params)
    return parse_weather(pollution, weather, source="proxy")


def _current_direct(lat: float, lon: float) -> WeatherReading:
    key = _openweather_key()
    pollution = get_json(
        f"{OPENWEATHER_BASE_URL}/air_pollution",
        params={"lat": lat, "lon": lon, "appid": key},
    )
    weather = get_json(
        f"{OPENWEATHER_BASE_URL}/weather",
        params={"lat": lat, "lon": lon, "units": "metric", "appid": key},
    )
    return parse_weather(pollution, weather, source="openweathermap")


def deterministic_weather(lat: float, lon: float) -> WeatherReading:
    """Offline reading seeded from the coordinate at ~1 km precision."""

    seed = location_seed(lat, lon, precision=100)
    base_aqi = 40 + seed % 120
    now = int(time.time())
    return WeatherReading(
        aqi=base_aqi,
        pm25=base_aqi * 0.4,
        pm10=base_aqi * 0.6,
        no2=base_aqi * 0.2,
        temp=22.0 + seed % 10,
        feels_like=23.0 + seed % 10,
        humidity=45.0 + seed % 30,
        pressure=1010.0 + seed % 10,
        wind_speed=float(seed % 10),
        clouds=float(seed % 100),
        description="Atmospheric Data Offline",
        icon="03d",
        sunrise=now - 4 * 3600,
        sunset=now + 4 * 3600,
        source="simulated",
    )


CURRENT_CHAIN: ProviderChain[WeatherReading] = ProviderChain(
    "weather",
    [
        Provider("proxy", "openweather", _current_from_proxy),
        Provider("openweathermap", "openweather", _current_direct),
    ],
    deterministic_weather,
)


def parse_forecast(payload: Mapping[str, Any], limit: int = FORECAST_LIMIT) -> List[ForecastEntry]:
    entries = []
    for item in (payload.get("list") or [])[:limit]:
        conditions = (item.get("weather") or [{}])[0]
        entries.append(
            ForecastEntry(
                dt=int(item.get("dt") or 0),
                temp=float((item.get("main") or {}).get("temp") or 0),
                description=conditions.get("description") or "Forecast",
                icon=conditions.get("icon") or "01d",
                pop=float(item.get("pop") or 0),
            )
        )
    return entries


def _forecast_from_proxy(lat: float, lon: float) -> List[ForecastEntry]:
    return parse_forecast(get_json(_proxy_url("/weather/forecast"), params={"lat": lat, "lon": lon}))


def _forecast_direct(lat: float, lon: float) -> List[ForecastEntry]:
    payload = get_json(
        f"{OPENWEATHER_BASE_URL}/forecast",
        params={"lat": lat, "lon": lon, "units": "metric", "appid": _openweather_key()},
    )
    return parse_forecast(payload)


def _no_forecast(lat: float, lon: float) -> List[ForecastEntry]:
    return []


FORECAST_CHAIN: ProviderChain[List[ForecastEntry]] = ProviderChain(
    "forecast",
    [
        Provider("proxy", "openweather", _forecast_from_proxy),
        Provider("openweathermap", "openweather", _forecast_direct),
    ],
    _no_forecast,
)


@st.cache_data(show_spinner=False, ttl=10 * 60)
def fetch_weather_and_aqi(lat: float, lon: float) -> WeatherReading:
    """Current weather and pollution; never raises."""

    return CURRENT_CHAIN.run(lat, lon)


@st.cache_data(show_spinner=False, ttl=30 * 60)
def fetch_forecast(lat: float, lon: float) -> List[ForecastEntry]:
    """Up to 16 three-hourly forecast entries, or an empty list."""

    return FORECAST_CHAIN.run(lat, lon)


def parse_daily_history(payload: Mapping[str, Any]) -> List[WeatherSample]:
    samples = []
    for day in payload.get("data") or []:
        try:
            observed = datetime.strptime(str(day["date"])[:10], "%Y-%m-%d").replace(tzinfo=timezone.utc)
        except (KeyError, ValueError):
            continue
        if day.get("tavg") is None:
            continue
        samples.append(
            WeatherSample(
                dt=int(observed.timestamp()),
                temp=float(day["tavg"]),
                humidity=float(day.get("rhum") or 50),
                wind_speed=float(day.get("wspd") or 0),
                description="Observed",
                prcp=float(day.get("prcp") or 0),
            )
        )
    return samples


def _history_params(lat: float, lon: float, days: int, today: date) -> Dict[str, Any]:
    end = today - timedelta(days=1)
    start = today - timedelta(days=days)
    return {"lat": lat, "lon": lon, "start": start.isoformat(), "end": end.isoformat()}


@st.cache_data(show_spinner=False, ttl=6 * 3600)
def fetch_weather_history(
    lat: float, lon: float, days: int = 5, today: Optional[date] = None
) -> List[WeatherSample]:
    """Daily observations for the last ``days`` days from Meteostat (proxy first)."""

    if registry.is_disabled("meteostat"):
        return []
    if days <= 0:
        days = 5
    params = _history_params(lat, lon, days, today or date.today())
    settings = get_settings()

    try:
        if settings.backend_url:
            payload = get_json(f"{settings.backend_url}/history/daily", params=params)
        elif settings.meteostat_api_key:
            payload = get_json(
                METEOSTAT_DAILY_URL,
                params=params,
                headers={
                    "x-rapidapi-key": settings.meteostat_api_key,
                    "x-rapidapi-host": METEOSTAT_HOST,
                },
            )
        else:
            return []
    except ProviderError as exc:
        if exc.is_auth_failure:
            registry.disable("meteostat", str(exc))
        log.warning("Meteostat history unavailable: %s", exc)
        return []

    return parse_daily_history(payload)


__all__ = [
    "FORECAST_LIMIT",
    "parse_weather",
    "deterministic_weather",
    "CURRENT_CHAIN",
    "FORECAST_CHAIN",
    "parse_forecast",
    "fetch_weather_and_aqi",
    "fetch_forecast",
    "parse_daily_history",
    "fetch_weather_history",
]
