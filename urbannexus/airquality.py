"""Air quality index conversions and historical pollution samples."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional, Sequence

import streamlit as st

from .config import get_settings
from .constants import AQI_STATUS_BANDS, OPENWEATHER_BASE_URL, PM25_BREAKPOINTS
from .models import AQIHistoryPoint
from .providers import Provider, ProviderChain, ProviderError, get_json
from .scoring import clamp_value, round_half_up

log = logging.getLogger(__name__)

PM10_CEILING = 425.0
PM10_CAP = 300.0
NO2_REFERENCE = 200.0
NO2_CAP = 100.0
HISTORY_YEARS = (2021, 2022, 2023, 2024, 2025)


def _pm25_sub_index(pm25: float) -> float:
    if pm25 <= 0:
        return 0.0
    for low, high, index_low, index_high in PM25_BREAKPOINTS:
        # Values in the 0.1 gaps between bands belong to the next band up.
        if pm25 <= high:
            position = max(pm25, low)
            return (index_high - index_low) / (high - low) * (position - low) + index_low
    return 500.0


def calculate_aqi_from_pm25(pm25: float) -> int:
    """EPA-style AQI for a PM2.5 concentration in µg/m³."""

    return round_half_up(clamp_value(_pm25_sub_index(pm25), 0, 500))


def calculate_aqi(pm25: float, pm10: float = 0.0, no2: float = 0.0) -> int:
    """Highest of the PM2.5, PM10 and NO₂ sub-indices, capped at 500."""

    aqi = _pm25_sub_index(pm25)
    if pm10 > 50:
        pm10_aqi = PM10_CAP if pm10 > PM10_CEILING else pm10 / PM10_CEILING * PM10_CAP
        aqi = max(aqi, pm10_aqi)
    if no2 > 50:
        no2_aqi = min(NO2_CAP, no2 / NO2_REFERENCE * 100)
        aqi = max(aqi, no2_aqi)
    return round_half_up(clamp_value(aqi, 0, 500))


def aqi_status(aqi: float) -> str:
    for ceiling, label in AQI_STATUS_BANDS:
        if aqi <= ceiling:
            return label
    return "Hazardous"


def aqi_from_components(components: Mapping[str, Optional[float]]) -> int:
    """AQI from an OpenWeatherMap ``components`` block."""

    return calculate_aqi(
        float(components.get("pm2_5") or 0),
        float(components.get("pm10") or 0),
        float(components.get("no2") or 0),
    )


def granular_aqi(components: Mapping[str, Optional[float]]) -> int:
    """Weighted pollutant blend used for the yearly history chart (10-500)."""

    blend = (
        float(components.get("pm2_5") or 0) * 1.5
        + float(components.get("pm10") or 0) * 0.5
        + float(components.get("no2") or 0) * 0.3
    )
    return int(clamp_value(round_half_up(blend), 10, 500))


def fallback_aqi_history(
    years: Sequence[int] = HISTORY_YEARS, base_year: Optional[int] = None
) -> List[AQIHistoryPoint]:
    if not years:
        return []
    first = years[0] if base_year is None else base_year
    return [AQIHistoryPoint(year=year, aqi=35 + (year - first) * 3) for year in years]


def _sample_window(year: int) -> Dict[str, int]:
    # Mid-June noon is taken as the representative sample for a year.
    start = int(datetime(year, 6, 15, 12, tzinfo=timezone.utc).timestamp())
    return {"start": start, "end": start + 3600}


def _history_from_proxy(lat: float, lon: float, year: int) -> AQIHistoryPoint:
    settings = get_settings()
    if not settings.backend_url:
        raise ProviderError("No backend proxy configured")
    payload = get_json(
        f"{settings.backend_url}/weather/pollution/history",
        params={"lat": lat, "lon": lon, **_sample_window(year)},
    )
    return _history_point(payload, year)


def _history_direct(lat: float, lon: float, year: int) -> AQIHistoryPoint:
    settings = get_settings()
    if not settings.openweather_api_key:
        raise ProviderError("OPENWEATHER_API_KEY is not set")
    payload = get_json(
        f"{OPENWEATHER_BASE_URL}/air_pollution/history",
        params={
            "lat": lat,
            "lon": lon,
            "appid": settings.openweather_api_key,
            **_sample_window(year),
        },
    )
    return _history_point(payload, year)


def _history_point(payload: Mapping, year: int) -> AQIHistoryPoint:
    samples = payload.get("list") or []
    if not samples:
        raise ProviderError(f"No pollution samples for {year}")
    return AQIHistoryPoint(year=year, aqi=granular_aqi(samples[0].get("components") or {}))


def _history_fallback(lat: float, lon: float, year: int) -> AQIHistoryPoint:
    return fallback_aqi_history((year,), base_year=HISTORY_YEARS[0])[0]


_HISTORY_CHAIN: ProviderChain[AQIHistoryPoint] = ProviderChain(
    "aqi-history",
    [
        Provider("proxy", "openweather", _history_from_proxy),
        Provider("openweathermap", "openweather", _history_direct),
    ],
    _history_fallback,
)


@st.cache_data(show_spinner=False, ttl=24 * 3600)
def fetch_aqi_history(lat: float, lon: float, years: Sequence[int] = HISTORY_YEARS) -> List[AQIHistoryPoint]:
    """One AQI sample per year, falling back to a gentle upward trend."""

    return [_HISTORY_CHAIN.run(lat, lon, year) for year in years]


__all__ = [
    "HISTORY_YEARS",
    "calculate_aqi_from_pm25",
    "calculate_aqi",
    "aqi_status",
    "aqi_from_components",
    "granular_aqi",
    "fallback_aqi_history",
    "fetch_aqi_history",
]
