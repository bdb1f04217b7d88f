"""TomTom traffic flow and the hour-of-day congestion model."""

from __future__ import annotations

import logging
import math
from typing import Any, List, Mapping, Optional, Sequence, Tuple

import streamlit as st

from .config import get_settings
from .constants import (
    CONGESTION_COLOR_MAX,
    CONGESTION_COLORS,
    INCIDENT_BBOX_OFFSET,
    TOMTOM_FLOW_URL,
    TOMTOM_INCIDENTS_URL,
)
from .models import TrafficHotspot, TrafficPrediction, TrafficReading, WeatherReading
from .providers import Provider, ProviderChain, ProviderError, get_json
from .scoring import clamp_value, round_half_up
from .simulator import Clock, deterministic_value, location_seed, system_clock

log = logging.getLogger(__name__)

PREDICTION_CONFIDENCE = 94.2
SEVERITY_CONGESTION = 25
WORSENING_DELAY = 300  # seconds

PeakHours = Sequence[Tuple[int, int]]


def congestion_from_speeds(current_speed: Optional[float], free_flow_speed: Optional[float]) -> int:
    """Share of free-flow speed lost, as a 0-100 percentage."""

    current = current_speed or 30
    free_flow = free_flow_speed or 60
    return int(clamp_value(round_half_up((free_flow - current) / free_flow * 100), 0, 100))


def parse_flow(payload: Mapping[str, Any], source: str) -> TrafficReading:
    flow = payload.get("flowSegmentData")
    if not flow:
        raise ProviderError("TomTom response has no flowSegmentData")
    current = flow.get("currentSpeed") or 30
    return TrafficReading(
        congestion=float(congestion_from_speeds(current, flow.get("freeFlowSpeed"))),
        speed=float(current),
        source=source,
    )


def _flow_from_proxy(lat: float, lon: float) -> TrafficReading:
    settings = get_settings()
    if not settings.backend_url:
        raise ProviderError("No backend proxy configured")
    payload = get_json(
        f"{settings.backend_url}/traffic/flow",
        params={"point": f"{lat},{lon}", "unit": "KMPH"},
    )
    return parse_flow(payload, source="proxy")


def _flow_direct(lat: float, lon: float) -> TrafficReading:
    key = get_settings().tomtom_api_key
    if not key:
        raise ProviderError("TOMTOM_API_KEY is not set")
    payload = get_json(TOMTOM_FLOW_URL, params={"point": f"{lat},{lon}", "unit": "KMPH", "key": key})
    return parse_flow(payload, source="tomtom")


def simulated_traffic(lat: float, lon: float, clock: Clock = system_clock) -> TrafficReading:
    return TrafficReading(
        congestion=deterministic_value(15, 55, lat, lon, 21, clock),
        speed=deterministic_value(35, 55, lat, lon, 22, clock),
        source="simulated",
    )


FLOW_CHAIN: ProviderChain[TrafficReading] = ProviderChain(
    "traffic",
    [
        Provider("proxy", "tomtom", _flow_from_proxy),
        Provider("tomtom", "tomtom", _flow_direct),
    ],
    simulated_traffic,
)


@st.cache_data(show_spinner=False, ttl=5 * 60)
def fetch_traffic(lat: float, lon: float) -> TrafficReading:
    return FLOW_CHAIN.run(lat, lon)


def peak_hour_profile(congestion: float, lat: float, lon: float) -> List[Tuple[int, int]]:
    """Expected congestion for each hour of the day around a hotspot."""

    seed = location_seed(lat, lon, precision=1000)
    profile = []
    for hour in range(24):
        multiplier = 0.4
        if 8 <= hour <= 10:
            multiplier = 1.6
        if 17 <= hour <= 19:
            multiplier = 2.0
        variance = 1 + math.sin(hour + seed % 12) * 0.15
        profile.append((hour, min(100, round_half_up(congestion * multiplier * variance))))
    return profile


def incident_bbox(lat: float, lon: float, offset: float = INCIDENT_BBOX_OFFSET) -> str:
    """TomTom bounding box as ``minLon,minLat,maxLon,maxLat``."""

    return f"{lon - offset},{lat - offset},{lon + offset},{lat + offset}"


def parse_incidents(payload: Mapping[str, Any], lat: float, lon: float) -> List[TrafficHotspot]:
    """Hotspots from a TomTom incident-details payload; malformed entries are skipped."""

    hotspots = []
    for index, incident in enumerate((payload.get("tm") or {}).get("poi") or []):
        position = incident.get("p") or {}
        try:
            point = (float(position["y"]), float(position["x"]))
            congestion = int(incident.get("ty") or 1) * SEVERITY_CONGESTION
            delay = float(incident.get("dl") or 0)
        except (KeyError, TypeError, ValueError):
            continue
        hotspots.append(
            TrafficHotspot(
                id=str(incident.get("id") or f"inc-{index}"),
                name=incident.get("d") or "Traffic Incident",
                lat=point[0],
                lon=point[1],
                current_congestion=min(100, congestion),
                peak_hours=tuple(peak_hour_profile(congestion, lat, lon)),
                predicted_status="worsening" if delay > WORSENING_DELAY else "stable",
                incident_type=incident.get("ic") or "Incident",
                delay=round_half_up(delay / 60),
            )
        )
    return hotspots


def _incidents_from_proxy(lat: float, lon: float) -> List[TrafficHotspot]:
    settings = get_settings()
    if not settings.backend_url:
        raise ProviderError("No backend proxy configured")
    payload = get_json(f"{settings.backend_url}/traffic/incidents", params={"bbox": incident_bbox(lat, lon)})
    return parse_incidents(payload, lat, lon)


def _incidents_direct(lat: float, lon: float) -> List[TrafficHotspot]:
    key = get_settings().tomtom_api_key
    if not key:
        raise ProviderError("TOMTOM_API_KEY is not set")
    payload = get_json(TOMTOM_INCIDENTS_URL.format(bbox=incident_bbox(lat, lon)), params={"key": key})
    return parse_incidents(payload, lat, lon)


def _no_incidents(lat: float, lon: float) -> List[TrafficHotspot]:
    return []


INCIDENT_CHAIN: ProviderChain[List[TrafficHotspot]] = ProviderChain(
    "traffic-incidents",
    [
        Provider("proxy", "tomtom", _incidents_from_proxy),
        Provider("tomtom", "tomtom", _incidents_direct),
    ],
    _no_incidents,
)


@st.cache_data(show_spinner=False, ttl=5 * 60)
def fetch_traffic_incidents(lat: float, lon: float) -> List[TrafficHotspot]:
    """Incidents within ~10 km of the point, or an empty list."""

    return INCIDENT_CHAIN.run(lat, lon)


def _hour_weight(hour: int) -> float:
    if 7 <= hour <= 9:
        return 1.4
    if 17 <= hour <= 19:
        return 1.8
    if hour >= 23 or hour <= 5:
        return 0.3
    return 1.0


def _weather_factor(weather: Optional[WeatherReading]) -> float:
    if weather is None:
        return 1.0
    description = (weather.description or "").lower()
    if any(word in description for word in ("rain", "storm", "drizzle")):
        return 1.35
    if "snow" in description or "ice" in description:
        return 1.6
    if weather.temp is not None and weather.temp > 40:
        return 1.15
    return 1.0


def predict_traffic(
    current_congestion: float,
    hour: int,
    peak_hours: Optional[PeakHours] = None,
    weather: Optional[WeatherReading] = None,
) -> TrafficPrediction:
    if peak_hours is not None:
        levels = dict(peak_hours)
        predicted = float(levels.get(hour, current_congestion))
    else:
        predicted = current_congestion * _hour_weight(hour)

    predicted = clamp_value(predicted * _weather_factor(weather), 5, 100)

    if predicted > current_congestion:
        trend = "up"
    elif predicted < current_congestion:
        trend = "down"
    else:
        trend = "stable"
    return TrafficPrediction(
        predicted_value=round_half_up(predicted),
        trend=trend,
        confidence=PREDICTION_CONFIDENCE,
    )


def congestion_color(level: float) -> str:
    for ceiling, color in CONGESTION_COLORS:
        if level < ceiling:
            return color
    return CONGESTION_COLOR_MAX


__all__ = [
    "congestion_from_speeds",
    "parse_flow",
    "simulated_traffic",
    "FLOW_CHAIN",
    "fetch_traffic",
    "peak_hour_profile",
    "incident_bbox",
    "parse_incidents",
    "INCIDENT_CHAIN",
    "fetch_traffic_incidents",
    "predict_traffic",
    "congestion_color",
]
