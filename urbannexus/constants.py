"""Shared constants for the UrbanNexus dashboard."""

from __future__ import annotations

from pathlib import Path


ROOT_DIR = Path(__file__).resolve().parent.parent

DEFAULT_POINT = {"lat": 28.6139, "lon": 77.2090, "name": "New Delhi"}

DEFAULT_REFRESH_SECONDS = 30
DEFAULT_SERIES_LENGTH = 24

OPENWEATHER_BASE_URL = "https://api.openweathermap.org/data/2.5"
TOMTOM_FLOW_URL = "https://api.tomtom.com/traffic/services/4/flowSegmentData/relative0/10/json"
TOMTOM_INCIDENTS_URL = "https://api.tomtom.com/traffic/services/4/incidentDetails/s3/{bbox}/10/-1/json"
TOMTOM_SEARCH_URL = "https://api.tomtom.com/search/2/geocode/{query}.json"
METEOSTAT_DAILY_URL = "https://meteostat.p.rapidapi.com/point/daily"
METEOSTAT_HOST = "meteostat.p.rapidapi.com"
WHO_GHO_URL = "https://ghoapi.azureedge.net/api"
FAOSTAT_URL = "https://fenixservices.fao.org/faostat/api/v1/en/data/QCL"

WHO_COUNTRY_CODE = "IND"
FAOSTAT_AREA_CODE = 100  # India

INCIDENT_BBOX_OFFSET = 0.1  # degrees around the point
MIN_SEARCH_LENGTH = 3
SEARCH_LIMIT = 5

# (concentration low, concentration high, index low, index high)
PM25_BREAKPOINTS = (
    (0.0, 12.0, 0, 50),
    (12.1, 35.4, 51, 100),
    (35.5, 55.4, 101, 150),
    (55.5, 150.4, 151, 200),
    (150.5, 250.4, 201, 300),
    (250.5, 500.4, 301, 500),
)

AQI_STATUS_BANDS = (
    (50, "Good"),
    (100, "Moderate"),
    (150, "Unhealthy (Sensitive)"),
    (200, "Unhealthy"),
    (300, "Very Unhealthy"),
)

RISK_THRESHOLDS = (
    (70, "low"),
    (55, "medium"),
    (40, "high"),
)

FLOOD_LEVELS = (
    (80, "critical"),
    (50, "high"),
    (25, "moderate"),
)

CONGESTION_COLORS = (
    (30, "#22c55e"),
    (60, "#eab308"),
    (85, "#f97316"),
)
CONGESTION_COLOR_MAX = "#ef4444"

HEATMAP_DISTRICTS = [
    "North",
    "South",
    "East",
    "West",
    "Central",
    "Industrial",
    "Residential",
    "Commercial",
]
HEATMAP_HOURS = [f"{hour:02d}:00" for hour in range(0, 24, 2)]

# Regional agriculture averages used when FAOSTAT is unreachable.
REGIONAL_AGRICULTURE = {
    "crop_yield_index": 78.0,
    "food_supply_level": 91.0,
    "price_index": 112.0,
    "water_usage": 260.0,
    "soil_health": 80.0,
}

METRIC_LABELS = {
    "traffic_congestion": "Traffic congestion (%)",
    "air_quality_index": "Air quality index",
    "energy_usage": "Energy usage (MW)",
    "noise_level": "Noise level (dB)",
    "public_transport_usage": "Public transport usage (%)",
    "disease_incidence": "Disease incidence (per 100k)",
    "hospital_capacity": "Hospital occupancy (%)",
    "emergency_load": "Emergency load (%)",
    "vaccination_rate": "Vaccination rate (%)",
    "avg_response_time": "Avg response time (min)",
    "crop_yield_index": "Crop yield index",
    "food_supply_level": "Food supply (% of demand)",
    "price_index": "Food price index",
    "water_usage": "Water usage (ML)",
    "soil_health": "Soil health",
}


__all__ = [
    "ROOT_DIR",
    "DEFAULT_POINT",
    "DEFAULT_REFRESH_SECONDS",
    "DEFAULT_SERIES_LENGTH",
    "OPENWEATHER_BASE_URL",
    "TOMTOM_FLOW_URL",
    "TOMTOM_INCIDENTS_URL",
    "TOMTOM_SEARCH_URL",
    "METEOSTAT_DAILY_URL",
    "METEOSTAT_HOST",
    "WHO_GHO_URL",
    "FAOSTAT_URL",
    "WHO_COUNTRY_CODE",
    "FAOSTAT_AREA_CODE",
    "INCIDENT_BBOX_OFFSET",
    "MIN_SEARCH_LENGTH",
    "SEARCH_LIMIT",
    "PM25_BREAKPOINTS",
    "AQI_STATUS_BANDS",
    "RISK_THRESHOLDS",
    "FLOOD_LEVELS",
    "CONGESTION_COLORS",
    "CONGESTION_COLOR_MAX",
    "HEATMAP_DISTRICTS",
    "HEATMAP_HOURS",
    "REGIONAL_AGRICULTURE",
    "METRIC_LABELS",
]
