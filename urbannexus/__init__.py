"""Support modules for the UrbanNexus Streamlit dashboard."""

from . import (  # noqa: F401
    agriculture,
    airquality,
    constants,
    dashboard,
    flood,
    health,
    location,
    models,
    prediction,
    providers,
    scoring,
    simulator,
    traffic,
    weather,
)

__all__ = [
    "agriculture",
    "airquality",
    "constants",
    "dashboard",
    "flood",
    "health",
    "location",
    "models",
    "prediction",
    "providers",
    "scoring",
    "simulator",
    "traffic",
    "weather",
]
