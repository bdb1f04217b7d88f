"""WHO Global Health Observatory indicators mapped onto health metrics."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

import streamlit as st

from .config import get_settings
from .constants import WHO_COUNTRY_CODE, WHO_GHO_URL
from .models import coerce_number
from .providers import Provider, ProviderChain, ProviderError, get_json
from .scoring import clamp_value, round_half_up

INDICATORS = {
    "doctors": "HWF_0001",  # medical doctors per 10k population
    "vaccination": "mslv",  # measles immunisation coverage (%)
    "mortality": "NCDMORT3070",  # premature NCD mortality (%)
}

# National reference values used when an individual indicator is missing.
DEFAULT_VACCINATION = 89.0
DEFAULT_DOCTOR_DENSITY = 9.3
DEFAULT_MORTALITY = 23.3
STATIC_EMERGENCY_LOAD = 58.0
STATIC_RESPONSE_TIME = 12.0


def _indicator_params() -> Dict[str, Any]:
    return {
        "$filter": f"SpatialDim eq '{WHO_COUNTRY_CODE}'",
        "$orderby": "TimeDim desc",
        "$top": 1,
    }


def _latest_value(payload: Mapping[str, Any]) -> Optional[float]:
    values = payload.get("value") or []
    if not values:
        return None
    return coerce_number(values[0].get("NumericValue"))


def map_indicators(
    doctors: Optional[float], vaccination: Optional[float], mortality: Optional[float]
) -> Dict[str, float]:
    """Translate WHO indicators into the dashboard's health metric fields."""

    vaccination = DEFAULT_VACCINATION if vaccination is None else vaccination
    doctors = DEFAULT_DOCTOR_DENSITY if doctors is None else doctors
    mortality = DEFAULT_MORTALITY if mortality is None else mortality

    return {
        "vaccination_rate": float(round_half_up(vaccination)),
        "hospital_capacity": float(round_half_up(clamp_value(100 - doctors * 2, 40, 100))),
        "disease_incidence": float(round_half_up(mortality * 5)),
        "emergency_load": STATIC_EMERGENCY_LOAD,
        "avg_response_time": STATIC_RESPONSE_TIME,
    }


def _fetch_indicators(base_url: str) -> Dict[str, float]:
    found = {
        name: _latest_value(get_json(f"{base_url}/{code}", params=_indicator_params()))
        for name, code in INDICATORS.items()
    }
    if all(value is None for value in found.values()):
        raise ProviderError("WHO GHO returned no indicator values")
    return map_indicators(found["doctors"], found["vaccination"], found["mortality"])


def _from_proxy(lat: float, lon: float) -> Dict[str, float]:
    settings = get_settings()
    if not settings.backend_url:
        raise ProviderError("No backend proxy configured")
    return _fetch_indicators(f"{settings.backend_url}/health/who")


def _direct(lat: float, lon: float) -> Dict[str, float]:
    return _fetch_indicators(WHO_GHO_URL)


def _no_overrides(lat: float, lon: float) -> Dict[str, float]:
    # The snapshot keeps its own clock-pinned simulated baseline.
    return {}


HEALTH_CHAIN: ProviderChain[Dict[str, float]] = ProviderChain(
    "who-health",
    [
        Provider("proxy", "who", _from_proxy),
        Provider("who-gho", "who", _direct),
    ],
    _no_overrides,
)


@st.cache_data(show_spinner=False, ttl=24 * 3600)
def fetch_who_health(lat: float, lon: float) -> Dict[str, float]:
    """Health metric overrides from WHO data, or an empty mapping when WHO is unreachable."""

    return HEALTH_CHAIN.run(lat, lon)


__all__ = ["INDICATORS", "map_indicators", "HEALTH_CHAIN", "fetch_who_health"]
