"""FAOSTAT crop statistics mapped onto agriculture metrics."""

from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Optional

import streamlit as st

from .config import get_settings
from .constants import FAOSTAT_AREA_CODE, FAOSTAT_URL, REGIONAL_AGRICULTURE
from .providers import Provider, ProviderChain, ProviderError, get_json
from .scoring import round_half_up

YIELD_ELEMENT = 5419  # hg/ha
PRODUCTION_ELEMENT = 5510  # tonnes
WHEAT = 15
RICE = 27
REFERENCE_YIELD = 45_000.0  # hg/ha treated as a perfect 100
DEFAULT_YIELD = 35_000.0


def _find(rows: Iterable[Mapping[str, Any]], element: int, item: Optional[int] = None) -> Optional[Mapping[str, Any]]:
    for row in rows:
        if row.get("element_code") != element:
            continue
        if item is None or row.get("item_code") == item:
            return row
    return None


def map_faostat(rows: Iterable[Mapping[str, Any]]) -> Dict[str, float]:
    """Translate FAOSTAT rows (wheat/rice yield, production) into metric fields."""

    rows = list(rows)
    wheat = _find(rows, YIELD_ELEMENT, WHEAT)
    rice = _find(rows, YIELD_ELEMENT, RICE)
    source = wheat or rice
    yield_value = float(source["value"]) if source else DEFAULT_YIELD
    crop_yield_index = min(100.0, yield_value / REFERENCE_YIELD * 100)
    price_index = 108.0 if _find(rows, PRODUCTION_ELEMENT) else 100.0

    return {
        "crop_yield_index": float(round_half_up(crop_yield_index)),
        "food_supply_level": 94.0 if wheat else 88.0,
        "price_index": price_index,
        "water_usage": 285.0,
        "soil_health": 76.0,
    }


def _normalise(row: Mapping[str, Any]) -> Dict[str, Any]:
    # The public API labels columns "Element Code"; the proxy uses element_code.
    normalised = {str(key).strip().lower().replace(" ", "_"): value for key, value in row.items()}
    for key in ("element_code", "item_code"):
        try:
            normalised[key] = int(normalised[key])
        except (KeyError, TypeError, ValueError):
            continue
    return normalised


def _rows(payload: Mapping[str, Any]) -> Dict[str, float]:
    data = payload.get("data")
    if not isinstance(data, list):
        raise ProviderError("FAOSTAT response has no data rows")
    return map_faostat(_normalise(row) for row in data)


def _from_proxy() -> Dict[str, float]:
    settings = get_settings()
    if not settings.backend_url:
        raise ProviderError("No backend proxy configured")
    return _rows(get_json(f"{settings.backend_url}/agri/india"))


def _direct() -> Dict[str, float]:
    payload = get_json(
        FAOSTAT_URL,
        params={
            "area": FAOSTAT_AREA_CODE,
            "element": f"{YIELD_ELEMENT},{PRODUCTION_ELEMENT}",
            "item": f"{WHEAT},{RICE}",
            "show_codes": "true",
            "output_type": "objects",
        },
    )
    return _rows(payload)


def _regional_averages() -> Dict[str, float]:
    return dict(REGIONAL_AGRICULTURE)


AGRICULTURE_CHAIN: ProviderChain[Dict[str, float]] = ProviderChain(
    "faostat",
    [
        Provider("proxy", "faostat", _from_proxy),
        Provider("faostat", "faostat", _direct),
    ],
    _regional_averages,
)


@st.cache_data(show_spinner=False, ttl=24 * 3600)
def fetch_fao_agriculture() -> Dict[str, float]:
    return AGRICULTURE_CHAIN.run()


__all__ = ["map_faostat", "AGRICULTURE_CHAIN", "fetch_fao_agriculture"]
