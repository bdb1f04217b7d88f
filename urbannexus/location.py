"""Place-name search through TomTom geocoding."""

from __future__ import annotations

import logging
from typing import Any, List, Mapping
from urllib.parse import quote

import streamlit as st

from .config import get_settings
from .constants import MIN_SEARCH_LENGTH, SEARCH_LIMIT, TOMTOM_SEARCH_URL
from .models import LocationResult
from .providers import Provider, ProviderChain, ProviderError, get_json

log = logging.getLogger(__name__)


def parse_search(payload: Mapping[str, Any], limit: int = SEARCH_LIMIT) -> List[LocationResult]:
    """Map TomTom geocode results; entries without a position are dropped."""

    results = []
    for item in payload.get("results") or []:
        position = item.get("position") or {}
        address = (item.get("address") or {}).get("freeformAddress")
        try:
            lat, lon = float(position["lat"]), float(position["lon"])
        except (KeyError, TypeError, ValueError):
            continue
        name = (item.get("poi") or {}).get("name") or address
        if not name:
            continue
        results.append(LocationResult(name=name, lat=lat, lon=lon, address=address))
    return results[:limit]


def _search_from_proxy(query: str) -> List[LocationResult]:
    settings = get_settings()
    if not settings.backend_url:
        raise ProviderError("No backend proxy configured")
    return parse_search(get_json(f"{settings.backend_url}/search/{quote(query, safe='')}"))


def _search_direct(query: str) -> List[LocationResult]:
    key = get_settings().tomtom_api_key
    if not key:
        raise ProviderError("TOMTOM_API_KEY is not set")
    payload = get_json(
        TOMTOM_SEARCH_URL.format(query=quote(query, safe="")),
        params={"key": key, "limit": SEARCH_LIMIT, "typeahead": "true"},
    )
    return parse_search(payload)


def _no_results(query: str) -> List[LocationResult]:
    return []


SEARCH_CHAIN: ProviderChain[List[LocationResult]] = ProviderChain(
    "location-search",
    [
        Provider("proxy", "tomtom", _search_from_proxy),
        Provider("tomtom", "tomtom", _search_direct),
    ],
    _no_results,
)


@st.cache_data(show_spinner=False, ttl=24 * 3600)
def search_locations(query: str) -> List[LocationResult]:
    """Up to five matching places; short queries return nothing."""

    query = (query or "").strip()
    if len(query) < MIN_SEARCH_LENGTH:
        return []
    log.debug("Searching locations for %r", query)
    return SEARCH_CHAIN.run(query)


__all__ = [
    "parse_search",
    "SEARCH_CHAIN",
    "search_locations",
]
