"""Runtime configuration read from the environment (and an optional .env)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

from .constants import ROOT_DIR

_TRUTHY = {"1", "true", "yes", "on"}


def _env(name: str) -> Optional[str]:
    value = (os.getenv(name) or "").strip()
    return value or None


def _env_float(name: str, fallback: float) -> float:
    try:
        return float(os.getenv(name, fallback))
    except (TypeError, ValueError):
        return fallback


@dataclass(frozen=True)
class Settings:
    openweather_api_key: Optional[str] = None
    tomtom_api_key: Optional[str] = None
    meteostat_api_key: Optional[str] = None
    backend_url: Optional[str] = None  # proxy that holds the provider keys
    force_simulation: bool = False
    request_timeout: float = 10.0

    @classmethod
    def from_env(cls) -> "Settings":
        backend = _env("URBANNEXUS_BACKEND_URL")
        return cls(
            openweather_api_key=_env("OPENWEATHER_API_KEY"),
            tomtom_api_key=_env("TOMTOM_API_KEY"),
            meteostat_api_key=_env("METEOSTAT_API_KEY"),
            backend_url=backend.rstrip("/") if backend else None,
            force_simulation=(os.getenv("URBANNEXUS_FORCE_SIMULATION", "").strip().lower() in _TRUTHY),
            request_timeout=_env_float("URBANNEXUS_REQUEST_TIMEOUT", 10.0),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings once per process."""

    load_dotenv(ROOT_DIR / ".env")
    return Settings.from_env()


__all__ = ["Settings", "get_settings"]
