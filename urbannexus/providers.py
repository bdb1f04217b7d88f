"""Ordered provider chains with a per-service circuit breaker.

A chain tries each live provider in turn and ends with a deterministic
fallback that never touches the network. A provider whose API answers
401/403 is disabled for the rest of the process so later refreshes skip
it without another round-trip.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, Mapping, Optional, Sequence, TypeVar

import requests

from .config import get_settings

log = logging.getLogger(__name__)

T = TypeVar("T")

SERVICES = ("openweather", "tomtom", "meteostat", "who", "faostat")
_AUTH_FAILURES = {401, 403}


class ProviderError(RuntimeError):
    """Raised when a live data provider cannot deliver a usable payload."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status

    @property
    def is_auth_failure(self) -> bool:
        return self.status in _AUTH_FAILURES


@dataclass
class _ServiceStatus:
    disabled: bool = False
    message: Optional[str] = None


@dataclass
class ServiceRegistry:
    """Tracks which upstream services are currently switched off."""

    force_simulation: bool = False
    _status: Dict[str, _ServiceStatus] = field(
        default_factory=lambda: {name: _ServiceStatus() for name in SERVICES}
    )

    def _entry(self, service: str) -> _ServiceStatus:
        return self._status.setdefault(service, _ServiceStatus())

    def is_disabled(self, service: str) -> bool:
        return self.force_simulation or self._entry(service).disabled

    def error_for(self, service: str) -> Optional[str]:
        return self._entry(service).message

    def disable(self, service: str, message: Optional[str] = None) -> None:
        entry = self._entry(service)
        if entry.disabled:
            return
        log.warning("Disabling %s after upstream error: %s", service, message)
        entry.disabled = True
        entry.message = message

    def reset(self) -> None:
        for entry in self._status.values():
            entry.disabled = False
            entry.message = None

    def snapshot(self) -> Dict[str, bool]:
        return {name: self.is_disabled(name) for name in self._status}


registry = ServiceRegistry(force_simulation=get_settings().force_simulation)


@dataclass(frozen=True)
class Provider(Generic[T]):
    name: str
    service: str
    fetch: Callable[..., T]


class ProviderChain(Generic[T]):
    """Try providers in order; fall back to a deterministic answer."""

    def __init__(
        self,
        name: str,
        providers: Sequence[Provider[T]],
        fallback: Callable[..., T],
        services: Optional[ServiceRegistry] = None,
    ) -> None:
        self.name = name
        self.providers = list(providers)
        self.fallback = fallback
        self._services = services

    @property
    def services(self) -> ServiceRegistry:
        return self._services or registry

    def run(self, *args: Any, **kwargs: Any) -> T:
        for provider in self.providers:
            if self.services.is_disabled(provider.service):
                log.debug("%s: skipping %s (service disabled)", self.name, provider.name)
                continue
            try:
                return provider.fetch(*args, **kwargs)
            except ProviderError as exc:
                if exc.is_auth_failure:
                    self.services.disable(provider.service, str(exc))
                log.warning("%s: %s failed: %s", self.name, provider.name, exc)
            except Exception as exc:
                log.warning("%s: %s failed: %s", self.name, provider.name, exc)
        log.info("%s: using deterministic fallback", self.name)
        return self.fallback(*args, **kwargs)


def get_json(
    url: str,
    params: Optional[Mapping[str, Any]] = None,
    headers: Optional[Mapping[str, str]] = None,
    timeout: Optional[float] = None,
) -> Any:
    """GET ``url`` and return the decoded JSON body, raising ProviderError on failure."""

    try:
        response = requests.get(
            url,
            params=params,
            headers=headers,
            timeout=timeout or get_settings().request_timeout,
        )
        response.raise_for_status()
    except requests.HTTPError as exc:
        status = exc.response.status_code if exc.response is not None else None
        raise ProviderError(f"{url} returned HTTP {status}", status=status) from exc
    except requests.RequestException as exc:
        raise ProviderError(f"{url} request failed: {exc}") from exc

    try:
        return response.json()
    except ValueError as exc:
        raise ProviderError(f"{url} returned invalid JSON") from exc


__all__ = [
    "SERVICES",
    "ProviderError",
    "ServiceRegistry",
    "registry",
    "Provider",
    "ProviderChain",
    "get_json",
]
