"""Data models shared by the simulator, scoring and live-data layers."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field, fields, replace
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Tuple


class ScenarioError(ValueError):
    """Raised when scenario parameters fall outside their slider ranges."""


# Slider ranges for each scenario field (inclusive).
SCENARIO_RANGES: Dict[str, Tuple[float, float]] = {
    "rainfall": (-50.0, 100.0),
    "temperature": (-10.0, 15.0),
    "population_density": (-20.0, 50.0),
    "food_supply_shock": (-50.0, 0.0),
    "energy_demand": (-30.0, 50.0),
}


@dataclass(frozen=True)
class ScenarioParams:
    """Hypothetical perturbation applied uniformly to every generator.

    ``rainfall``, ``population_density``, ``food_supply_shock`` and
    ``energy_demand`` are percentage changes; ``temperature`` is a change in
    degrees Celsius.
    """

    rainfall: float = 0.0
    temperature: float = 0.0
    population_density: float = 0.0
    food_supply_shock: float = 0.0
    energy_demand: float = 0.0

    def __post_init__(self) -> None:
        for name, (low, high) in SCENARIO_RANGES.items():
            value = getattr(self, name)
            try:
                number = float(value)
            except (TypeError, ValueError) as exc:
                raise ScenarioError(f"{name} must be numeric, got {value!r}") from exc
            if not math.isfinite(number) or not low <= number <= high:
                raise ScenarioError(f"{name}={value!r} outside [{low}, {high}]")
            object.__setattr__(self, name, number)

    def update(self, **patch: float) -> "ScenarioParams":
        """Return a new scenario merged from a partial patch."""

        unknown = set(patch) - set(SCENARIO_RANGES)
        if unknown:
            raise ScenarioError(f"Unknown scenario field(s): {', '.join(sorted(unknown))}")
        return replace(self, **patch)

    @property
    def is_baseline(self) -> bool:
        return all(getattr(self, name) == 0 for name in SCENARIO_RANGES)


DEFAULT_SCENARIO = ScenarioParams()


@dataclass(frozen=True)
class UrbanMetrics:
    traffic_congestion: float  # 0-100
    air_quality_index: float  # 0-500
    energy_usage: float  # MW
    noise_level: float  # dB
    public_transport_usage: float  # %


@dataclass(frozen=True)
class HealthMetrics:
    disease_incidence: float  # cases per 100k
    hospital_capacity: float  # % occupied
    emergency_load: float  # %
    vaccination_rate: float  # %
    avg_response_time: float  # minutes


@dataclass(frozen=True)
class AgricultureMetrics:
    crop_yield_index: float  # 0-100
    food_supply_level: float  # % of demand met
    price_index: float  # baseline = 100
    water_usage: float  # million litres
    soil_health: float  # 0-100


@dataclass(frozen=True)
class CityHealthIndex:
    overall: int
    urban: int
    health: int
    agriculture: int
    trend: str  # up | down | stable
    risk_level: str  # low | medium | high | critical


@dataclass(frozen=True)
class TimeSeriesData:
    timestamp: datetime
    urban: UrbanMetrics
    health: HealthMetrics
    agriculture: AgricultureMetrics


@dataclass(frozen=True)
class HeatmapCell:
    x: int
    y: int
    value: float
    label: str


@dataclass(frozen=True)
class WeatherSample:
    """One day of observed weather history."""

    dt: int
    temp: float
    humidity: float
    wind_speed: float
    description: str
    prcp: Optional[float] = None


@dataclass(frozen=True)
class ForecastEntry:
    dt: int
    temp: float
    description: str
    icon: str
    pop: float = 0.0  # probability of precipitation, 0-1


@dataclass(frozen=True)
class WeatherReading:
    """Current conditions plus air pollution for a coordinate."""

    aqi: int
    pm25: float
    pm10: float
    no2: float
    temp: Optional[float] = None
    feels_like: Optional[float] = None
    humidity: Optional[float] = None
    pressure: Optional[float] = None
    wind_speed: Optional[float] = None
    clouds: Optional[float] = None
    description: str = ""
    icon: str = "01d"
    sunrise: Optional[int] = None
    sunset: Optional[int] = None
    forecast: Tuple[ForecastEntry, ...] = ()
    source: str = "simulated"

    def with_forecast(self, forecast: List[ForecastEntry]) -> "WeatherReading":
        return replace(self, forecast=tuple(forecast))


@dataclass(frozen=True)
class FloodRisk:
    probability: int
    level: str
    message: str


@dataclass(frozen=True)
class AQIHistoryPoint:
    year: int
    aqi: float


@dataclass(frozen=True)
class AQIProjection:
    history: Tuple[AQIHistoryPoint, ...]
    year: int
    aqi: int
    analysis: str


@dataclass(frozen=True)
class TrafficReading:
    congestion: float
    speed: float
    source: str = "simulated"


@dataclass(frozen=True)
class TrafficPrediction:
    predicted_value: int
    trend: str
    confidence: float


@dataclass(frozen=True)
class TrafficHotspot:
    """A reported incident with its expected congestion through the day."""

    id: str
    name: str
    lat: float
    lon: float
    current_congestion: int
    peak_hours: Tuple[Tuple[int, int], ...]
    predicted_status: str
    incident_type: str = "Incident"
    delay: int = 0


@dataclass(frozen=True)
class LocationResult:
    name: str
    lat: float
    lon: float
    address: Optional[str] = None


@dataclass(frozen=True)
class CitySnapshot:
    urban: UrbanMetrics
    health: HealthMetrics
    agriculture: AgricultureMetrics
    city_health: CityHealthIndex
    heatmap: Tuple[HeatmapCell, ...]
    timestamp: datetime
    data_source: str = "simulated"
    weather: Optional[WeatherReading] = None
    traffic: Optional[TrafficReading] = None
    notes: Tuple[str, ...] = field(default_factory=tuple)

    def as_sample(self) -> TimeSeriesData:
        return TimeSeriesData(
            timestamp=self.timestamp,
            urban=self.urban,
            health=self.health,
            agriculture=self.agriculture,
        )


# Valid range for each metric field; ``None`` means unbounded on that side.
METRIC_BOUNDS: Dict[str, Tuple[Optional[float], Optional[float]]] = {
    "traffic_congestion": (0, 100),
    "air_quality_index": (0, 500),
    "energy_usage": (500, None),
    "noise_level": (45, 85),
    "public_transport_usage": (20, 60),
    "disease_incidence": (10, None),
    "hospital_capacity": (30, 100),
    "emergency_load": (20, 100),
    "vaccination_rate": (65, 92),
    "avg_response_time": (5, 15),
    "crop_yield_index": (20, 100),
    "food_supply_level": (50, 100),
    "price_index": (80, 200),
    "water_usage": (100, 300),
    "soil_health": (55, 90),
}


def bound_metric(name: str, value: float) -> float:
    low, high = METRIC_BOUNDS.get(name, (None, None))
    if low is not None:
        value = max(low, value)
    if high is not None:
        value = min(high, value)
    return float(value)


def metric_names(metrics_type: type) -> List[str]:
    return [item.name for item in fields(metrics_type)]


def to_flat_dict(metrics: object) -> Dict[str, float]:
    return dict(asdict(metrics))  # type: ignore[arg-type]


def coerce_number(value: Optional[object], fallback: Optional[float] = None) -> Optional[float]:
    try:
        if value is None:
            return fallback
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return fallback
    return number if math.isfinite(number) else fallback


def coerce_overrides(values: Mapping[str, object]) -> Dict[str, float]:
    """Drop missing or non-numeric entries from a live-data mapping."""

    cleaned: Dict[str, float] = {}
    for key, value in values.items():
        number = coerce_number(value)
        if number is not None:
            cleaned[key] = number
    return cleaned


__all__ = [
    "ScenarioError",
    "SCENARIO_RANGES",
    "ScenarioParams",
    "DEFAULT_SCENARIO",
    "UrbanMetrics",
    "HealthMetrics",
    "AgricultureMetrics",
    "CityHealthIndex",
    "TimeSeriesData",
    "HeatmapCell",
    "WeatherSample",
    "ForecastEntry",
    "WeatherReading",
    "FloodRisk",
    "AQIHistoryPoint",
    "AQIProjection",
    "TrafficReading",
    "TrafficPrediction",
    "TrafficHotspot",
    "LocationResult",
    "CitySnapshot",
    "METRIC_BOUNDS",
    "bound_metric",
    "metric_names",
    "to_flat_dict",
    "coerce_number",
    "coerce_overrides",
]
