"""
Immutable value records for the Berlin–Hamburg corridor.

Inputs (Station, Connection, Zone) are validated on construction, so a
record that exists is always within its declared bounds. Outputs are built
by the calculators and never mutated afterwards. Records reference each
other by id only.
"""
from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional, Tuple

from corridor.errors import ValidationError

CORRIDOR_LENGTH_KM = 300.0
MIN_CATEGORY = 1
MAX_CATEGORY = 7
STEPLESS_VALUES = ("yes", "no", "partial")
URGENCY_TIERS = ("immediate", "short_term", "long_term")
COST_TIERS = ("low", "medium", "high", "very_high")
RISK_LEVELS = ("low", "medium", "high")

FACILITY_FLAGS = (
    "has_wifi",
    "has_travel_center",
    "has_premium_lounge",
    "has_local_transit",
    "has_parking",
    "stepless_access",
    "has_mobility_service",
)


def _require(condition: bool, field_name: str, message: str) -> None:
    if not condition:
        raise ValidationError(field_name, message)


def _require_non_negative(value, field_name: str) -> None:
    _require(
        isinstance(value, (int, float)) and not isinstance(value, bool)
        and math.isfinite(value) and value >= 0,
        field_name,
        f"must be a finite number >= 0, got {value!r}",
    )


def _require_category(value, field_name: str = "category") -> None:
    _require(
        isinstance(value, int) and not isinstance(value, bool)
        and MIN_CATEGORY <= value <= MAX_CATEGORY,
        field_name,
        f"must be an integer in [{MIN_CATEGORY}, {MAX_CATEGORY}], got {value!r}",
    )


def _require_distance(value, field_name: str = "distance_km") -> None:
    _require_non_negative(value, field_name)
    _require(
        value <= CORRIDOR_LENGTH_KM,
        field_name,
        f"must be within the corridor (0..{CORRIDOR_LENGTH_KM:g} km), got {value}",
    )


class _Record:
    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StationFacilities(_Record):
    has_wifi: bool = False
    has_travel_center: bool = False
    has_premium_lounge: bool = False
    has_local_transit: bool = False
    has_parking: bool = False
    stepless_access: str = "no"
    has_mobility_service: bool = False

    def __post_init__(self):
        _require(
            self.stepless_access in STEPLESS_VALUES,
            "stepless_access",
            f"must be one of {STEPLESS_VALUES}, got {self.stepless_access!r}",
        )

    @classmethod
    def all_present(cls) -> "StationFacilities":
        return cls(True, True, True, True, True, "yes", True)

    @classmethod
    def none_present(cls) -> "StationFacilities":
        return cls()

    def present_count(self) -> int:
        count = sum(1 for name in FACILITY_FLAGS if name != "stepless_access" and getattr(self, name))
        return count + (1 if self.stepless_access == "yes" else 0)

    def missing_units(self) -> float:
        """Absent facilities; partial stepless access counts as half missing."""
        missing = sum(1 for name in FACILITY_FLAGS if name != "stepless_access" and not getattr(self, name))
        if self.stepless_access == "no":
            missing += 1
        elif self.stepless_access == "partial":
            missing += 0.5
        return float(missing)


@dataclass(frozen=True)
class LiveOperations(_Record):
    avg_delay_minutes: float = 0.0
    delayed_trains: int = 0
    cancelled_trains: int = 0
    platform_changes: int = 0
    total_departures: int = 0
    timestamp: str = ""

    def __post_init__(self):
        for name in ("avg_delay_minutes", "delayed_trains", "cancelled_trains",
                     "platform_changes", "total_departures"):
            _require_non_negative(getattr(self, name), name)


@dataclass(frozen=True)
class Station(_Record):
    id: int
    name: str
    distance_km: float
    category: int
    platforms: int
    facilities: StationFacilities = field(default_factory=StationFacilities)
    is_strategic_hub: bool = False
    live: Optional[LiveOperations] = None

    def __post_init__(self):
        _require(isinstance(self.id, int) and not isinstance(self.id, bool), "id",
                 f"must be an integer, got {self.id!r}")
        _require(bool(str(self.name).strip()), "name", "must not be empty")
        _require_distance(self.distance_km)
        _require_category(self.category)
        _require(isinstance(self.platforms, int) and not isinstance(self.platforms, bool)
                 and self.platforms >= 0, "platforms",
                 f"must be an integer >= 0, got {self.platforms!r}")

    def info(self) -> "StationInfo":
        return StationInfo(
            id=self.id,
            category=self.category,
            is_strategic_hub=self.is_strategic_hub,
            distance_km=self.distance_km,
        )


@dataclass(frozen=True)
class StationInfo(_Record):
    """What the station directory returns for an id."""

    id: int
    category: int = 4
    is_strategic_hub: bool = False
    distance_km: Optional[float] = None

    def __post_init__(self):
        _require_category(self.category)
        if self.distance_km is not None:
            _require_distance(self.distance_km)

    @classmethod
    def neutral(cls, station_id: int) -> "StationInfo":
        """Fallback attributes when a lookup fails: medium category, no hub."""
        return cls(id=station_id, category=4, is_strategic_hub=False, distance_km=None)


@dataclass(frozen=True)
class Connection(_Record):
    from_station: int
    to_station: int
    buffer_minutes: float
    train_type: str

    def __post_init__(self):
        _require_non_negative(self.buffer_minutes, "buffer_minutes")
        _require(bool(str(self.train_type).strip()), "train_type", "must not be empty")

    @property
    def key(self) -> str:
        return f"{self.from_station}->{self.to_station}"


@dataclass(frozen=True)
class ZoneStation(_Record):
    id: int
    name: str
    category: int
    distance_km: float
    is_strategic_hub: bool = False

    def __post_init__(self):
        _require_category(self.category, "stations.category")
        _require_distance(self.distance_km, "stations.distance_km")


@dataclass(frozen=True)
class Zone(_Record):
    municipality_id: str
    name: str
    population: int
    area_km2: float
    stations: Tuple[ZoneStation, ...] = ()

    def __post_init__(self):
        _require(bool(str(self.municipality_id).strip()), "municipality_id", "must not be empty")
        _require_non_negative(self.population, "population")
        _require_non_negative(self.area_km2, "area_km2")
        _require(self.area_km2 > 0, "area_km2", "must be > 0")
        object.__setattr__(self, "stations", tuple(self.stations))

    @property
    def density(self) -> float:
        return self.population / self.area_km2


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class UpgradePriorityMetrics(_Record):
    station_id: int
    traffic_volume: int
    capacity_constraints: int
    strategic_importance: int
    facility_deficits: int
    composite_score: int


@dataclass(frozen=True)
class ConnectionFragility(_Record):
    from_station: int
    to_station: int
    buffer_minutes: float
    train_type: str
    fragility_score: int
    cascade_risk: int
    alternative_routes: int
    impact_score: int
    recommendations: Tuple[str, ...] = ()

    @property
    def key(self) -> str:
        return f"{self.from_station}->{self.to_station}"

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["recommendations"] = list(self.recommendations)
        return data


@dataclass(frozen=True)
class PopulationTrafficRisk(_Record):
    municipality_id: str
    name: str
    corridor_segment: str
    population: int
    daily_traffic_volume: int
    disruption_impact_score: int
    risk_level: str


@dataclass(frozen=True)
class Recommendation(_Record):
    action: str
    urgency: str
    cost_tier: str
    implementation_time: str

    def __post_init__(self):
        _require(self.urgency in URGENCY_TIERS, "urgency", f"must be one of {URGENCY_TIERS}, got {self.urgency!r}")
        _require(self.cost_tier in COST_TIERS, "cost_tier", f"must be one of {COST_TIERS}, got {self.cost_tier!r}")


@dataclass(frozen=True)
class RankedEntry(_Record):
    entity_id: str
    score: int
    rank: int
    band: str
    entity: Any = None

    def to_dict(self) -> Dict[str, Any]:
        entity = self.entity.to_dict() if hasattr(self.entity, "to_dict") else self.entity
        return {
            "entity_id": self.entity_id,
            "score": self.score,
            "rank": self.rank,
            "band": self.band,
            "entity": entity,
        }


@dataclass(frozen=True)
class CorridorAggregate(_Record):
    count: int
    average_score: float
    band_counts: Dict[str, int]
    threshold: int
    above_threshold: int
    vulnerability_index: float
