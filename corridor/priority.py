"""
Station upgrade priority.

    infrastructure = 0.5·traffic + 0.5·capacity
    timetable      = 0.7·strategic + 0.3·facility
    population     = 0.5·strategic + 0.5·traffic
    composite      = w_inf·infrastructure + w_tt·timetable + w_pop·population

Every step is a convex combination of [0, 100] sub-scores, so the composite
stays in [0, 100] for any valid weight vector.
"""
import logging
from typing import Dict, Iterable, Optional

from corridor.metrics import (
    capacity_constraint_score,
    facility_deficit_score,
    strategic_importance_score,
    traffic_volume_score,
)
from corridor.models import Station, UpgradePriorityMetrics
from corridor.utils import bounded_score, ensure_score
from corridor.weights import DEFAULT_CONFIGURATION, PriorityConfiguration, require_valid

logger = logging.getLogger(__name__)

INFRASTRUCTURE_MIX = {"traffic": 0.5, "capacity": 0.5}
TIMETABLE_MIX = {"strategic": 0.7, "facility": 0.3}
POPULATION_MIX = {"strategic": 0.5, "traffic": 0.5}


def composite_score(traffic: int, capacity: int, strategic: int, facility: int,
                    config: PriorityConfiguration) -> int:
    values = {"traffic": traffic, "capacity": capacity, "strategic": strategic, "facility": facility}
    infrastructure = sum(values[k] * w for k, w in INFRASTRUCTURE_MIX.items())
    timetable = sum(values[k] * w for k, w in TIMETABLE_MIX.items())
    population = sum(values[k] * w for k, w in POPULATION_MIX.items())
    return bounded_score(
        config.infrastructure * infrastructure
        + config.timetable * timetable
        + config.population * population
    )


def calculate_station_priority(station: Station,
                               config: PriorityConfiguration = DEFAULT_CONFIGURATION) -> UpgradePriorityMetrics:
    require_valid(config)

    traffic = ensure_score(traffic_volume_score(station), "traffic_volume")
    capacity = ensure_score(capacity_constraint_score(station.platforms, station.category), "capacity_constraints")
    strategic = ensure_score(
        strategic_importance_score(station.category, station.distance_km, station.is_strategic_hub),
        "strategic_importance",
    )
    facility = ensure_score(facility_deficit_score(station.facilities, station.category), "facility_deficits")
    composite = ensure_score(composite_score(traffic, capacity, strategic, facility, config), "composite_score")

    logger.debug(
        "Priority %s (%s): traffic=%d capacity=%d strategic=%d facility=%d composite=%d",
        station.id, station.name, traffic, capacity, strategic, facility, composite,
    )
    return UpgradePriorityMetrics(
        station_id=station.id,
        traffic_volume=traffic,
        capacity_constraints=capacity,
        strategic_importance=strategic,
        facility_deficits=facility,
        composite_score=composite,
    )


class StationPriorityCalculator:
    """Binds a weight configuration to :func:`calculate_station_priority`."""

    def __init__(self, config: Optional[PriorityConfiguration] = None):
        self.config = require_valid(config or DEFAULT_CONFIGURATION)

    def calculate(self, station: Station) -> UpgradePriorityMetrics:
        return calculate_station_priority(station, self.config)

    def calculate_all(self, stations: Iterable[Station]) -> Dict[int, UpgradePriorityMetrics]:
        return {station.id: self.calculate(station) for station in stations}
