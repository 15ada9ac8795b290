"""
Metric primitives
=================
Deterministic functions mapping one narrow attribute set to an integer
sub-score in [0, 100].

Station primitives:
    traffic_volume_score        departures/day (live) or category estimate
    capacity_constraint_score   platforms vs. expected platforms for category
    strategic_importance_score  category + mid-corridor bonus + hub bonus
    facility_deficit_score      absent facilities scaled by category tier

Connection primitives:
    buffer_fragility_score      banded on buffer minutes
    train_importance_weight     ICE/IC/EC > RE/RB > other (factor, not a score)
    passenger_volume_score      endpoint categories + hub bonus
    connection_strategic_score  corridor position + few alternatives bonus

Zone primitives:
    population_density_score    density bands + log10 population bonus
    traffic_volume_risk_score   banded on estimated daily passengers
    zone_strategic_score        mean per-station importance
    alternative_access_score    coarse municipality-name heuristic
"""
import math
from typing import Iterable, Optional

from corridor.bands import (
    BUFFER_FRAGILITY,
    DAILY_TRAFFIC_SCORES,
    DENSITY_SCORES,
    PLATFORM_RATIO_SCORES,
    band_for,
)
from corridor.models import FACILITY_FLAGS, Station, StationFacilities, ZoneStation
from corridor.utils import bounded_score

EXPECTED_PLATFORMS = {1: 12, 2: 8, 3: 6, 4: 4, 5: 2, 6: 2}
DEFAULT_EXPECTED_PLATFORMS = 2

CATEGORY_IMPORTANCE = {1: 100, 2: 80, 3: 60, 4: 40, 5: 20, 6: 10, 7: 5}

# score used when no live departures snapshot is available
CATEGORY_TRAFFIC_ESTIMATE = {1: 90, 2: 75, 3: 55, 4: 40, 5: 25, 6: 15, 7: 10}

MIN_DAILY_DEPARTURES = 10
MAX_DAILY_DEPARTURES = 500

MID_CORRIDOR_KM = (50.0, 250.0)
STRATEGIC_POSITION_BONUS = 20
STRATEGIC_HUB_BONUS = 20

TRAIN_IMPORTANCE = {
    "ICE": 1.0, "IC": 1.0, "EC": 1.0,
    "RE": 0.7, "RB": 0.7, "IRE": 0.7,
}
DEFAULT_TRAIN_IMPORTANCE = 0.4

# passengers/day per station
HUB_DAILY_PASSENGERS = 50000
REGIONAL_DAILY_PASSENGERS = 15000
MEDIUM_DAILY_PASSENGERS = 5000
SMALL_DAILY_PASSENGERS = 1500

METROPOLITAN_NAMES = ("berlin", "hamburg")
CITY_MARKERS = ("stadt", "city")


def _is_mid_corridor(distance_km: Optional[float]) -> bool:
    if distance_km is None:
        return False
    return MID_CORRIDOR_KM[0] < distance_km < MID_CORRIDOR_KM[1]


# ---------------------------------------------------------------------------
# Station primitives
# ---------------------------------------------------------------------------

def traffic_volume_score(station: Station) -> int:
    if station.live is not None:
        departures = station.live.total_departures
        span = MAX_DAILY_DEPARTURES - MIN_DAILY_DEPARTURES
        return bounded_score((departures - MIN_DAILY_DEPARTURES) / span * 100)
    return CATEGORY_TRAFFIC_ESTIMATE.get(station.category, CATEGORY_TRAFFIC_ESTIMATE[7])


def expected_platforms(category: int) -> int:
    return EXPECTED_PLATFORMS.get(category, DEFAULT_EXPECTED_PLATFORMS)


def capacity_constraint_score(platforms: int, category: int) -> int:
    """Step function: the larger the platform deficit, the higher the score."""
    ratio = platforms / expected_platforms(category)
    return band_for(ratio, PLATFORM_RATIO_SCORES)


def strategic_importance_score(category: int, distance_km: Optional[float], is_hub: bool) -> int:
    score = 0.6 * CATEGORY_IMPORTANCE.get(category, 0)
    if _is_mid_corridor(distance_km):
        score += STRATEGIC_POSITION_BONUS
    if is_hub:
        score += STRATEGIC_HUB_BONUS
    return bounded_score(score)


def category_tier_factor(category: int) -> float:
    if category <= 2:
        return 1.0
    if category <= 4:
        return 0.85
    return 0.7


def facility_deficit_score(facilities: StationFacilities, category: int) -> int:
    """Share of the seven facilities that are missing, scaled by category tier.

    Major stations are expected to offer everything, so the same gap weighs
    more for them. Each fully missing facility adds at least 10 points;
    partial stepless access counts as half a missing facility.
    """
    share = facilities.missing_units() / len(FACILITY_FLAGS)
    return bounded_score(100 * share * category_tier_factor(category))


# ---------------------------------------------------------------------------
# Connection primitives
# ---------------------------------------------------------------------------

def buffer_fragility_score(buffer_minutes: float) -> int:
    return band_for(buffer_minutes, BUFFER_FRAGILITY)


def train_importance_weight(train_type: str) -> float:
    key = str(train_type).strip().upper()
    return TRAIN_IMPORTANCE.get(key, DEFAULT_TRAIN_IMPORTANCE)


def passenger_volume_score(category_a: int, category_b: int, any_hub: bool) -> int:
    avg_category = (category_a + category_b) / 2
    score = max(0.0, 100 - (avg_category - 1) * 15)
    if any_hub:
        score += 20
    return bounded_score(score)


def connection_strategic_score(distance_a: Optional[float], distance_b: Optional[float],
                               alternative_routes: int) -> int:
    if distance_a is None or distance_b is None:
        distance_score = 50
    else:
        avg = (distance_a + distance_b) / 2
        if 50 < avg < 200:
            distance_score = 80
        elif avg <= 50 or avg >= 250:
            distance_score = 90
        else:
            distance_score = 50
    return bounded_score(distance_score + max(0, (5 - alternative_routes) * 10))


# ---------------------------------------------------------------------------
# Zone primitives
# ---------------------------------------------------------------------------

def population_density_score(density: float, population: float) -> int:
    score = band_for(density, DENSITY_SCORES)
    if population > 0:
        score += min(20.0, math.log10(population) * 5)
    return bounded_score(score)


def estimated_station_traffic(category: int, is_hub: bool) -> int:
    if is_hub:
        return HUB_DAILY_PASSENGERS
    if category <= 2:
        return REGIONAL_DAILY_PASSENGERS
    if category <= 4:
        return MEDIUM_DAILY_PASSENGERS
    return SMALL_DAILY_PASSENGERS


def estimated_daily_traffic(stations: Iterable[ZoneStation]) -> int:
    return sum(estimated_station_traffic(s.category, s.is_strategic_hub) for s in stations)


def traffic_volume_risk_score(daily_volume: float) -> int:
    return band_for(daily_volume, DAILY_TRAFFIC_SCORES)


def zone_strategic_score(stations) -> int:
    stations = list(stations)
    if not stations:
        return 0
    total = 0
    for station in stations:
        if station.is_strategic_hub:
            total += 40
        total += max(0, (8 - station.category) * 10)
        if _is_mid_corridor(station.distance_km):
            total += 10
    return bounded_score(total / len(stations))


def alternative_access_score(municipality_name: str) -> int:
    """Higher score means fewer alternatives to rail, hence higher risk."""
    name = str(municipality_name).lower()
    if any(city in name for city in METROPOLITAN_NAMES):
        return 20
    if any(marker in name for marker in CITY_MARKERS):
        return 40
    return 70
