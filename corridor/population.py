"""
Population and traffic disruption risk per corridor zone (municipality).

    impact = 0.4·density + 0.3·traffic + 0.2·strategic + 0.1·alternative_access

The risk level is always derived from the rounded impact score with the
70 / 40 bands, never assigned independently.
"""
import logging
import math
from typing import Dict, Iterable, List, Optional, Tuple

from corridor.bands import ZONE_PRIORITY_LEVELS, band_for, risk_level_for
from corridor.metrics import (
    HUB_DAILY_PASSENGERS,
    REGIONAL_DAILY_PASSENGERS,
    alternative_access_score,
    estimated_daily_traffic,
    population_density_score,
    traffic_volume_risk_score,
    zone_strategic_score,
)
from corridor.models import PopulationTrafficRisk, Zone
from corridor.utils import bounded_score, ensure_score

logger = logging.getLogger(__name__)

RISK_WEIGHTS = {
    "population_density": 0.4,
    "traffic_volume": 0.3,
    "strategic_importance": 0.2,
    "alternative_access": 0.1,
}

CRITICAL_ZONE_SCORE = 60


def corridor_segment(zone: Zone) -> str:
    if not zone.stations:
        return "unknown"
    distances = [s.distance_km for s in zone.stations]
    return f"km_{math.floor(min(distances))}-{math.ceil(max(distances))}"


def classify_zone(zone: Zone) -> PopulationTrafficRisk:
    daily_traffic = estimated_daily_traffic(zone.stations)
    components = {
        "population_density": population_density_score(zone.density, zone.population),
        "traffic_volume": traffic_volume_risk_score(daily_traffic),
        "strategic_importance": zone_strategic_score(zone.stations),
        "alternative_access": alternative_access_score(zone.name),
    }
    score = ensure_score(
        bounded_score(sum(components[k] * w for k, w in RISK_WEIGHTS.items())),
        "disruption_impact_score",
    )
    logger.debug("Zone %s (%s): %s -> %d", zone.municipality_id, zone.name, components, score)

    return PopulationTrafficRisk(
        municipality_id=zone.municipality_id,
        name=zone.name,
        corridor_segment=corridor_segment(zone),
        population=int(zone.population),
        daily_traffic_volume=daily_traffic,
        disruption_impact_score=score,
        risk_level=risk_level_for(score),
    )


def classify_zones(zones: Iterable[Zone]) -> List[PopulationTrafficRisk]:
    return [classify_zone(zone) for zone in zones]


def key_risk_factors(risk: PopulationTrafficRisk) -> List[str]:
    factors = []
    if risk.population > 500000:
        factors.append("Very high population concentration")
    elif risk.population > 100000:
        factors.append("High population concentration")
    if risk.daily_traffic_volume > HUB_DAILY_PASSENGERS:
        factors.append("Major transportation hub")
    elif risk.daily_traffic_volume > REGIONAL_DAILY_PASSENGERS:
        factors.append("High passenger traffic volume")
    if risk.risk_level == "high":
        factors.append("Limited alternative transportation options")
    if risk.disruption_impact_score >= 80:
        factors.append("Critical corridor position")
    return factors


def zone_label(risk: PopulationTrafficRisk) -> str:
    return f"{risk.name} ({risk.corridor_segment})"


def mitigation_actions(risks: Iterable[PopulationTrafficRisk],
                       critical_score: Optional[int] = None) -> List[Dict[str, object]]:
    """Corridor-wide actions grouped over the zones at or above ``critical_score``."""
    threshold = CRITICAL_ZONE_SCORE if critical_score is None else critical_score
    critical = sorted(
        (r for r in risks if r.disruption_impact_score >= threshold),
        key=lambda r: r.disruption_impact_score,
        reverse=True,
    )
    actions = []

    immediate = [zone_label(r) for r in critical if r.disruption_impact_score >= 80]
    if immediate:
        actions.append({
            "action": "Implement enhanced real-time passenger information systems",
            "target_zones": immediate,
            "expected_impact": "Reduce passenger confusion and improve disruption management",
            "urgency": "immediate",
        })

    busy = [zone_label(r) for r in critical if r.daily_traffic_volume > 20000]
    if busy:
        actions.append({
            "action": "Develop alternative transportation partnerships (bus, taxi)",
            "target_zones": busy,
            "expected_impact": "Provide backup options during service disruptions",
            "urgency": "short_term",
        })

    populous = [zone_label(r) for r in critical if r.population > 100000]
    if populous:
        actions.append({
            "action": "Infrastructure resilience improvements",
            "target_zones": populous,
            "expected_impact": "Fundamental improvement in service reliability",
            "urgency": "long_term",
        })

    return actions


# ---------------------------------------------------------------------------
# Zone prioritisation and corridor status
# ---------------------------------------------------------------------------

ZONE_PRIORITY = {"critical": 1, "high": 2, "elevated": 3, "moderate": 4, "low": 5}

MITIGATION_STRATEGIES = {
    "critical": (
        "Immediate deployment of emergency response teams",
        "Real-time passenger information systems",
        "Alternative transportation coordination",
        "Enhanced delay management protocols",
    ),
    "high": (
        "Proactive communication systems",
        "Backup service arrangements",
        "Staff reinforcement during disruptions",
        "Passenger flow management",
    ),
    "elevated": (
        "Improved timetable resilience",
        "Better connection coordination",
        "Enhanced monitoring systems",
    ),
    "moderate": (
        "Regular service monitoring",
        "Preventive maintenance scheduling",
    ),
    "low": (
        "Standard operating procedures",
        "Routine performance monitoring",
    ),
}

ZONE_STATUS = {"critical": "disrupted", "high": "elevated"}

WATCHED_HIGH_ZONES = 2


def zone_priority(score: int) -> Tuple[str, int]:
    """Five-level priority label and number (1 is most urgent) for an impact score."""
    level = band_for(score, ZONE_PRIORITY_LEVELS)
    return level, ZONE_PRIORITY[level]


def mitigation_strategies(level: str) -> List[str]:
    return list(MITIGATION_STRATEGIES[level])


def zone_status(level: str) -> str:
    return ZONE_STATUS.get(level, "normal")


def active_alerts(level: str, score: int) -> List[str]:
    alerts = []
    if level == "critical":
        alerts.append("CRITICAL: High disruption risk - Enhanced monitoring active")
    elif level == "high":
        alerts.append("HIGH RISK: Increased vulnerability to service disruptions")
    if score >= 90:
        alerts.append("Maximum impact zone - Priority response required")
    elif score >= 80:
        alerts.append("High impact potential - Contingency plans activated")
    return alerts


def overall_risk_level(levels: Iterable[str]) -> str:
    levels = list(levels)
    critical = levels.count("critical")
    high = levels.count("high")
    if critical:
        return "critical"
    if high > WATCHED_HIGH_ZONES:
        return "high"
    if high:
        return "moderate"
    return "low"


def corridor_risk_status(risks: Iterable[PopulationTrafficRisk]) -> Dict[str, object]:
    """Per-zone operational status plus the corridor-wide risk level.

    Zones are listed by priority number, most urgent first; ties keep input order.
    """
    zones = []
    for risk in risks:
        level, priority = zone_priority(risk.disruption_impact_score)
        zones.append({
            "municipality_id": risk.municipality_id,
            "zone": zone_label(risk),
            "priority_level": level,
            "priority": priority,
            "disruption_impact_score": risk.disruption_impact_score,
            "status": zone_status(level),
            "alerts": active_alerts(level, risk.disruption_impact_score),
            "recommended_actions": mitigation_strategies(level)[:3],
        })
    zones.sort(key=lambda z: z["priority"])

    levels = [z["priority_level"] for z in zones]
    return {
        "zones": zones,
        "overall_risk_level": overall_risk_level(levels),
        "active_disruptions": levels.count("critical"),
        "zones_under_watch": levels.count("high"),
    }
