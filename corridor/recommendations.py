"""
Recommendation generator.

Maps sub-scores to ordered action items. Each item carries an urgency tier,
a cost tier and an implementation time. Output is sorted immediate, then
short_term, then long_term (stable within a tier) and is never empty.
"""
from typing import Dict, List, Optional, Sequence, Tuple

from corridor.bands import COST_LABELS, IMPACT_LABELS, TIER_BANDS, TIMELINES, band_for
from corridor.metrics import REGIONAL_DAILY_PASSENGERS, expected_platforms
from corridor.models import (
    PopulationTrafficRisk,
    Recommendation,
    Station,
    UpgradePriorityMetrics,
)

IMMEDIATE = "immediate"
SHORT_TERM = "short_term"
LONG_TERM = "long_term"
URGENCY_ORDER = (IMMEDIATE, SHORT_TERM, LONG_TERM)

ENDPOINT_KM = 289
MID_CORRIDOR_HUB_KM = (140, 150)


def _ordered(items: List[Recommendation], default: Recommendation) -> Tuple[Recommendation, ...]:
    if not items:
        items = [default]
    return tuple(sorted(items, key=lambda r: URGENCY_ORDER.index(r.urgency)))


def urgent_actions(recommendations: Sequence[Recommendation]) -> List[str]:
    return [r.action for r in recommendations if r.urgency == IMMEDIATE]


# ---------------------------------------------------------------------------
# Stations
# ---------------------------------------------------------------------------

STATION_DEFAULT = Recommendation(
    action="Monitor station performance and reassess in 6 months",
    urgency=LONG_TERM,
    cost_tier="low",
    implementation_time="6 months",
)


def station_recommendations(station: Station, metrics: UpgradePriorityMetrics) -> Tuple[Recommendation, ...]:
    items: List[Recommendation] = []
    facilities = station.facilities
    expected = expected_platforms(station.category)
    missing_platforms = max(0, expected - station.platforms)

    if metrics.composite_score >= 90:
        items.append(Recommendation(
            "Launch critical upgrade programme for this station",
            IMMEDIATE, estimate_implementation_cost(station, metrics), "0-6 months",
        ))

    # platform capacity
    if metrics.capacity_constraints >= 75:
        if missing_platforms:
            items.append(Recommendation(
                f"Urgent platform addition: add {missing_platforms} platform(s) to meet capacity demands",
                IMMEDIATE, "high", "within 12 months",
            ))
        else:
            items.append(Recommendation(
                "Urgent platform addition: implement platform extension project",
                IMMEDIATE, "high", "within 12 months",
            ))
        items.append(Recommendation(
            "Conduct detailed capacity analysis and passenger flow study",
            SHORT_TERM, "low", "3-6 months",
        ))
    elif metrics.capacity_constraints >= 50:
        items.append(Recommendation(
            "Plan platform capacity improvements", SHORT_TERM, "medium", "18-24 months",
        ))
        if missing_platforms:
            items.append(Recommendation(
                "Consider platform lengthening for longer trains", LONG_TERM, "medium", "2-3 years",
            ))
    elif metrics.capacity_constraints >= 25:
        items.append(Recommendation(
            "Monitor platform utilization and plan future capacity increases",
            LONG_TERM, "low", "ongoing",
        ))

    # accessibility
    if facilities.stepless_access == "no":
        items.append(Recommendation(
            "Priority accessibility installation: elevators/ramps for barrier-free access (legal requirement)",
            IMMEDIATE, "high", "6-12 months",
        ))
    elif facilities.stepless_access == "partial":
        items.append(Recommendation(
            "Complete barrier-free access improvements throughout the station",
            SHORT_TERM, "medium", "6-18 months",
        ))

    # passenger facilities
    if metrics.facility_deficits >= 60:
        if not facilities.has_wifi and station.category <= 3:
            items.append(Recommendation(
                "Install free WiFi infrastructure for passenger convenience",
                SHORT_TERM, "low", "3-6 months",
            ))
        if not facilities.has_travel_center and station.category <= 2:
            items.append(Recommendation(
                "Establish or upgrade travel center for improved customer service",
                SHORT_TERM, "medium", "6-12 months",
            ))
    if metrics.facility_deficits >= 30:
        if not facilities.has_local_transit:
            items.append(Recommendation(
                "Coordinate with local authorities to improve public transport connections",
                LONG_TERM, "low", "1-2 years",
            ))
        if not facilities.has_parking and station.category <= 4:
            items.append(Recommendation(
                "Develop Park & Ride facilities to increase accessibility",
                LONG_TERM, "medium", "1-3 years",
            ))

    # strategic position
    if metrics.strategic_importance >= 80 and metrics.traffic_volume >= 70:
        if station.is_strategic_hub:
            items.append(Recommendation(
                "Implement digital passenger information systems",
                SHORT_TERM, "medium", "6-12 months",
            ))
            items.append(Recommendation(
                "Prioritize as strategic corridor hub - allocate premium upgrade budget",
                LONG_TERM, "very_high", "2-5 years",
            ))
        if station.distance_km == 0 or station.distance_km >= ENDPOINT_KM:
            items.append(Recommendation(
                "Endpoint station: focus on capacity and passenger flow optimization",
                LONG_TERM, "high", "2-5 years",
            ))
        elif MID_CORRIDOR_HUB_KM[0] <= station.distance_km <= MID_CORRIDOR_HUB_KM[1]:
            items.append(Recommendation(
                "Mid-corridor position: optimize for connection reliability and transfer efficiency",
                LONG_TERM, "high", "2-5 years",
            ))

    return _ordered(items, STATION_DEFAULT)


def estimate_implementation_cost(station: Station, metrics: UpgradePriorityMetrics) -> str:
    score = 0.0
    if metrics.capacity_constraints >= 75:
        score += 40
    elif metrics.capacity_constraints >= 50:
        score += 25
    if metrics.facility_deficits >= 60:
        score += 30
    elif metrics.facility_deficits >= 30:
        score += 15
    if station.category <= 2:
        score *= 1.5
    return band_for(score, TIER_BANDS)


def estimate_expected_impact(station: Station, metrics: UpgradePriorityMetrics) -> str:
    score = 0.0
    if metrics.traffic_volume >= 80:
        score += 30
    elif metrics.traffic_volume >= 60:
        score += 20
    if metrics.strategic_importance >= 80:
        score += 25
    elif metrics.strategic_importance >= 60:
        score += 15
    if metrics.capacity_constraints >= 75 or metrics.facility_deficits >= 75:
        score += 30
    elif metrics.capacity_constraints >= 50 or metrics.facility_deficits >= 50:
        score += 20
    if station.is_strategic_hub:
        score *= 1.3
    return band_for(score, TIER_BANDS)


def implementation_timeline(composite: int, cost_tier: str) -> str:
    standard, expensive = band_for(composite, TIMELINES)
    return expensive if cost_tier == "very_high" else standard


def cost_label(cost_tier: str) -> str:
    return COST_LABELS[cost_tier]


def impact_label(impact_tier: str) -> str:
    return IMPACT_LABELS[impact_tier]


def upgrade_plan(station: Station, metrics: UpgradePriorityMetrics) -> Dict[str, object]:
    """Recommendations plus cost / impact / timeline estimates for one station."""
    cost_tier = estimate_implementation_cost(station, metrics)
    impact_tier = estimate_expected_impact(station, metrics)
    return {
        "recommendations": [r.to_dict() for r in station_recommendations(station, metrics)],
        "cost_tier": cost_tier,
        "estimated_cost": cost_label(cost_tier),
        "impact_tier": impact_tier,
        "expected_impact": impact_label(impact_tier),
        "timeline": implementation_timeline(metrics.composite_score, cost_tier),
    }


# ---------------------------------------------------------------------------
# Connections
# ---------------------------------------------------------------------------

CONNECTION_DEFAULT = Recommendation(
    action="Monitor connection punctuality and review buffer time at next timetable change",
    urgency=LONG_TERM,
    cost_tier="low",
    implementation_time="next timetable period",
)


def connection_recommendations(fragility_score: int, cascade_risk: int, alternative_routes: int,
                               buffer_minutes: float, impact_score: Optional[int] = None) -> Tuple[Recommendation, ...]:
    items: List[Recommendation] = []

    if fragility_score >= 80 or buffer_minutes < 5:
        items.append(Recommendation(
            "Increase buffer time to minimum 15 minutes for this critical connection",
            IMMEDIATE, "low", "1-2 weeks",
        ))
    if cascade_risk >= 70:
        items.append(Recommendation(
            "Implement real-time delay management protocols",
            IMMEDIATE, "medium", "2-4 weeks",
        ))
    if fragility_score >= 60:
        items.append(Recommendation(
            "Optimize timetable structure to improve connection reliability",
            SHORT_TERM, "medium", "2-3 months",
        ))
    if alternative_routes <= 2:
        items.append(Recommendation(
            "Develop alternative routing procedures for service disruptions",
            SHORT_TERM, "low", "1-2 months",
        ))
    if impact_score is not None and impact_score >= 70:
        items.append(Recommendation(
            "Consider infrastructure improvements to increase capacity and reliability",
            LONG_TERM, "high", "1-3 years",
        ))

    return _ordered(items, CONNECTION_DEFAULT)


# ---------------------------------------------------------------------------
# Zones
# ---------------------------------------------------------------------------

ZONE_DEFAULT = Recommendation(
    action="Monitor service reliability for this corridor segment",
    urgency=LONG_TERM,
    cost_tier="low",
    implementation_time="ongoing",
)


def zone_recommendations(risk: PopulationTrafficRisk) -> Tuple[Recommendation, ...]:
    items: List[Recommendation] = []

    if risk.risk_level == "high":
        items.append(Recommendation(
            "Priority area for service reliability improvements", IMMEDIATE, "medium", "0-6 months",
        ))
        items.append(Recommendation(
            "Consider backup transportation arrangements during disruptions", SHORT_TERM, "medium", "3-6 months",
        ))
    if risk.daily_traffic_volume > REGIONAL_DAILY_PASSENGERS:
        items.append(Recommendation(
            "High passenger volume requires robust contingency planning", SHORT_TERM, "low", "3-6 months",
        ))
    if risk.disruption_impact_score >= 80:
        items.append(Recommendation(
            "Develop specific emergency response procedures", IMMEDIATE, "low", "1-3 months",
        ))
    if risk.population > 100000:
        items.append(Recommendation(
            "Large population base - coordinate with local authorities for disruption management",
            LONG_TERM, "low", "1-2 years",
        ))

    return _ordered(items, ZONE_DEFAULT)

