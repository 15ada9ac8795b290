"""
Connection fragility.

Static heuristic estimates only: nothing here simulates delay propagation.

    fragility   = buffer_score · (0.6 + 0.4·train_importance)
    alternatives= 1 + category/hub/distance bonuses, clamped to [1, 5]
    cascade     = fragility · (0.5 + 0.5·importance) · (1 - 0.15·(alt - 1)) + 10 if target is a hub
    impact      = 0.4·fragility + 0.3·cascade + 0.2·passenger_volume + 0.1·strategic
"""
import logging
from typing import Dict, Iterable, List, Tuple

from corridor.bands import priority_band
from corridor.metrics import (
    buffer_fragility_score,
    connection_strategic_score,
    passenger_volume_score,
    train_importance_weight,
)
from corridor.models import Connection, ConnectionFragility, Recommendation, StationInfo
from corridor.recommendations import (
    IMMEDIATE,
    LONG_TERM,
    SHORT_TERM,
    URGENCY_ORDER,
    connection_recommendations,
)
from corridor.utils import bounded_score, ensure_score

logger = logging.getLogger(__name__)

MIN_ALTERNATIVE_ROUTES = 1
MAX_ALTERNATIVE_ROUTES = 5
LONG_DISTANCE_KM = 100
HUB_CASCADE_BONUS = 10

IMPACT_WEIGHTS = {
    "fragility": 0.4,
    "cascade": 0.3,
    "passenger_volume": 0.2,
    "strategic": 0.1,
}


def fragility_score(buffer_minutes: float, train_type: str) -> int:
    importance = train_importance_weight(train_type)
    return bounded_score(buffer_fragility_score(buffer_minutes) * (0.6 + 0.4 * importance))


def _is_small(station: StationInfo) -> bool:
    return station.category >= 5 and not station.is_strategic_hub


def alternative_routes(origin: StationInfo, destination: StationInfo) -> int:
    """Rough count of ways around a failed connection.

    Two small stations (category 5 or above, neither a hub) only ever have
    the direct path.
    """
    if _is_small(origin) and _is_small(destination):
        return MIN_ALTERNATIVE_ROUTES

    routes = 1
    if origin.category <= 2 and destination.category <= 2:
        routes += 2
    elif origin.category <= 4 or destination.category <= 4:
        routes += 1
    if origin.is_strategic_hub or destination.is_strategic_hub:
        routes += 1
    if (routes > 1 and origin.distance_km is not None and destination.distance_km is not None
            and abs(origin.distance_km - destination.distance_km) > LONG_DISTANCE_KM):
        routes += 1
    return max(MIN_ALTERNATIVE_ROUTES, min(MAX_ALTERNATIVE_ROUTES, routes))


def cascade_risk(fragility: int, train_type: str, routes: int, destination: StationInfo) -> int:
    importance = train_importance_weight(train_type)
    dampening = 1 - 0.15 * (routes - 1)
    risk = fragility * (0.5 + 0.5 * importance) * dampening
    if destination.is_strategic_hub:
        risk += HUB_CASCADE_BONUS
    return bounded_score(risk)


def impact_score(fragility: int, cascade: int, routes: int,
                 origin: StationInfo, destination: StationInfo) -> int:
    passenger_volume = passenger_volume_score(
        origin.category, destination.category,
        origin.is_strategic_hub or destination.is_strategic_hub,
    )
    strategic = connection_strategic_score(origin.distance_km, destination.distance_km, routes)
    return bounded_score(
        IMPACT_WEIGHTS["fragility"] * fragility
        + IMPACT_WEIGHTS["cascade"] * cascade
        + IMPACT_WEIGHTS["passenger_volume"] * passenger_volume
        + IMPACT_WEIGHTS["strategic"] * strategic
    )


def key_issues(result: ConnectionFragility) -> List[str]:
    issues = []
    if result.buffer_minutes < 5:
        issues.append("Critically short buffer time")
    elif result.buffer_minutes < 10:
        issues.append("Insufficient buffer time")
    if result.cascade_risk >= 70:
        issues.append("High cascade delay risk")
    if result.alternative_routes <= 1:
        issues.append("No alternative routing options")
    elif result.alternative_routes <= 2:
        issues.append("Limited alternative routes")
    if result.fragility_score >= 80:
        issues.append("Critical connection vulnerability")
    return issues


class ConnectionFragilityAnalyzer:
    """Scores connections, looking endpoint attributes up in a station directory.

    A failed lookup never aborts the analysis: the endpoint is scored with
    neutral attributes (category 4, no hub, unknown position) instead.
    """

    def __init__(self, directory):
        self.directory = directory

    def lookup(self, station_id: int) -> StationInfo:
        try:
            return self.directory.lookup(station_id)
        except Exception as e:
            logger.warning("Station lookup failed for %s, using neutral defaults: %s", station_id, e)
            return StationInfo.neutral(station_id)

    def endpoints(self, connection: Connection) -> Tuple[StationInfo, StationInfo]:
        return self.lookup(connection.from_station), self.lookup(connection.to_station)

    def analyze(self, connection: Connection) -> ConnectionFragility:
        origin, destination = self.endpoints(connection)
        return self.score(connection, origin, destination)

    def score(self, connection: Connection, origin: StationInfo, destination: StationInfo) -> ConnectionFragility:
        """Pure scoring step once both endpoints are known."""
        fragility = ensure_score(fragility_score(connection.buffer_minutes, connection.train_type), "fragility_score")
        routes = alternative_routes(origin, destination)
        cascade = ensure_score(cascade_risk(fragility, connection.train_type, routes, destination), "cascade_risk")
        impact = ensure_score(impact_score(fragility, cascade, routes, origin, destination), "impact_score")
        recommendations = connection_recommendations(
            fragility, cascade, routes, connection.buffer_minutes, impact,
        )

        logger.debug(
            "Fragility %s: buffer=%.1f type=%s fragility=%d cascade=%d routes=%d impact=%d",
            connection.key, connection.buffer_minutes, connection.train_type,
            fragility, cascade, routes, impact,
        )
        return ConnectionFragility(
            from_station=connection.from_station,
            to_station=connection.to_station,
            buffer_minutes=connection.buffer_minutes,
            train_type=connection.train_type,
            fragility_score=fragility,
            cascade_risk=cascade,
            alternative_routes=routes,
            impact_score=impact,
            recommendations=tuple(r.action for r in recommendations),
        )

    def analyze_all(self, connections: Iterable[Connection]) -> List[ConnectionFragility]:
        return [self.analyze(c) for c in connections]


# ---------------------------------------------------------------------------
# Corridor-wide timetable improvements
# ---------------------------------------------------------------------------

IMPROVEMENT_OUTLOOK = {
    IMMEDIATE: ("High impact within weeks", "low"),
    SHORT_TERM: ("Moderate impact within months", "medium"),
    LONG_TERM: ("Fundamental improvements over years", "high"),
}

SPECIFIC_RECOMMENDATION_LIMIT = 10


def connection_actions(result: ConnectionFragility) -> Tuple[Recommendation, ...]:
    return connection_recommendations(
        result.fragility_score, result.cascade_risk, result.alternative_routes,
        result.buffer_minutes, result.impact_score,
    )


def group_actions_by_urgency(results: Iterable[ConnectionFragility]) -> List[Dict[str, object]]:
    """Count how many connections each recommended action applies to, per urgency tier."""
    counts: Dict[str, Dict[str, int]] = {tier: {} for tier in URGENCY_ORDER}
    for result in results:
        for recommendation in connection_actions(result):
            tier = counts[recommendation.urgency]
            tier[recommendation.action] = tier.get(recommendation.action, 0) + 1

    groups = []
    for tier in URGENCY_ORDER:
        improvement, complexity = IMPROVEMENT_OUTLOOK[tier]
        groups.append({
            "priority": tier,
            "actions": [
                {
                    "description": action,
                    "affected_connections": count,
                    "expected_improvement": improvement,
                    "implementation_complexity": complexity,
                }
                for action, count in counts[tier].items()
            ],
        })
    return groups


def expected_outcome(recommendations: Iterable[Recommendation]) -> str:
    urgencies = [r.urgency for r in recommendations]
    immediate = urgencies.count(IMMEDIATE)
    short_term = urgencies.count(SHORT_TERM)
    if immediate >= 2:
        return "Significant improvement in connection reliability expected within 1-2 months"
    if immediate >= 1 or short_term >= 2:
        return "Moderate improvement in connection stability expected within 3-6 months"
    return "Gradual improvement expected with long-term infrastructure investments"


def timetable_improvements(results: Iterable[ConnectionFragility],
                           limit: int = SPECIFIC_RECOMMENDATION_LIMIT) -> Dict[str, object]:
    """Corridor health assessment and grouped actions over analysed connections.

    ``corridor_health_score`` is ``100 - mean fragility``; with no connections
    the corridor counts as fully healthy.
    """
    results = list(results)
    total = len(results)
    average = sum(r.fragility_score for r in results) / total if total else 0.0
    ranked = sorted(results, key=lambda r: r.impact_score, reverse=True)

    specific = []
    for result in ranked[:limit]:
        actions = connection_actions(result)
        specific.append({
            "from_station": result.from_station,
            "to_station": result.to_station,
            "current_issues": key_issues(result),
            "proposed_solutions": [a.action for a in actions],
            "expected_outcome": expected_outcome(actions),
        })

    return {
        "assessment": {
            "total_connections": total,
            "critical_connections": sum(1 for r in results if priority_band(r.impact_score) == "critical"),
            "average_fragility_score": round(average, 2),
            "corridor_health_score": round(max(0.0, 100 - average), 2),
        },
        "priority_actions": group_actions_by_urgency(results),
        "specific_recommendations": specific,
    }
