"""
Recommendation generator tests
"""
import pytest

from corridor.models import PopulationTrafficRisk, Station, StationFacilities, UpgradePriorityMetrics
from corridor.priority import calculate_station_priority
from corridor.recommendations import (
    CONNECTION_DEFAULT,
    STATION_DEFAULT,
    URGENCY_ORDER,
    ZONE_DEFAULT,
    connection_recommendations,
    estimate_expected_impact,
    estimate_implementation_cost,
    implementation_timeline,
    station_recommendations,
    upgrade_plan,
    urgent_actions,
    zone_recommendations,
)


def _is_ordered(recommendations):
    ranks = [URGENCY_ORDER.index(r.urgency) for r in recommendations]
    return ranks == sorted(ranks)


class TestStationRecommendations:
    """Station upgrade actions"""

    def test_deficient_station(self, deficient_station):
        metrics = calculate_station_priority(deficient_station)
        recommendations = station_recommendations(deficient_station, metrics)

        assert [r.urgency for r in recommendations] == [
            "immediate", "immediate", "short_term", "long_term", "long_term",
        ]
        assert recommendations[0].action.startswith("Urgent platform addition: add 3 platform(s)")
        assert recommendations[1].action.startswith("Priority accessibility installation")
        assert "Park & Ride" in recommendations[4].action

    def test_hub_station(self, hub_station):
        metrics = calculate_station_priority(hub_station)
        actions = [r.action for r in station_recommendations(hub_station, metrics)]

        assert actions == [
            "Implement digital passenger information systems",
            "Prioritize as strategic corridor hub - allocate premium upgrade budget",
            "Endpoint station: focus on capacity and passenger flow optimization",
        ]

    def test_well_equipped_station_gets_default(self):
        station = Station(1, "Ruhig", 120.0, 6, 3, StationFacilities.all_present())
        metrics = calculate_station_priority(station)
        assert station_recommendations(station, metrics) == (STATION_DEFAULT,)

    @pytest.mark.parametrize("category", range(1, 8))
    @pytest.mark.parametrize("platforms", [0, 2, 6, 14])
    @pytest.mark.parametrize("stepless", ["yes", "no", "partial"])
    def test_never_empty_and_ordered(self, category, platforms, stepless):
        facilities = StationFacilities(stepless_access=stepless)
        station = Station(1, "Raster", 145.0, category, platforms, facilities, category == 1)
        recommendations = station_recommendations(station, calculate_station_priority(station))

        assert recommendations
        assert _is_ordered(recommendations)

    def test_critical_composite_adds_programme(self):
        station = Station(1, "Kritisch", 100.0, 1, 0, StationFacilities.none_present(), True)
        metrics = UpgradePriorityMetrics(1, 95, 100, 100, 100, 95)
        actions = urgent_actions(station_recommendations(station, metrics))
        assert actions[0] == "Launch critical upgrade programme for this station"


class TestUpgradePlan:
    """Cost, impact and timeline estimates"""

    def test_hub_plan(self, hub_station):
        plan = upgrade_plan(hub_station, calculate_station_priority(hub_station))

        assert plan["cost_tier"] == "low"
        assert plan["estimated_cost"] == "€50K-200K"
        assert plan["impact_tier"] == "high"
        assert plan["expected_impact"] == "Significant corridor enhancement"
        assert plan["timeline"] == "Medium-term (6-24 months)"

    def test_deficient_plan(self, deficient_station):
        metrics = calculate_station_priority(deficient_station)

        assert estimate_implementation_cost(deficient_station, metrics) == "high"
        assert estimate_expected_impact(deficient_station, metrics) == "medium"

    @pytest.mark.parametrize("composite,cost,expected", [
        (95, "low", "Immediate (0-6 months) - Critical priority"),
        (80, "low", "Short-term (3-12 months)"),
        (80, "very_high", "Short-term (6-18 months)"),
        (60, "very_high", "Medium-term (1-3 years)"),
        (10, "medium", "Long-term (2-5 years) - Monitor and reassess"),
    ])
    def test_timeline(self, composite, cost, expected):
        assert implementation_timeline(composite, cost) == expected


class TestConnectionRecommendations:
    """Connection actions"""

    def test_short_buffer_triggers_immediate_action_even_at_moderate_fragility(self):
        recommendations = connection_recommendations(70, 20, 4, 4.0)
        assert recommendations[0].urgency == "immediate"
        assert recommendations[0].action.startswith("Increase buffer time")

    def test_all_rules(self):
        actions = [r.action for r in connection_recommendations(90, 80, 1, 2.0, 85)]
        assert len(actions) == 5
        assert actions[-1] == "Consider infrastructure improvements to increase capacity and reliability"

    def test_default(self):
        assert connection_recommendations(20, 10, 5, 25.0, 30) == (CONNECTION_DEFAULT,)


class TestZoneRecommendations:
    """Zone actions"""

    def test_high_risk_metropolis(self):
        risk = PopulationTrafficRisk("1", "Berlin", "km_0-25", 3669491, 70000, 87, "high")
        recommendations = zone_recommendations(risk)

        assert [r.urgency for r in recommendations] == [
            "immediate", "immediate", "short_term", "short_term", "long_term",
        ]

    def test_quiet_zone_gets_default(self):
        risk = PopulationTrafficRisk("2", "Dorf", "km_10-10", 900, 1500, 30, "low")
        assert zone_recommendations(risk) == (ZONE_DEFAULT,)
