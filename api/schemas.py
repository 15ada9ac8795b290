from pydantic import BaseModel, Field
from typing import Any, Dict, List, Literal, Optional


VALID_BAND = Literal["critical", "high", "medium", "low"]
VALID_RISK = Literal["low", "medium", "high"]
VALID_URGENCY = Literal["immediate", "short_term", "long_term"]
VALID_COST = Literal["low", "medium", "high", "very_high"]
VALID_WEIGHT = Literal["infrastructure", "timetable", "population"]
VALID_ZONE_PRIORITY = Literal["critical", "high", "elevated", "moderate", "low"]
VALID_STATUS = Literal["normal", "elevated", "disrupted"]


# --- Weight configuration ---

class WeightConfig(BaseModel):
    infrastructure: float = Field(ge=0.0, le=1.0)
    timetable: float = Field(ge=0.0, le=1.0)
    population: float = Field(ge=0.0, le=1.0)
    focus_area: Optional[str] = None  # 항상 가중치에서 다시 계산됨


class WeightConfigResponse(BaseModel):
    infrastructure: float
    timetable: float
    population: float
    focus_area: str


class PresetItem(WeightConfigResponse):
    name: str
    builtin: bool


class ValidateResponse(BaseModel):
    valid: bool
    total: float
    focus_area: str
    detail: Optional[str] = None


class AdjustRequest(BaseModel):
    config: WeightConfig
    which: VALID_WEIGHT
    value: float


class PriorityChange(BaseModel):
    entity_id: str
    before: int
    after: int
    change: int


class AdjustResponse(BaseModel):
    config: WeightConfigResponse
    significant_changes: List[PriorityChange]


# --- Shared ---

class RecommendationItem(BaseModel):
    action: str
    urgency: VALID_URGENCY
    cost_tier: VALID_COST
    implementation_time: str


class AggregateResponse(BaseModel):
    count: int
    average_score: float
    band_counts: Dict[str, int]
    threshold: int
    above_threshold: int
    vulnerability_index: float


class SkippedItem(BaseModel):
    kind: str
    entity_id: str
    reason: str


class RunMetadataResponse(BaseModel):
    kind: str
    analysis_date: str
    started_at: str
    finished_at: str
    submitted: int
    scored: int
    truncated: bool
    skipped: List[SkippedItem] = []
    config: Optional[Dict[str, Any]] = None


# --- Stations ---

class StationMetrics(BaseModel):
    traffic_volume: int
    capacity_constraints: int
    strategic_importance: int
    facility_deficits: int
    composite_score: int


class RankedStation(BaseModel):
    rank: int
    station_id: int
    name: str
    distance_km: float
    category: int
    band: VALID_BAND
    metrics: StationMetrics
    recommendations: List[RecommendationItem]
    cost_tier: VALID_COST
    estimated_cost: str
    impact_tier: VALID_COST
    expected_impact: str
    timeline: str


class PrioritiesResponse(BaseModel):
    config: WeightConfigResponse
    stations: List[RankedStation]
    aggregate: AggregateResponse
    metadata: RunMetadataResponse


# --- Connections ---

class RankedConnection(BaseModel):
    rank: int
    from_station: int
    to_station: int
    from_name: str
    to_name: str
    buffer_minutes: float
    train_type: str
    fragility_score: int
    cascade_risk: int
    alternative_routes: int = Field(ge=1, le=5)
    impact_score: int
    band: VALID_BAND
    key_issues: List[str]
    recommendations: List[str]


class ConnectionsResponse(BaseModel):
    connections: List[RankedConnection]
    aggregate: AggregateResponse
    improvements: List[Dict[str, Any]] = []
    metadata: RunMetadataResponse


class CorridorAssessment(BaseModel):
    total_connections: int
    critical_connections: int
    average_fragility_score: float
    corridor_health_score: float = Field(ge=0, le=100)


class GroupedAction(BaseModel):
    description: str
    affected_connections: int
    expected_improvement: str
    implementation_complexity: Literal["low", "medium", "high"]


class ActionGroup(BaseModel):
    priority: VALID_URGENCY
    actions: List[GroupedAction]


class ConnectionImprovement(BaseModel):
    from_station: int
    to_station: int
    from_name: str
    to_name: str
    current_issues: List[str]
    proposed_solutions: List[str]
    expected_outcome: str


class TimetableImprovementsResponse(BaseModel):
    assessment: CorridorAssessment
    priority_actions: List[ActionGroup]
    specific_recommendations: List[ConnectionImprovement]


# --- Risk zones ---

class RankedZone(BaseModel):
    rank: int
    municipality_id: str
    name: str
    corridor_segment: str
    population: int
    daily_traffic_volume: int
    disruption_impact_score: int
    risk_level: VALID_RISK
    priority_level: VALID_ZONE_PRIORITY
    priority: int = Field(ge=1, le=5)
    mitigation_strategies: List[str]
    key_risk_factors: List[str]
    recommendations: List[RecommendationItem]


class MitigationAction(BaseModel):
    action: str
    target_zones: List[str]
    expected_impact: str
    urgency: VALID_URGENCY


class RiskZonesResponse(BaseModel):
    zones: List[RankedZone]
    aggregate: AggregateResponse
    mitigation_actions: List[MitigationAction]
    metadata: RunMetadataResponse


class ZoneStatus(BaseModel):
    municipality_id: str
    zone: str
    priority_level: VALID_ZONE_PRIORITY
    priority: int = Field(ge=1, le=5)
    disruption_impact_score: int
    status: VALID_STATUS
    alerts: List[str]
    recommended_actions: List[str]


class CorridorStatusResponse(BaseModel):
    zones: List[ZoneStatus]
    overall_risk_level: Literal["low", "moderate", "high", "critical"]
    active_disruptions: int
    zones_under_watch: int
    metadata: RunMetadataResponse
