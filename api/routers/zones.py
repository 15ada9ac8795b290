import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from api.dependencies import registry
from api.schemas import CorridorStatusResponse, RiskZonesResponse
from corridor.population import (
    CRITICAL_ZONE_SCORE,
    corridor_risk_status,
    key_risk_factors,
    mitigation_actions,
    mitigation_strategies,
    zone_priority,
)
from corridor.ranking import top
from corridor.recommendations import zone_recommendations

router = APIRouter()
logger = logging.getLogger(__name__)


def _risk_zones(limit: Optional[int], critical_score: int) -> dict:
    dataset = registry.get_dataset()
    run = registry.get_analyzer().run_zones(dataset.zones)

    rows = []
    for entry in top(run.ranked, limit):
        risk = entry.entity
        level, priority = zone_priority(risk.disruption_impact_score)
        rows.append({
            "rank": entry.rank,
            "priority_level": level,
            "priority": priority,
            "mitigation_strategies": mitigation_strategies(level),
            "key_risk_factors": key_risk_factors(risk),
            "recommendations": [r.to_dict() for r in zone_recommendations(risk)],
            **risk.to_dict(),
        })
    return {
        "zones": rows,
        "aggregate": run.aggregate.to_dict(),
        "mitigation_actions": mitigation_actions(run.results, critical_score),
        "metadata": run.metadata.to_dict(),
    }


@router.get(
    "/risk-zones",
    response_model=RiskZonesResponse,
    summary="Population disruption risk zones",
    description="Classifies every municipality along the corridor by disruption impact "
                "(population density, traffic, strategic position, alternative access).",
    response_description="Ranked zones, corridor aggregate and mitigation actions",
)
async def get_risk_zones(
    limit: Optional[int] = Query(None, ge=1, description="Return only the top N zones"),
    critical_score: int = Query(CRITICAL_ZONE_SCORE, ge=0, le=100,
                                description="Minimum impact score for mitigation targets"),
):
    try:
        return await asyncio.to_thread(_risk_zones, limit, critical_score)
    except Exception:
        logger.error("Risk zone analysis failed", exc_info=True)
        raise HTTPException(status_code=500, detail="Risk zone analysis failed")


def _status() -> dict:
    dataset = registry.get_dataset()
    run = registry.get_analyzer().run_zones(dataset.zones)
    return {**corridor_risk_status(run.results), "metadata": run.metadata.to_dict()}


@router.get(
    "/risk-zones/status",
    response_model=CorridorStatusResponse,
    summary="Corridor risk status",
    description="Operational status, active alerts and first-line actions per zone, "
                "plus the overall corridor risk level.",
)
async def get_risk_zone_status():
    try:
        return await asyncio.to_thread(_status)
    except Exception:
        logger.error("Risk zone status failed", exc_info=True)
        raise HTTPException(status_code=500, detail="Risk zone status failed")
