import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from api.dependencies import registry
from api.schemas import ConnectionsResponse, TimetableImprovementsResponse
from corridor.fragility import SPECIFIC_RECOMMENDATION_LIMIT, key_issues, timetable_improvements
from corridor.ranking import top

router = APIRouter()
logger = logging.getLogger(__name__)


def _fragility(limit: Optional[int]) -> dict:
    dataset = registry.get_dataset()
    names = dataset.station_names()
    run = registry.get_analyzer().run_connections(dataset.connections)

    rows = []
    for entry in top(run.ranked, limit):
        result = entry.entity
        rows.append({
            "rank": entry.rank,
            "from_name": names.get(result.from_station, str(result.from_station)),
            "to_name": names.get(result.to_station, str(result.to_station)),
            "band": entry.band,
            "key_issues": key_issues(result),
            **result.to_dict(),
        })
    return {
        "connections": rows,
        "aggregate": run.aggregate.to_dict(),
        "improvements": list(run.improvements),
        "metadata": run.metadata.to_dict(),
    }


@router.get(
    "/connections/fragility",
    response_model=ConnectionsResponse,
    summary="Connection fragility ranking",
    description="Static fragility, cascade risk and alternative-route estimates for every "
                "corridor connection, ranked by overall impact score.",
    response_description="Ranked connections with key issues and recommendations",
)
async def get_fragility(
    limit: Optional[int] = Query(None, ge=1, description="Return only the top N connections"),
):
    try:
        return await asyncio.to_thread(_fragility, limit)
    except Exception:
        logger.error("Fragility analysis failed", exc_info=True)
        raise HTTPException(status_code=500, detail="Fragility analysis failed")


def _timetable_improvements(limit: int) -> dict:
    dataset = registry.get_dataset()
    names = dataset.station_names()
    run = registry.get_analyzer().run_connections(dataset.connections)

    report = timetable_improvements(run.results, limit)
    for item in report["specific_recommendations"]:
        item["from_name"] = names.get(item["from_station"], str(item["from_station"]))
        item["to_name"] = names.get(item["to_station"], str(item["to_station"]))
    return report


@router.get(
    "/connections/timetable-improvements",
    response_model=TimetableImprovementsResponse,
    summary="Corridor timetable improvement plan",
    description="Corridor health score (100 minus mean fragility), recommended actions grouped "
                "by urgency, and concrete proposals for the most vulnerable connections.",
)
async def get_timetable_improvements(
    limit: int = Query(SPECIFIC_RECOMMENDATION_LIMIT, ge=1, le=100,
                       description="Number of connections with specific proposals"),
):
    try:
        return await asyncio.to_thread(_timetable_improvements, limit)
    except Exception:
        logger.error("Timetable improvement analysis failed", exc_info=True)
        raise HTTPException(status_code=500, detail="Timetable improvement analysis failed")
