import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from api.dependencies import registry
from api.schemas import PrioritiesResponse, RankedStation, WeightConfig
from corridor.errors import PresetNotFound, ValidationError
from corridor.priority import StationPriorityCalculator
from corridor.ranking import rank_stations, top
from corridor.recommendations import upgrade_plan
from corridor.weights import BALANCED, PriorityConfiguration

router = APIRouter()
logger = logging.getLogger(__name__)


def _station_row(entry, dataset) -> dict:
    metrics = entry.entity
    station = dataset.station(metrics.station_id)
    return {
        "rank": entry.rank,
        "station_id": station.id,
        "name": station.name,
        "distance_km": station.distance_km,
        "category": station.category,
        "band": entry.band,
        "metrics": {
            "traffic_volume": metrics.traffic_volume,
            "capacity_constraints": metrics.capacity_constraints,
            "strategic_importance": metrics.strategic_importance,
            "facility_deficits": metrics.facility_deficits,
            "composite_score": metrics.composite_score,
        },
        **upgrade_plan(station, metrics),
    }


def _run_priorities(config: PriorityConfiguration, limit: Optional[int]) -> dict:
    dataset = registry.get_dataset()
    run = registry.get_analyzer().run_stations(dataset.stations, config)
    return {
        "config": config.to_dict(),
        "stations": [_station_row(entry, dataset) for entry in top(run.ranked, limit)],
        "aggregate": run.aggregate.to_dict(),
        "metadata": run.metadata.to_dict(),
    }


def _priorities_for_preset(preset: str, limit: Optional[int]) -> dict:
    config = registry.get_config_manager().load_preset(preset)
    return _run_priorities(config, limit)


def _station_priority(station_id: int, preset: str) -> dict:
    dataset = registry.get_dataset()
    station = dataset.station(station_id)
    config = registry.get_config_manager().load_preset(preset)
    # rank against the whole corridor without writing a history entry
    ranked = rank_stations(StationPriorityCalculator(config).calculate_all(dataset.stations).values())
    entry = next(e for e in ranked if e.entity_id == str(station.id))
    return _station_row(entry, dataset)


@router.get(
    "/priorities",
    response_model=PrioritiesResponse,
    summary="Ranked station upgrade priorities",
    description="Scores every corridor station with the named weight preset, ranks them by composite "
                "score and attaches an upgrade plan (recommendations, cost, impact, timeline) to each.",
    response_description="Ranked stations, corridor aggregate and run metadata",
)
async def get_priorities(
    preset: str = Query(BALANCED, description="Weight preset name"),
    limit: Optional[int] = Query(None, ge=1, description="Return only the top N stations"),
):
    try:
        return await asyncio.to_thread(_priorities_for_preset, preset, limit)
    except PresetNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.error("Priority calculation failed", exc_info=True)
        raise HTTPException(status_code=500, detail="Priority calculation failed")


@router.post(
    "/priorities/calculate",
    response_model=PrioritiesResponse,
    summary="Station priorities with custom weights",
    description="Same as GET /priorities but with a caller-supplied weight configuration. "
                "The three weights must sum to 1.0 (±0.001).",
    response_description="Ranked stations, corridor aggregate and run metadata",
)
async def calculate_priorities(
    body: WeightConfig,
    limit: Optional[int] = Query(None, ge=1, description="Return only the top N stations"),
):
    try:
        config = PriorityConfiguration(body.infrastructure, body.timetable, body.population)
        return await asyncio.to_thread(_run_priorities, config, limit)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.error("Priority calculation failed", exc_info=True)
        raise HTTPException(status_code=500, detail="Priority calculation failed")


@router.get(
    "/priorities/station/{station_id}",
    response_model=RankedStation,
    summary="Priority of a single station",
    description="Metrics, corridor rank and upgrade plan for one station.",
    response_description="Station row with rank, band, metrics and upgrade plan",
)
async def get_station_priority(
    station_id: int,
    preset: str = Query(BALANCED, description="Weight preset name"),
):
    try:
        return await asyncio.to_thread(_station_priority, station_id, preset)
    except PresetNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Station {station_id} not found")
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.error("Station priority failed for %s", station_id, exc_info=True)
        raise HTTPException(status_code=500, detail="Priority calculation failed")
