import asyncio
import logging
from typing import List

from fastapi import APIRouter, HTTPException

from api.dependencies import registry
from api.schemas import (
    AdjustRequest,
    AdjustResponse,
    PresetItem,
    ValidateResponse,
    WeightConfig,
    WeightConfigResponse,
)
from corridor.errors import PresetNotFound, ValidationError
from corridor.priority import StationPriorityCalculator
from corridor.ranking import significant_changes
from corridor.weights import PriorityConfiguration, adjust_weight, validate

router = APIRouter()
logger = logging.getLogger(__name__)


def _to_config(body: WeightConfig) -> PriorityConfiguration:
    return PriorityConfiguration(body.infrastructure, body.timetable, body.population)


def _composites(config: PriorityConfiguration) -> dict:
    results = StationPriorityCalculator(config).calculate_all(registry.get_dataset().stations)
    return {str(station_id): m.composite_score for station_id, m in results.items()}


def _adjust(config: PriorityConfiguration, which: str, value: float) -> dict:
    adjusted = adjust_weight(config, which, value)
    return {
        "config": adjusted.to_dict(),
        "significant_changes": significant_changes(_composites(config), _composites(adjusted)),
    }


def _save(name: str, config: PriorityConfiguration) -> dict:
    with registry.lock:
        saved = registry.get_config_manager().save_preset(name, config)
    return {"name": name.strip(), "builtin": False, **saved.to_dict()}


def _delete(name: str) -> None:
    with registry.lock:
        registry.get_config_manager().delete_preset(name)


@router.get(
    "/config/presets",
    response_model=List[PresetItem],
    summary="List weight presets",
    description="Built-in presets first, then stored presets in name order.",
)
async def list_presets():
    try:
        return await asyncio.to_thread(registry.get_config_manager().list_presets)
    except Exception:
        logger.error("Listing presets failed", exc_info=True)
        raise HTTPException(status_code=500, detail="Listing presets failed")


@router.get(
    "/config/presets/{name}",
    response_model=WeightConfigResponse,
    summary="Load a weight preset",
)
async def get_preset(name: str):
    try:
        config = await asyncio.to_thread(registry.get_config_manager().load_preset, name)
        return config.to_dict()
    except PresetNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.error("Loading preset %s failed", name, exc_info=True)
        raise HTTPException(status_code=500, detail="Loading preset failed")


@router.put(
    "/config/presets/{name}",
    response_model=PresetItem,
    summary="Save a weight preset",
    description="Stores a custom preset. Built-in preset names are reserved. "
                "The weights must sum to 1.0 (±0.001).",
)
async def save_preset(name: str, body: WeightConfig):
    try:
        return await asyncio.to_thread(_save, name, _to_config(body))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.error("Saving preset %s failed", name, exc_info=True)
        raise HTTPException(status_code=500, detail="Saving preset failed")


@router.delete(
    "/config/presets/{name}",
    summary="Delete a stored weight preset",
)
async def delete_preset(name: str):
    try:
        await asyncio.to_thread(_delete, name)
        return {"status": "deleted", "name": name}
    except PresetNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.error("Deleting preset %s failed", name, exc_info=True)
        raise HTTPException(status_code=500, detail="Deleting preset failed")


@router.post(
    "/config/validate",
    response_model=ValidateResponse,
    summary="Validate a weight configuration",
    description="Checks that the weights sum to 1.0 (±0.001) and reports the derived focus area.",
)
async def validate_config(body: WeightConfig):
    try:
        config = _to_config(body)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    valid = validate(config)
    return {
        "valid": valid,
        "total": round(config.total, 6),
        "focus_area": config.focus_area,
        "detail": None if valid else f"Weights sum to {config.total:.4f}, expected 1.0",
    }


@router.post(
    "/config/adjust",
    response_model=AdjustResponse,
    summary="Adjust one weight",
    description="Sets one weight and rescales the other two proportionally so the sum stays 1.0. "
                "Returns the new configuration and the stations whose composite score would move "
                "by 5 points or more.",
)
async def adjust_config(body: AdjustRequest):
    try:
        return await asyncio.to_thread(_adjust, _to_config(body.config), body.which, body.value)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.error("Weight adjustment failed", exc_info=True)
        raise HTTPException(status_code=500, detail="Weight adjustment failed")
