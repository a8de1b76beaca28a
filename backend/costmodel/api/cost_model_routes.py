"""
Cost model API routes

GET  /api/cost-model/defaults     — default configuration snapshot
POST /api/cost-model/rates        — configuration with derived rate tables
POST /api/cost-model/blocks       — batch block costing
POST /api/cost-model/projection   — block costs, monthly cash flow, summary
POST /api/cost-model/sensitivity  — NPV / IRR per variation of one variable
"""
import logging
from dataclasses import asdict
from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from costmodel import config as cfg
from costmodel.models.block_schema import BlockCharacteristics, BlockSchedule
from costmodel.models.config_schema import CostModelConfig, create_default_config
from costmodel.services.cost_model_engine import CostModelEngine

router = APIRouter(prefix="/api/cost-model", tags=["Cost Model"])
logger = logging.getLogger("cost-model-api")


# ── Pydantic Models ─────────────────────────────────────────────────────────

class ConfigRequest(BaseModel):
    config: Optional[CostModelConfig] = Field(
        None, description="Configuration snapshot; the default configuration when omitted"
    )


class BlocksRequest(ConfigRequest):
    blocks: List[BlockCharacteristics]
    order_quantities: Optional[Dict[str, float]] = None
    evaluation_date: Optional[date] = None


class ProjectionRequest(ConfigRequest):
    blocks: List[BlockCharacteristics]
    schedule: List[BlockSchedule]
    order_quantities: Optional[Dict[str, float]] = None
    evaluation_date: Optional[date] = None


class SensitivityRequest(ProjectionRequest):
    variable: str = Field(..., description=f"One of {cfg.SENSITIVITY_VARIABLES}")
    variations: List[float] = Field(..., min_length=1, description="Percent changes, e.g. [-10, 0, 10]")
    max_workers: int = Field(1, ge=1, le=16)


# ── Helpers ─────────────────────────────────────────────────────────────────

def _round(value: Any, precision: int) -> Any:
    """Round every float inside nested dicts / lists."""
    if isinstance(value, float):
        return round(value, precision)
    if isinstance(value, dict):
        return {k: _round(v, precision) for k, v in value.items()}
    if isinstance(value, list):
        return [_round(v, precision) for v in value]
    return value


def _engine_for(req: ConfigRequest) -> CostModelEngine:
    try:
        return CostModelEngine(req.config or create_default_config())
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


def _precision(engine: CostModelEngine) -> int:
    return engine.config.calculator_settings.rounding_precision


# ── Endpoints ───────────────────────────────────────────────────────────────

@router.get("/defaults")
async def get_defaults():
    return create_default_config().model_dump(mode="json")


@router.post("/rates")
async def recalculate_rates(req: ConfigRequest):
    engine = _engine_for(req)
    return engine.recalculate_rates().model_dump(mode="json")


@router.post("/blocks")
async def cost_blocks(req: BlocksRequest):
    engine = _engine_for(req)
    results = []
    for block in req.blocks:
        try:
            result = engine.calculate_block(block, req.order_quantities, req.evaluation_date)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))
        results.append(asdict(result))
    return {
        "count": len(results),
        "results": _round(results, _precision(engine)),
    }


@router.post("/projection")
async def run_projection(req: ProjectionRequest):
    engine = _engine_for(req)
    try:
        projection = engine.run_full_projection(
            req.blocks, req.schedule, req.evaluation_date, req.order_quantities
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    logger.info(f"Projection served for {len(req.blocks)} blocks")
    return _round(asdict(projection), _precision(engine))


@router.post("/sensitivity")
async def run_sensitivity(req: SensitivityRequest):
    if req.variable not in cfg.SENSITIVITY_VARIABLES:
        raise HTTPException(
            status_code=422,
            detail=f"variable must be one of {cfg.SENSITIVITY_VARIABLES}",
        )
    engine = _engine_for(req)
    try:
        points = engine.run_sensitivity(
            req.blocks,
            req.schedule,
            req.variable,
            req.variations,
            evaluation_date=req.evaluation_date,
            max_workers=req.max_workers,
            order_quantities=req.order_quantities,
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {
        "variable": req.variable,
        "points": _round([asdict(p) for p in points], _precision(engine)),
    }
