"""
Floor-plan generation endpoint.

POST /api/generate-floorplan
GET  /api/generate-floorplan
"""
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.core.logging import get_logger
from app.services.ai.schema import FloorPlanRequest, FloorPlanResponse
from app.services.floorplan.generator import get_floorplan_service

logger = get_logger(__name__)

router = APIRouter()


@router.post("")
async def generate_floorplan(payload: FloorPlanRequest):
    """
    Generate a floor plan for the chosen style, budget and land location.

    AI failures never surface here: the service answers with deterministic
    data flagged ``fallback: true`` instead.
    """
    if not payload.design_style or not payload.budget or not payload.location:
        logger.warning(
            "floorplan_missing_fields",
            design_style=payload.design_style,
            budget=payload.budget,
            location=payload.location,
        )
        response = FloorPlanResponse(
            success=False,
            error="Missing required fields: designStyle, budget, or location",
        )
        return JSONResponse(
            status_code=400,
            content=response.model_dump(by_alias=True, exclude_none=True),
        )

    response = await get_floorplan_service().generate(payload)
    return response.model_dump(by_alias=True, exclude_none=True)


@router.get("")
async def floorplan_info():
    return {
        "message": "Floor Plan Generation API",
        "endpoints": {
            "POST /api/generate-floorplan": "Generate floor plan based on design parameters",
        },
    }
