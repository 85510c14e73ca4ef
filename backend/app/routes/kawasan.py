"""
Area disaster-risk endpoint.

POST /api/kawasan
"""
import re

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.core.logging import get_logger
from app.services.ai.agents.area_risk import get_area_risk_agent
from app.services.ai.errors import ConfigurationError, InvalidResponseError, error_status
from app.services.ai.schema import AreaRiskRequest

logger = get_logger(__name__)

router = APIRouter()

_OVERLOADED_RE = re.compile(r"503|unavailable|overloaded", re.IGNORECASE)


def _is_overloaded(error: Exception) -> bool:
    return error_status(error) == 503 or bool(_OVERLOADED_RE.search(str(error)))


@router.post("")
async def analyze_area(payload: AreaRiskRequest):
    """
    Flood, landslide and fire risk for a location, with building advice.

    Status codes: 400 missing location, 429 provider rate limit, 502 reply
    is not JSON, 503 provider overloaded, 500 anything else.
    """
    if not payload.location or not payload.location.strip():
        return JSONResponse(status_code=400, content={"error": "Location is required"})

    try:
        report = await get_area_risk_agent().analyze(
            payload.location.strip(),
            payload.latitude,
            payload.longitude,
        )
    except ConfigurationError as e:
        logger.error("kawasan_not_configured", error=str(e))
        return JSONResponse(
            status_code=500,
            content={"error": "GEMINI_API_KEY environment variable is not set"},
        )
    except InvalidResponseError as e:
        if e.raw_output is not None:
            return JSONResponse(
                status_code=502,
                content={"error": "Format JSON AI tidak valid", "raw": e.raw_output},
            )
        logger.error("kawasan_empty_response", error=str(e))
        return JSONResponse(status_code=500, content={"error": "Failed to analyze risk"})
    except Exception as e:
        logger.error(
            "kawasan_failed",
            location=payload.location,
            error=str(e),
            error_type=type(e).__name__,
        )
        if error_status(e) == 429:
            return JSONResponse(
                status_code=429,
                content={"error": "Terlalu banyak permintaan (429). Coba lagi nanti."},
            )
        if _is_overloaded(e):
            return JSONResponse(
                status_code=503,
                content={"error": "Layanan AI sedang sibuk (503). Silakan coba lagi."},
            )
        return JSONResponse(status_code=500, content={"error": "Failed to analyze risk"})

    return report
