"""
Interior recommendation endpoint.

POST /api/interior  (multipart: image file + budget)
"""
from typing import Optional

from fastapi import APIRouter, File, Form, UploadFile
from fastapi.responses import JSONResponse

from app.core.logging import get_logger
from app.services.ai.agents.interior import get_interior_agent
from app.services.ai.errors import ConfigurationError, InvalidResponseError, http_status_for

logger = get_logger(__name__)

router = APIRouter()


def _error(status_code: int, error: str, details: Optional[str] = None) -> JSONResponse:
    content = {"error": error}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


@router.post("")
async def recommend_interior(
    image: Optional[UploadFile] = File(None),
    budget: Optional[str] = Form(None),
):
    """Analyse a room photo and suggest furniture within the budget (rupiah)."""
    if image is None:
        return _error(400, "No image file provided")
    if not budget:
        return _error(400, "No budget provided")
    if not budget.strip().isdigit():
        return _error(400, "Budget must be a whole number of rupiah")

    data = await image.read()
    if not data:
        return _error(400, "No image file provided")

    try:
        result = await get_interior_agent().recommend(
            data,
            int(budget.strip()),
            mime_type=image.content_type,
        )
    except ConfigurationError as e:
        logger.error("interior_not_configured", error=str(e))
        return _error(500, "GEMINI_API_KEY environment variable is not set")
    except InvalidResponseError as e:
        return _error(500, "Failed to parse AI response", details=str(e))
    except Exception as e:
        logger.error(
            "interior_failed",
            error=str(e),
            error_type=type(e).__name__,
        )
        return _error(
            http_status_for(e),
            "An internal server error occurred.",
            details=str(e),
        )

    return result.model_dump()
