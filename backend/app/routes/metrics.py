"""
Prometheus scrape endpoint.

GET /metrics
"""
from fastapi import APIRouter, Response

from app.core.logging import get_logger
from app.core.metrics import get_metrics, get_metrics_content_type

logger = get_logger(__name__)
router = APIRouter()


@router.get("")
async def metrics():
    """HTTP, LLM (attempts, failovers, retry delays) and resource metrics."""
    try:
        payload = get_metrics()
    except Exception as e:
        logger.error(
            "metrics_endpoint_error",
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )
        payload = b"# Error collecting metrics\n"
    return Response(content=payload, media_type=get_metrics_content_type())
