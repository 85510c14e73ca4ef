"""
Health check endpoints.
"""
from fastapi import APIRouter

from app.core.config import get_settings
from app.core.database import get_supabase_client
from app.core.logging import get_logger
from app.services.ai.errors import ConfigurationError
from app.services.ai.orchestration import get_orchestrator

logger = get_logger(__name__)
router = APIRouter()


@router.get("/")
async def health_check():
    """
    Basic health check endpoint.
    """
    return {
        "status": "ok",
        "message": "API is running"
    }


@router.get("/ai")
async def ai_health():
    """
    Health of the generative-AI layer.

    Returns:
        - credentials: names of the configured provider keys (never the keys)
        - model / vision_model: provider models in use
        - retry_policy: attempts per credential and initial backoff
        - catalog_available: whether the house catalog store is reachable
    """
    settings = get_settings()
    catalog_available = get_supabase_client(settings) is not None

    try:
        orchestrator = get_orchestrator()
    except ConfigurationError as e:
        logger.warning("health_ai_unconfigured", error=str(e))
        return {
            "status": "unavailable",
            "credentials": [],
            "model": settings.gemini_model,
            "vision_model": settings.gemini_vision_model,
            "catalog_available": catalog_available,
            "message": str(e),
        }

    return {
        "status": "ok",
        "credentials": list(orchestrator.credentials.names),
        "model": settings.gemini_model,
        "vision_model": settings.gemini_vision_model,
        "retry_policy": {
            "max_retries": orchestrator.policy.max_retries,
            "initial_delay_ms": orchestrator.policy.initial_delay_ms,
        },
        "catalog_available": catalog_available,
    }
