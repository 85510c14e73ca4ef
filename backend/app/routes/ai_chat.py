"""
SiHuni assistant chat endpoint.

POST /api/ai-chat
"""
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.core.logging import get_logger, set_user_id
from app.services.ai.agents.chat import get_chat_agent
from app.services.ai.errors import http_status_for, user_message_for
from app.services.ai.schema import ChatRequest, ChatResponse

logger = get_logger(__name__)

router = APIRouter()


@router.post("")
async def ai_chat(payload: ChatRequest):
    """
    Answer one chat turn.

    The ``stage`` selects the prompt template (initial, analysis, design,
    features, budget, floorplan); anything else is treated as free chat.
    Previous turns may be sent as ``chatHistory``.
    """
    if payload.user_id:
        set_user_id(payload.user_id)

    # The questionnaire sends only answers for the analysis stage
    if not payload.user_message.strip() and not payload.answers:
        logger.warning("ai_chat_empty_message")
        return JSONResponse(
            status_code=400,
            content={"error": "userMessage is required", "success": False},
        )

    try:
        text = await get_chat_agent().respond(payload)
    except Exception as e:
        status_code = http_status_for(e)
        logger.error(
            "ai_chat_failed",
            stage=payload.stage,
            status_code=status_code,
            error=str(e),
            error_type=type(e).__name__,
        )
        return JSONResponse(
            status_code=status_code,
            content={
                "error": user_message_for(e),
                "details": str(e),
                "success": False,
            },
        )

    return ChatResponse(response=text)
