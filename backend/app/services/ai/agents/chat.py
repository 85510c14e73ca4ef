"""
SiHuni chat agent.

Responsibilities:
- Render the stage-specific prompt for the user's message
- Embed the house catalog in the system instruction
- Run the provider call through the shared orchestrator

The floorplan stage asks the model for JSON and returns the text with any
Markdown fences stripped; parsing is left to the floor-plan service.
"""
import asyncio
from typing import Any, Callable, Dict, List, Optional

from app.core.logging import get_logger
from app.services.ai.llm_client import GeminiClient, model_content, text_part, user_content
from app.services.ai.orchestration import AIRequestOrchestrator, get_orchestrator
from app.services.ai.prompts import JSON_STAGES, chat_prompt, normalize_stage, system_prompt
from app.services.ai.schema import ChatMessage, ChatRequest, strip_code_fences
from app.services.catalog.houses import fetch_houses

logger = get_logger(__name__)

HouseLoader = Callable[[], List[Dict[str, Any]]]


def history_contents(history: List[ChatMessage]) -> List[Dict[str, Any]]:
    """Previous turns in provider format; empty messages are dropped."""
    contents = []
    for message in history:
        if not message.content:
            continue
        if message.is_user:
            contents.append(user_content(text_part(message.content)))
        else:
            contents.append(model_content(message.content))
    return contents


class ChatAgent:
    """Stage-aware assistant backed by the AI request orchestrator."""

    def __init__(
        self,
        orchestrator: Optional[AIRequestOrchestrator] = None,
        house_loader: HouseLoader = fetch_houses,
    ):
        self._orchestrator = orchestrator or get_orchestrator()
        self._house_loader = house_loader

    async def respond(self, request: ChatRequest) -> str:
        """
        Generate the assistant reply for one chat request.

        Raises:
            Whatever the orchestrator raises once it gives up; callers map
            it to an HTTP status with ``http_status_for``.
        """
        stage = normalize_stage(request.stage)
        houses = await asyncio.to_thread(self._house_loader)

        contents = history_contents(request.chat_history)
        contents.append(
            user_content(text_part(chat_prompt(stage, request.user_message, request.answers)))
        )
        instruction = system_prompt(houses)
        generation_config = (
            {"responseMimeType": "application/json"} if stage in JSON_STAGES else None
        )
        agent = "floorplan" if stage in JSON_STAGES else "chat"

        logger.info(
            "chat_request",
            stage=stage,
            request_type=request.type,
            history_length=len(request.chat_history),
            catalog_size=len(houses),
        )

        async def _generate(client: GeminiClient) -> str:
            return await client.generate(
                contents,
                system_instruction=instruction,
                generation_config=generation_config,
                agent=agent,
            )

        text = await self._orchestrator.run(_generate, agent=agent)

        if stage in JSON_STAGES:
            text = strip_code_fences(text)
        return text


_chat_agent: Optional[ChatAgent] = None


def get_chat_agent() -> ChatAgent:
    """Global singleton accessor."""
    global _chat_agent
    if _chat_agent is None:
        _chat_agent = ChatAgent()
    return _chat_agent
