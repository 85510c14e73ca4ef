"""
Interior recommendation agent.

Sends a room photo plus the budget prompt in a single provider call. This
endpoint is not routed through the orchestrator: one attempt, errors go
straight back to the caller.
"""
from typing import Callable, Optional

from app.core.config import get_settings
from app.core.logging import get_logger
from app.core.metrics import record_llm_invalid_response
from app.services.ai.credentials import Credential, CredentialSet, load_credentials
from app.services.ai.errors import InvalidResponseError
from app.services.ai.llm_client import (
    GeminiClient,
    inline_image_part,
    make_client,
    text_part,
    user_content,
)
from app.services.ai.prompts import interior_prompt
from app.services.ai.schema import (
    InteriorRecommendation,
    parse_json_response,
    validate_interior_payload,
)

logger = get_logger(__name__)

DEFAULT_IMAGE_MIME_TYPE = "image/jpeg"


class InteriorAgent:
    def __init__(
        self,
        credentials: Optional[CredentialSet] = None,
        client_factory: Optional[Callable[[Credential], GeminiClient]] = None,
    ):
        self._credentials = credentials
        self._client_factory = client_factory

    def _client(self) -> GeminiClient:
        settings = get_settings()
        if self._credentials is None:
            self._credentials = load_credentials(settings)
        credentials = self._credentials
        if self._client_factory is not None:
            return self._client_factory(credentials.default)
        return make_client(credentials.default, settings, model=settings.gemini_vision_model)

    async def recommend(
        self,
        image: bytes,
        budget: int,
        mime_type: Optional[str] = None,
    ) -> InteriorRecommendation:
        """
        Analyse a room photo and recommend items within ``budget`` rupiah.

        Raises:
            ConfigurationError: no provider key configured
            ProviderError: the provider call failed
            InvalidResponseError: the reply is not the expected JSON
        """
        client = self._client()
        contents = [
            user_content(
                text_part(interior_prompt(budget)),
                inline_image_part(image, mime_type or DEFAULT_IMAGE_MIME_TYPE),
            )
        ]
        text = await client.generate(contents, agent="interior")

        try:
            result = validate_interior_payload(parse_json_response("interior", text))
        except InvalidResponseError as exc:
            record_llm_invalid_response("interior")
            logger.warning("interior_invalid_response", error=str(exc), raw=text[:500])
            raise

        logger.info(
            "interior_recommendation_ok",
            room_type=result.analysis.room_type,
            items=len(result.recommendations),
            budget=budget,
        )
        return result


_interior_agent: Optional[InteriorAgent] = None


def get_interior_agent() -> InteriorAgent:
    """Global singleton accessor."""
    global _interior_agent
    if _interior_agent is None:
        _interior_agent = InteriorAgent()
    return _interior_agent
