"""
Area (kawasan) disaster-risk analysis agent.

Has its own short inline retry instead of the shared orchestrator:
- up to 3 attempts
- a 429 is returned to the caller immediately
- other failures wait ``0.7 * attempt`` seconds before the next attempt
"""
import asyncio
from typing import Any, Awaitable, Callable, Dict, Optional

from app.core.config import get_settings
from app.core.logging import get_logger
from app.core.metrics import record_llm_invalid_response
from app.services.ai.credentials import Credential, CredentialSet, load_credentials
from app.services.ai.errors import InvalidResponseError, error_status
from app.services.ai.llm_client import GeminiClient, make_client, text_part, user_content
from app.services.ai.prompts import area_risk_prompt
from app.services.ai.schema import parse_json_response

logger = get_logger(__name__)

MAX_ATTEMPTS = 3
RETRY_STEP_SECONDS = 0.7


class AreaRiskAgent:
    def __init__(
        self,
        credentials: Optional[CredentialSet] = None,
        client_factory: Optional[Callable[[Credential], GeminiClient]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._credentials = credentials
        self._client_factory = client_factory
        self._sleep = sleep

    def _client(self) -> GeminiClient:
        settings = get_settings()
        if self._credentials is None:
            self._credentials = load_credentials(settings)
        credentials = self._credentials
        if self._client_factory is not None:
            return self._client_factory(credentials.default)
        return make_client(credentials.default, settings)

    async def analyze(
        self,
        location: str,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
    ) -> Dict[str, Any]:
        """
        Produce the risk report for ``location``.

        Raises:
            ProviderError: 429 on any attempt, or the third failure
            InvalidResponseError: reply is empty or not a JSON object
        """
        client = self._client()
        contents = [user_content(text_part(area_risk_prompt(location, latitude, longitude)))]

        text = ""
        for attempt in range(1, MAX_ATTEMPTS + 1):
            try:
                text = await client.generate(
                    contents,
                    generation_config={"responseMimeType": "application/json"},
                    agent="kawasan",
                )
                break
            except InvalidResponseError:
                raise
            except Exception as exc:
                if error_status(exc) == 429 or attempt == MAX_ATTEMPTS:
                    raise
                logger.warning(
                    "kawasan_retry",
                    attempt=attempt,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
                await self._sleep(RETRY_STEP_SECONDS * attempt)

        if not text:
            raise InvalidResponseError(agent="kawasan", message="Empty response from AI")

        try:
            report = parse_json_response("kawasan", text)
        except InvalidResponseError:
            record_llm_invalid_response("kawasan")
            logger.error("kawasan_invalid_json", raw=text[:500])
            raise
        if not isinstance(report, dict):
            record_llm_invalid_response("kawasan")
            raise InvalidResponseError(
                agent="kawasan",
                message="Risk report must be a JSON object",
                raw_output=text,
            )

        if not isinstance(report.get("rekomendasi"), dict):
            report["rekomendasi"] = {"konstruksi": "", "penguatan_struktur": "", "barang": []}

        logger.info(
            "kawasan_analysis_ok",
            location=location,
            banjir=report.get("banjir"),
            longsor=report.get("longsor"),
            kebakaran=report.get("kebakaran"),
        )
        return report


_area_risk_agent: Optional[AreaRiskAgent] = None


def get_area_risk_agent() -> AreaRiskAgent:
    """Global singleton accessor."""
    global _area_risk_agent
    if _area_risk_agent is None:
        _area_risk_agent = AreaRiskAgent()
    return _area_risk_agent
