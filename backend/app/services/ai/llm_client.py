"""
Async HTTP client for the Gemini generateContent API.

Design constraints:
- Plain HTTP via httpx against the REST API, no vendor SDK
- One client per credential; ``make_client`` builds a fresh one each time
  the orchestrator selects or switches credentials, so nothing is shared
  between concurrent requests
- Provider failures surface as ``ProviderError`` carrying the HTTP status and
  the provider's own message, ready for ``classify_error``
"""
import base64
import time
from typing import Any, Dict, List, Optional

import httpx

from app.core.config import Settings, get_settings
from app.core.logging import get_logger
from app.core.metrics import record_llm_error, record_llm_request
from app.services.ai.credentials import Credential
from app.services.ai.errors import InvalidResponseError, ProviderError

logger = get_logger(__name__)


def text_part(text: str) -> Dict[str, Any]:
    return {"text": text}


def inline_image_part(data: bytes, mime_type: str) -> Dict[str, Any]:
    """Inline base64 payload, the way the API accepts uploaded images."""
    return {
        "inlineData": {
            "mimeType": mime_type,
            "data": base64.b64encode(data).decode("ascii"),
        }
    }


def user_content(*parts: Dict[str, Any]) -> Dict[str, Any]:
    return {"role": "user", "parts": list(parts)}


def model_content(text: str) -> Dict[str, Any]:
    return {"role": "model", "parts": [text_part(text)]}


def _error_message(response: httpx.Response) -> str:
    """Extract the provider's error message from an error response."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        message = error.get("message") or ""
        status = error.get("status")
        if status and status not in message:
            return f"{status}: {message}" if message else status
        return message or f"HTTP {response.status_code}"
    return response.text or f"HTTP {response.status_code}"


class GeminiClient:
    """Async HTTP client bound to a single credential and model."""

    def __init__(
        self,
        credential: Credential,
        model: str,
        api_base: str,
        timeout_seconds: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.credential = credential
        self.model = model
        self.api_base = api_base.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    @property
    def credential_name(self) -> str:
        return self.credential.name

    async def _post(self, path: str, json_payload: Dict[str, Any]) -> httpx.Response:
        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": self.credential.api_key,
        }
        url = f"{self.api_base}{path}"
        async with httpx.AsyncClient(
            timeout=self.timeout_seconds,
            transport=self._transport,
        ) as client:
            return await client.post(url, headers=headers, json=json_payload)

    async def generate(
        self,
        contents: List[Dict[str, Any]],
        system_instruction: Optional[str] = None,
        generation_config: Optional[Dict[str, Any]] = None,
        agent: str = "default",
    ) -> str:
        """
        Call ``models/{model}:generateContent``.

        Args:
            contents: Gemini ``contents`` list (see ``user_content``)
            system_instruction: Optional system prompt
            generation_config: Optional ``generationConfig`` (e.g.
                ``{"responseMimeType": "application/json"}``)
            agent: Logical caller name, used for metrics and logs

        Returns:
            Concatenated text of the first candidate.

        Raises:
            ProviderError: transport failure, timeout, or non-2xx status
            InvalidResponseError: 2xx response without candidate text
        """
        payload: Dict[str, Any] = {"contents": contents}
        if system_instruction:
            payload["systemInstruction"] = {"parts": [text_part(system_instruction)]}
        if generation_config:
            payload["generationConfig"] = generation_config

        start = time.time()
        try:
            response = await self._post(f"/models/{self.model}:generateContent", payload)
        except httpx.TimeoutException as exc:
            record_llm_error(agent, "timeout")
            logger.warning(
                "llm_timeout",
                agent=agent,
                credential=self.credential_name,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise ProviderError(f"Request timeout after {self.timeout_seconds}s") from exc
        except httpx.HTTPError as exc:
            record_llm_error(agent, "http_error")
            logger.warning(
                "llm_http_error",
                agent=agent,
                credential=self.credential_name,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise ProviderError(f"Service unavailable: {exc}") from exc
        finally:
            record_llm_request(agent, self.model, (time.time() - start) * 1000.0)

        if response.status_code >= 400:
            message = _error_message(response)
            record_llm_error(agent, f"status_{response.status_code}")
            logger.warning(
                "llm_status_error",
                agent=agent,
                credential=self.credential_name,
                status_code=response.status_code,
                error=message,
            )
            raise ProviderError(message, status_code=response.status_code)

        data = response.json()
        text = self._extract_text(data)
        if not text:
            record_llm_error(agent, "empty_response")
            logger.warning(
                "llm_empty_response",
                agent=agent,
                credential=self.credential_name,
                finish_reason=(data.get("candidates") or [{}])[0].get("finishReason"),
            )
            raise InvalidResponseError(agent=agent, message="Empty response from AI")
        return text

    @staticmethod
    def _extract_text(data: Dict[str, Any]) -> str:
        candidates = data.get("candidates") or []
        if not candidates:
            return ""
        parts = (candidates[0].get("content") or {}).get("parts") or []
        return "".join(part.get("text", "") for part in parts if isinstance(part, dict))


def make_client(
    credential: Credential,
    settings: Optional[Settings] = None,
    model: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> GeminiClient:
    """Fresh client bound to ``credential``."""
    settings = settings or get_settings()
    return GeminiClient(
        credential=credential,
        model=model or settings.gemini_model,
        api_base=settings.gemini_api_base,
        timeout_seconds=settings.gemini_timeout_seconds,
        transport=transport,
    )
