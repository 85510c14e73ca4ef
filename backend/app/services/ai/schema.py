"""
Pydantic models for the AI endpoints and the JSON the provider returns.

Provider text is parsed with ``parse_json_response``, which strips Markdown
code fences before decoding. Shape problems are reported as
``InvalidResponseError`` so routes can answer with 500/502 independently of
the orchestrator's retry classification.
"""
import json
import re
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from app.services.ai.errors import InvalidResponseError

_FENCE_RE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)


# ============================================================================
# AI chat
# ============================================================================

class ChatMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_user: bool = Field(True, alias="isUser")
    content: str


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_message: str = Field("", alias="userMessage")
    stage: Optional[str] = None
    # List of {questionId, answer} from the questionnaire, or a plain mapping
    answers: Optional[Union[List[Dict[str, Any]], Dict[str, Any]]] = None
    type: Optional[str] = None
    user_id: Optional[str] = Field(None, alias="userId")
    chat_history: List[ChatMessage] = Field(default_factory=list, alias="chatHistory")


class ChatResponse(BaseModel):
    response: str
    success: bool = True


# ============================================================================
# Interior recommendation
# ============================================================================

class RoomAnalysis(BaseModel):
    room_type: str = ""
    description: str = ""


class InteriorItem(BaseModel):
    item_name: str
    description: str = ""
    estimated_price: float = 0
    placement_suggestion: str = ""


class InteriorRecommendation(BaseModel):
    analysis: RoomAnalysis
    recommendations: List[InteriorItem] = Field(default_factory=list)
    summary: str = ""


# ============================================================================
# Area risk analysis
# ============================================================================

class AreaRiskRequest(BaseModel):
    location: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


# ============================================================================
# Floor plan
# ============================================================================

class FloorPlanRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    design_style: Optional[str] = Field(None, alias="designStyle")
    budget: Optional[str] = None
    location: Optional[str] = None
    features: List[str] = Field(default_factory=list)
    rooms: List[str] = Field(default_factory=list)
    size: str = ""


class Room(BaseModel):
    name: str
    size: str = ""
    description: str = ""


class FloorPlanSpecifications(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_area: str = Field(..., alias="totalArea")
    rooms: List[Room]
    features: List[str] = Field(default_factory=list)


class AIFloorPlan(BaseModel):
    """The ``floorPlan`` object the model is asked to return."""

    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    description: Optional[str] = None
    total_area: Optional[str] = Field(None, alias="totalArea")
    rooms: List[Room]
    features: Optional[List[str]] = None

    @field_validator("rooms")
    @classmethod
    def validate_rooms(cls, value: List[Room]) -> List[Room]:
        if not value:
            raise ValueError("floor plan must contain at least one room")
        return value


class FloorPlan(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    description: str
    image_url: str = Field(..., alias="imageUrl")
    specifications: FloorPlanSpecifications
    download_url: str = Field(..., alias="downloadUrl")
    ai_data: Optional[Dict[str, Any]] = Field(None, alias="aiData")


class FloorPlanResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    floor_plan: Optional[FloorPlan] = Field(None, alias="floorPlan")
    fallback: Optional[bool] = None
    error: Optional[str] = None


# ============================================================================
# Parsing helpers
# ============================================================================

def strip_code_fences(text: str) -> str:
    """Remove ```json / ``` fences the model wraps JSON in."""
    return _FENCE_RE.sub("", text).strip()


def parse_json_response(agent: str, text: str) -> Any:
    """
    Decode provider text as JSON.

    Raises:
        InvalidResponseError if the cleaned text is not valid JSON.
    """
    cleaned = strip_code_fences(text or "")
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise InvalidResponseError(
            agent=agent,
            message=f"Invalid JSON from AI: {exc}",
            raw_output=text,
        ) from exc


def validate_interior_payload(payload: Any) -> InteriorRecommendation:
    try:
        return InteriorRecommendation.model_validate(payload)
    except ValidationError as exc:
        raise InvalidResponseError(
            agent="interior",
            message=f"Invalid interior payload: {exc}",
        ) from exc


def validate_floorplan_payload(payload: Any) -> AIFloorPlan:
    """Validate ``{"floorPlan": {...}}`` from the model."""
    if not isinstance(payload, dict) or not isinstance(payload.get("floorPlan"), dict):
        raise InvalidResponseError(
            agent="floorplan",
            message="AI response has no floorPlan object",
        )
    try:
        return AIFloorPlan.model_validate(payload["floorPlan"])
    except ValidationError as exc:
        raise InvalidResponseError(
            agent="floorplan",
            message=f"Invalid floor plan payload: {exc}",
        ) from exc
