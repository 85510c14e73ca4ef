"""
Floor-plan generation.

Asks the chat agent (floorplan stage) for a JSON floor plan. When the AI call
fails or its output does not validate, a deterministic plan derived from the
budget is returned instead and flagged with ``fallback=True``.
"""
import random
import string
import time
from typing import List, Optional

from app.core.logging import get_logger
from app.core.metrics import record_floorplan_fallback, record_llm_invalid_response
from app.services.ai.agents.chat import ChatAgent, get_chat_agent
from app.services.ai.errors import InvalidResponseError
from app.services.ai.schema import (
    ChatRequest,
    FloorPlan,
    FloorPlanRequest,
    FloorPlanResponse,
    FloorPlanSpecifications,
    Room,
    parse_json_response,
    validate_floorplan_payload,
)

logger = get_logger(__name__)

# Kept in the response for client compatibility. Image rendering and download
# endpoints are not served by this API.
IMAGE_URL_TEMPLATE = "/api/generate-floorplan/mock-image/{id}"
DOWNLOAD_URL_TEMPLATE = "/api/generate-floorplan/download/{id}"

BASE_ROOMS = [
    Room(name="Ruang Tamu", size="3x4m", description="Area penerima tamu dengan pencahayaan alami"),
    Room(name="Kamar Tidur Utama", size="3x3m", description="Kamar tidur dengan ventilasi baik"),
    Room(name="Dapur", size="2x3m", description="Dapur dengan sirkulasi udara optimal"),
    Room(name="Kamar Mandi", size="1.5x2m", description="Kamar mandi dengan sistem drainase baik"),
]

BASE_FEATURES = ["Pencahayaan alami optimal", "Ventilasi silang", "Sirkulasi yang efisien"]

_ID_ALPHABET = string.ascii_lowercase + string.digits


def total_area_for_budget(budget: str) -> str:
    """Map a budget bracket label to the total floor area."""
    if "500-800" in budget:
        return "63m²"
    if "800-1.2" in budget:
        return "80m²"
    if "1.2" in budget:
        return "108m²"
    return "48m²"


def extra_rooms_for_budget(budget: str) -> List[Room]:
    rooms = []
    if "500-800" in budget or "800-1.2" in budget or "1.2" in budget:
        rooms.append(Room(name="Kamar Tidur 2", size="3x3m", description="Kamar tidur tambahan"))
    if "800-1.2" in budget or "1.2" in budget:
        rooms.append(Room(name="Ruang Keluarga", size="3x4m", description="Area berkumpul keluarga"))
    if "1.2" in budget:
        rooms.append(Room(name="Kamar Tidur 3", size="3x3m", description="Kamar tidur ketiga"))
        rooms.append(Room(name="Ruang Kerja", size="2x3m", description="Area kerja/study room"))
    return rooms


def new_floor_plan_id() -> str:
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"fp_{int(time.time() * 1000)}_{suffix}"


def build_ai_message(request: FloorPlanRequest, total_area: str) -> str:
    return (
        f"Gaya Desain: {request.design_style}\n"
        f"Budget: {request.budget}\n"
        f"Lokasi Lahan: {request.location}\n"
        f"Luas Total: {total_area}\n"
        f"Fitur yang Dipilih: {', '.join(request.features)}\n"
        f"Ukuran Rumah: {request.size}\n"
        f"Ruangan yang Diinginkan: {', '.join(request.rooms)}\n"
    )


def mock_floor_plan(request: FloorPlanRequest, plan_id: Optional[str] = None) -> FloorPlan:
    """Deterministic plan (apart from its id) for the given parameters."""
    plan_id = plan_id or new_floor_plan_id()
    total_area = total_area_for_budget(request.budget or "")
    location = (request.location or "").lower()

    return FloorPlan(
        id=plan_id,
        name=f"Denah Rumah {request.design_style}",
        description=(
            f"Denah rumah bergaya {request.design_style} dengan luas {total_area}, "
            f"disesuaikan untuk lahan {location}"
        ),
        imageUrl=IMAGE_URL_TEMPLATE.format(id=plan_id),
        specifications=FloorPlanSpecifications(
            totalArea=total_area,
            rooms=BASE_ROOMS + extra_rooms_for_budget(request.budget or ""),
            features=BASE_FEATURES + list(request.features[:3]),
        ),
        downloadUrl=DOWNLOAD_URL_TEMPLATE.format(id=plan_id),
    )


class FloorPlanService:
    def __init__(self, chat_agent: Optional[ChatAgent] = None):
        self._chat_agent = chat_agent

    @property
    def chat_agent(self) -> ChatAgent:
        if self._chat_agent is None:
            self._chat_agent = get_chat_agent()
        return self._chat_agent

    async def _generate_with_ai(self, request: FloorPlanRequest) -> FloorPlan:
        total_area = total_area_for_budget(request.budget or "")
        text = await self.chat_agent.respond(
            ChatRequest(
                userMessage=build_ai_message(request, total_area),
                stage="floorplan",
                type="generation",
            )
        )
        try:
            ai_plan = validate_floorplan_payload(parse_json_response("floorplan", text))
        except InvalidResponseError:
            record_llm_invalid_response("floorplan")
            raise

        plan_id = new_floor_plan_id()
        return FloorPlan(
            id=plan_id,
            name=ai_plan.name or f"Denah Rumah {request.design_style}",
            description=ai_plan.description or f"Denah rumah bergaya {request.design_style}",
            imageUrl=IMAGE_URL_TEMPLATE.format(id=plan_id),
            specifications=FloorPlanSpecifications(
                totalArea=ai_plan.total_area or total_area,
                rooms=ai_plan.rooms,
                features=ai_plan.features or [],
            ),
            downloadUrl=DOWNLOAD_URL_TEMPLATE.format(id=plan_id),
            aiData=ai_plan.model_dump(by_alias=True, exclude_none=True),
        )

    async def generate(self, request: FloorPlanRequest) -> FloorPlanResponse:
        """Generate a floor plan, falling back to mock data on any AI failure."""
        logger.info("floorplan_generation_started", design_style=request.design_style)
        try:
            floor_plan = await self._generate_with_ai(request)
        except Exception as exc:
            record_floorplan_fallback()
            logger.warning(
                "floorplan_ai_failed_using_fallback",
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return FloorPlanResponse(success=True, floorPlan=mock_floor_plan(request), fallback=True)

        logger.info("floorplan_generated", floor_plan_id=floor_plan.id)
        return FloorPlanResponse(success=True, floorPlan=floor_plan)


_floorplan_service: Optional[FloorPlanService] = None


def get_floorplan_service() -> FloorPlanService:
    """Global singleton accessor."""
    global _floorplan_service
    if _floorplan_service is None:
        _floorplan_service = FloorPlanService()
    return _floorplan_service
