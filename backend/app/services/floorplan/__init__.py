"""Floor-plan generation with deterministic fallback."""

from .generator import FloorPlanService, get_floorplan_service, mock_floor_plan

__all__ = ["FloorPlanService", "get_floorplan_service", "mock_floor_plan"]
