"""Plan domain services."""

from cityflow.domains.plan.services.fixed_point_service import FixedPointService
from cityflow.domains.plan.services.llm_client import OpenRouterClient
from cityflow.domains.plan.services.pdf_service import build_pdf_filename, generate_plan_pdf
from cityflow.domains.plan.services.plan_generation_service import PlanGenerationService
from cityflow.domains.plan.services.plan_service import PlanService
from cityflow.domains.plan.services.timeline_service import TimelineService

__all__ = [
    "FixedPointService",
    "OpenRouterClient",
    "PlanGenerationService",
    "PlanService",
    "TimelineService",
    "build_pdf_filename",
    "generate_plan_pdf",
]
