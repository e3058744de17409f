"""Plan API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from cityflow.core.deps import get_current_user_id, get_db_session_dep
from cityflow.core.exceptions import ConflictError, ValidationError
from cityflow.domains.plan.models import PlanStatus
from cityflow.domains.plan.schemas import (
    PlanCreate,
    PlanListQuery,
    PlanListResponse,
    PlanResponse,
    PlanUpdate,
)
from cityflow.domains.plan.services import (
    OpenRouterClient,
    PlanGenerationService,
    PlanService,
    build_pdf_filename,
    generate_plan_pdf,
)

router = APIRouter()

EXPORT_FORMATS = ("pdf",)


def get_plan_service(
    session: AsyncSession = Depends(get_db_session_dep),
) -> PlanService:
    """Dependency for getting PlanService."""
    return PlanService(session)


def get_llm_client() -> OpenRouterClient:
    """Dependency for getting the OpenRouter client."""
    return OpenRouterClient()


def get_plan_generation_service(
    session: AsyncSession = Depends(get_db_session_dep),
    llm_client: OpenRouterClient = Depends(get_llm_client),
) -> PlanGenerationService:
    """Dependency for getting PlanGenerationService."""
    return PlanGenerationService(session, llm_client)


def get_plan_list_query(
    status_filter: list[str] | None = Query(
        None,
        alias="status",
        description="Status filter, comma separated or repeated (draft, generated, archived)",
    ),
    sort_by: str = Query("created_at", description="created_at or name"),
    order: str = Query("desc", description="asc or desc"),
    limit: int = Query(20, description="Items per page (1-100)"),
    offset: int = Query(0, description="Items to skip"),
) -> PlanListQuery:
    """Validate list query parameters into a PlanListQuery."""
    try:
        return PlanListQuery(
            statuses=status_filter,
            sort_by=sort_by,
            order=order,
            limit=limit,
            offset=offset,
        )
    except PydanticValidationError as e:
        details = [
            {
                "field": ".".join(str(part) for part in error["loc"]),
                "message": error["msg"],
            }
            for error in e.errors()
        ]
        raise ValidationError("Invalid query parameters", details=details)


# ==================== Plan CRUD Endpoints ====================


@router.post(
    "",
    response_model=PlanResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a draft plan",
)
async def create_plan(
    data: PlanCreate,
    service: PlanService = Depends(get_plan_service),
    user_id: UUID = Depends(get_current_user_id),
) -> PlanResponse:
    """Create a new plan in draft status."""
    return await service.create_plan(user_id, data)


@router.get(
    "",
    response_model=PlanListResponse,
    summary="List plans",
    description="""
    Paginated list of the current user's plans.

    **Filtering:** `status=draft,generated` or `status=draft&status=generated`

    **Sorting:** `sort_by` is `created_at` (default) or `name`, `order` is `asc` or `desc`
    """,
)
async def get_plans(
    query: PlanListQuery = Depends(get_plan_list_query),
    service: PlanService = Depends(get_plan_service),
    user_id: UUID = Depends(get_current_user_id),
) -> PlanListResponse:
    """Get paginated list of user's plans."""
    return await service.get_plans(user_id, query)


@router.get(
    "/{plan_id}",
    response_model=PlanResponse,
    summary="Get a plan by ID",
)
async def get_plan(
    plan_id: UUID,
    service: PlanService = Depends(get_plan_service),
    user_id: UUID = Depends(get_current_user_id),
) -> PlanResponse:
    """Get a single plan with its generated content."""
    return await service.get_plan(plan_id, user_id)


@router.patch(
    "/{plan_id}",
    response_model=PlanResponse,
    summary="Update a plan",
    description="""
    Partial update. `name` and `notes` can change until the plan is archived;
    `destination`, `start_date` and `end_date` only while the plan is a draft.
    """,
)
async def update_plan(
    plan_id: UUID,
    data: PlanUpdate,
    service: PlanService = Depends(get_plan_service),
    user_id: UUID = Depends(get_current_user_id),
) -> PlanResponse:
    """Update an existing plan."""
    return await service.update_plan(plan_id, user_id, data)


@router.delete(
    "/{plan_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a plan",
)
async def delete_plan(
    plan_id: UUID,
    service: PlanService = Depends(get_plan_service),
    user_id: UUID = Depends(get_current_user_id),
) -> None:
    """Delete a plan together with its fixed points and feedback."""
    await service.delete_plan(plan_id, user_id)


@router.post(
    "/{plan_id}/archive",
    response_model=PlanResponse,
    summary="Move a plan to history",
)
async def archive_plan(
    plan_id: UUID,
    service: PlanService = Depends(get_plan_service),
    user_id: UUID = Depends(get_current_user_id),
) -> PlanResponse:
    """Archive a plan. Archived plans are read-only."""
    return await service.archive_plan(plan_id, user_id)


# ==================== AI Generation Endpoints ====================


@router.post(
    "/{plan_id}/generate",
    response_model=PlanResponse,
    summary="Generate the itinerary of a draft plan",
    description="""
    Asks the AI for a day-by-day itinerary that respects the plan's fixed points
    and the user's travel preferences. One generation credit is charged on success.

    **Errors:**
    - `400` with `error_type` when the AI rejects the plan (`unrealistic_plan`, `invalid_location`)
    - `403` when no generation credits remain
    - `409` when the plan was already generated
    - `502` when the AI service fails
    """,
)
async def generate_plan(
    plan_id: UUID,
    service: PlanGenerationService = Depends(get_plan_generation_service),
    user_id: UUID = Depends(get_current_user_id),
) -> PlanResponse:
    """Generate and store the plan's itinerary."""
    return await service.generate_and_save_plan(plan_id, user_id)


# ==================== Export Endpoints ====================


@router.get(
    "/{plan_id}/export",
    response_class=Response,
    summary="Export a generated plan",
    responses={200: {"content": {"application/pdf": {}}}},
)
async def export_plan(
    plan_id: UUID,
    export_format: str | None = Query(None, alias="format", description="Export format (pdf)"),
    service: PlanService = Depends(get_plan_service),
    user_id: UUID = Depends(get_current_user_id),
) -> Response:
    """Download a generated plan as a PDF attachment."""
    if not export_format:
        raise ValidationError("Query parameter 'format' is required")
    if export_format not in EXPORT_FORMATS:
        raise ValidationError("Only 'pdf' format is supported")

    plan = await service.get_plan(plan_id, user_id)
    if plan.status != PlanStatus.GENERATED:
        raise ConflictError(
            "Only plans with 'generated' status can be exported. Please generate the plan first."
        )

    pdf_bytes = await run_in_threadpool(generate_plan_pdf, plan)
    filename = build_pdf_filename(plan.name)
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
