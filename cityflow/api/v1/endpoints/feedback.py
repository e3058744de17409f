"""Plan feedback endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from cityflow.core.deps import get_current_user_id, get_db_session_dep
from cityflow.domains.feedback.schemas import FeedbackResponse, FeedbackSubmit
from cityflow.domains.feedback.services import FeedbackService

router = APIRouter()


def get_feedback_service(
    session: AsyncSession = Depends(get_db_session_dep),
) -> FeedbackService:
    """Dependency for getting FeedbackService."""
    return FeedbackService(session)


@router.get(
    "",
    response_model=FeedbackResponse | None,
    summary="Get your feedback on a plan",
)
async def get_feedback(
    plan_id: UUID,
    service: FeedbackService = Depends(get_feedback_service),
    user_id: UUID = Depends(get_current_user_id),
) -> FeedbackResponse | None:
    """Return the feedback, or null when none was submitted yet."""
    return await service.find_feedback(plan_id, user_id)


@router.post(
    "",
    response_model=FeedbackResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit feedback on a plan",
    responses={200: {"description": "Existing feedback updated"}},
)
async def submit_feedback(
    plan_id: UUID,
    data: FeedbackSubmit,
    response: Response,
    service: FeedbackService = Depends(get_feedback_service),
    user_id: UUID = Depends(get_current_user_id),
) -> FeedbackResponse:
    """Create feedback (201) or replace the existing one (200)."""
    feedback, created = await service.submit_feedback(plan_id, user_id, data)
    if not created:
        response.status_code = status.HTTP_200_OK
    return feedback
