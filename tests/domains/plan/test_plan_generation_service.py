"""
Tests for AI plan generation.

The LLM client is mocked; these tests cover prompt construction, the
transformation of the AI answer and the credit/plan update sequence.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from cityflow.core.exceptions import (
    ConflictError,
    DatabaseError,
    ExternalServiceError,
    ForbiddenError,
    PlanGenerationRejectedError,
)
from cityflow.domains.plan.models import PlanStatus
from cityflow.domains.plan.schemas import AIErrorResponse, AISuccessResponse
from cityflow.domains.plan.services.plan_generation_service import (
    PlanGenerationService,
    build_system_prompt,
    format_long_datetime,
    format_medium_datetime,
    transform_to_generated_content,
)
from cityflow.domains.profile.models import TravelPace

from conftest import ExpiringPlan, build_fixed_point, build_plan, build_profile

AI_SUCCESS = {
    "status": "success",
    "summary": "Dwa dni w Krakowie",
    "currency": "PLN",
    "itinerary": {
        "destination": "Kraków",
        "dates": {"start": "2025-06-02", "end": "2025-06-03"},
        "days": [
            {
                "date": "2025-06-02",
                "activities": [
                    {
                        "time": "09:00",
                        "activity": "Śniadanie",
                        "category": "food",
                        "description": "Bajgle na Kazimierzu",
                        "estimated_price": "35",
                        "estimated_duration": "1 hour",
                    },
                    {
                        "time": "11:00",
                        "activity": "Tramwaj na Wawel",
                        "category": "transport",
                        "description": "Linia 18",
                    },
                    {
                        "time": "12:00",
                        "activity": "Wawel",
                        "category": "history",
                        "description": "Zamek",
                        "estimated_price": "0",
                    },
                ],
            }
        ],
    },
}


def make_service(mock_session, plan, profile, llm_response) -> PlanGenerationService:
    llm_client = MagicMock()
    llm_client.get_structured_response = AsyncMock(return_value=llm_response)
    service = PlanGenerationService(mock_session, llm_client=llm_client)

    service.profile_service.get_profile_model = AsyncMock(return_value=profile)
    service.profile_service.decrement_generations = AsyncMock(return_value=profile.generations_remaining - 1)
    service.plan_service.get_plan_model = AsyncMock(return_value=plan)
    service.fixed_point_service.list_models = AsyncMock(return_value=[])

    async def save(plan_obj, content, status=None):
        plan_obj.generated_content = content
        if status is not None:
            plan_obj.status = status
        return plan_obj

    service.plan_service.save_generated_content = AsyncMock(side_effect=save)
    return service


class TestDateFormatting:
    """Tests for prompt date formatting."""

    def test_long_format(self):
        """Test the long date-time used for plan dates."""
        plan = build_plan()
        assert format_long_datetime(plan.start_date) == "Monday, June 2, 2025 at 08:00"

    def test_medium_format(self):
        """Test the medium date-time used for fixed points."""
        plan = build_plan()
        assert format_medium_datetime(plan.end_date) == "Jun 3, 2025, 20:00"


class TestBuildSystemPrompt:
    """Tests for build_system_prompt."""

    def test_includes_plan_profile_and_fixed_points(self):
        """Test that the prompt carries everything the AI must respect."""
        plan = build_plan(notes="Bez muzeów")
        fixed_point = build_fixed_point(plan.id)
        profile = build_profile(travel_pace=TravelPace.INTENSIVE)

        prompt = build_system_prompt(plan, [fixed_point], profile, "Polish")

        assert "must be in Polish" in prompt
        assert "- Destination: Kraków" in prompt
        assert "Bez muzeów" in prompt
        assert "- Travel Pace: intensive" in prompt
        assert "Art & Museums, Local Food" in prompt
        assert "- Jun 2, 2025, 19:00: Filharmonia Krakowska - Koncert" in prompt

    def test_defaults_without_preferences_or_fixed_points(self):
        """Test the placeholders for missing optional data."""
        plan = build_plan()
        profile = build_profile(travel_pace=None, preferences=None)

        prompt = build_system_prompt(plan, [], profile, "English")

        assert "No fixed points scheduled." in prompt
        assert "- Travel Pace: moderate" in prompt
        assert "No specific preferences" in prompt
        assert "No special notes provided." in prompt


class TestTransformToGeneratedContent:
    """Tests for transform_to_generated_content."""

    def test_activities_become_items(self):
        """Test ids, titles and derived types of transformed items."""
        content = transform_to_generated_content(AISuccessResponse.model_validate(AI_SUCCESS))

        assert content["summary"] == "Dwa dni w Krakowie"
        assert content["currency"] == "PLN"
        items = content["days"][0]["items"]
        assert [item["type"] for item in items] == ["meal", "transport", "activity"]
        assert items[0]["title"] == "Śniadanie"
        assert items[0]["estimated_price"] == "35"
        assert len({item["id"] for item in items}) == 3


class TestGenerateAndSavePlan:
    """Tests for PlanGenerationService.generate_and_save_plan."""

    @pytest.mark.asyncio
    async def test_success_charges_credit_and_saves(self, mock_session, user_id):
        """Test the happy path."""
        plan = build_plan()
        service = make_service(
            mock_session, plan, build_profile(), AISuccessResponse.model_validate(AI_SUCCESS)
        )

        response = await service.generate_and_save_plan(plan.id, user_id)

        assert response.status == PlanStatus.GENERATED
        assert response.generated_content["days"][0]["date"] == "2025-06-02"
        service.profile_service.decrement_generations.assert_awaited_once_with(user_id)
        save_kwargs = service.plan_service.save_generated_content.await_args.kwargs
        assert save_kwargs["status"] == PlanStatus.GENERATED

    @pytest.mark.asyncio
    async def test_language_override(self, mock_session, user_id):
        """Test that an explicit language reaches the system prompt."""
        plan = build_plan()
        service = make_service(
            mock_session, plan, build_profile(), AISuccessResponse.model_validate(AI_SUCCESS)
        )

        await service.generate_and_save_plan(plan.id, user_id, language="German")

        system_prompt = service.llm_client.get_structured_response.await_args.kwargs["system_prompt"]
        assert "must be in German" in system_prompt

    @pytest.mark.asyncio
    async def test_no_credits_left(self, mock_session, user_id):
        """Test that users without credits cannot generate."""
        plan = build_plan()
        service = make_service(
            mock_session,
            plan,
            build_profile(generations_remaining=0),
            AISuccessResponse.model_validate(AI_SUCCESS),
        )

        with pytest.raises(ForbiddenError):
            await service.generate_and_save_plan(plan.id, user_id)
        service.llm_client.get_structured_response.assert_not_called()

    @pytest.mark.asyncio
    async def test_already_generated_plan_conflicts(self, mock_session, user_id):
        """Test that a plan is generated only once."""
        plan = build_plan(status=PlanStatus.GENERATED)
        service = make_service(
            mock_session, plan, build_profile(), AISuccessResponse.model_validate(AI_SUCCESS)
        )

        with pytest.raises(ConflictError, match="already been generated"):
            await service.generate_and_save_plan(plan.id, user_id)

    @pytest.mark.asyncio
    async def test_ai_rejection_keeps_draft_and_credit(self, mock_session, user_id):
        """Test that an AI refusal charges nothing and leaves the plan alone."""
        plan = build_plan()
        rejection = AIErrorResponse(
            status="error",
            error_type="unrealistic_plan",
            error_message="Nie da się zwiedzić całej Polski w dwa dni.",
        )
        service = make_service(mock_session, plan, build_profile(), rejection)

        with pytest.raises(PlanGenerationRejectedError) as exc_info:
            await service.generate_and_save_plan(plan.id, user_id)

        assert exc_info.value.error_type == "unrealistic_plan"
        assert exc_info.value.status_code == 400
        service.profile_service.decrement_generations.assert_not_called()
        service.plan_service.save_generated_content.assert_not_called()
        assert plan.status == PlanStatus.DRAFT

    @pytest.mark.asyncio
    async def test_credit_failure_leaves_plan_untouched(self, mock_session, user_id):
        """Test that a failed decrement aborts before the plan is saved."""
        plan = build_plan()
        service = make_service(
            mock_session, plan, build_profile(), AISuccessResponse.model_validate(AI_SUCCESS)
        )
        service.profile_service.decrement_generations = AsyncMock(
            side_effect=ForbiddenError("You have no plan generations remaining.")
        )

        with pytest.raises(ExternalServiceError, match="Failed to update user credits."):
            await service.generate_and_save_plan(plan.id, user_id)

        mock_session.rollback.assert_awaited_once()
        service.plan_service.save_generated_content.assert_not_called()

    @pytest.mark.asyncio
    async def test_save_failure_is_reported(self, mock_session, user_id):
        """Test that a failed plan update surfaces as an external service error."""
        plan = build_plan()
        service = make_service(
            mock_session, plan, build_profile(), AISuccessResponse.model_validate(AI_SUCCESS)
        )
        service.plan_service.save_generated_content = AsyncMock(
            side_effect=DatabaseError("Failed to update plan")
        )

        with pytest.raises(ExternalServiceError, match="Failed to save generated plan."):
            await service.generate_and_save_plan(plan.id, user_id)

    @pytest.mark.asyncio
    async def test_database_failure_on_save_is_reported(self, mock_session, user_id):
        """Test a failing UPDATE through the real plan save, with the plan expired by the rollback."""
        plan = ExpiringPlan(build_plan())
        service = make_service(
            mock_session, plan, build_profile(), AISuccessResponse.model_validate(AI_SUCCESS)
        )
        del service.plan_service.save_generated_content
        service.plan_service.repository.update_obj = AsyncMock(
            side_effect=OperationalError("UPDATE plans", {}, Exception("connection lost"))
        )
        mock_session.rollback = AsyncMock(side_effect=plan.expire)

        with pytest.raises(ExternalServiceError, match="Failed to save generated plan.") as exc_info:
            await service.generate_and_save_plan(plan.id, user_id)

        assert isinstance(exc_info.value.__cause__, DatabaseError)
        mock_session.rollback.assert_awaited_once()
        mock_session.commit.assert_not_awaited()
