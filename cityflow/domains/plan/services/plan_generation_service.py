"""
CityFlow - Plan Generation Service
Turns a draft plan into a day-by-day itinerary using the OpenRouter LLM.

Workflow:
1. Credit check on the user's profile
2. Plan and fixed point loading
3. Prompt construction and structured LLM call
4. Transformation of the AI answer into stored generated content
5. Credit decrement and plan update
"""

import logging
from datetime import datetime
from typing import Any, Sequence
from uuid import UUID, uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cityflow.core.config import settings
from cityflow.core.exceptions import (
    AppError,
    ConflictError,
    ExternalServiceError,
    ForbiddenError,
    PlanGenerationRejectedError,
    ValidationError,
)
from cityflow.domains.plan.content import item_type_for_category
from cityflow.domains.plan.models import FixedPoint, Plan, PlanStatus
from cityflow.domains.plan.schemas import (
    AIErrorResponse,
    AIGeneratedContent,
    AISuccessResponse,
    PlanResponse,
)
from cityflow.domains.plan.services.fixed_point_service import FixedPointService
from cityflow.domains.plan.services.llm_client import OpenRouterClient
from cityflow.domains.plan.services.plan_service import PlanService
from cityflow.domains.profile.models import Profile, TravelPace
from cityflow.domains.profile.services import ProfileService

logger = logging.getLogger(__name__)


# ============ Prompts ============


SYSTEM_PROMPT_TEMPLATE = """You are an expert travel planner AI. Your task is to generate a detailed, structured travel itinerary based on the user's plan details.
All text in the response, such as summaries, descriptions, and activity titles, must be in {language}. The JSON structure and keys must remain in English as specified below.
The response MUST be a single JSON object and nothing else. Do not include any introductory text, markdown formatting, or explanations.

VALIDATION RULES:
1. Check for real locations: verify that the destination is a real, plannable location. If it seems fake, nonsensical, or too broad (e.g., "Europe"), return an error.
2. Check for realistic plans: assess whether the plan can realistically be done in the given timeframe. "See all of Spain in 3 days" is not realistic. If the plan is not feasible, return an error.

CURRENCY RULES:
- Determine the local currency of the destination.
- Use the ISO 4217 three-letter code (e.g., "EUR", "USD", "GBP", "JPY", "PLN", "CZK").
- All prices are in the LOCAL currency, as numeric strings WITHOUT currency symbols.
- Use "0" as the price of free activities.

USER PREFERENCES (prioritize these over general tourist attractions):
- Travel Pace: {pace}
  - "slow": relaxed pace with fewer activities per day, longer breaks, more time at each location
  - "moderate": balanced pace with a mix of activities and free time
  - "intensive": fast-paced with many activities, packed schedule, shorter breaks
- User Interests: {preferences}

ACTIVITY CATEGORIES (use ONLY these exact values):
- "history" - historical sites, monuments, heritage
- "food" - restaurants, cafes, food markets
- "sport" - sports activities, fitness
- "nature" - parks, gardens, natural attractions
- "culture" - museums, art galleries, theaters, concerts
- "transport" - transportation between locations
- "accommodation" - hotels, check-in/check-out
- "other" - everything else including nightlife and shopping
Match the user's interests (like "Art & Museums", "Nightlife") to the closest category.

SUCCESS RESPONSE FORMAT:
{{
  "status": "success",
  "summary": "A brief, engaging summary of the entire trip.",
  "currency": "ISO 4217 code of the destination",
  "itinerary": {{
    "destination": "...",
    "dates": {{ "start": "...", "end": "..." }},
    "days": [
      {{
        "date": "YYYY-MM-DD",
        "activities": [
          {{
            "time": "HH:mm (24-hour format, e.g. 18:00, NOT 6:00 PM)",
            "activity": "Activity Title",
            "category": "one of: history, food, sport, nature, culture, transport, accommodation, other",
            "description": "Detailed description of the activity.",
            "estimated_price": "e.g. '18', '0' for free, or null",
            "estimated_duration": "e.g. '2 hours', '30 minutes', or null"
          }}
        ]
      }}
    ]
  }}
}}

ERROR RESPONSE FORMAT:
{{
  "status": "error",
  "error_type": "invalid_location" | "unrealistic_plan",
  "error_message": "A clear, user-friendly explanation of why the plan could not be generated."
}}

PLAN DETAILS:
- Destination: {destination}
- Start Date & Time: {start_date}
- End Date & Time: {end_date}
- User Notes: {notes}

FIXED POINTS:
The user has pre-scheduled the following events. They are NON-NEGOTIABLE and MUST appear in the itinerary EXACTLY at the given date and time. Do not move them to another day, change their time, omit them, or schedule conflicting activities.
Build the rest of the itinerary AROUND them:
{fixed_points}

Generate a plan that is logical and engaging and takes travel time between locations into account. Suggest interesting activities, restaurants, and sights."""

USER_PROMPT = (
    "Please generate the travel plan now based on the provided details. "
    "Ensure the output is a valid JSON object matching the required structure."
)


def format_long_datetime(value: datetime) -> str:
    """'Monday, June 2, 2025 at 14:30'"""
    return f"{value:%A}, {value:%B} {value.day}, {value.year} at {value:%H:%M}"


def format_medium_datetime(value: datetime) -> str:
    """'Jun 2, 2025, 14:30'"""
    return f"{value:%b} {value.day}, {value.year}, {value:%H:%M}"


def build_system_prompt(
    plan: Plan,
    fixed_points: Sequence[FixedPoint],
    profile: Profile,
    language: str,
) -> str:
    """Render the system prompt for a plan."""
    if fixed_points:
        fixed_points_text = "\n".join(
            f"- {format_medium_datetime(fp.event_at)}: {fp.location} - "
            f"{fp.description or 'No description'}"
            for fp in fixed_points
        )
    else:
        fixed_points_text = "No fixed points scheduled."

    pace = profile.travel_pace or TravelPace.MODERATE
    preferences = ", ".join(profile.preferences) if profile.preferences else "No specific preferences"

    return SYSTEM_PROMPT_TEMPLATE.format(
        language=language,
        pace=pace.value if isinstance(pace, TravelPace) else pace,
        preferences=preferences,
        destination=plan.destination,
        start_date=format_long_datetime(plan.start_date),
        end_date=format_long_datetime(plan.end_date),
        notes=plan.notes or "No special notes provided.",
        fixed_points=fixed_points_text,
    )


def transform_to_generated_content(response: AISuccessResponse) -> dict[str, Any]:
    """Convert the AI answer into the generated content stored on a plan.

    ``activities`` become ``items`` with fresh ids and a timeline type
    derived from the category.
    """
    return {
        "summary": response.summary,
        "currency": response.currency,
        "days": [
            {
                "date": day.date,
                "items": [
                    {
                        "id": str(uuid4()),
                        "type": item_type_for_category(activity.category).value,
                        "title": activity.activity,
                        "time": activity.time,
                        "category": activity.category.value,
                        "description": activity.description,
                        "estimated_price": activity.estimated_price,
                        "estimated_duration": activity.estimated_duration,
                    }
                    for activity in day.activities
                ],
            }
            for day in response.itinerary.days
        ],
    }


# ============ Service ============


class PlanGenerationService:
    """Orchestrates AI generation of a plan's itinerary."""

    def __init__(
        self,
        session: AsyncSession,
        llm_client: OpenRouterClient | None = None,
    ) -> None:
        self.session = session
        self.llm_client = llm_client or OpenRouterClient()
        self.plan_service = PlanService(session)
        self.fixed_point_service = FixedPointService(session)
        self.profile_service = ProfileService(session)

    async def generate_and_save_plan(
        self,
        plan_id: UUID,
        user_id: UUID,
        language: str | None = None,
    ) -> PlanResponse:
        """Generate the itinerary of a draft plan and store it.

        A credit is only charged once the AI returned a usable itinerary.

        Raises:
            NotFoundError: Profile or plan missing
            ForbiddenError: No generation credits left
            ConflictError: Plan is not a draft
            PlanGenerationRejectedError: The AI judged the plan unrealistic
            ExternalServiceError: LLM failure, or credits/plan could not be saved
        """
        language = language or settings.GENERATION_LANGUAGE
        logger.debug(f"Starting plan generation for plan {plan_id} (user {user_id})")

        # 1. Credit check
        profile = await self.profile_service.get_profile_model(user_id)
        if profile.generations_remaining <= 0:
            raise ForbiddenError("You have no plan generations remaining.")

        # 2. Plan
        plan = await self.plan_service.get_plan_model(plan_id, user_id)
        if plan.status != PlanStatus.DRAFT:
            raise ConflictError("This plan has already been generated.")
        if not plan.start_date or not plan.end_date:
            raise ValidationError("Plan must have both start date and end date to generate.")

        # 3. Fixed points
        fixed_points = await self.fixed_point_service.list_models(plan_id)

        # 4. Content
        generated_content = await self.generate_plan_content(plan, fixed_points, profile, language)

        # 5. Credits
        try:
            await self.profile_service.decrement_generations(user_id)
        except (ForbiddenError, SQLAlchemyError) as e:
            await self.session.rollback()
            logger.error(f"Failed to decrement generations for user {user_id}: {e}")
            raise ExternalServiceError("Failed to update user credits.", e) from e

        # 6. Plan update, committed together with the decrement
        try:
            plan = await self.plan_service.save_generated_content(
                plan, generated_content, status=PlanStatus.GENERATED
            )
        except AppError as e:
            # The rollback in save_generated_content also undoes the decrement
            logger.critical(
                f"Credits deducted but plan update failed for plan {plan_id} (user {user_id}): {e}"
            )
            raise ExternalServiceError("Failed to save generated plan.", e) from e

        logger.info(f"Plan {plan_id} generated successfully")
        return PlanResponse.model_validate(plan)

    async def generate_plan_content(
        self,
        plan: Plan,
        fixed_points: Sequence[FixedPoint],
        profile: Profile,
        language: str | None = None,
    ) -> dict[str, Any]:
        """Ask the LLM for an itinerary and convert it for storage.

        Raises:
            PlanGenerationRejectedError: When the AI answers with an error
        """
        language = language or settings.GENERATION_LANGUAGE
        logger.debug(f"Generating content for plan {plan.id} ({plan.destination})")

        system_prompt = build_system_prompt(plan, fixed_points, profile, language)
        response = await self.llm_client.get_structured_response(
            system_prompt=system_prompt,
            user_prompt=USER_PROMPT,
            response_model=AIGeneratedContent,
        )

        if isinstance(response, AIErrorResponse):
            logger.warning(
                f"AI rejected plan {plan.id}: {response.error_type} - {response.error_message}"
            )
            raise PlanGenerationRejectedError(response.error_message, response.error_type)

        return transform_to_generated_content(response)
