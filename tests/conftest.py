"""Shared fixtures for the CityFlow test suite."""

from datetime import datetime, timezone
from typing import Any
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest
from sqlalchemy.exc import MissingGreenlet

from cityflow.domains.plan.models import FixedPoint, Plan, PlanStatus
from cityflow.domains.profile.models import Profile, TravelPace

USER_ID = UUID("11111111-1111-1111-1111-111111111111")


def build_generated_content() -> dict[str, Any]:
    """Two-day itinerary as stored on a generated plan."""
    return {
        "summary": "Weekend w Krakowie",
        "currency": "PLN",
        "days": [
            {
                "date": "2025-06-02",
                "items": [
                    {
                        "id": "item-breakfast",
                        "type": "meal",
                        "category": "food",
                        "title": "Śniadanie na Kazimierzu",
                        "time": "09:00",
                        "estimated_price": "40",
                    },
                    {
                        "id": "item-wawel",
                        "type": "activity",
                        "category": "history",
                        "title": "Zamek na Wawelu",
                        "time": "11:00",
                        "description": "Zwiedzanie komnat królewskich.",
                        "location": "Wawel 5, Kraków",
                        "estimated_price": "0",
                    },
                ],
            },
            {
                "date": "2025-06-03",
                "items": [],
            },
        ],
    }


def build_plan(**overrides: Any) -> Plan:
    """Transient Plan with sensible defaults."""
    now = datetime(2025, 5, 20, 12, 0, tzinfo=timezone.utc)
    values: dict[str, Any] = {
        "id": uuid4(),
        "user_id": USER_ID,
        "name": "Weekend w Krakowie",
        "destination": "Kraków",
        "start_date": datetime(2025, 6, 2, 8, 0, tzinfo=timezone.utc),
        "end_date": datetime(2025, 6, 3, 20, 0, tzinfo=timezone.utc),
        "notes": None,
        "status": PlanStatus.DRAFT,
        "generated_content": None,
        "created_at": now,
        "updated_at": now,
    }
    values.update(overrides)
    return Plan(**values)


def build_generated_plan(**overrides: Any) -> Plan:
    values: dict[str, Any] = {
        "status": PlanStatus.GENERATED,
        "generated_content": build_generated_content(),
    }
    values.update(overrides)
    return build_plan(**values)


def build_profile(**overrides: Any) -> Profile:
    now = datetime(2025, 5, 20, 12, 0, tzinfo=timezone.utc)
    values: dict[str, Any] = {
        "id": USER_ID,
        "preferences": ["Art & Museums", "Local Food"],
        "travel_pace": TravelPace.MODERATE,
        "generations_remaining": 3,
        "onboarding_completed": True,
        "created_at": now,
        "updated_at": now,
    }
    values.update(overrides)
    return Profile(**values)


def build_fixed_point(plan_id: UUID, **overrides: Any) -> FixedPoint:
    now = datetime(2025, 5, 20, 12, 0, tzinfo=timezone.utc)
    values: dict[str, Any] = {
        "id": uuid4(),
        "plan_id": plan_id,
        "location": "Filharmonia Krakowska",
        "event_at": datetime(2025, 6, 2, 19, 0, tzinfo=timezone.utc),
        "event_duration": 120,
        "description": "Koncert",
        "created_at": now,
        "updated_at": now,
    }
    values.update(overrides)
    return FixedPoint(**values)


class ExpiringPlan:
    """Plan wrapper that behaves like an ORM instance expired by a rollback.

    Attribute reads work until `expire` is called, after which they fail the
    way a lazy load does outside the async greenlet.
    """

    def __init__(self, plan: Plan) -> None:
        self.__dict__["_plan"] = plan
        self.__dict__["expired"] = False

    def expire(self) -> None:
        self.__dict__["expired"] = True

    def __getattr__(self, name: str) -> Any:
        if self.__dict__["expired"]:
            raise MissingGreenlet("greenlet_spawn has not been called; can't call await_only() here.")
        return getattr(self.__dict__["_plan"], name)


async def apply_changes(db_obj: Any, data: Any) -> Any:
    """Stand-in for GenericRepository.update_obj."""
    changes = data if isinstance(data, dict) else data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(db_obj, field, value)
    return db_obj


@pytest.fixture
def user_id() -> UUID:
    return USER_ID


@pytest.fixture
def mock_session() -> AsyncMock:
    """AsyncSession double; commit and rollback are awaitable."""
    return AsyncMock()
