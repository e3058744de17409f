"""
Tests for fixed point, timeline, feedback and profile endpoints.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from cityflow.api.v1.endpoints.feedback import get_feedback_service
from cityflow.api.v1.endpoints.fixed_points import get_fixed_point_service
from cityflow.api.v1.endpoints.profiles import get_profile_service
from cityflow.api.v1.endpoints.timeline import get_timeline_service
from cityflow.core.deps import get_current_user_id
from cityflow.core.exceptions import ConflictError, NotFoundError
from cityflow.domains.feedback.models import FeedbackRating
from cityflow.domains.feedback.schemas import FeedbackResponse
from cityflow.domains.plan.schemas import FixedPointResponse, PlanResponse
from cityflow.domains.profile.schemas import ProfileResponse
from cityflow.main import app

from conftest import USER_ID, build_fixed_point, build_generated_plan, build_plan, build_profile


@pytest.fixture
def service():
    return MagicMock()


@pytest.fixture
def client():
    app.dependency_overrides[get_current_user_id] = lambda: USER_ID
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestFixedPointEndpoints:
    """Tests for /plans/{plan_id}/fixed-points."""

    @pytest.fixture(autouse=True)
    def override(self, service):
        app.dependency_overrides[get_fixed_point_service] = lambda: service

    def test_list(self, client, service):
        """Test listing fixed points."""
        plan = build_plan()
        service.get_fixed_points = AsyncMock(
            return_value=[FixedPointResponse.model_validate(build_fixed_point(plan.id))]
        )

        response = client.get(f"/api/plans/{plan.id}/fixed-points")

        assert response.status_code == 200
        assert response.json()[0]["location"] == "Filharmonia Krakowska"
        service.get_fixed_points.assert_awaited_once_with(plan.id, USER_ID)

    def test_create(self, client, service):
        """Test adding a fixed point."""
        plan = build_plan()
        service.create_fixed_point = AsyncMock(
            return_value=FixedPointResponse.model_validate(build_fixed_point(plan.id))
        )

        response = client.post(
            f"/api/plans/{plan.id}/fixed-points",
            json={
                "location": "Filharmonia Krakowska",
                "event_at": "2025-06-02T19:00:00Z",
                "event_duration": 120,
            },
        )

        assert response.status_code == 201

    def test_create_rejects_non_positive_duration(self, client, service):
        """Test the duration validation."""
        service.create_fixed_point = AsyncMock()

        response = client.post(
            f"/api/plans/{build_plan().id}/fixed-points",
            json={"location": "Opera", "event_at": "2025-06-02T19:00:00Z", "event_duration": -5},
        )

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "event_duration"

    def test_update_and_delete(self, client, service):
        """Test PATCH and DELETE of a fixed point."""
        plan = build_plan()
        fixed_point = build_fixed_point(plan.id, event_duration=45)
        service.update_fixed_point = AsyncMock(
            return_value=FixedPointResponse.model_validate(fixed_point)
        )
        service.delete_fixed_point = AsyncMock(return_value=None)

        patched = client.patch(
            f"/api/plans/{plan.id}/fixed-points/{fixed_point.id}", json={"event_duration": 45}
        )
        deleted = client.delete(f"/api/plans/{plan.id}/fixed-points/{fixed_point.id}")

        assert patched.status_code == 200
        assert patched.json()["event_duration"] == 45
        assert deleted.status_code == 204
        service.delete_fixed_point.assert_awaited_once_with(plan.id, fixed_point.id, USER_ID)

    def test_generated_plan_conflict(self, client, service):
        """Test the 409 body."""
        service.create_fixed_point = AsyncMock(
            side_effect=ConflictError("Fixed points can only be changed in draft plans.")
        )

        response = client.post(
            f"/api/plans/{build_plan().id}/fixed-points",
            json={"location": "Opera", "event_at": "2025-06-02T19:00:00Z", "event_duration": 60},
        )

        assert response.status_code == 409
        assert response.json() == {"error": "Fixed points can only be changed in draft plans."}


class TestTimelineEndpoints:
    """Tests for /plans/{plan_id}/days/{date}/items."""

    @pytest.fixture(autouse=True)
    def override(self, service):
        app.dependency_overrides[get_timeline_service] = lambda: service

    def test_add_item(self, client, service):
        """Test adding an activity."""
        plan = build_generated_plan()
        service.add_item = AsyncMock(return_value=PlanResponse.model_validate(plan))

        response = client.post(
            f"/api/plans/{plan.id}/days/2025-06-02/items",
            json={"title": "Kawa", "category": "food", "time": "10:00", "duration": 30},
        )

        assert response.status_code == 201
        plan_id, date, data, user_id = service.add_item.await_args.args
        assert (plan_id, date, user_id) == (plan.id, "2025-06-02", USER_ID)
        assert data.duration == 30

    def test_add_item_rejects_unknown_category(self, client, service):
        """Test category validation."""
        service.add_item = AsyncMock()

        response = client.post(
            f"/api/plans/{build_plan().id}/days/2025-06-02/items",
            json={"title": "Klub", "category": "nightlife"},
        )

        assert response.status_code == 400

    def test_update_item(self, client, service):
        """Test editing an activity."""
        plan = build_generated_plan()
        service.update_item = AsyncMock(return_value=PlanResponse.model_validate(plan))

        response = client.patch(
            f"/api/plans/{plan.id}/days/2025-06-02/items/item-wawel", json={"time": "12:00"}
        )

        assert response.status_code == 200
        assert service.update_item.await_args.args[2] == "item-wawel"

    def test_delete_missing_item(self, client, service):
        """Test the 404 body for an unknown activity."""
        service.delete_item = AsyncMock(
            side_effect=NotFoundError("Activity x not found in day 2025-06-02.")
        )

        response = client.delete(f"/api/plans/{build_plan().id}/days/2025-06-02/items/x")

        assert response.status_code == 404
        assert response.json() == {"error": "Activity x not found in day 2025-06-02."}


class TestFeedbackEndpoints:
    """Tests for /plans/{plan_id}/feedback."""

    @pytest.fixture(autouse=True)
    def override(self, service):
        app.dependency_overrides[get_feedback_service] = lambda: service

    def _feedback(self) -> FeedbackResponse:
        return FeedbackResponse(
            rating=FeedbackRating.THUMBS_UP,
            comment=None,
            updated_at=datetime(2025, 6, 4, tzinfo=timezone.utc),
        )

    def test_get_without_feedback_returns_null(self, client, service):
        """Test that missing feedback is answered with null."""
        service.find_feedback = AsyncMock(return_value=None)

        response = client.get(f"/api/plans/{build_plan().id}/feedback")

        assert response.status_code == 200
        assert response.json() is None

    def test_get_feedback(self, client, service):
        """Test reading feedback."""
        service.find_feedback = AsyncMock(return_value=self._feedback())

        response = client.get(f"/api/plans/{build_plan().id}/feedback")

        assert response.status_code == 200
        assert response.json()["rating"] == "thumbs_up"

    def test_submit_created(self, client, service):
        """Test that a new submission answers 201."""
        service.submit_feedback = AsyncMock(return_value=(self._feedback(), True))

        response = client.post(
            f"/api/plans/{build_plan().id}/feedback", json={"rating": "thumbs_up"}
        )

        assert response.status_code == 201

    def test_submit_updated(self, client, service):
        """Test that replacing feedback answers 200."""
        service.submit_feedback = AsyncMock(return_value=(self._feedback(), False))

        response = client.post(
            f"/api/plans/{build_plan().id}/feedback",
            json={"rating": "thumbs_up", "comment": "Jeszcze lepiej"},
        )

        assert response.status_code == 200

    def test_submit_rejects_unknown_rating(self, client, service):
        """Test rating validation."""
        service.submit_feedback = AsyncMock()

        response = client.post(f"/api/plans/{build_plan().id}/feedback", json={"rating": "5 stars"})

        assert response.status_code == 400


class TestProfileEndpoints:
    """Tests for /profiles/me."""

    @pytest.fixture(autouse=True)
    def override(self, service):
        app.dependency_overrides[get_profile_service] = lambda: service

    def test_get_profile(self, client, service):
        """Test that the profile is loaded or created."""
        service.get_or_create_profile = AsyncMock(
            return_value=ProfileResponse.model_validate(build_profile())
        )

        response = client.get("/api/profiles/me")

        assert response.status_code == 200
        assert response.json()["generations_remaining"] == 3
        service.get_or_create_profile.assert_awaited_once_with(USER_ID)

    def test_update_profile(self, client, service):
        """Test updating preferences."""
        service.update_profile = AsyncMock(
            return_value=ProfileResponse.model_validate(build_profile(preferences=["Food", "Art"]))
        )

        response = client.patch("/api/profiles/me", json={"preferences": ["Food", "Art"]})

        assert response.status_code == 200
        assert response.json()["preferences"] == ["Food", "Art"]

    def test_update_profile_rejects_single_preference(self, client, service):
        """Test the preferences bounds."""
        service.update_profile = AsyncMock()

        response = client.patch("/api/profiles/me", json={"preferences": ["Food"]})

        assert response.status_code == 400
        service.update_profile.assert_not_called()


class TestHealth:
    """Tests for health endpoints."""

    def test_liveness(self):
        """Test the container health check."""
        response = TestClient(app).get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
