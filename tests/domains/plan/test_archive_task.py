"""
Tests for the periodic archiving job.
"""

from contextlib import asynccontextmanager
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from cityflow.domains.plan.tasks import _archive_expired_plans, archive_expired_plans_task
from cityflow.infra.celery_app import ARCHIVE_TASK_NAME, celery_app


class TestCeleryConfiguration:
    """Tests for the Celery application."""

    def test_archive_job_is_scheduled(self):
        """Test that beat runs the archive task periodically."""
        entry = celery_app.conf.beat_schedule["archive-expired-plans"]
        assert entry["task"] == ARCHIVE_TASK_NAME
        assert entry["schedule"] == timedelta(hours=1)

    def test_task_is_registered_under_its_name(self):
        """Test the task name used by the schedule."""
        assert archive_expired_plans_task.name == ARCHIVE_TASK_NAME


class TestArchiveExpiredPlansTask:
    """Tests for archive_expired_plans_task."""

    def test_returns_archived_count(self):
        """Test the task result when run eagerly."""
        with patch(
            "cityflow.domains.plan.tasks._archive_expired_plans",
            AsyncMock(return_value=3),
        ):
            result = archive_expired_plans_task.apply().get()

        assert result["archived"] == 3
        assert "completed_at" in result

    @pytest.mark.asyncio
    async def test_runs_in_fresh_session_and_disposes_engine(self):
        """Test the coroutine behind the task."""
        session = MagicMock()

        @asynccontextmanager
        async def fake_session():
            yield session

        plan_service = MagicMock()
        plan_service.archive_expired_plans = AsyncMock(return_value=2)
        db_manager = MagicMock()
        db_manager.close = AsyncMock()

        with (
            patch("cityflow.infra.database.async_session_factory", fake_session),
            patch("cityflow.infra.database.db_manager", db_manager),
            patch(
                "cityflow.domains.plan.services.plan_service.PlanService",
                return_value=plan_service,
            ) as service_cls,
        ):
            archived = await _archive_expired_plans()

        assert archived == 2
        service_cls.assert_called_once_with(session)
        db_manager.close.assert_awaited_once()
