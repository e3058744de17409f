"""
CityFlow - Plan maintenance tasks
Periodic Celery jobs run by the beat scheduler
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any

from cityflow.infra.celery_app import ARCHIVE_TASK_NAME, celery_app

logger = logging.getLogger(__name__)


async def _archive_expired_plans() -> int:
    from cityflow.domains.plan.services.plan_service import PlanService
    from cityflow.infra.database import async_session_factory, db_manager

    try:
        async with async_session_factory() as session:
            return await PlanService(session).archive_expired_plans()
    finally:
        # Each asyncio.run gets a fresh loop; pooled connections must not outlive it
        await db_manager.close()


@celery_app.task(
    bind=True,
    name=ARCHIVE_TASK_NAME,
    max_retries=3,
    default_retry_delay=60,
)
def archive_expired_plans_task(self) -> dict[str, Any]:
    """
    Archive generated plans whose end date has passed.

    Returns:
        Dictionary with the number of archived plans
    """
    logger.info(f"Archiving expired plans (task {self.request.id})")
    try:
        archived = asyncio.run(_archive_expired_plans())
    except Exception as e:
        logger.error(f"Archiving expired plans failed: {e}")
        raise self.retry(exc=e)

    return {
        "archived": archived,
        "completed_at": datetime.now(timezone.utc).isoformat(),
    }
