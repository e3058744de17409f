"""
CityFlow - Celery Application Configuration
Redis-backed worker and beat schedule for background plan maintenance
"""

from datetime import timedelta

from celery import Celery
from kombu import Exchange, Queue

from cityflow.core.config import settings

ARCHIVE_TASK_NAME = "cityflow.domains.plan.tasks.archive_expired_plans_task"


def create_celery_app() -> Celery:
    """Create and configure Celery application."""

    celery = Celery(
        "cityflow",
        broker=settings.CELERY_BROKER_URL,
        backend=settings.CELERY_RESULT_BACKEND,
        include=[
            "cityflow.domains.plan.tasks",
        ],
    )

    # Task serialization
    celery.conf.update(
        task_serializer="json",
        accept_content=["json"],
        result_serializer="json",
        timezone="UTC",
        enable_utc=True,
    )

    # Task execution settings
    celery.conf.update(
        task_acks_late=True,
        task_reject_on_worker_lost=True,
        task_time_limit=600,  # 10 minutes hard limit
        task_soft_time_limit=540,
        task_track_started=True,
    )

    # Worker settings
    celery.conf.update(
        worker_prefetch_multiplier=1,
        worker_concurrency=2,
        worker_max_tasks_per_child=1000,
    )

    # Result settings
    celery.conf.update(
        result_expires=86400,  # 24 hours
    )

    # Define task queues
    celery.conf.task_queues = (
        Queue("default", Exchange("default"), routing_key="default"),
        Queue("maintenance", Exchange("maintenance"), routing_key="maintenance.#"),
    )

    celery.conf.task_default_queue = "default"
    celery.conf.task_default_exchange = "default"
    celery.conf.task_default_routing_key = "default"

    # Task routing
    celery.conf.task_routes = {
        "cityflow.domains.plan.tasks.*": {"queue": "maintenance"},
    }

    # Beat schedule: move finished trips to history
    celery.conf.beat_schedule = {
        "archive-expired-plans": {
            "task": ARCHIVE_TASK_NAME,
            "schedule": timedelta(hours=settings.ARCHIVE_SCHEDULE_HOURS),
        },
    }

    return celery


# Create the Celery application instance
celery_app = create_celery_app()
