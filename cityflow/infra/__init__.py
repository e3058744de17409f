"""Infrastructure module - Database and Celery."""

from cityflow.infra.database import Base, close_db, db_manager, get_db, init_db

__all__ = [
    # Database
    "Base",
    "db_manager",
    "get_db",
    "init_db",
    "close_db",
]
