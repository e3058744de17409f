"""Core module - Settings, errors, auth and shared utilities.

Dependencies (deps.py) and auth are imported lazily to avoid circular
imports. Import them directly where needed:

    from cityflow.core.deps import get_current_user_id
    from cityflow.core.exceptions import NotFoundError
"""

from cityflow.core.config import settings

__all__ = [
    "settings",
]
