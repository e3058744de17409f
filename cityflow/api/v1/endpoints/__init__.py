"""API v1 endpoints."""

from cityflow.api.v1.endpoints import feedback, fixed_points, health, plans, profiles, timeline

__all__ = ["feedback", "fixed_points", "health", "plans", "profiles", "timeline"]
