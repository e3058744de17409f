"""API v1 main router - aggregates all domain routers."""

from fastapi import APIRouter

from cityflow.api.v1.endpoints import feedback, fixed_points, health, plans, profiles, timeline

api_router = APIRouter()

# Include health check endpoint
api_router.include_router(
    health.router,
    tags=["Health"],
)

# Include plan endpoints
api_router.include_router(
    plans.router,
    prefix="/plans",
    tags=["Plans"],
)

# Include fixed point endpoints
api_router.include_router(
    fixed_points.router,
    prefix="/plans/{plan_id}/fixed-points",
    tags=["Fixed Points"],
)

# Include timeline editing endpoints
api_router.include_router(
    timeline.router,
    prefix="/plans/{plan_id}/days/{date}/items",
    tags=["Timeline"],
)

# Include feedback endpoints
api_router.include_router(
    feedback.router,
    prefix="/plans/{plan_id}/feedback",
    tags=["Feedback"],
)

# Include profile endpoints
api_router.include_router(
    profiles.router,
    prefix="/profiles",
    tags=["Profiles"],
)
