from fastapi import APIRouter

from ats_api.api.routes import (
    applications,
    candidates,
    companies,
    health,
    job_pre_screen_questions,
    job_requirements,
    jobs,
    placements,
)

API_PREFIX = "/api/v2"

api_router = APIRouter()
api_router.include_router(health.router, tags=["health"])
api_router.include_router(jobs.router, prefix=f"{API_PREFIX}/jobs", tags=["jobs"])
api_router.include_router(companies.router, prefix=f"{API_PREFIX}/companies", tags=["companies"])
api_router.include_router(candidates.router, prefix=f"{API_PREFIX}/candidates", tags=["candidates"])
api_router.include_router(applications.router, prefix=f"{API_PREFIX}/applications", tags=["applications"])
api_router.include_router(placements.router, prefix=f"{API_PREFIX}/placements", tags=["placements"])
api_router.include_router(
    job_requirements.router,
    prefix=f"{API_PREFIX}/job-requirements",
    tags=["job-requirements"],
)
api_router.include_router(
    job_pre_screen_questions.router,
    prefix=f"{API_PREFIX}/job-pre-screen-questions",
    tags=["job-pre-screen-questions"],
)
