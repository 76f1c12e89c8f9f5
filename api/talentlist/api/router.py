from fastapi import APIRouter

from talentlist.api.routes import applications, archived_jobs, feed, health, jobs

api_router = APIRouter()
api_router.include_router(health.router, tags=["health"])
api_router.include_router(jobs.router, prefix="/jobs", tags=["jobs"])
api_router.include_router(archived_jobs.router, prefix="/archived-jobs", tags=["jobs"])
api_router.include_router(feed.router, prefix="/feed", tags=["jobs"])
api_router.include_router(applications.router, prefix="/applications", tags=["applications"])
