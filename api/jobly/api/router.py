from fastapi import APIRouter

from jobly.api.routes import health, organizations, postings

api_router = APIRouter()
api_router.include_router(health.router, tags=["health"])
api_router.include_router(organizations.router, prefix="/organizations", tags=["organizations"])
api_router.include_router(postings.router, prefix="/postings", tags=["postings"])
