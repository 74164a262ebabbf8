from fastapi import APIRouter
from app.routers import jobs, custom_fields, applications

# Centralized API router hub
# Routers are aggregated here, and main.py only imports this single hub.
api_router = APIRouter()

api_router.include_router(jobs.router, tags=["Jobs"])
api_router.include_router(custom_fields.router, tags=["Custom Fields"])
api_router.include_router(applications.router, tags=["Applications"])
