"""
API Routes - Combines all route modules into single router.
"""

from fastapi import APIRouter

from app.api.routes.profile_routes import router as profile_router
from app.api.routes.organizer_routes import router as organizer_router
from app.api.routes.sponsor_routes import router as sponsor_router
from app.api.routes.event_routes import router as event_router
from app.api.routes.match_routes import router as match_router

# Main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(profile_router)
api_router.include_router(organizer_router)
api_router.include_router(sponsor_router)
api_router.include_router(event_router)
api_router.include_router(match_router)
