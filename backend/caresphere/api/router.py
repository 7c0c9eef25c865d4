"""
Main API router that includes all endpoint routers
"""

from fastapi import APIRouter

from caresphere.api import bible, birthdays, scheduler_status, settings

# Create main API router
api_router = APIRouter(prefix="/api/v1")

# Include all route modules
api_router.include_router(bible.router)
api_router.include_router(settings.router)
api_router.include_router(birthdays.router)
api_router.include_router(scheduler_status.router)

# Add a simple health check for the API
@api_router.get("/health")
async def api_health():
    """API health check endpoint"""
    return {
        "status": "healthy",
        "message": "CareSphere API is running",
        "endpoints": {
            "bible": "/api/v1/bible",
            "settings": "/api/v1/settings",
            "birthdays": "/api/v1/birthdays",
            "scheduler": "/api/v1/scheduler"
        }
    }
