"""
API v1 Router - Main Entry Point
Aggregates all v1 API endpoints for the service desk
"""
from fastapi import APIRouter

from servicedesk.api.v1.endpoints import asset_records, complaints, stats, users

# Create main API v1 router with proper configuration
router = APIRouter(
    responses={
        403: {"description": "Forbidden"},
        404: {"description": "Not Found"},
        409: {"description": "Conflict or Invalid Transition"},
        422: {"description": "Validation Error"},
        500: {"description": "Internal Server Error"}
    }
)

router.include_router(complaints.router)
router.include_router(stats.router)
router.include_router(users.router)
router.include_router(asset_records.router)
