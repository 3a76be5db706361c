"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from surfclub.api.routes import activities, admin, bookings, packages, pricing, slots

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(bookings.router)
api_router.include_router(slots.router)
api_router.include_router(activities.router)
api_router.include_router(pricing.router)
api_router.include_router(packages.router)
api_router.include_router(admin.router)
