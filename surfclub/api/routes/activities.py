"""
Activity catalog.
"""

from fastapi import APIRouter

from surfclub.schemas.slot import ActivityTypeInfo
from surfclub.services import slot_service

router = APIRouter(prefix="/activities", tags=["Activities"])


@router.get("/", response_model=list[ActivityTypeInfo])
async def activity_types():
    """Activities on offer with their default per-slot capacity and price per person."""
    return slot_service.activity_catalog()
