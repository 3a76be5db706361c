"""
Package session preview: the dates a package needs and a suggested slot for each.
"""

from fastapi import APIRouter, Depends

from surfclub.api.dependencies import get_orchestrator
from surfclub.schemas.pricing import PackagePreviewRequest, PackagePreviewResponse
from surfclub.services.booking_service import BookingOrchestrator

router = APIRouter(prefix="/packages", tags=["Packages"])


@router.post("/sessions", response_model=PackagePreviewResponse)
async def preview_sessions(
    request: PackagePreviewRequest,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
):
    """Nothing is reserved; the suggestion can be taken by leaving slot_id out when booking."""
    return await orchestrator.preview_package_sessions(
        request.package_type, request.check_in_date, request.people_count
    )
