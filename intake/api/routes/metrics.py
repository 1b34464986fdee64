"""Cross-request history projections."""

from fastapi import APIRouter, Depends

from intake.api.deps import get_request_service
from intake.schemas.request_api import DesignResponseSummary
from intake.services.request_service import RequestService

router = APIRouter()


@router.get("/design-response", response_model=DesignResponseSummary)
async def design_response(service: RequestService = Depends(get_request_service)):
    """Average design response time and design reply counts per designer."""
    return await service.design_response_summary()
