"""
Deal API Routes
Deal search and deal detail for picking the call to debrief.
"""

from fastapi import APIRouter, Depends, Query

from app.dependencies import get_deal_service
from app.infrastructure.observability.logging import get_logger
from app.models.api.interview_response import ErrorResponse
from app.models.domain.deal_domain import DealDetail, DealSearchResult
from app.routes.responses import service_error_response
from app.services.crm.deal_service import DealService
from app.services.errors import HubSpotError

logger = get_logger(__name__)

router = APIRouter(prefix="/api/deals", tags=["deals"])


@router.get("", response_model=DealSearchResult, responses={502: {"model": ErrorResponse}})
async def search_deals(
    q: str = Query(default="", description="Free-text deal search"),
    owner_id: str | None = Query(default=None, alias="ownerId", description="HubSpot owner id"),
    limit: int = Query(default=20, ge=1, le=100, description="Maximum deals to return (1-100)"),
    offset: int = Query(default=0, ge=0, description="Paging offset"),
    deals: DealService = Depends(get_deal_service),
):
    try:
        return await deals.search_deals(q, owner_id, limit, offset)
    except HubSpotError as e:
        logger.error("Deal search failed", query=q, error=str(e))
        return service_error_response(e)


@router.get("/{deal_id}", response_model=DealDetail, responses={404: {"model": ErrorResponse}})
async def get_deal(deal_id: str, deals: DealService = Depends(get_deal_service)):
    try:
        return await deals.get_deal(deal_id)
    except HubSpotError as e:
        logger.error("Deal fetch failed", deal_id=deal_id, error=str(e))
        return service_error_response(e)
