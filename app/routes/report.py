"""
Report API Routes
Generate the structured report for a session and upload a reviewed report to HubSpot.
"""

from fastapi import APIRouter, Depends

from app.dependencies import get_deal_service, get_report_extractor
from app.infrastructure.observability.logging import get_logger
from app.models.api.interview_request import SessionRequest, UploadReportRequest
from app.models.api.interview_response import ErrorResponse, ReportResponse
from app.models.domain.report_domain import UploadResult
from app.routes.responses import service_error_response
from app.services.crm.deal_service import DealService
from app.services.errors import HubSpotError, InterviewServiceError
from app.services.report_service import ReportExtractor

logger = get_logger(__name__)

router = APIRouter(prefix="/api/report", tags=["report"])


@router.post(
    "/generate",
    response_model=ReportResponse,
    responses={404: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def generate_report(
    body: SessionRequest,
    extractor: ReportExtractor = Depends(get_report_extractor),
):
    """Extract the structured report. Not retried here; the rep retries from the app."""
    try:
        report = await extractor.generate_report(body.session_id)
        return ReportResponse(report=report)

    except InterviewServiceError as e:
        logger.error(
            "Report generation failed",
            session_id=body.session_id,
            error=str(e),
            error_type=type(e).__name__,
        )
        return service_error_response(e)


@router.post(
    "/upload",
    response_model=UploadResult,
    responses={502: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def upload_report(
    body: UploadReportRequest,
    deals: DealService = Depends(get_deal_service),
):
    try:
        return await deals.upload_report(body.deal_id, body.report, body.options)

    except HubSpotError as e:
        logger.error("Report upload failed", deal_id=body.deal_id, error=str(e), status_code=e.status_code)
        return service_error_response(e)
