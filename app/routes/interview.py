"""
Interview API Routes
Session start, interview turns (plain and streamed), early end and transcript.
"""

import json
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from app.dependencies import get_deal_service, get_orchestrator
from app.infrastructure.observability.logging import get_logger
from app.models.api.interview_request import (
    InterviewMessageRequest,
    SessionRequest,
    StartInterviewRequest,
)
from app.models.api.interview_response import (
    ErrorResponse,
    InterviewMessageResponse,
    StartInterviewResponse,
    TranscriptResponse,
)
from app.routes.responses import service_error_response
from app.services.crm.deal_service import DealService
from app.services.errors import HubSpotError, InterviewServiceError
from app.services.interview_service import InterviewOrchestrator

logger = get_logger(__name__)

router = APIRouter(prefix="/api/interview", tags=["interview"])

ERROR_RESPONSES = {404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}, 502: {"model": ErrorResponse}}


@router.post("/start", response_model=StartInterviewResponse, responses=ERROR_RESPONSES)
async def start_interview(
    body: StartInterviewRequest,
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator),
    deals: DealService = Depends(get_deal_service),
):
    """Snapshot the deal, open a session and return the spoken greeting."""
    try:
        deal_context = await deals.get_deal_context(body.deal_id)
        session = await orchestrator.start_session(body.deal_id, deal_context)
        greeting = await orchestrator.get_greeting(session)

        return StartInterviewResponse(
            session_id=session.id,
            greeting=greeting,
            deal_context=deal_context,
        )

    except (HubSpotError, InterviewServiceError) as e:
        logger.error("Failed to start interview", deal_id=body.deal_id, error=str(e))
        return service_error_response(e)


@router.post("/message", response_model=InterviewMessageResponse, responses=ERROR_RESPONSES)
async def send_interview_message(
    body: InterviewMessageRequest,
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator),
):
    try:
        result = await orchestrator.send_message(body.session_id, body.transcript)
        return InterviewMessageResponse(
            response=result.response,
            interview_complete=result.interview_complete,
        )

    except InterviewServiceError as e:
        logger.error("Interview turn failed", session_id=body.session_id, error=str(e))
        return service_error_response(e)


@router.post("/message/stream")
async def stream_interview_message(
    body: InterviewMessageRequest,
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator),
):
    """
    Stream one interview turn as server-sent events.

    Each frame is `data: <json>\\n\\n` carrying a token, done or error event.
    """

    async def event_stream() -> AsyncIterator[bytes]:
        events = orchestrator.stream_message(body.session_id, body.transcript)
        try:
            async for event in events:
                payload = json.dumps(event.to_wire(), ensure_ascii=False)
                yield f"data: {payload}\n\n".encode()
        finally:
            await events.aclose()

    headers = {"Cache-Control": "no-cache", "Connection": "keep-alive"}
    return StreamingResponse(event_stream(), media_type="text/event-stream", headers=headers)


@router.post("/end", response_model=TranscriptResponse, responses=ERROR_RESPONSES)
async def end_interview(
    body: SessionRequest,
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator),
):
    """Rep chose to stop early: mark the session complete and return the transcript."""
    try:
        transcript = await orchestrator.end_interview(body.session_id)
        return TranscriptResponse(transcript=transcript)

    except InterviewServiceError as e:
        logger.warning("Failed to end interview", session_id=body.session_id, error=str(e))
        return service_error_response(e)


@router.get("/{session_id}/transcript", response_model=TranscriptResponse, responses=ERROR_RESPONSES)
async def get_interview_transcript(
    session_id: str,
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator),
):
    try:
        transcript = await orchestrator.get_transcript(session_id)
        return TranscriptResponse(transcript=transcript)

    except InterviewServiceError as e:
        return service_error_response(e)
