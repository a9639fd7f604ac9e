# app/routes/responses.py
"""
Shared error responses. API errors are returned as {"error": message}.
"""

from fastapi import status
from fastapi.responses import JSONResponse

from app.services.errors import (
    HubSpotError,
    InterviewServiceError,
    ModelServiceError,
    ReportExtractionError,
    SessionConflictError,
    SessionNotFoundError,
)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def status_for(error: Exception) -> int:
    """HTTP status for a service error."""
    if isinstance(error, SessionNotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(error, SessionConflictError):
        return status.HTTP_409_CONFLICT
    if isinstance(error, ModelServiceError | ReportExtractionError):
        return status.HTTP_502_BAD_GATEWAY
    if isinstance(error, HubSpotError):
        if error.status_code == 404:
            return status.HTTP_404_NOT_FOUND
        if error.status_code == 503:
            return status.HTTP_503_SERVICE_UNAVAILABLE
        return status.HTTP_502_BAD_GATEWAY
    if isinstance(error, InterviewServiceError):
        return status.HTTP_400_BAD_REQUEST
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def service_error_response(error: Exception) -> JSONResponse:
    return error_response(status_for(error), str(error))
