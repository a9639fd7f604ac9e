# app/models/api/interview_request.py
"""
Interview and report API request models.
Used by routes for input validation. Bodies are camelCase on the wire.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.models.domain.report_domain import StructuredReport, UploadOptions


class _CamelRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StartInterviewRequest(_CamelRequest):
    """Request for starting an interview about a deal."""

    deal_id: str = Field(..., min_length=1, description="HubSpot deal id")


class InterviewMessageRequest(_CamelRequest):
    """One rep utterance for an interview turn."""

    session_id: str = Field(..., min_length=1, description="Interview session id")
    transcript: str = Field(..., min_length=1, description="Speech-to-text output for this turn")


class SessionRequest(_CamelRequest):
    """Request that only names a session."""

    session_id: str = Field(..., min_length=1, description="Interview session id")


class UploadReportRequest(_CamelRequest):
    """Request for pushing a reviewed report into HubSpot."""

    deal_id: str = Field(..., min_length=1, description="HubSpot deal id")
    report: StructuredReport
    options: UploadOptions = Field(default_factory=UploadOptions)
