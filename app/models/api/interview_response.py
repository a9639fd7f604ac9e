# app/models/api/interview_response.py
"""
Interview and report API response models.
Serialized with camelCase aliases.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.models.domain.interview_domain import DealContext, InterviewMessage
from app.models.domain.report_domain import StructuredReport


class _CamelResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StartInterviewResponse(_CamelResponse):
    session_id: str
    greeting: str
    deal_context: DealContext


class InterviewMessageResponse(_CamelResponse):
    response: str
    interview_complete: bool


class TranscriptResponse(_CamelResponse):
    transcript: list[InterviewMessage]


class ReportResponse(_CamelResponse):
    report: StructuredReport


class ErrorResponse(BaseModel):
    error: str
