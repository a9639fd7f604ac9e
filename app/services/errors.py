# app/services/errors.py
"""
Exceptions raised by the interview, report and CRM services.
Routes map these to HTTP status codes.
"""


class InterviewServiceError(Exception):
    """Base exception for interview service errors."""

    def __init__(self, message: str, recoverable: bool = True):
        super().__init__(message)
        self.recoverable = recoverable


class SessionNotFoundError(InterviewServiceError):
    """Raised when a session id is unknown or its TTL has elapsed."""

    def __init__(self, session_id: str):
        super().__init__(f"Session {session_id} not found", recoverable=False)
        self.session_id = session_id


class SessionConflictError(InterviewServiceError):
    """Raised when a session write is based on a stale version."""

    def __init__(self, session_id: str, expected_version: int, actual_version: int | None):
        super().__init__(
            f"Session {session_id} was modified concurrently "
            f"(expected version {expected_version}, found {actual_version})"
        )
        self.session_id = session_id
        self.expected_version = expected_version
        self.actual_version = actual_version


class ModelServiceError(InterviewServiceError):
    """Raised when the language model call fails."""

    def __init__(self, message: str, api_error: str | None = None, recoverable: bool = True):
        super().__init__(message, recoverable=recoverable)
        self.api_error = api_error


class ReportExtractionError(InterviewServiceError):
    """Raised when the model returns no text for a report."""


class MalformedReportError(ReportExtractionError):
    """Raised when the model's report output is not valid JSON."""

    def __init__(self, message: str, raw_output: str = ""):
        super().__init__(message)
        self.raw_output = raw_output


class ReportSchemaError(ReportExtractionError):
    """Raised when the report is valid JSON but does not match the report schema."""

    def __init__(self, message: str, errors: list[dict] | None = None):
        super().__init__(message)
        self.errors = errors or []


class HubSpotError(Exception):
    """Custom exception for HubSpot API errors."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_data: dict | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data or {}
