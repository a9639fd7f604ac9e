# app/services/report_service.py
"""
Report Extractor
Turns a finished interview transcript into a StructuredReport.

Model output passes through a gate before it is trusted: strip code fences,
parse JSON, then validate against the report schema. Each stage has its own
error so callers can tell "no text" from "not JSON" from "wrong shape".
"""

import json
import re
from datetime import date

from pydantic import ValidationError

from app.config import settings
from app.infrastructure.observability.logging import get_logger
from app.models.domain.report_domain import StructuredReport
from app.prompts.report_generator import build_report_generator_prompt, build_report_request
from app.services.errors import (
    MalformedReportError,
    ReportExtractionError,
    ReportSchemaError,
    SessionNotFoundError,
)
from app.services.model_client import LanguageModelClient
from app.services.session_store import SessionStore

logger = get_logger(__name__)

_OPENING_FENCE = re.compile(r"^```(?:json)?\s*\n?", re.IGNORECASE)
_CLOSING_FENCE = re.compile(r"\n?\s*```$")


def strip_code_fences(text: str) -> str:
    """Remove an optional ```/```json wrapper around the model output."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = _OPENING_FENCE.sub("", cleaned)
        cleaned = _CLOSING_FENCE.sub("", cleaned)
    return cleaned.strip()


def parse_report(raw_output: str) -> StructuredReport:
    """Parse and validate model output into a StructuredReport."""
    json_text = strip_code_fences(raw_output)

    try:
        payload = json.loads(json_text)
    except json.JSONDecodeError as e:
        raise MalformedReportError(f"Report output is not valid JSON: {e}", raw_output=raw_output) from e

    if not isinstance(payload, dict):
        raise ReportSchemaError(f"Report output must be a JSON object, got {type(payload).__name__}")

    try:
        return StructuredReport.model_validate(payload)
    except ValidationError as e:
        errors = [
            {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
            for err in e.errors()
        ]
        raise ReportSchemaError(
            f"Report output does not match the report schema ({len(errors)} errors)",
            errors=errors,
        ) from e


class ReportExtractor:
    """Generates and stores the structured report for a session."""

    def __init__(self, store: SessionStore, model: LanguageModelClient):
        self.store = store
        self.model = model

    async def generate_report(self, session_id: str, today: date | None = None) -> StructuredReport:
        """
        Extract the report from the session transcript.

        The report is stored on the session, replacing any earlier one.

        Raises:
            SessionNotFoundError: unknown or expired session
            ReportExtractionError: model returned no text
            MalformedReportError: output is not JSON
            ReportSchemaError: JSON that does not match the schema
        """
        session = await self.store.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)

        logger.info(
            "Generating call report",
            session_id=session_id,
            message_count=len(session.messages),
            completed=session.completed,
        )

        raw_output = await self.model.complete(
            build_report_generator_prompt(session.deal_context, today),
            [{"role": "user", "content": build_report_request(session.messages)}],
            max_tokens=settings.OPENAI_REPORT_MAX_TOKENS,
        )
        if not raw_output:
            raise ReportExtractionError("No text response from language model")

        try:
            report = parse_report(raw_output)
        except ReportExtractionError as e:
            logger.error(
                "Report output rejected",
                session_id=session_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise

        session.report = report
        await self.store.set(session, expected_version=session.version)

        logger.info(
            "Call report generated",
            session_id=session_id,
            call_type=report.call_type,
            sentiment=report.customer_sentiment,
            action_items=len(report.action_items),
        )
        return report
