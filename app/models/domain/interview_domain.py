# app/models/domain/interview_domain.py
"""
Interview Domain Models
Session, message and deal-context models used by the interview orchestrator
and the session store.
"""

from datetime import UTC, datetime, timedelta
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.models.domain.report_domain import StructuredReport

MessageRole = Literal["user", "assistant"]


def utc_now() -> datetime:
    return datetime.now(UTC)


class DealContext(BaseModel):
    """Immutable snapshot of the CRM deal fields the interviewer needs."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    deal_id: str
    deal_name: str
    customer_name: str = ""
    pipeline: str = ""
    pipeline_id: str = ""
    deal_stage: str = ""
    deal_stage_id: str = ""
    channel: str = ""
    segment_type: str = ""
    amount: str = ""
    close_date: str = ""
    incumbent_supplier: str = ""
    last_update: str = ""
    probability_of_closing: str = ""

    def display_name(self) -> str:
        """Customer brand when known, deal name otherwise."""
        return self.customer_name or self.deal_name


class InterviewMessage(BaseModel):
    """One line of the transcript."""

    model_config = ConfigDict(frozen=True)

    role: MessageRole
    content: str
    timestamp: datetime = Field(default_factory=utc_now)

    def as_model_message(self) -> dict[str, str]:
        """Role and content only, the shape the language model expects."""
        return {"role": self.role, "content": self.content}


class InterviewSession(BaseModel):
    """
    Server-side interview state.

    The message log is append-only and `completed` only moves from False to
    True. `version` is bumped by the session store on every write.
    """

    id: str
    deal_id: str
    deal_context: DealContext
    messages: list[InterviewMessage] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)
    completed: bool = False
    version: int = 0
    report: StructuredReport | None = None

    def append_message(self, role: MessageRole, content: str) -> InterviewMessage:
        message = InterviewMessage(role=role, content=content)
        self.messages.append(message)
        return message

    def mark_completed(self) -> None:
        self.completed = True

    def expires_at(self, ttl_seconds: int) -> datetime:
        return self.created_at + timedelta(seconds=ttl_seconds)

    def is_expired(self, ttl_seconds: int, now: datetime | None = None) -> bool:
        """TTL counts from creation and is never refreshed by reads or writes."""
        return (now or utc_now()) >= self.expires_at(ttl_seconds)

    def model_messages(self) -> list[dict[str, str]]:
        return [message.as_model_message() for message in self.messages]


class TurnResult(BaseModel):
    """Outcome of one non-streaming interview turn."""

    response: str
    interview_complete: bool


class StreamEvent(BaseModel):
    """One event of a streamed interview turn."""

    type: Literal["token", "done", "error"]
    content: str
    interview_complete: bool | None = None

    @classmethod
    def token(cls, content: str) -> "StreamEvent":
        return cls(type="token", content=content)

    @classmethod
    def done(cls, content: str, interview_complete: bool) -> "StreamEvent":
        return cls(type="done", content=content, interview_complete=interview_complete)

    @classmethod
    def error(cls, content: str) -> "StreamEvent":
        return cls(type="error", content=content)

    def to_wire(self) -> dict:
        """camelCase payload for the SSE frame; `interviewComplete` only on done."""
        payload = {"type": self.type, "content": self.content}
        if self.type == "done":
            payload["interviewComplete"] = bool(self.interview_complete)
        return payload
