# app/models/domain/report_domain.py
"""
Report Domain Models
The structured call report extracted from an interview transcript, plus the
options and result of pushing it into HubSpot.

Wire format is camelCase (callDate, topicsDiscussed, ...) to match the mobile
client and the JSON schema given to the language model.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

CallType = Literal["phone", "in-person", "video"]
CustomerSentiment = Literal["positive", "neutral", "negative", "mixed"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


def _null_as_empty(value):
    """Undiscussed free-text details come back from the model as null."""
    return "" if value is None else value


class Attendee(_CamelModel):
    name: str
    title: str | None = None
    company: str | None = None


class ActionItem(_CamelModel):
    action: str
    owner: str
    due_date: str | None = None


class NextStep(_CamelModel):
    step: str
    timeline: str = ""

    @field_validator("timeline", mode="before")
    @classmethod
    def null_timeline_as_empty(cls, value):
        return _null_as_empty(value)


class CompetitorMention(_CamelModel):
    competitor: str
    context: str = ""

    @field_validator("context", mode="before")
    @classmethod
    def null_context_as_empty(cls, value):
        return _null_as_empty(value)


class DealStageRecommendation(_CamelModel):
    current_stage: str
    recommended_stage: str
    rationale: str = ""

    @field_validator("rationale", mode="before")
    @classmethod
    def null_rationale_as_empty(cls, value):
        return _null_as_empty(value)

    def is_stage_change(self) -> bool:
        return self.recommended_stage.strip().lower() != self.current_stage.strip().lower()


class StructuredReport(_CamelModel):
    """Schema-conformant call report. Immutable once produced."""

    call_date: str
    call_type: CallType
    attendees: list[Attendee] = Field(default_factory=list)
    summary: str
    topics_discussed: list[str] = Field(default_factory=list)
    key_insights: list[str] = Field(default_factory=list)
    action_items: list[ActionItem] = Field(default_factory=list)
    next_steps: list[NextStep] = Field(default_factory=list)
    competitor_mentions: list[CompetitorMention] = Field(default_factory=list)
    deal_stage_recommendation: DealStageRecommendation
    customer_sentiment: CustomerSentiment
    follow_up_date: str | None = None
    pricing_notes: str | None = None
    volume_notes: str | None = None

    def customer_company(self, own_company: str) -> str:
        """First attendee company that is not our own, used for call titles."""
        own = own_company.lower()
        for attendee in self.attendees:
            if attendee.company and own not in attendee.company.lower():
                return attendee.company
        return "Customer"


class DealUpdates(BaseModel):
    """HubSpot deal properties the rep chose to update. Keys are HubSpot property names."""

    next_step: str | None = None
    dealstage: str | None = None
    probability_of_closing: str | None = None
    competitive_coffee_pricing: str | None = None

    def to_properties(self) -> dict[str, str]:
        return {key: value for key, value in self.model_dump().items() if value}


class UploadOptions(_CamelModel):
    create_note: bool = True
    log_call: bool = True
    update_deal: bool = False
    deal_updates: DealUpdates | None = None


class UploadResult(_CamelModel):
    model_config = ConfigDict(frozen=False)

    note_id: str | None = None
    call_id: str | None = None
    deal_updated: bool = False
    hubspot_url: str
