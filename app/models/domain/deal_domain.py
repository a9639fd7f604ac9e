# app/models/domain/deal_domain.py
"""
Deal Domain Models
HubSpot deal, contact and company records as returned by the CRM client.
Field names follow HubSpot property names so the mobile client can read them
without a mapping layer.
"""

from typing import Any

from pydantic import BaseModel, Field


class DealSummary(BaseModel):
    """One row of a deal search."""

    id: str
    dealname: str = ""
    dealstage: str = ""
    pipeline: str = ""
    customer_name: str | None = None
    channel: str | None = None
    segment_type: str | None = None
    amount: str | None = None
    closedate: str | None = None
    hubspot_owner_id: str | None = None

    @classmethod
    def from_hubspot(cls, record: dict[str, Any]) -> "DealSummary":
        props = record.get("properties") or {}
        return cls(
            id=str(record.get("id", "")),
            dealname=props.get("dealname") or "",
            dealstage=props.get("dealstage") or "",
            pipeline=props.get("pipeline") or "",
            customer_name=props.get("customer_name") or None,
            channel=props.get("channel") or None,
            segment_type=props.get("segment_type") or None,
            amount=props.get("amount") or None,
            closedate=props.get("closedate") or None,
            hubspot_owner_id=props.get("hubspot_owner_id") or None,
        )


class DealSearchResult(BaseModel):
    deals: list[DealSummary] = Field(default_factory=list)
    total: int = 0


class HubSpotDeal(BaseModel):
    id: str
    properties: dict[str, str | None] = Field(default_factory=dict)


class HubSpotContact(BaseModel):
    id: str
    firstname: str | None = None
    lastname: str | None = None
    email: str | None = None
    jobtitle: str | None = None
    company: str | None = None

    @classmethod
    def from_hubspot(cls, record: dict[str, Any]) -> "HubSpotContact":
        props = record.get("properties") or {}
        return cls(
            id=str(record.get("id", "")),
            firstname=props.get("firstname") or None,
            lastname=props.get("lastname") or None,
            email=props.get("email") or None,
            jobtitle=props.get("jobtitle") or None,
            company=props.get("company") or None,
        )


class HubSpotCompany(BaseModel):
    id: str
    name: str | None = None
    domain: str | None = None
    industry: str | None = None

    @classmethod
    def from_hubspot(cls, record: dict[str, Any]) -> "HubSpotCompany":
        props = record.get("properties") or {}
        return cls(
            id=str(record.get("id", "")),
            name=props.get("name") or None,
            domain=props.get("domain") or None,
            industry=props.get("industry") or None,
        )


class DealDetail(BaseModel):
    """Deal plus its associated contacts and primary company."""

    deal: HubSpotDeal
    contacts: list[HubSpotContact] = Field(default_factory=list)
    company: HubSpotCompany | None = None
