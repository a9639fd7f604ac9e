"""
Deal Service
Deal lookup, deal-context snapshots and report upload on top of HubSpotClient.

Without a HubSpot access token the service serves a small set of sample deals
so the interview flow can be exercised locally; upload is unavailable then.
"""

from datetime import UTC, datetime

from app.config import Settings
from app.infrastructure.observability.logging import get_logger
from app.models.domain.deal_domain import (
    DealDetail,
    DealSearchResult,
    DealSummary,
    HubSpotCompany,
    HubSpotContact,
    HubSpotDeal,
)
from app.models.domain.interview_domain import DealContext
from app.models.domain.report_domain import StructuredReport, UploadOptions, UploadResult
from app.prompts.interviewer import COMPANY_NAME
from app.services.crm.hubspot_client import HubSpotClient
from app.services.crm.report_formatter import format_report_html, format_report_plain_text
from app.services.errors import HubSpotError

logger = get_logger(__name__)

SAMPLE_DEALS: dict[str, DealDetail] = {
    "mock-1": DealDetail(
        deal=HubSpotDeal(
            id="mock-1",
            properties={
                "dealname": "Blue Ridge Bistro - Cold Brew Program",
                "dealstage": "Engaging",
                "pipeline": "Foodservice",
                "customer_name": "Blue Ridge Bistro",
                "channel": "Foodservice",
                "segment_type": "Regional Chain",
                "amount": "250000",
                "closedate": "2026-12-31",
                "incumbent_supplier": "Farmer Bros",
                "next_step": "Send cold brew samples",
                "probability_of_closing": "40",
            },
        ),
        contacts=[
            HubSpotContact(
                id="c-1", firstname="Dana", lastname="Ortiz", jobtitle="Beverage Director", company="Blue Ridge Bistro"
            )
        ],
        company=HubSpotCompany(id="co-1", name="Blue Ridge Bistro", industry="Restaurants"),
    ),
    "mock-2": DealDetail(
        deal=HubSpotDeal(
            id="mock-2",
            properties={
                "dealname": "Harbor Markets Private Label RFP",
                "dealstage": "In Progress",
                "pipeline": "Opportunity / RFP",
                "customer_name": "Harbor Markets",
                "channel": "Retail",
                "segment_type": "Grocery",
                "amount": "1200000",
                "closedate": "2027-03-15",
                "probability_of_closing": "25",
            },
        ),
    ),
    "mock-3": DealDetail(
        deal=HubSpotDeal(
            id="mock-3",
            properties={
                "dealname": "Summit Tea RTD Launch",
                "dealstage": "Indicative Interest",
                "pipeline": "Sales Pipeline (All)",
                "customer_name": "Summit Tea Co",
                "channel": "CPG",
                "amount": "480000",
            },
        ),
    ),
}


def build_deal_context(detail: DealDetail) -> DealContext:
    """Snapshot the deal fields the interviewer needs. Missing values become empty strings."""
    props = detail.deal.properties

    def prop(name: str) -> str:
        return props.get(name) or ""

    return DealContext(
        deal_id=detail.deal.id,
        deal_name=prop("dealname") or "Unknown Deal",
        customer_name=prop("customer_name"),
        pipeline=prop("pipeline"),
        pipeline_id=prop("pipeline"),
        deal_stage=prop("dealstage"),
        deal_stage_id=prop("dealstage"),
        channel=prop("channel"),
        segment_type=prop("segment_type"),
        amount=prop("amount"),
        close_date=prop("closedate"),
        incumbent_supplier=prop("incumbent_supplier"),
        last_update=prop("next_step"),
        probability_of_closing=prop("probability_of_closing"),
    )


class DealService:
    """CRM operations used by the routes."""

    def __init__(self, config: Settings, client: HubSpotClient | None = None):
        self.config = config
        self.client = client
        if self.client is None and config.hubspot_enabled():
            self.client = HubSpotClient(config.HUBSPOT_ACCESS_TOKEN)

        if self.client is None:
            logger.warning("HUBSPOT_ACCESS_TOKEN not set, serving sample deals")

    @property
    def enabled(self) -> bool:
        return self.client is not None

    async def close(self) -> None:
        if self.client is not None:
            await self.client.close()

    async def search_deals(
        self, query: str = "", owner_id: str | None = None, limit: int = 20, offset: int = 0
    ) -> DealSearchResult:
        if not self.enabled:
            return self._search_sample_deals(query, limit, offset)
        return await self.client.search_deals(query, owner_id or self.config.HUBSPOT_OWNER_ID, limit, offset)

    def _search_sample_deals(self, query: str, limit: int, offset: int) -> DealSearchResult:
        needle = query.lower()
        matches = [
            DealSummary.from_hubspot(detail.deal.model_dump())
            for detail in SAMPLE_DEALS.values()
            if not needle or needle in (detail.deal.properties.get("dealname") or "").lower()
        ]
        return DealSearchResult(deals=matches[offset : offset + limit], total=len(matches))

    async def get_deal(self, deal_id: str) -> DealDetail:
        if not self.enabled:
            detail = SAMPLE_DEALS.get(deal_id)
            if detail is None:
                raise HubSpotError(f"Deal {deal_id} not found", status_code=404)
            return detail
        return await self.client.get_deal(deal_id)

    async def get_deal_context(self, deal_id: str) -> DealContext:
        return build_deal_context(await self.get_deal(deal_id))

    async def upload_report(self, deal_id: str, report: StructuredReport, options: UploadOptions) -> UploadResult:
        """Write the report into HubSpot as a note, a logged call and/or deal property updates."""
        if not self.enabled:
            raise HubSpotError("HubSpot is not configured", status_code=503)

        result = UploadResult(hubspot_url=self.config.hubspot_deal_url(deal_id))
        timestamp = datetime.now(UTC).isoformat()

        if options.create_note:
            result.note_id = await self.client.create_note(
                deal_id,
                {
                    "hs_note_body": format_report_html(report),
                    "hs_timestamp": timestamp,
                    "hubspot_owner_id": self.config.HUBSPOT_OWNER_ID,
                },
            )

        if options.log_call:
            customer = report.customer_company(COMPANY_NAME.split()[0])
            result.call_id = await self.client.create_call(
                deal_id,
                {
                    "hs_call_title": f"Call Report: {customer} - {report.call_date}",
                    "hs_call_body": format_report_plain_text(report),
                    "hs_call_direction": "OUTBOUND",
                    "hs_call_status": "COMPLETED",
                    "hs_timestamp": timestamp,
                    "hubspot_owner_id": self.config.HUBSPOT_OWNER_ID,
                },
            )

        if options.update_deal and options.deal_updates:
            properties = options.deal_updates.to_properties()
            if properties:
                await self.client.update_deal(deal_id, properties)
                result.deal_updated = True

        logger.info(
            "Report uploaded to HubSpot",
            deal_id=deal_id,
            note_created=result.note_id is not None,
            call_logged=result.call_id is not None,
            deal_updated=result.deal_updated,
        )
        return result
