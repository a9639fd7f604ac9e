"""
HubSpot CRM API client.
Low-level calls for deal search, deal detail with associations, notes, calls
and deal property updates.
"""

import asyncio
from typing import Any

import httpx

from app.infrastructure.observability.logging import get_logger
from app.models.domain.deal_domain import (
    DealDetail,
    DealSearchResult,
    DealSummary,
    HubSpotCompany,
    HubSpotContact,
    HubSpotDeal,
)
from app.services.errors import HubSpotError

logger = get_logger(__name__)

HUBSPOT_API_BASE_URL = "https://api.hubapi.com"

REQUEST_TIMEOUT = 20  # seconds
MAX_RETRIES = 3
BACKOFF_FACTOR = 1
RETRY_STATUS_CODES = {429, 500, 502, 503, 504}

# HubSpot-defined association type ids
NOTE_TO_DEAL_ASSOCIATION = 214
CALL_TO_DEAL_ASSOCIATION = 206

DEAL_PROPERTIES = [
    "dealname",
    "dealstage",
    "pipeline",
    "customer_name",
    "channel",
    "segment_type",
    "amount",
    "closedate",
    "incumbent_supplier",
    "next_step",
    "probability_of_closing",
    "hubspot_owner_id",
    "competitive_coffee_pricing",
    "description",
]

CONTACT_PROPERTIES = ["firstname", "lastname", "email", "jobtitle", "company"]
COMPANY_PROPERTIES = ["name", "domain", "industry"]


class HubSpotClient:
    """
    Async client for the HubSpot CRM v3 API.

    Retries rate-limited and 5xx responses with backoff; other failures raise
    HubSpotError with the status code and response body.
    """

    def __init__(self, access_token: str, base_url: str = HUBSPOT_API_BASE_URL, client: httpx.AsyncClient | None = None):
        self._access_token = access_token
        self._base_url = base_url.rstrip("/")
        self._client = client or self._create_client()

    def _create_client(self) -> httpx.AsyncClient:
        """Create async HTTP client for the HubSpot API."""
        timeout = httpx.Timeout(REQUEST_TIMEOUT)
        limits = httpx.Limits(max_keepalive_connections=10, max_connections=20)
        return httpx.AsyncClient(timeout=timeout, limits=limits)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    def _get_auth_headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self._access_token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def _request_with_retry(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Execute an HTTP request with retry and backoff."""
        url = f"{self._base_url}{path}"
        for attempt in range(1, MAX_RETRIES + 1):
            try:
                response = await self._client.request(
                    method, url, headers=self._get_auth_headers(), **kwargs
                )
                if response.status_code in RETRY_STATUS_CODES and attempt < MAX_RETRIES:
                    backoff = BACKOFF_FACTOR * (2 ** (attempt - 1))
                    logger.debug(
                        "HubSpot API retrying request",
                        attempt=attempt,
                        status_code=response.status_code,
                        backoff_seconds=backoff,
                    )
                    await asyncio.sleep(backoff)
                    continue
                return response
            except httpx.RequestError as e:
                if attempt >= MAX_RETRIES:
                    raise HubSpotError(f"HubSpot request failed: {e}") from e
                backoff = BACKOFF_FACTOR * (2 ** (attempt - 1))
                logger.debug(
                    "HubSpot API request error, retrying",
                    attempt=attempt,
                    error=str(e),
                    backoff_seconds=backoff,
                )
                await asyncio.sleep(backoff)
        raise RuntimeError("HubSpot API retry loop exhausted")

    def _handle_api_response(self, response: httpx.Response, operation: str) -> dict:
        """Return the parsed body, or raise HubSpotError for non-2xx responses."""
        if response.is_success:
            try:
                return response.json() if response.text else {}
            except ValueError as e:
                logger.error(f"Failed to parse HubSpot {operation} response", error=str(e))
                raise HubSpotError(f"Invalid response format: {e}") from e

        try:
            error_data = response.json() if response.text else {}
        except ValueError:
            error_data = {"message": response.text}

        message = error_data.get("message", "Unknown HubSpot API error")
        logger.error(
            f"HubSpot {operation} failed",
            status_code=response.status_code,
            error_message=message,
        )
        raise HubSpotError(
            f"HubSpot {operation} failed: {message}",
            status_code=response.status_code,
            response_data=error_data,
        )

    async def _call(self, method: str, path: str, operation: str, **kwargs) -> dict:
        response = await self._request_with_retry(method, path, **kwargs)
        return self._handle_api_response(response, operation)

    async def search_deals(
        self,
        query: str = "",
        owner_id: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> DealSearchResult:
        """Search deals, most recently modified first."""
        body: dict[str, Any] = {
            "properties": DEAL_PROPERTIES,
            "limit": limit,
            "sorts": [{"propertyName": "hs_lastmodifieddate", "direction": "DESCENDING"}],
        }
        if query:
            body["query"] = query
        if owner_id:
            body["filterGroups"] = [
                {"filters": [{"propertyName": "hubspot_owner_id", "operator": "EQ", "value": owner_id}]}
            ]
        if offset > 0:
            body["after"] = str(offset)

        data = await self._call("POST", "/crm/v3/objects/deals/search", "deal search", json=body)
        deals = [DealSummary.from_hubspot(record) for record in data.get("results", [])]
        return DealSearchResult(deals=deals, total=data.get("total", 0))

    async def get_deal(self, deal_id: str) -> DealDetail:
        """Fetch a deal with its associated contacts and first associated company."""
        data = await self._call(
            "GET",
            f"/crm/v3/objects/deals/{deal_id}",
            "deal fetch",
            params={"properties": ",".join(DEAL_PROPERTIES)},
        )
        deal = HubSpotDeal(id=str(data.get("id", deal_id)), properties=data.get("properties") or {})

        contacts = await self._get_associated_contacts(deal_id)
        company = await self._get_associated_company(deal_id)
        return DealDetail(deal=deal, contacts=contacts, company=company)

    async def _get_association_ids(self, deal_id: str, object_type: str) -> list[str]:
        data = await self._call(
            "GET",
            f"/crm/v3/objects/deals/{deal_id}/associations/{object_type}",
            f"{object_type} association lookup",
        )
        return [str(item.get("toObjectId") or item.get("id")) for item in data.get("results", [])]

    async def _get_associated_contacts(self, deal_id: str) -> list[HubSpotContact]:
        """Associations are optional; a failed lookup yields no contacts."""
        try:
            contact_ids = await self._get_association_ids(deal_id, "contacts")
            if not contact_ids:
                return []
            data = await self._call(
                "POST",
                "/crm/v3/objects/contacts/batch/read",
                "contact batch read",
                json={
                    "inputs": [{"id": contact_id} for contact_id in contact_ids],
                    "properties": CONTACT_PROPERTIES,
                },
            )
            return [HubSpotContact.from_hubspot(record) for record in data.get("results", [])]
        except HubSpotError as e:
            logger.warning("Could not load deal contacts", deal_id=deal_id, error=str(e))
            return []

    async def _get_associated_company(self, deal_id: str) -> HubSpotCompany | None:
        try:
            company_ids = await self._get_association_ids(deal_id, "companies")
            if not company_ids:
                return None
            data = await self._call(
                "GET",
                f"/crm/v3/objects/companies/{company_ids[0]}",
                "company fetch",
                params={"properties": ",".join(COMPANY_PROPERTIES)},
            )
            return HubSpotCompany.from_hubspot(data)
        except HubSpotError as e:
            logger.warning("Could not load deal company", deal_id=deal_id, error=str(e))
            return None

    async def _create_engagement(
        self, object_type: str, properties: dict[str, str], deal_id: str, association_type_id: int
    ) -> str:
        body = {
            "properties": properties,
            "associations": [
                {
                    "to": {"id": deal_id},
                    "types": [
                        {
                            "associationCategory": "HUBSPOT_DEFINED",
                            "associationTypeId": association_type_id,
                        }
                    ],
                }
            ],
        }
        data = await self._call("POST", f"/crm/v3/objects/{object_type}", f"{object_type} create", json=body)
        return str(data.get("id"))

    async def create_note(self, deal_id: str, properties: dict[str, str]) -> str:
        return await self._create_engagement("notes", properties, deal_id, NOTE_TO_DEAL_ASSOCIATION)

    async def create_call(self, deal_id: str, properties: dict[str, str]) -> str:
        return await self._create_engagement("calls", properties, deal_id, CALL_TO_DEAL_ASSOCIATION)

    async def update_deal(self, deal_id: str, properties: dict[str, str]) -> None:
        await self._call(
            "PATCH",
            f"/crm/v3/objects/deals/{deal_id}",
            "deal update",
            json={"properties": properties},
        )
