# app/client/api_client.py
"""
HTTP client for the interview API, used by the interview controller.
"""

import json
from collections.abc import AsyncIterator
from typing import Any

import httpx

from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

REQUEST_TIMEOUT = 90  # seconds, report generation is the slow call


class InterviewApiError(Exception):
    """Raised for non-2xx API responses and malformed stream frames."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class InterviewApiClient:
    """Thin async wrapper over the interview and report endpoints."""

    def __init__(self, base_url: str, client: httpx.AsyncClient | None = None):
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=httpx.Timeout(REQUEST_TIMEOUT))

    async def close(self) -> None:
        await self._client.aclose()

    async def _post(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await self._client.post(path, json=body)
        except httpx.RequestError as e:
            raise InterviewApiError(f"Network error calling {path}: {e}") from e

        if not response.is_success:
            raise InterviewApiError(f"API error {response.status_code}: {response.text}", response.status_code)
        return response.json()

    async def start_interview(self, deal_id: str) -> dict[str, Any]:
        return await self._post("/api/interview/start", {"dealId": deal_id})

    async def send_message(self, session_id: str, transcript: str) -> dict[str, Any]:
        return await self._post("/api/interview/message", {"sessionId": session_id, "transcript": transcript})

    async def stream_message(self, session_id: str, transcript: str) -> AsyncIterator[dict[str, Any]]:
        """Yield decoded SSE events ({"type": "token"|"done"|"error", ...}) in arrival order."""
        body = {"sessionId": session_id, "transcript": transcript}
        try:
            async with self._client.stream("POST", "/api/interview/message/stream", json=body) as response:
                if not response.is_success:
                    await response.aread()
                    raise InterviewApiError(
                        f"API error {response.status_code}: {response.text}", response.status_code
                    )
                async for line in response.aiter_lines():
                    if not line.startswith("data:"):
                        continue
                    try:
                        yield json.loads(line[len("data:") :].strip())
                    except json.JSONDecodeError as e:
                        raise InterviewApiError(f"Malformed stream frame: {line[:80]}") from e
        except httpx.RequestError as e:
            raise InterviewApiError(f"Network error during stream: {e}") from e

    async def end_interview(self, session_id: str) -> dict[str, Any]:
        return await self._post("/api/interview/end", {"sessionId": session_id})

    async def generate_report(self, session_id: str) -> dict[str, Any]:
        return await self._post("/api/report/generate", {"sessionId": session_id})

    async def upload_report(self, deal_id: str, report: dict[str, Any], options: dict[str, Any]) -> dict[str, Any]:
        return await self._post("/api/report/upload", {"dealId": deal_id, "report": report, "options": options})
