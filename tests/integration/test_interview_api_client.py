import json

import pytest

from app.client.api_client import InterviewApiClient, InterviewApiError

BASE = "http://debrief.test"


@pytest.mark.asyncio
async def test_send_message_posts_camel_case_body(httpx_mock):
    client = InterviewApiClient(BASE)

    httpx_mock.add_response(
        method="POST",
        url=f"{BASE}/api/interview/message",
        json={"response": "Who attended?", "interviewComplete": False},
    )

    result = await client.send_message("s-1", "It went well")
    await client.close()

    assert result == {"response": "Who attended?", "interviewComplete": False}
    assert json.loads(httpx_mock.get_request().content) == {"sessionId": "s-1", "transcript": "It went well"}


@pytest.mark.asyncio
async def test_error_status_raises_with_code(httpx_mock):
    client = InterviewApiClient(BASE)

    httpx_mock.add_response(
        method="POST",
        url=f"{BASE}/api/interview/end",
        status_code=404,
        json={"error": "Session s-1 not found"},
    )

    with pytest.raises(InterviewApiError) as exc:
        await client.end_interview("s-1")
    await client.close()

    assert exc.value.status_code == 404
    assert "Session s-1 not found" in str(exc.value)


@pytest.mark.asyncio
async def test_stream_message_decodes_sse_frames(httpx_mock):
    client = InterviewApiClient(BASE)
    frames = [
        {"type": "token", "content": "Who "},
        {"type": "token", "content": "attended?"},
        {"type": "done", "content": "Who attended?", "interviewComplete": False},
    ]

    httpx_mock.add_response(
        method="POST",
        url=f"{BASE}/api/interview/message/stream",
        headers={"Content-Type": "text/event-stream"},
        content="".join(f"data: {json.dumps(frame)}\n\n" for frame in frames).encode(),
    )

    events = [event async for event in client.stream_message("s-1", "It went well")]
    await client.close()

    assert events == frames


@pytest.mark.asyncio
async def test_stream_message_rejects_malformed_frame(httpx_mock):
    client = InterviewApiClient(BASE)

    httpx_mock.add_response(
        method="POST",
        url=f"{BASE}/api/interview/message/stream",
        content=b"data: {not json\n\n",
    )

    with pytest.raises(InterviewApiError):
        async for _ in client.stream_message("s-1", "hello"):
            pass
    await client.close()
