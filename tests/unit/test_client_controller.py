"""
Tests for the device-side InterviewController with fake speech capabilities and API.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.client.api_client import InterviewApiError
from app.client.capabilities import CapabilityError
from app.client.controller import InterviewController
from app.client.state_machine import Phase

REPORT = {"summary": "Blue Ridge Bistro wants a quote.", "customerSentiment": "positive"}


class FakeRecognizer:
    def __init__(self, transcripts=None):
        self.transcripts = list(transcripts or [])
        self.listening = False
        self.starts = 0
        self.fail_start = False
        self._current = ""

    async def start_listening(self):
        if self.fail_start:
            raise CapabilityError("microphone unavailable")
        self.listening = True
        self.starts += 1
        self._current = self.transcripts.pop(0) if self.transcripts else ""

    async def stop_listening(self):
        self.listening = False

    def transcript(self):
        return self._current

    def reset_transcript(self):
        self._current = ""


class FakeSynthesizer:
    def __init__(self):
        self.spoken = []
        self.stopped = 0

    async def speak(self, text):
        self.spoken.append(text)

    def stop(self):
        self.stopped += 1


def _api():
    api = MagicMock()
    api.start_interview = AsyncMock(
        return_value={
            "sessionId": "s-1",
            "greeting": "Hey! Tell me about your call with Blue Ridge Bistro. How did it go?",
            "dealContext": {"dealId": "deal-1"},
        }
    )
    api.send_message = AsyncMock(return_value={"response": "Who attended?", "interviewComplete": False})
    api.end_interview = AsyncMock(return_value={"transcript": []})
    api.generate_report = AsyncMock(return_value={"report": REPORT})
    return api


async def _started(api, recognizer, synthesizer, **kwargs):
    controller = InterviewController(api, recognizer, synthesizer, **kwargs)
    await controller.start_interview("deal-1")
    return controller


@pytest.mark.asyncio
async def test_start_speaks_greeting_then_listens():
    api, recognizer, synthesizer = _api(), FakeRecognizer(), FakeSynthesizer()
    phases = []

    controller = InterviewController(api, recognizer, synthesizer, on_change=lambda s: phases.append(s.phase))
    await controller.start_interview("deal-1")

    assert synthesizer.spoken == ["Hey! Tell me about your call with Blue Ridge Bistro. How did it go?"]
    assert controller.state.phase == Phase.LISTENING
    assert controller.state.session_id == "s-1"
    assert recognizer.listening is True
    assert phases == [Phase.GREETING, Phase.RESPONDING, Phase.LISTENING]


@pytest.mark.asyncio
async def test_start_failure_returns_to_idle():
    api, recognizer, synthesizer = _api(), FakeRecognizer(), FakeSynthesizer()
    api.start_interview.side_effect = InterviewApiError("API error 404: deal not found", 404)

    controller = await _started(api, recognizer, synthesizer)

    assert controller.state.phase == Phase.IDLE
    assert "Failed to start interview" in controller.state.error
    assert synthesizer.spoken == []


@pytest.mark.asyncio
async def test_turn_sends_transcript_and_speaks_reply():
    api, recognizer, synthesizer = _api(), FakeRecognizer(["It went well"]), FakeSynthesizer()
    controller = await _started(api, recognizer, synthesizer)

    await controller.finish_speaking()

    api.send_message.assert_awaited_once_with("s-1", "It went well")
    assert synthesizer.spoken[-1] == "Who attended?"
    assert controller.state.phase == Phase.LISTENING
    assert [m.content for m in controller.state.messages][-2:] == ["It went well", "Who attended?"]


@pytest.mark.asyncio
async def test_empty_capture_skips_server_call():
    api, recognizer, synthesizer = _api(), FakeRecognizer(["   "]), FakeSynthesizer()
    controller = await _started(api, recognizer, synthesizer)

    await controller.finish_speaking()

    api.send_message.assert_not_awaited()
    assert controller.state.phase == Phase.LISTENING
    assert recognizer.listening is True


@pytest.mark.asyncio
async def test_finish_speaking_ignored_when_turn_in_flight():
    api, recognizer, synthesizer = _api(), FakeRecognizer(["hello"]), FakeSynthesizer()
    controller = await _started(api, recognizer, synthesizer)
    controller._turn_in_flight = True

    await controller.finish_speaking()

    api.send_message.assert_not_awaited()


@pytest.mark.asyncio
async def test_api_failure_surfaces_error_and_resumes_listening():
    api, recognizer, synthesizer = _api(), FakeRecognizer(["It went well"]), FakeSynthesizer()
    api.send_message.side_effect = InterviewApiError("API error 502: model unavailable", 502)
    controller = await _started(api, recognizer, synthesizer)

    await controller.finish_speaking()

    assert controller.state.phase == Phase.LISTENING
    assert "502" in controller.state.error
    assert recognizer.listening is True
    assert controller._turn_in_flight is False


@pytest.mark.asyncio
async def test_completion_moves_to_summarizing_and_fetches_report():
    api, recognizer, synthesizer = _api(), FakeRecognizer(["That's everything"]), FakeSynthesizer()
    api.send_message.return_value = {
        "response": "I think I have everything I need. Let me put together your report.",
        "interviewComplete": True,
    }
    controller = await _started(api, recognizer, synthesizer)

    await controller.finish_speaking()

    api.generate_report.assert_awaited_once_with("s-1")
    assert controller.state.phase == Phase.COMPLETE
    assert controller.state.report == REPORT


@pytest.mark.asyncio
async def test_report_failure_stays_summarizing_for_retry():
    api, recognizer, synthesizer = _api(), FakeRecognizer(), FakeSynthesizer()
    api.generate_report.side_effect = [InterviewApiError("API error 502: bad output", 502), {"report": REPORT}]
    controller = await _started(api, recognizer, synthesizer)

    await controller.end_interview()
    assert controller.state.phase == Phase.SUMMARIZING
    assert controller.state.error is not None

    report = await controller.generate_report()
    assert report == REPORT
    assert controller.state.phase == Phase.COMPLETE


@pytest.mark.asyncio
async def test_end_interview_stops_audio_and_summarizes():
    api, recognizer, synthesizer = _api(), FakeRecognizer(), FakeSynthesizer()
    controller = await _started(api, recognizer, synthesizer)

    await controller.end_interview()

    assert synthesizer.stopped == 1
    assert recognizer.listening is False
    api.end_interview.assert_awaited_once_with("s-1")
    assert controller.state.phase == Phase.COMPLETE


@pytest.mark.asyncio
async def test_end_interview_ignored_before_session():
    api = _api()
    controller = InterviewController(api, FakeRecognizer(), FakeSynthesizer())

    await controller.end_interview()

    api.end_interview.assert_not_awaited()
    assert controller.state.phase == Phase.IDLE


@pytest.mark.asyncio
async def test_streaming_turn_forwards_tokens():
    api, recognizer, synthesizer = _api(), FakeRecognizer(["It went well"]), FakeSynthesizer()

    async def stream_message(session_id, transcript):
        yield {"type": "token", "content": "Who "}
        yield {"type": "token", "content": "attended?"}
        yield {"type": "done", "content": "Who attended?", "interviewComplete": False}

    api.stream_message = stream_message
    tokens = []
    controller = await _started(api, recognizer, synthesizer, use_streaming=True, on_token=tokens.append)

    await controller.finish_speaking()

    assert tokens == ["Who ", "attended?"]
    assert synthesizer.spoken[-1] == "Who attended?"
    api.send_message.assert_not_awaited()


@pytest.mark.asyncio
async def test_streaming_error_event_is_surfaced():
    api, recognizer, synthesizer = _api(), FakeRecognizer(["It went well"]), FakeSynthesizer()

    async def stream_message(session_id, transcript):
        yield {"type": "token", "content": "Who "}
        yield {"type": "error", "content": "Language model stream interrupted"}

    api.stream_message = stream_message
    controller = await _started(api, recognizer, synthesizer, use_streaming=True)

    await controller.finish_speaking()

    assert controller.state.phase == Phase.LISTENING
    assert controller.state.error == "Language model stream interrupted"
    assert synthesizer.spoken[-1] != "Who "


@pytest.mark.asyncio
async def test_microphone_failure_is_reported():
    api, recognizer, synthesizer = _api(), FakeRecognizer(), FakeSynthesizer()
    recognizer.fail_start = True

    controller = await _started(api, recognizer, synthesizer)

    assert controller.state.phase == Phase.LISTENING
    assert "microphone unavailable" in controller.state.error


class GatedRecognizer(FakeRecognizer):
    """stop_listening blocks until the test opens the gate."""

    def __init__(self, transcripts=None):
        super().__init__(transcripts)
        self.gate = asyncio.Event()
        self.gated = False

    async def stop_listening(self):
        if self.gated:
            await self.gate.wait()
        await super().stop_listening()


@pytest.mark.asyncio
async def test_end_interview_while_turn_is_stopping_capture_drops_the_turn():
    api, recognizer, synthesizer = _api(), GatedRecognizer(["It went well"]), FakeSynthesizer()
    controller = await _started(api, recognizer, synthesizer)
    recognizer.gated = True

    turn = asyncio.create_task(controller.finish_speaking())
    await asyncio.sleep(0)
    recognizer.gated = False
    await controller.end_interview()
    recognizer.gate.set()
    await turn

    api.send_message.assert_not_awaited()
    assert controller.state.phase == Phase.COMPLETE
    assert controller.state.report == REPORT
    assert controller._turn_in_flight is False


@pytest.mark.asyncio
async def test_malformed_reply_is_surfaced_as_error():
    api, recognizer, synthesizer = _api(), FakeRecognizer(["It went well"]), FakeSynthesizer()
    api.send_message.return_value = {"message": "unexpected shape"}
    controller = await _started(api, recognizer, synthesizer)

    await controller.finish_speaking()

    assert controller.state.phase == Phase.LISTENING
    assert controller.state.processing is False
    assert "Malformed reply" in controller.state.error
    assert recognizer.listening is True
