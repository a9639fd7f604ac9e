# app/client/controller.py
"""
Interview controller for the device side of a debrief.

Drives speech capture and playback around the interview API and keeps the
local ControllerState in step through app.client.state_machine.transition.
Every capability or API failure is surfaced as an error and control returns
to listening; nothing is retried automatically.
"""

from collections.abc import Callable
from typing import Any

from app.client.api_client import InterviewApiClient, InterviewApiError
from app.client.capabilities import CapabilityError, SpeechRecognizer, SpeechSynthesizer
from app.client.state_machine import (
    ControllerState,
    EndRequested,
    Event,
    Failed,
    Phase,
    ReplyReceived,
    ReportReady,
    SessionStarted,
    SpeechFinished,
    Start,
    TurnEnded,
    transition,
)
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

RECOVERABLE_ERRORS = (InterviewApiError, CapabilityError)


class InterviewController:
    """Owns one interview on the device."""

    def __init__(
        self,
        api: InterviewApiClient,
        recognizer: SpeechRecognizer,
        synthesizer: SpeechSynthesizer,
        use_streaming: bool = False,
        on_change: Callable[[ControllerState], None] | None = None,
        on_token: Callable[[str], None] | None = None,
    ):
        self.api = api
        self.recognizer = recognizer
        self.synthesizer = synthesizer
        self.use_streaming = use_streaming
        self.on_change = on_change
        self.on_token = on_token
        self.state = ControllerState()
        self._turn_in_flight = False
        self._ending = False

    def _dispatch(self, event: Event) -> ControllerState:
        self.state = transition(self.state, event)
        if self.on_change:
            self.on_change(self.state)
        return self.state

    def _fail(self, message: str) -> None:
        logger.warning("Interview step failed", phase=self.state.phase.value, error=message)
        self._dispatch(Failed(message))

    async def _resume_listening(self) -> None:
        try:
            await self.recognizer.start_listening()
        except CapabilityError as e:
            self._fail(f"Could not start listening: {e}")

    async def _speak_then_listen(self, text: str) -> None:
        try:
            await self.synthesizer.speak(text)
        except CapabilityError as e:
            self._fail(f"Could not play response: {e}")
            await self._resume_listening()
            return

        # Playback was stopped because the rep ended the interview
        if self._ending or self.state.phase != Phase.RESPONDING:
            return

        self._dispatch(SpeechFinished())
        await self._resume_listening()

    async def start_interview(self, deal_id: str) -> None:
        self._ending = False
        self._dispatch(Start())
        try:
            result = await self.api.start_interview(deal_id)
        except InterviewApiError as e:
            self._fail(f"Failed to start interview: {e}")
            return

        self._dispatch(
            SessionStarted(
                session_id=result["sessionId"],
                greeting=result["greeting"],
                deal_context=result.get("dealContext"),
            )
        )
        await self._speak_then_listen(result["greeting"])

    async def finish_speaking(self) -> None:
        """
        End of the rep's turn (button tap or detected pause).

        Ignored while a turn is already being processed. Empty captures go
        straight back to listening without calling the server.
        """
        if self._turn_in_flight or self.state.phase != Phase.LISTENING:
            return
        self._turn_in_flight = True

        try:
            try:
                await self.recognizer.stop_listening()
            except CapabilityError as e:
                self._fail(f"Could not stop listening: {e}")
                await self._resume_listening()
                return

            # The rep may have ended the interview while capture was stopping
            if self._ending or self.state.phase != Phase.LISTENING:
                return

            text = self.recognizer.transcript().strip()
            self.recognizer.reset_transcript()
            if not text or not self.state.session_id:
                await self._resume_listening()
                return

            self._dispatch(TurnEnded(text))
            try:
                response, interview_complete = await self._send_turn(text)
            except RECOVERABLE_ERRORS as e:
                self._fail(str(e) or "Failed to process message")
                await self._resume_listening()
                return

            self._dispatch(ReplyReceived(response=response, interview_complete=interview_complete))
        finally:
            self._turn_in_flight = False

        if self.state.phase == Phase.SUMMARIZING:
            await self.generate_report()
        else:
            await self._speak_then_listen(response)

    async def _send_turn(self, text: str) -> tuple[str, bool]:
        try:
            if not self.use_streaming:
                result = await self.api.send_message(self.state.session_id, text)
                return result["response"], bool(result["interviewComplete"])

            async for event in self.api.stream_message(self.state.session_id, text):
                if event["type"] == "token":
                    if self.on_token:
                        self.on_token(event["content"])
                elif event["type"] == "done":
                    return event["content"], bool(event.get("interviewComplete"))
                elif event["type"] == "error":
                    raise InterviewApiError(event.get("content") or "Stream failed")
        except (KeyError, TypeError) as e:
            raise InterviewApiError(f"Malformed reply from server: {e!r}") from e

        raise InterviewApiError("Stream ended without a reply")

    async def end_interview(self) -> None:
        """Rep stops early: cancel playback and capture, tell the server, then summarize."""
        if self.state.phase not in (Phase.LISTENING, Phase.RESPONDING) or not self.state.session_id:
            return
        self._ending = True

        try:
            self.synthesizer.stop()
            await self.recognizer.stop_listening()
            await self.api.end_interview(self.state.session_id)
        except RECOVERABLE_ERRORS as e:
            self._ending = False
            self._fail(f"Failed to end interview: {e}")
            await self._resume_listening()
            return

        self._dispatch(EndRequested())
        await self.generate_report()

    async def generate_report(self) -> dict[str, Any] | None:
        """Fetch the structured report. On failure stays in summarizing so the rep can retry."""
        if self.state.phase != Phase.SUMMARIZING or not self.state.session_id:
            return None

        try:
            result = await self.api.generate_report(self.state.session_id)
        except InterviewApiError as e:
            self._fail(f"Failed to generate report: {e}")
            return None

        self._dispatch(ReportReady(report=result["report"]))
        return result["report"]
