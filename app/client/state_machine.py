# app/client/state_machine.py
"""
Client-side interview state machine.

The controller's whole state is one immutable ControllerState; transition()
is a pure function (state, event) -> state' so the flow can be tested without
audio, speech or network.

    idle -> greeting -> responding -> listening -> processing -> responding ...
                                                        \\-> summarizing -> complete

Failures return to listening with an error message so the rep can keep talking.
"""

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class Phase(str, Enum):
    IDLE = "idle"
    GREETING = "greeting"
    RESPONDING = "responding"
    LISTENING = "listening"
    PROCESSING = "processing"
    SUMMARIZING = "summarizing"
    COMPLETE = "complete"


class InvalidTransitionError(Exception):
    """Raised when an event is not valid in the current phase."""

    def __init__(self, phase: Phase, event: "Event"):
        super().__init__(f"Event {type(event).__name__} is not valid in phase '{phase.value}'")
        self.phase = phase
        self.event = event


@dataclass(frozen=True)
class ClientMessage:
    role: str
    content: str
    timestamp: str = field(default_factory=lambda: datetime.now(UTC).isoformat())


@dataclass(frozen=True)
class ControllerState:
    phase: Phase = Phase.IDLE
    messages: tuple[ClientMessage, ...] = ()
    session_id: str | None = None
    deal_context: dict[str, Any] | None = None
    report: dict[str, Any] | None = None
    error: str | None = None
    processing: bool = False

    def with_message(self, role: str, content: str) -> "ControllerState":
        return replace(self, messages=(*self.messages, ClientMessage(role, content)))


# Events


@dataclass(frozen=True)
class Event:
    pass


@dataclass(frozen=True)
class Start(Event):
    pass


@dataclass(frozen=True)
class SessionStarted(Event):
    session_id: str
    greeting: str
    deal_context: dict[str, Any] | None = None


@dataclass(frozen=True)
class SpeechFinished(Event):
    pass


@dataclass(frozen=True)
class TurnEnded(Event):
    text: str


@dataclass(frozen=True)
class ReplyReceived(Event):
    response: str
    interview_complete: bool


@dataclass(frozen=True)
class EndRequested(Event):
    pass


@dataclass(frozen=True)
class ReportReady(Event):
    report: dict[str, Any]


@dataclass(frozen=True)
class Failed(Event):
    message: str


def transition(state: ControllerState, event: Event) -> ControllerState:
    """Apply one event. Raises InvalidTransitionError for events the phase does not accept."""
    phase = state.phase

    if isinstance(event, Failed):
        if phase == Phase.GREETING:
            return replace(state, phase=Phase.IDLE, error=event.message, processing=False)
        if phase in (Phase.IDLE, Phase.COMPLETE):
            raise InvalidTransitionError(phase, event)
        if phase == Phase.SUMMARIZING:
            # Report generation failed; stay put so the rep can retry
            return replace(state, error=event.message, processing=False)
        return replace(state, phase=Phase.LISTENING, error=event.message, processing=False)

    if isinstance(event, Start) and phase in (Phase.IDLE, Phase.COMPLETE):
        return ControllerState(phase=Phase.GREETING)

    if isinstance(event, SessionStarted) and phase == Phase.GREETING:
        started = replace(
            state,
            phase=Phase.RESPONDING,
            session_id=event.session_id,
            deal_context=event.deal_context,
            error=None,
        )
        return started.with_message("assistant", event.greeting)

    if isinstance(event, SpeechFinished) and phase == Phase.RESPONDING:
        return replace(state, phase=Phase.LISTENING)

    if isinstance(event, TurnEnded):
        if state.processing or phase == Phase.PROCESSING:
            # In-flight guard: a second end-of-turn while processing is dropped
            return state
        if phase != Phase.LISTENING:
            raise InvalidTransitionError(phase, event)
        text = event.text.strip()
        if not text:
            return state
        processing = replace(state, phase=Phase.PROCESSING, processing=True, error=None)
        return processing.with_message("user", text)

    if isinstance(event, ReplyReceived) and phase == Phase.PROCESSING:
        replied = replace(state, processing=False).with_message("assistant", event.response)
        next_phase = Phase.SUMMARIZING if event.interview_complete else Phase.RESPONDING
        return replace(replied, phase=next_phase)

    if isinstance(event, EndRequested) and phase in (Phase.LISTENING, Phase.RESPONDING):
        return replace(state, phase=Phase.SUMMARIZING, processing=False)

    if isinstance(event, ReportReady) and phase == Phase.SUMMARIZING:
        return replace(state, phase=Phase.COMPLETE, report=event.report, error=None)

    raise InvalidTransitionError(phase, event)
