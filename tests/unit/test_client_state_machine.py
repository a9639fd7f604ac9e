"""
Tests for the pure client-side interview transition function.
"""

import pytest

from app.client.state_machine import (
    ControllerState,
    EndRequested,
    Failed,
    InvalidTransitionError,
    Phase,
    ReplyReceived,
    ReportReady,
    SessionStarted,
    SpeechFinished,
    Start,
    TurnEnded,
    transition,
)


def _listening() -> ControllerState:
    state = transition(ControllerState(), Start())
    state = transition(state, SessionStarted(session_id="s-1", greeting="Hey! How did it go?"))
    return transition(state, SpeechFinished())


def test_happy_path_through_to_complete():
    state = _listening()
    assert state.phase == Phase.LISTENING
    assert state.session_id == "s-1"

    state = transition(state, TurnEnded("It went well"))
    assert state.phase == Phase.PROCESSING
    assert state.processing is True

    state = transition(state, ReplyReceived(response="Who attended?", interview_complete=False))
    assert state.phase == Phase.RESPONDING
    assert state.processing is False

    state = transition(state, SpeechFinished())
    state = transition(state, TurnEnded("Dana from purchasing"))
    state = transition(state, ReplyReceived(response="Got it, wrapping up.", interview_complete=True))
    assert state.phase == Phase.SUMMARIZING

    state = transition(state, ReportReady(report={"summary": "ok"}))
    assert state.phase == Phase.COMPLETE
    assert state.report == {"summary": "ok"}
    assert [m.role for m in state.messages] == ["assistant", "user", "assistant", "user", "assistant"]


def test_transition_does_not_mutate_input():
    state = _listening()

    transition(state, TurnEnded("hello"))

    assert state.phase == Phase.LISTENING
    assert len(state.messages) == 1


def test_empty_turn_stays_listening():
    state = _listening()

    assert transition(state, TurnEnded("   ")) == state


def test_second_end_of_turn_while_processing_is_ignored():
    state = transition(_listening(), TurnEnded("first"))

    assert transition(state, TurnEnded("second")) is state


def test_failure_while_processing_returns_to_listening_with_error():
    state = transition(_listening(), TurnEnded("hi"))

    state = transition(state, Failed("Failed to process message"))

    assert state.phase == Phase.LISTENING
    assert state.error == "Failed to process message"
    assert state.processing is False


def test_failure_during_greeting_returns_to_idle():
    state = transition(ControllerState(), Start())

    state = transition(state, Failed("Failed to start interview"))

    assert state.phase == Phase.IDLE
    assert state.error == "Failed to start interview"


def test_failure_while_summarizing_stays_for_retry():
    state = transition(_listening(), EndRequested())

    state = transition(state, Failed("Failed to generate report"))

    assert state.phase == Phase.SUMMARIZING
    assert state.error == "Failed to generate report"


def test_end_requested_from_responding():
    state = transition(ControllerState(), Start())
    state = transition(state, SessionStarted(session_id="s-1", greeting="Hey!"))

    assert transition(state, EndRequested()).phase == Phase.SUMMARIZING


def test_next_turn_clears_previous_error():
    state = transition(transition(_listening(), TurnEnded("hi")), Failed("boom"))

    state = transition(state, TurnEnded("trying again"))

    assert state.error is None


@pytest.mark.parametrize(
    "state,event",
    [
        (ControllerState(), TurnEnded("hi")),
        (ControllerState(), SpeechFinished()),
        (ControllerState(), Failed("boom")),
        (ControllerState(phase=Phase.LISTENING), Start()),
        (ControllerState(phase=Phase.LISTENING), ReportReady(report={})),
        (ControllerState(phase=Phase.SUMMARIZING), EndRequested()),
    ],
)
def test_invalid_events_raise(state, event):
    with pytest.raises(InvalidTransitionError):
        transition(state, event)


def test_restart_after_complete_resets_state():
    state = ControllerState(phase=Phase.COMPLETE, session_id="s-1", report={"summary": "ok"})

    state = transition(state, Start())

    assert state == ControllerState(phase=Phase.GREETING)
