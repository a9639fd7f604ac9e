# app/client/capabilities.py
"""
Speech capabilities the interview controller depends on.
Platform adapters (device speech recognition, text-to-speech) implement these.
"""

from typing import Protocol


class CapabilityError(Exception):
    """Raised by a speech capability that failed to capture or play."""


class SpeechRecognizer(Protocol):
    """Produces transcript text from captured audio."""

    async def start_listening(self) -> None: ...

    async def stop_listening(self) -> None: ...

    def transcript(self) -> str: ...

    def reset_transcript(self) -> None: ...


class SpeechSynthesizer(Protocol):
    """Speaks text until it finishes or is stopped."""

    async def speak(self, text: str) -> None: ...

    def stop(self) -> None: ...
