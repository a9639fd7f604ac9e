# app/services/interview_service.py
"""
Interview Orchestrator
Server-side state machine for a debrief interview: created -> greeting emitted
-> in progress -> completed.

Every turn is read-modify-write of the whole session. Turns on one session are
serialised with a per-session lock, and each write carries the version that was
read so that a concurrent writer in another process is rejected instead of
silently overwritten.
"""

import asyncio
import time
import uuid
from collections import defaultdict
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from app.infrastructure.observability.logging import get_logger
from app.models.domain.interview_domain import (
    DealContext,
    InterviewMessage,
    InterviewSession,
    StreamEvent,
    TurnResult,
)
from app.prompts.interviewer import build_greeting, build_interviewer_prompt, is_completion_signal
from app.services.errors import InterviewServiceError, SessionNotFoundError
from app.services.model_client import LanguageModelClient
from app.services.session_store import SessionStore

logger = get_logger(__name__)

FALLBACK_REPLY = "Could you repeat that?"


class InterviewOrchestrator:
    """Owns the conversation: history, model calls, completion detection, persistence."""

    def __init__(self, store: SessionStore, model: LanguageModelClient):
        self.store = store
        self.model = model
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: defaultdict[str, int] = defaultdict(int)

    @asynccontextmanager
    async def _session_lock(self, session_id: str):
        lock = self._locks.setdefault(session_id, asyncio.Lock())
        self._lock_users[session_id] += 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[session_id] -= 1
            if self._lock_users[session_id] == 0:
                del self._lock_users[session_id]
                del self._locks[session_id]

    async def _load(self, session_id: str) -> InterviewSession:
        session = await self.store.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    async def _save(self, session: InterviewSession) -> None:
        await self.store.set(session, expected_version=session.version)

    async def start_session(self, deal_id: str, deal_context: DealContext) -> InterviewSession:
        """Create and persist an empty session. No model call is made."""
        session = InterviewSession(
            id=str(uuid.uuid4()),
            deal_id=deal_id,
            deal_context=deal_context,
        )
        await self.store.set(session)

        logger.info("Interview session started", session_id=session.id, deal_id=deal_id)
        return session

    async def get_session(self, session_id: str) -> InterviewSession:
        return await self._load(session_id)

    async def get_greeting(self, session: InterviewSession) -> str:
        """
        Append the greeting as the first assistant message and persist it.

        Callers invoke this once per session; a second call appends a second greeting.
        """
        greeting = build_greeting(session.deal_context)
        async with self._session_lock(session.id):
            session.append_message("assistant", greeting)
            await self._save(session)

        logger.debug("Greeting emitted", session_id=session.id)
        return greeting

    async def _begin_turn(self, session_id: str, user_text: str) -> InterviewSession:
        """Append and persist the user message before the model is called."""
        session = await self._load(session_id)
        session.append_message("user", user_text)
        await self._save(session)
        return session

    async def _finish_turn(self, session: InterviewSession, reply: str) -> bool:
        session.append_message("assistant", reply)
        if is_completion_signal(reply):
            session.mark_completed()
        await self._save(session)
        return session.completed

    async def send_message(self, session_id: str, user_text: str) -> TurnResult:
        """Run one interview turn and return the assistant reply."""
        start = time.time()
        async with self._session_lock(session_id):
            session = await self._begin_turn(session_id, user_text)

            reply = await self.model.complete(
                build_interviewer_prompt(session.deal_context),
                session.model_messages(),
            )
            if not reply:
                logger.warning("Model returned no text, using fallback reply", session_id=session_id)
                reply = FALLBACK_REPLY

            interview_complete = await self._finish_turn(session, reply)

        logger.info(
            "Interview turn completed",
            session_id=session_id,
            message_count=len(session.messages),
            interview_complete=interview_complete,
            duration_ms=round((time.time() - start) * 1000, 2),
        )
        return TurnResult(response=reply, interview_complete=interview_complete)

    async def stream_message(self, session_id: str, user_text: str) -> AsyncIterator[StreamEvent]:
        """
        Run one interview turn as a stream of events.

        Yields token events in model order and then exactly one done event.
        Any failure yields a single error event and ends the stream; the user
        message stays persisted but no partial assistant text is written.
        Closing the iterator early discards the partial reply the same way.
        """
        async with self._session_lock(session_id):
            try:
                session = await self._begin_turn(session_id, user_text)

                parts: list[str] = []
                async for delta in self.model.stream(
                    build_interviewer_prompt(session.deal_context),
                    session.model_messages(),
                ):
                    parts.append(delta)
                    yield StreamEvent.token(delta)

                reply = "".join(parts) or FALLBACK_REPLY
                interview_complete = await self._finish_turn(session, reply)

            except InterviewServiceError as e:
                logger.error(
                    "Streamed interview turn failed",
                    session_id=session_id,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                yield StreamEvent.error(str(e))
                return

            except Exception as e:
                logger.error(
                    "Unexpected error during streamed turn",
                    session_id=session_id,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                yield StreamEvent.error(str(e) or "Unknown error")
                return

        logger.info(
            "Streamed interview turn completed",
            session_id=session_id,
            message_count=len(session.messages),
            interview_complete=interview_complete,
        )
        yield StreamEvent.done(reply, interview_complete)

    async def end_interview(self, session_id: str) -> list[InterviewMessage]:
        """Force completion regardless of the completion phrase and return the transcript."""
        async with self._session_lock(session_id):
            session = await self._load(session_id)
            session.mark_completed()
            await self._save(session)

        logger.info("Interview ended by rep", session_id=session_id, message_count=len(session.messages))
        return session.messages

    async def get_transcript(self, session_id: str) -> list[InterviewMessage]:
        session = await self._load(session_id)
        return session.messages
