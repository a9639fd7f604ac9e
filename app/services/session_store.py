# app/services/session_store.py
"""
Session store for in-flight interview sessions.

Two interchangeable backends behind one contract:
- MemorySessionStore: process-local dict swept by a background task
- RedisSessionStore: shared store with native per-key expiry

The TTL counts from the session's created_at and is never refreshed. Writes
carry an optional expected version; a mismatch raises SessionConflictError.
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Callable
from contextlib import suppress
from datetime import datetime

import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool

from app.config import Settings
from app.infrastructure.observability.logging import get_logger
from app.models.domain.interview_domain import InterviewSession, utc_now
from app.services.errors import SessionConflictError, SessionNotFoundError

logger = get_logger(__name__)

SESSION_KEY_PREFIX = "session:"

Clock = Callable[[], datetime]


class SessionStore(ABC):
    """Keyed storage for interview sessions with fixed expiry."""

    backend = "abstract"

    def __init__(self, ttl_seconds: int, clock: Clock = utc_now):
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    async def start(self) -> None:
        """Acquire connections or background tasks."""

    async def close(self) -> None:
        """Release connections or background tasks."""

    @abstractmethod
    async def get(self, session_id: str) -> InterviewSession | None:
        """Return a private copy of the session, or None if absent or expired."""

    @abstractmethod
    async def set(self, session: InterviewSession, expected_version: int | None = None) -> None:
        """
        Persist the whole session.

        When expected_version is given the stored version must match it. On
        success session.version is advanced to the stored version.
        """

    @abstractmethod
    async def delete(self, session_id: str) -> bool:
        """Remove a session. Returns True if something was deleted."""

    async def ping(self) -> bool:
        return True

    def _remaining_ms(self, session: InterviewSession) -> int:
        remaining = session.expires_at(self.ttl_seconds) - self._clock()
        return int(remaining.total_seconds() * 1000)


class MemorySessionStore(SessionStore):
    """Process-local store. Expired entries are hidden on read and removed by a periodic sweep."""

    backend = "memory"

    def __init__(
        self,
        ttl_seconds: int,
        sweep_interval_seconds: float = 60.0,
        clock: Clock = utc_now,
    ):
        super().__init__(ttl_seconds, clock)
        self.sweep_interval_seconds = sweep_interval_seconds
        self._sessions: dict[str, InterviewSession] = {}
        self._sweep_task: asyncio.Task | None = None

    async def start(self) -> None:
        if self._sweep_task is None:
            self._sweep_task = asyncio.create_task(self._sweep_loop())
            logger.info(
                "Memory session store started",
                ttl_seconds=self.ttl_seconds,
                sweep_interval_seconds=self.sweep_interval_seconds,
            )

    async def close(self) -> None:
        if self._sweep_task is not None:
            self._sweep_task.cancel()
            with suppress(asyncio.CancelledError):
                await self._sweep_task
            self._sweep_task = None
            logger.info("Memory session store closed")

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval_seconds)
            self.sweep()

    def sweep(self) -> int:
        """Drop every expired session. Returns the number removed."""
        now = self._clock()
        expired = [
            session_id
            for session_id, session in self._sessions.items()
            if session.is_expired(self.ttl_seconds, now)
        ]
        for session_id in expired:
            del self._sessions[session_id]

        if expired:
            logger.debug("Swept expired sessions", removed=len(expired), remaining=len(self._sessions))
        return len(expired)

    def __len__(self) -> int:
        return len(self._sessions)

    async def get(self, session_id: str) -> InterviewSession | None:
        session = self._sessions.get(session_id)
        if session is None or session.is_expired(self.ttl_seconds, self._clock()):
            return None
        return session.model_copy(deep=True)

    async def set(self, session: InterviewSession, expected_version: int | None = None) -> None:
        if self._remaining_ms(session) <= 0:
            raise SessionNotFoundError(session.id)

        if expected_version is not None:
            current = await self.get(session.id)
            if current is None:
                raise SessionNotFoundError(session.id)
            if current.version != expected_version:
                raise SessionConflictError(session.id, expected_version, current.version)

        session.version += 1
        self._sessions[session.id] = session.model_copy(deep=True)

    async def delete(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None


class RedisSessionStore(SessionStore):
    """Redis-backed store. Keys expire natively at created_at + TTL."""

    backend = "redis"

    def __init__(
        self,
        redis_url: str | None,
        ttl_seconds: int,
        client: redis.Redis | None = None,
        clock: Clock = utc_now,
    ):
        super().__init__(ttl_seconds, clock)
        self.redis_url = redis_url
        self.pool = None
        self.client = client
        self._owns_client = client is None

    async def start(self) -> None:
        """Initialize connection pool on startup"""
        if self.client is not None:
            return

        try:
            logger.info("Attempting Redis connection", url_preview=(self.redis_url or "")[:30] + "...")

            self.pool = ConnectionPool.from_url(
                self.redis_url,
                max_connections=20,
                retry_on_timeout=True,
                retry_on_error=[redis.ConnectionError, redis.TimeoutError],
                socket_connect_timeout=10,
                socket_timeout=10,
                health_check_interval=30,
                decode_responses=True,
            )
            self.client = redis.Redis(connection_pool=self.pool)

            result = await self.client.ping()
            logger.info("Redis session store initialized", ping=result, ttl_seconds=self.ttl_seconds)

        except Exception as e:
            logger.error("Failed to initialize Redis session store", error=str(e))
            self.client = None
            raise RuntimeError("Redis initialization failed") from e

    async def close(self) -> None:
        """Clean shutdown"""
        if not self._owns_client:
            return
        try:
            if self.client:
                await self.client.aclose()
            if self.pool:
                await self.pool.disconnect()
            self.client = None
            logger.info("Redis session store closed")
        except Exception as e:
            logger.error("Error closing Redis client", error=str(e))

    def _key(self, session_id: str) -> str:
        return f"{SESSION_KEY_PREFIX}{session_id}"

    def _require_client(self) -> redis.Redis:
        if self.client is None:
            raise ConnectionError("Redis client not available")
        return self.client

    async def ping(self) -> bool:
        try:
            return bool(await self._require_client().ping())
        except Exception as e:
            logger.error("Redis ping failed", error=str(e))
            return False

    async def get(self, session_id: str) -> InterviewSession | None:
        try:
            raw = await self._require_client().get(self._key(session_id))
        except Exception as e:
            logger.error("Redis GET failed", session_id=session_id, error=str(e))
            raise

        if not raw:
            return None
        return InterviewSession.model_validate_json(raw)

    async def set(self, session: InterviewSession, expected_version: int | None = None) -> None:
        remaining_ms = self._remaining_ms(session)
        if remaining_ms <= 0:
            raise SessionNotFoundError(session.id)

        client = self._require_client()
        key = self._key(session.id)
        new_version = session.version + 1
        payload = session.model_copy(update={"version": new_version}).model_dump_json()

        try:
            if expected_version is None:
                await client.set(key, payload, px=remaining_ms)
            else:
                await self._compare_and_set(client, session.id, key, payload, remaining_ms, expected_version)
        except (SessionConflictError, SessionNotFoundError):
            raise
        except Exception as e:
            logger.error("Redis SET failed", session_id=session.id, error=str(e))
            raise

        session.version = new_version

    async def _compare_and_set(
        self,
        client: redis.Redis,
        session_id: str,
        key: str,
        payload: str,
        remaining_ms: int,
        expected_version: int,
    ) -> None:
        """Optimistic write: WATCH the key, check the stored version, then MULTI/EXEC."""
        async with client.pipeline(transaction=True) as pipe:
            try:
                await pipe.watch(key)
                raw = await pipe.get(key)
                if not raw:
                    raise SessionNotFoundError(session_id)

                current_version = InterviewSession.model_validate_json(raw).version
                if current_version != expected_version:
                    raise SessionConflictError(session_id, expected_version, current_version)

                pipe.multi()
                pipe.set(key, payload, px=remaining_ms)
                await pipe.execute()
            except redis.WatchError as e:
                raise SessionConflictError(session_id, expected_version, None) from e

    async def delete(self, session_id: str) -> bool:
        result = await self._require_client().delete(self._key(session_id))
        return result > 0


def create_session_store(settings: Settings) -> SessionStore:
    """Pick the backend from configuration; callers only see the SessionStore contract."""
    if settings.session_store_backend() == "redis":
        logger.info("Using Redis session store")
        return RedisSessionStore(settings.REDIS_URL, settings.SESSION_TTL_SECONDS)

    logger.info("Using in-memory session store (set REDIS_URL for production)")
    return MemorySessionStore(
        settings.SESSION_TTL_SECONDS,
        sweep_interval_seconds=settings.SESSION_SWEEP_INTERVAL_SECONDS,
    )
