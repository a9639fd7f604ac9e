"""Fakes shared by unit and integration tests."""

from datetime import UTC, datetime, timedelta

import redis.asyncio as redis

from app.services.errors import ModelServiceError


class FakeClock:
    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 10, 19, 9, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)

class FakeRedis:
    """Just enough of redis.asyncio.Redis for RedisSessionStore, with PX expiry on a fake clock."""

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.store: dict[str, str] = {}
        self.expires: dict[str, datetime] = {}
        self.before_execute = None

    def _alive(self, key: str) -> bool:
        expires_at = self.expires.get(key)
        if expires_at is not None and self.clock() >= expires_at:
            self.store.pop(key, None)
            self.expires.pop(key, None)
        return key in self.store

    async def ping(self) -> bool:
        return True

    async def get(self, key: str) -> str | None:
        return self.store[key] if self._alive(key) else None

    async def set(self, key: str, value: str, px: int | None = None) -> bool:
        self.store[key] = value
        if px:
            self.expires[key] = self.clock() + timedelta(milliseconds=px)
        else:
            self.expires.pop(key, None)
        return True

    async def delete(self, key: str) -> int:
        if not self._alive(key):
            return 0
        self.store.pop(key)
        self.expires.pop(key, None)
        return 1

    def pipeline(self, transaction: bool = True) -> "FakePipeline":
        return FakePipeline(self)

class FakePipeline:
    def __init__(self, fake: FakeRedis):
        self.fake = fake
        self.watched: dict[str, str | None] = {}
        self.commands: list[tuple] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.commands.clear()
        self.watched.clear()

    async def watch(self, key: str) -> None:
        self.watched[key] = await self.fake.get(key)

    async def get(self, key: str) -> str | None:
        return await self.fake.get(key)

    def multi(self) -> None:
        pass

    def set(self, key: str, value: str, px: int | None = None) -> None:
        self.commands.append((key, value, px))

    async def execute(self) -> list:
        if self.fake.before_execute:
            await self.fake.before_execute()
        for key, snapshot in self.watched.items():
            if await self.fake.get(key) != snapshot:
                raise redis.WatchError("Watched variable changed.")
        for key, value, px in self.commands:
            await self.fake.set(key, value, px=px)
        return [True] * len(self.commands)

class StubModel:
    """
    Deterministic stand-in for LanguageModelClient.

    Each reply is either a string or a list of chunks; complete() joins the
    chunks and stream() yields them one by one.
    """

    def __init__(self, replies=None, error: Exception | None = None, fail_stream_after: int | None = None):
        self.replies = list(replies or [])
        self.error = error
        self.fail_stream_after = fail_stream_after
        self.calls: list[dict] = []

    def _next_reply(self, system_prompt, messages, max_tokens):
        self.calls.append(
            {"system": system_prompt, "messages": [dict(m) for m in messages], "max_tokens": max_tokens}
        )
        if self.error:
            raise self.error
        return self.replies.pop(0) if self.replies else None

    async def complete(self, system_prompt, messages, max_tokens=None):
        reply = self._next_reply(system_prompt, messages, max_tokens)
        if isinstance(reply, list):
            return "".join(reply)
        return reply

    async def stream(self, system_prompt, messages, max_tokens=None):
        reply = self._next_reply(system_prompt, messages, max_tokens)
        chunks = reply if isinstance(reply, list) else [reply] if reply else []
        for index, chunk in enumerate(chunks):
            if self.fail_stream_after is not None and index >= self.fail_stream_after:
                raise ModelServiceError("Language model stream interrupted")
            yield chunk

    async def close(self):
        pass
