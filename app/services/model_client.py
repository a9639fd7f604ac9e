# app/services/model_client.py
"""
Language model client for the interviewer and the report extractor.
Wraps the OpenAI async client: one-shot completions with retry, and token
streaming for live interview turns.
"""

import asyncio
from collections.abc import AsyncIterator

import openai
from openai import AsyncOpenAI

from app.config import Settings, settings
from app.infrastructure.observability.logging import get_logger
from app.services.errors import ModelServiceError

logger = get_logger(__name__)


class LanguageModelClient:
    """
    Produces assistant messages from a system prompt and an ordered history.

    History entries are {"role": "user"|"assistant", "content": str}.
    """

    def __init__(self, client: AsyncOpenAI | None = None, config: Settings = settings):
        model_config = config.get_model_config()
        self.model = model_config["model"]
        self.max_tokens = model_config["max_tokens"]
        self.temperature = model_config["temperature"]
        self.timeout = model_config["timeout"]
        self.max_retries = model_config["max_retries"]
        self.client = client or self._initialize_client(config)

    def _initialize_client(self, config: Settings) -> AsyncOpenAI:
        """Initialize OpenAI async client with configuration."""
        if not config.OPENAI_API_KEY:
            raise ModelServiceError("OPENAI_API_KEY not configured in settings", recoverable=False)

        client = AsyncOpenAI(api_key=config.OPENAI_API_KEY, timeout=self.timeout)
        logger.info("OpenAI client initialized", model=self.model, timeout=self.timeout)
        return client

    async def close(self) -> None:
        await self.client.close()

    def _build_messages(self, system_prompt: str, messages: list[dict[str, str]]) -> list[dict]:
        return [{"role": "system", "content": system_prompt}, *messages]

    async def complete(
        self,
        system_prompt: str,
        messages: list[dict[str, str]],
        max_tokens: int | None = None,
    ) -> str | None:
        """
        Return the assistant text, or None when the model produced no text.

        Transient failures (rate limits, timeouts, 5xx) are retried with
        exponential backoff; client errors are not.
        """
        last_error = None

        for attempt in range(self.max_retries):
            try:
                logger.debug(
                    "Calling language model",
                    attempt=attempt + 1,
                    max_retries=self.max_retries,
                    model=self.model,
                    message_count=len(messages),
                )

                response = await asyncio.wait_for(
                    self.client.chat.completions.create(
                        model=self.model,
                        messages=self._build_messages(system_prompt, messages),
                        max_tokens=max_tokens or self.max_tokens,
                        temperature=self.temperature,
                    ),
                    timeout=self.timeout,
                )

                if not response.choices:
                    return None

                text = response.choices[0].message.content
                logger.info(
                    "Language model call successful",
                    attempt=attempt + 1,
                    response_length=len(text or ""),
                    usage_tokens=response.usage.total_tokens if response.usage else 0,
                )
                return text or None

            except openai.RateLimitError as e:
                last_error = e
                wait_time = min(2**attempt, 30)
                logger.warning(
                    "Language model rate limit hit, retrying",
                    attempt=attempt + 1,
                    wait_time=wait_time,
                    error=str(e),
                )
                if attempt < self.max_retries - 1:
                    await asyncio.sleep(wait_time)

            except (openai.APITimeoutError, asyncio.TimeoutError) as e:
                last_error = e
                logger.warning(
                    "Language model call timed out, retrying",
                    attempt=attempt + 1,
                    timeout=self.timeout,
                )

            except openai.APIStatusError as e:
                last_error = e
                if 400 <= e.status_code < 500:
                    logger.error("Language model client error (not retrying)", error=str(e))
                    break
                logger.warning("Language model API error, retrying", attempt=attempt + 1, error=str(e))

            except openai.APIError as e:
                last_error = e
                logger.warning("Language model API error, retrying", attempt=attempt + 1, error=str(e))

        logger.error(
            "Language model call failed after all retries",
            max_retries=self.max_retries,
            final_error=str(last_error),
        )
        raise ModelServiceError(
            f"Language model failed after {self.max_retries} attempts",
            api_error=str(last_error),
        ) from last_error

    async def stream(
        self,
        system_prompt: str,
        messages: list[dict[str, str]],
        max_tokens: int | None = None,
    ) -> AsyncIterator[str]:
        """
        Yield text deltas in the order the model emits them.

        Not retried: once tokens have been emitted a retry would duplicate them.
        """
        try:
            stream = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=self.model,
                    messages=self._build_messages(system_prompt, messages),
                    max_tokens=max_tokens or self.max_tokens,
                    temperature=self.temperature,
                    stream=True,
                ),
                timeout=self.timeout,
            )
        except (openai.APIError, asyncio.TimeoutError) as e:
            logger.error("Failed to open language model stream", error=str(e))
            raise ModelServiceError("Language model stream could not be opened", api_error=str(e)) from e

        try:
            async for chunk in stream:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta.content
                if delta:
                    yield delta
        except openai.APIError as e:
            logger.error("Language model stream interrupted", error=str(e))
            raise ModelServiceError("Language model stream interrupted", api_error=str(e)) from e
        finally:
            await stream.close()
