"""Boundary to the LLM chat service.

An oracle takes one prompt string and returns one envelope of unspecified
shape (see skillsynx.sanitizer). Transport failures of any kind surface as
OracleUnavailableError.
"""
from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any

import openai
from openai import AsyncOpenAI

from skillsynx.config import Settings
from skillsynx.errors import OracleUnavailableError
from skillsynx.log import get_logger
from skillsynx.retry import retry

log = get_logger(__name__)


class OracleClient(ABC):
    @abstractmethod
    async def complete(self, prompt: str) -> Any:
        """Return the raw reply envelope for *prompt*."""


class GroqOracle(OracleClient):
    """OpenAI-compatible chat completion client, pointed at Groq by default."""

    def __init__(self, settings: Settings, client: AsyncOpenAI | None = None) -> None:
        self.settings = settings
        self._client = client
        self._complete = retry(
            max_attempts=settings.max_attempts,
            base_delay=settings.retry_base_delay,
            retryable=(OracleUnavailableError,),
        )(self._complete_once)

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self.settings.api_key:
                raise OracleUnavailableError("GROQ_API_KEY is not set")
            self._client = AsyncOpenAI(
                api_key=self.settings.api_key,
                base_url=self.settings.base_url,
                timeout=self.settings.timeout,
                max_retries=0,
            )
        return self._client

    async def complete(self, prompt: str) -> Any:
        # Missing credentials fail once, outside the retry loop.
        if self._client is None and not self.settings.api_key:
            raise OracleUnavailableError("GROQ_API_KEY is not set")
        return await self._complete(prompt)

    async def _complete_once(self, prompt: str) -> Any:
        client = self.client
        log.info("Calling oracle (%s, prompt=%d chars)", self.settings.model, len(prompt))
        try:
            resp = await client.chat.completions.create(
                model=self.settings.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=self.settings.max_tokens,
                temperature=self.settings.temperature,
            )
        except (openai.APITimeoutError, asyncio.TimeoutError) as exc:
            raise OracleUnavailableError(
                f"Oracle timed out after {self.settings.timeout:.0f}s"
            ) from exc
        except openai.APIError as exc:
            raise OracleUnavailableError(f"Oracle request failed: {exc}") from exc
        log.info("Oracle replied")
        return resp.model_dump()
