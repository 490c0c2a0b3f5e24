"""Chat completion client (OpenAI-compatible Ark endpoint)."""
from __future__ import annotations

import asyncio
from typing import Any

from openai import AsyncOpenAI

from config import ChatConfig
from constants import CHAT_TIMEOUT_S, CHAT_USER_MESSAGE_TEMPLATE
from observability.logger import log_event


class UsageCounter:
    """
    Running token total shared by the callers that are handed it.

    Not a singleton: create one per scope that wants a total and pass
    it into each ChatClient.complete() call.
    """

    def __init__(self) -> None:
        self._total_tokens = 0
        self._lock = asyncio.Lock()

    @property
    def total_tokens(self) -> int:
        return self._total_tokens

    async def add(self, tokens: int) -> int:
        """Add tokens and return the new total."""
        async with self._lock:
            self._total_tokens += tokens
            return self._total_tokens


class ChatClient:
    """
    Thin wrapper over AsyncOpenAI for single-turn completions.

    Does NOT:
    - Retry
    - Stream
    - Keep conversation history
    """

    def __init__(self, *, client: Any, model: str) -> None:
        """
        Args:
            client:
                AsyncOpenAI (or compatible) client.
            model:
                Model / endpoint identifier.
        """
        self._client = client
        self._model = model

    @classmethod
    def from_config(cls, config: ChatConfig) -> ChatClient:
        if not config.api_key:
            raise ValueError("ARK_API_KEY is not set")
        client = AsyncOpenAI(
            api_key=config.api_key,
            base_url=config.base_url,
            timeout=CHAT_TIMEOUT_S,
        )
        return cls(client=client, model=config.model)

    async def complete(
        self,
        *,
        system_prompt: str,
        user_message: str,
        usage: UsageCounter | None = None,
    ) -> str:
        """Run one completion and return the assistant text."""
        response = await self._client.chat.completions.create(
            model=self._model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": CHAT_USER_MESSAGE_TEMPLATE.format(message=user_message)},
            ],
        )

        tokens = response.usage.total_tokens if response.usage is not None else 0
        total = await usage.add(tokens) if usage is not None else None

        log_event({
            "event_type": "CHAT_COMPLETION",
            "model": self._model,
            "tokens": tokens,
            "total_tokens": total,
        })

        return response.choices[0].message.content or ""
