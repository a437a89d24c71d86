"""Completion backend used by the advisor chat and the insight generator."""

from typing import Any, Dict, List, Optional, Protocol

from openai import AsyncOpenAI

from advisor_backend.config import AppSettings, settings


class CompletionBackend(Protocol):
    async def complete(self, model: str, messages: List[Dict[str, str]], **params: Any) -> Optional[str]:
        """Return the generated text for ``messages`` or raise on failure."""
        ...


class OpenAICompletionBackend:
    """Chat completions through the OpenAI API with a bounded per-call timeout."""

    def __init__(self, app_settings: AppSettings = settings, client: Optional[AsyncOpenAI] = None):
        self.settings = app_settings
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        # Created on first use: the SDK refuses to build a client without an API key.
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.settings.OPENAI_API_KEY or None,
                timeout=self.settings.LLM_TIMEOUT_SECONDS,
                max_retries=self.settings.MAX_LLM_CALL_RETRIES,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None

    async def complete(self, model: str, messages: List[Dict[str, str]], **params: Any) -> Optional[str]:
        response = await self.client.chat.completions.create(
            model=model,
            messages=messages,
            **params,
        )
        if not response.choices:
            return None
        return response.choices[0].message.content
