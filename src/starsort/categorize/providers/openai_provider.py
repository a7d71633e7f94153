from __future__ import annotations

from typing import Any, Callable, Optional

from .base import LLMProvider, ProviderResponse


class OpenAIProvider(LLMProvider):
    """OpenAI Chat Completions provider."""

    name = "openai"

    def __init__(self, api_key: str, *, client_getter: Optional[Callable[[], Any]] = None) -> None:
        self.api_key = api_key
        self._client_getter = client_getter
        self._client = None

    @property
    def client(self):
        if self._client_getter is not None:
            return self._client_getter()
        if self._client is None:
            from openai import AsyncOpenAI

            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    async def call(
        self,
        *,
        model: str,
        system: str,
        user: str,
        max_tokens: int,
        temperature: float,
    ) -> ProviderResponse:
        response = await self.client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            max_completion_tokens=max_tokens,
            temperature=temperature,
        )

        text = ""
        choices = getattr(response, "choices", None) or []
        if choices:
            message = getattr(choices[0], "message", None)
            text = (getattr(message, "content", "") if message is not None else "") or ""

        usage = getattr(response, "usage", None)
        return ProviderResponse(
            content=text,
            input_tokens=int(getattr(usage, "prompt_tokens", 0) or 0) if usage else 0,
            output_tokens=int(getattr(usage, "completion_tokens", 0) or 0) if usage else 0,
            model=model,
        )
