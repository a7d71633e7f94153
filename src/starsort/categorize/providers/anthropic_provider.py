from __future__ import annotations

from .base import LLMProvider, ProviderResponse


class AnthropicProvider(LLMProvider):
    """Anthropic Messages API provider."""

    name = "anthropic"

    def __init__(self, api_key: str) -> None:
        self.api_key = api_key
        self._client = None

    @property
    def client(self):
        if self._client is None:
            import anthropic

            # An empty key lets the SDK fall back to ANTHROPIC_API_KEY.
            self._client = anthropic.AsyncAnthropic(api_key=self.api_key or None)
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
        response = await self.client.messages.create(
            model=model,
            system=system,
            messages=[{"role": "user", "content": user}],
            max_tokens=max_tokens,
            temperature=temperature,
        )

        text = "".join(
            getattr(block, "text", "") or ""
            for block in (getattr(response, "content", None) or [])
        )
        if not text:
            raise ValueError("Invalid response format from Claude: no text content")

        usage = getattr(response, "usage", None)
        return ProviderResponse(
            content=text,
            input_tokens=int(getattr(usage, "input_tokens", 0) or 0) if usage else 0,
            output_tokens=int(getattr(usage, "output_tokens", 0) or 0) if usage else 0,
            model=model,
        )
