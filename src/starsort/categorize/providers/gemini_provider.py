from __future__ import annotations

from .base import LLMProvider, ProviderResponse


class GeminiProvider(LLMProvider):
    """Google Gemini provider (google-genai SDK, async surface)."""

    name = "google"

    def __init__(self, api_key: str) -> None:
        self.api_key = api_key
        self._client = None

    @property
    def client(self):
        if self._client is None:
            from google import genai

            self._client = genai.Client(api_key=self.api_key)
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
        response = await self.client.aio.models.generate_content(
            model=model,
            contents=user,
            config={
                "system_instruction": system,
                "temperature": temperature,
                "max_output_tokens": max_tokens,
            },
        )

        usage = getattr(response, "usage_metadata", None)
        input_tokens = 0
        output_tokens = 0
        if usage is not None:
            input_tokens = int(getattr(usage, "prompt_token_count", 0) or 0)
            output_tokens = int(getattr(usage, "candidates_token_count", 0) or 0)

        return ProviderResponse(
            content=getattr(response, "text", "") or "",
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            model=model,
        )
