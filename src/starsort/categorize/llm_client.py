from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Dict, Optional

from ..logging import StarSortLogger
from ..models import BackendConfig
from .providers import PROVIDERS, LLMProvider, detect_provider_from_model


@dataclass
class LLMUsage:
    model: str
    tokens_in: int
    tokens_out: int
    latency_ms: int
    provider: str = "anthropic"


@dataclass
class LLMResponse:
    content: str
    usage: LLMUsage
    success: bool
    error: Optional[str] = None
    timed_out: bool = False


class LLMClient:
    """Chat-completion wrapper that runs one call against a named backend."""

    def __init__(
        self,
        llm_provider: str = "anthropic",
        anthropic_api_key: str = "",
        google_api_key: str = "",
        openai_api_key: str = "",
        logger: Optional[StarSortLogger] = None,
    ) -> None:
        self.llm_provider = llm_provider
        self.anthropic_api_key = anthropic_api_key
        self.google_api_key = google_api_key
        self.openai_api_key = openai_api_key
        self.logger = logger
        self._providers: Dict[str, LLMProvider] = {}

    def provider_for(self, backend: BackendConfig) -> str:
        return backend.provider or detect_provider_from_model(
            backend.model, default_provider=self.llm_provider
        )

    def _get_provider(self, provider_name: str) -> LLMProvider:
        if provider_name in self._providers:
            return self._providers[provider_name]

        provider_cls = PROVIDERS.get(provider_name)
        if provider_cls is None:
            raise ValueError(f"Unknown LLM provider: {provider_name}")
        api_keys = {
            "anthropic": self.anthropic_api_key,
            "google": self.google_api_key,
            "openai": self.openai_api_key,
        }
        provider = provider_cls(api_key=api_keys[provider_name])

        self._providers[provider_name] = provider
        return provider

    async def complete(self, backend: BackendConfig, system: str, prompt: str) -> LLMResponse:
        """
        Run a single completion with a hard deadline.

        The deadline is a race against ``backend.timeout_seconds`` rather than
        the SDK's own timeout. Never raises: failures come back as
        ``success=False`` with ``timed_out`` set for deadline misses.
        """
        provider_name = self.provider_for(backend)
        start = time.monotonic()

        def _usage(tokens_in: int = 0, tokens_out: int = 0) -> LLMUsage:
            return LLMUsage(
                model=backend.model,
                tokens_in=tokens_in,
                tokens_out=tokens_out,
                latency_ms=int((time.monotonic() - start) * 1000),
                provider=provider_name,
            )

        try:
            provider = self._get_provider(provider_name)
            response = await asyncio.wait_for(
                provider.call(
                    model=backend.model,
                    system=system,
                    user=prompt,
                    max_tokens=backend.max_tokens,
                    temperature=backend.temperature,
                ),
                timeout=backend.timeout_seconds,
            )
        except asyncio.TimeoutError:
            return LLMResponse(
                content="",
                usage=_usage(),
                success=False,
                error=f"Timeout after {backend.timeout_seconds}s",
                timed_out=True,
            )
        except Exception as exc:
            if self.logger:
                self.logger.warning(
                    "LLM call failed",
                    backend=backend.name,
                    model=backend.model,
                    error=f"{type(exc).__name__}: {exc}",
                )
            return LLMResponse(content="", usage=_usage(), success=False, error=str(exc) or type(exc).__name__)

        return LLMResponse(
            content=response.content or "",
            usage=_usage(response.input_tokens, response.output_tokens),
            success=True,
        )
