from __future__ import annotations

from .base import LLMProvider, ProviderResponse
from .anthropic_provider import AnthropicProvider
from .gemini_provider import GeminiProvider
from .openai_provider import OpenAIProvider


PROVIDERS: dict[str, type[LLMProvider]] = {
    "anthropic": AnthropicProvider,
    "google": GeminiProvider,
    "openai": OpenAIProvider,
}


def detect_provider_from_model(model: str, *, default_provider: str = "anthropic") -> str:
    """Infer provider from model name so primary and fallback may differ."""
    lower = (model or "").strip().lower()

    if lower.startswith("claude-"):
        return "anthropic"
    if lower.startswith("gemini-"):
        return "google"
    if lower.startswith(("gpt-", "o1-", "o3-", "o4-")):
        return "openai"

    return default_provider


__all__ = [
    "LLMProvider",
    "ProviderResponse",
    "AnthropicProvider",
    "GeminiProvider",
    "OpenAIProvider",
    "PROVIDERS",
    "detect_provider_from_model",
]
