from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class ProviderResponse:
    content: str
    input_tokens: int
    output_tokens: int
    model: str


class LLMProvider(ABC):
    """A chat-completion backend. Timeouts are enforced by the caller."""

    name: str = ""

    @abstractmethod
    async def call(
        self,
        *,
        model: str,
        system: str,
        user: str,
        max_tokens: int,
        temperature: float,
    ) -> ProviderResponse:
        """Make a single completion call. Returns text + token usage."""
