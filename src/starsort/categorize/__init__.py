"""Model-backed categorization of repository batches."""

from .batch_categorizer import BatchCategorizer
from .llm_client import LLMClient, LLMResponse, LLMUsage
from .merge import merge
from .response_parser import ParseResult, ResponseParser

__all__ = [
    "BatchCategorizer",
    "LLMClient",
    "LLMResponse",
    "LLMUsage",
    "ParseResult",
    "ResponseParser",
    "merge",
]
