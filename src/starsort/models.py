from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

LLMProviderType = Literal["anthropic", "google", "openai"]

# category name -> ordered, de-duplicated repository full names
CategoryMap = Dict[str, List[str]]


@dataclass(frozen=True)
class Item:
    """One starred repository, normalized."""

    full_name: str
    description: Optional[str] = None
    primary_language: Optional[str] = None
    topics: Tuple[str, ...] = ()
    popularity: int = 0


@dataclass
class ItemPage:
    """One upstream page of raw starred-repository records."""

    items: List[Dict[str, Any]]
    page_number: int
    has_more: bool
    last_page: Optional[int] = None


@dataclass(frozen=True)
class BackendConfig:
    """A named text-generation configuration (primary or fallback)."""

    name: str
    model: str
    temperature: float
    max_tokens: int
    timeout_seconds: float
    provider: Optional[LLMProviderType] = None


class AttemptOutcome(str, Enum):
    SUCCESS = "success"
    PARSE_FAILURE = "parse_failure"
    TRANSPORT_FAILURE = "transport_failure"
    TIMEOUT = "timeout"


class BatchState(str, Enum):
    DISPATCH_PRIMARY = "dispatch_primary"
    DISPATCH_FALLBACK = "dispatch_fallback"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


@dataclass
class AttemptRecord:
    backend: str
    outcome: AttemptOutcome
    latency_ms: int = 0
    error: Optional[str] = None


@dataclass
class BatchOutcome:
    index: int
    size: int
    state: BatchState
    categories: CategoryMap = field(default_factory=dict)
    attempts: List[AttemptRecord] = field(default_factory=list)

    @property
    def fallback_used(self) -> bool:
        return len(self.attempts) > 1


@dataclass
class CategorizedResult:
    categories: CategoryMap
    item_count: int
    elapsed_ms: int = 0

    @property
    def category_count(self) -> int:
        return len(self.categories)


@dataclass
class NoItemsResult:
    """Terminal state for a subject with no starred repositories."""

    fallback_fact: str
    elapsed_ms: int = 0
    item_count: int = 0


PipelineResult = Union[CategorizedResult, NoItemsResult]
