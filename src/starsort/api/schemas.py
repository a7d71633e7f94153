from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..models import CategorizedResult, NoItemsResult, PipelineResult


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CategorizeRequest(_CamelModel):
    # Left untyped so the pipeline rejects bad values with its own error.
    username: Any = None


class CategorizedResponse(_CamelModel):
    category_count: int
    categories: Dict[str, List[str]]
    item_count: int
    elapsed: int = Field(description="Milliseconds spent serving the request")


class NoItemsResponse(_CamelModel):
    item_count: Literal[0] = 0
    no_items: Literal[True] = True
    fallback_fact: str


class ErrorResponse(BaseModel):
    error: str
    message: str
    retryable: bool = False
    request_id: Optional[str] = Field(default=None, alias="requestId")


def to_response(result: PipelineResult) -> _CamelModel:
    if isinstance(result, NoItemsResult):
        return NoItemsResponse(fallback_fact=result.fallback_fact)
    return CategorizedResponse(
        category_count=result.category_count,
        categories=result.categories,
        item_count=result.item_count,
        elapsed=result.elapsed_ms,
    )


class CatalogEntry(_CamelModel):
    """Developer profile plus categories, as the catalog store accepts it."""

    username: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    followers: int = 0
    public_repos: int = 0
    categories: Dict[str, List[str]]
    item_count: int

    @classmethod
    def from_result(cls, profile: Dict[str, Any], result: CategorizedResult) -> "CatalogEntry":
        return cls(
            username=profile.get("login") or "",
            name=profile.get("name"),
            avatar_url=profile.get("avatar_url"),
            bio=profile.get("bio"),
            followers=int(profile.get("followers") or 0),
            public_repos=int(profile.get("public_repos") or 0),
            categories=result.categories,
            item_count=result.item_count,
        )
