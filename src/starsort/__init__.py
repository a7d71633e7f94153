"""Categorize a GitHub user's starred repositories with a text-generation model."""

from .cache import TTLCache
from .coalescer import RequestCoalescer
from .config import StarSortConfig
from .errors import InvalidSubjectError, StarSortError, UpstreamError
from .models import CategorizedResult, Item, NoItemsResult
from .pipeline import CategorizationPipeline, build_pipeline

__version__ = "0.1.0"

__all__ = [
    "CategorizationPipeline",
    "CategorizedResult",
    "InvalidSubjectError",
    "Item",
    "NoItemsResult",
    "RequestCoalescer",
    "StarSortConfig",
    "StarSortError",
    "TTLCache",
    "UpstreamError",
    "build_pipeline",
]
