"""Adaptive batch sizing from how descriptive a star collection is."""

from __future__ import annotations

import math
from typing import List, Sequence, Tuple, TypeVar

from .constants import Limits
from .models import Item

T = TypeVar("T")

DESCRIPTION_WEIGHT = 0.4
LANGUAGE_WEIGHT = 0.3
TOPIC_WEIGHT = 0.3
# Average description length that counts as fully descriptive.
DESCRIPTION_SATURATION_CHARS = 100


def score(items: Sequence[Item]) -> float:
    """
    Weighted complexity in [0, 1].

    Combines normalized average description length, distinct languages per
    item and average topics per item.
    """
    if not items:
        return 0.0
    count = len(items)

    avg_description = sum(len(item.description or "") for item in items) / count
    normalized_description = min(avg_description / DESCRIPTION_SATURATION_CHARS, 1.0)

    languages = {item.primary_language for item in items if item.primary_language}
    language_variety = len(languages) / count

    topic_density = sum(len(item.topics) for item in items) / count

    raw = (
        normalized_description * DESCRIPTION_WEIGHT
        + language_variety * LANGUAGE_WEIGHT
        + topic_density * TOPIC_WEIGHT
    )
    return max(0.0, min(raw, 1.0))


def batch_size(complexity: float, total_count: int) -> int:
    """Simpler collections get larger batches (range 50-200)."""
    size = Limits.MAX_BATCH_SIZE - math.floor(complexity * (Limits.MAX_BATCH_SIZE - Limits.MIN_BATCH_SIZE))
    if total_count < 50:
        size = min(total_count, size)
    elif total_count > 300:
        size = min(Limits.LARGE_COLLECTION_BATCH_CAP, size)
    return max(1, size)


def partition(items: Sequence[T], size: int) -> List[List[T]]:
    if size < 1:
        raise ValueError(f"batch size must be >= 1, got {size}")
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


def plan_batches(items: Sequence[Item]) -> Tuple[float, int, List[List[Item]]]:
    complexity = score(items)
    size = batch_size(complexity, len(items))
    return complexity, size, partition(items, size)
