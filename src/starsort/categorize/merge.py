from __future__ import annotations

from typing import Dict, Iterable, Set

from ..models import CategoryMap


def normalize_category(name: str) -> str:
    return name.strip()


def merge(batch_results: Iterable[CategoryMap], *, exclusive: bool = True) -> CategoryMap:
    """
    Combine per-batch category maps in batch order.

    Category names are trimmed before use as keys. A repository is recorded at
    most once in the whole merged output: the first category to claim it keeps
    it. With ``exclusive=False`` the check narrows to one category, so a
    repository may appear under several categories but never twice in one.
    Empty categories are pruned.
    """
    merged: CategoryMap = {}
    seen: Dict[str, Set[str]] = {}
    seen_anywhere: Set[str] = set()

    for result in batch_results:
        for category, repos in result.items():
            key = normalize_category(category)
            if not key:
                continue
            names = merged.setdefault(key, [])
            recorded = seen.setdefault(key, set())
            for repo in repos:
                if repo in recorded or (exclusive and repo in seen_anywhere):
                    continue
                recorded.add(repo)
                seen_anywhere.add(repo)
                names.append(repo)

    return {category: repos for category, repos in merged.items() if repos}
