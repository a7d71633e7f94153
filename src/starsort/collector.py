from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Sequence

from .cache import TTLCache
from .constants import CacheTTL, Defaults, Limits, stars_cache_key
from .errors import UpstreamError
from .github import StarSource
from .logging import StarSortLogger
from .models import Item, ItemPage


def normalize_item(raw: Dict[str, Any]) -> Item:
    """Convert one raw GitHub repository record into an Item."""
    description = raw.get("description") or None
    if description and len(description) > Limits.MAX_DESCRIPTION_LENGTH:
        description = description[: Limits.MAX_DESCRIPTION_LENGTH]
    topics = tuple(str(t) for t in (raw.get("topics") or []) if t)[: Limits.MAX_TOPICS]
    popularity = raw.get("stargazers_count") or 0
    return Item(
        full_name=str(raw.get("full_name") or raw.get("name") or ""),
        description=description,
        primary_language=raw.get("language") or None,
        topics=topics,
        popularity=max(0, int(popularity)),
    )


class StarCollector:
    """Fetch every page of a subject's stars with bounded concurrency."""

    def __init__(
        self,
        source: StarSource,
        cache: TTLCache,
        logger: StarSortLogger,
        *,
        page_size: int = Limits.MAX_PAGE_SIZE,
        concurrency: int = Defaults.PAGE_CONCURRENCY,
        cache_ttl_seconds: float = CacheTTL.STARS,
    ) -> None:
        self.source = source
        self.cache = cache
        self.logger = logger
        self.page_size = page_size
        self.concurrency = max(1, concurrency)
        self.cache_ttl_seconds = cache_ttl_seconds

    async def fetch_all(self, subject: str) -> List[Item]:
        """
        Return all starred repositories for ``subject`` in upstream order.

        Steps:
        1. Serve from cache when present
        2. Fetch page 1 and read the last-page hint
        3. Fetch remaining pages in waves of ``concurrency``
        4. Normalize, cache, return
        """
        key = stars_cache_key(subject)
        cached = self.cache.get(key)
        if cached is not None:
            self.logger.info("Using cached starred repos", subject=subject, count=len(cached))
            return cached

        first = await self._fetch_page(subject, 1)
        if not first.items:
            self.logger.info("No starred repos", subject=subject)
            return []

        pages = [first]
        if first.last_page is not None and first.last_page > 1:
            pages.extend(await self._fetch_range(subject, 2, first.last_page))
        elif first.last_page is None and first.has_more:
            pages.extend(await self._probe_remaining(subject))

        items = [normalize_item(raw) for page in pages for raw in page.items]
        self.logger.info(
            "Fetched starred repos",
            subject=subject,
            pages=len(pages),
            count=len(items),
        )
        self.cache.set(key, items, self.cache_ttl_seconds)
        return items

    async def _fetch_range(self, subject: str, start: int, last: int) -> List[ItemPage]:
        pages: List[ItemPage] = []
        for wave_start in range(start, last + 1, self.concurrency):
            wave = range(wave_start, min(wave_start + self.concurrency, last + 1))
            pages.extend(await self._fetch_wave(subject, wave))
        return pages

    async def _probe_remaining(self, subject: str) -> List[ItemPage]:
        """Walk waves until a short page when the upstream gives no last-page hint."""
        pages: List[ItemPage] = []
        next_page = 2
        while True:
            wave = range(next_page, next_page + self.concurrency)
            for page in await self._fetch_wave(subject, wave):
                if page.items:
                    pages.append(page)
                if len(page.items) < self.page_size:
                    return pages
            next_page += self.concurrency

    async def _fetch_wave(self, subject: str, page_numbers: Sequence[int]) -> List[ItemPage]:
        results = await asyncio.gather(
            *(self._fetch_page(subject, n) for n in page_numbers),
            return_exceptions=True,
        )
        # Surface the first failing page, in page order.
        for result in results:
            if isinstance(result, BaseException):
                raise result
        return list(results)

    async def _fetch_page(self, subject: str, page: int) -> ItemPage:
        self.logger.debug("Fetching page", subject=subject, page=page)
        try:
            return await self.source.list_starred(subject, page, self.page_size)
        except UpstreamError as exc:
            self.logger.error("Page fetch failed", subject=subject, page=page, error=str(exc))
            raise
        except Exception as exc:
            self.logger.error("Page fetch failed", subject=subject, page=page, error=str(exc))
            raise UpstreamError(None, f"Failed to fetch page {page} for {subject}: {exc}") from exc
