from __future__ import annotations

import dataclasses
import re
import time
from typing import Any, List, Optional

from .cache import TTLCache
from .categorize import BatchCategorizer, LLMClient, merge
from .coalescer import RequestCoalescer
from .collector import StarCollector
from .complexity import plan_batches
from .config import StarSortConfig
from .constants import CacheTTL, Defaults, categories_cache_key
from .errors import InvalidSubjectError
from .github import GitHubClient, StarSource
from .logging import StarSortLogger
from .models import BatchState, CategorizedResult, CategoryMap, Item, NoItemsResult, PipelineResult

# GitHub logins: alphanumerics and single hyphens, no leading/trailing hyphen, max 39.
_LOGIN_RE = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9]|-(?=[A-Za-z0-9])){0,38}$")


def validate_subject(subject: Any) -> str:
    if subject is None or (isinstance(subject, str) and not subject.strip()):
        raise InvalidSubjectError("A GitHub username is required")
    if not isinstance(subject, str):
        raise InvalidSubjectError("GitHub username must be a string")
    subject = subject.strip()
    if not _LOGIN_RE.match(subject):
        raise InvalidSubjectError(f"Invalid GitHub username: {subject!r}")
    return subject


def uncategorized(items: List[Item]) -> CategoryMap:
    return {Defaults.UNCATEGORIZED: [item.full_name for item in items]}


class CategorizationPipeline:
    """Orchestrates collect -> plan -> categorize -> merge for one subject."""

    def __init__(
        self,
        collector: StarCollector,
        categorizer: BatchCategorizer,
        cache: TTLCache,
        coalescer: RequestCoalescer,
        logger: StarSortLogger,
        *,
        categories_ttl_seconds: float = CacheTTL.CATEGORIES,
        exclusive_categories: bool = True,
    ) -> None:
        self.collector = collector
        self.categorizer = categorizer
        self.cache = cache
        self.coalescer = coalescer
        self.logger = logger
        self.categories_ttl_seconds = categories_ttl_seconds
        self.exclusive_categories = exclusive_categories

    async def run(self, subject: Any) -> PipelineResult:
        """
        Categorize a subject's stars, sharing work with identical in-flight calls.

        Raises InvalidSubjectError for a bad key and UpstreamError when
        GitHub cannot be read. Every other failure degrades to partial results.
        """
        subject = validate_subject(subject)
        start = time.monotonic()
        result = await self.coalescer.run(f"categorize:{subject}", lambda: self._execute(subject))
        return dataclasses.replace(result, elapsed_ms=int((time.monotonic() - start) * 1000))

    async def _execute(self, subject: str) -> PipelineResult:
        key = categories_cache_key(subject)
        cached = self.cache.get(key)
        if cached is not None:
            self.logger.info("Using cached categories", subject=subject, category_count=cached.category_count)
            return cached

        with self.logger.stage("collect", subject=subject):
            items = await self.collector.fetch_all(subject)

        if not items:
            return NoItemsResult(fallback_fact=await self.categorizer.generate_fact())

        complexity, size, batches = plan_batches(items)
        self.logger.info(
            "Using adaptive batch sizing",
            subject=subject,
            total_repos=len(items),
            complexity=round(complexity, 3),
            batch_size=size,
            batches=len(batches),
        )

        with self.logger.stage("categorize", subject=subject):
            outcomes = await self.categorizer.categorize_all(batches)

        categories = merge((o.categories for o in outcomes), exclusive=self.exclusive_categories)
        succeeded = sum(1 for o in outcomes if o.state is BatchState.SUCCEEDED)
        if not categories:
            self.logger.warning("No categories produced", subject=subject, batches=len(batches))
            categories = uncategorized(items)

        result = CategorizedResult(categories=categories, item_count=len(items))
        self.logger.info(
            "Categorization complete",
            subject=subject,
            category_count=result.category_count,
            batches_succeeded=succeeded,
            batches_total=len(outcomes),
        )
        # Degraded runs are served but not cached, so the next request retries.
        if succeeded == len(outcomes):
            self.cache.set(key, result, self.categories_ttl_seconds)
        return result


def build_pipeline(
    config: StarSortConfig,
    *,
    logger: Optional[StarSortLogger] = None,
    source: Optional[StarSource] = None,
    llm_client: Optional[LLMClient] = None,
) -> CategorizationPipeline:
    """Wire one process-wide cache and coalescer into a pipeline."""
    logger = logger or StarSortLogger("starsort")
    cache: TTLCache = TTLCache()
    source = source or GitHubClient(
        config.github_token.get_secret_value(),
        base_url=config.github_api_url,
        timeout=config.github_timeout_seconds,
    )
    llm_client = llm_client or LLMClient(
        llm_provider=config.llm_provider,
        anthropic_api_key=config.anthropic_api_key.get_secret_value(),
        google_api_key=config.google_api_key.get_secret_value(),
        openai_api_key=config.openai_api_key.get_secret_value(),
        logger=logger.bind("llm"),
    )
    collector = StarCollector(
        source,
        cache,
        logger.bind("collector"),
        page_size=config.page_size,
        concurrency=config.page_concurrency,
        cache_ttl_seconds=config.stars_cache_ttl_seconds,
    )
    categorizer = BatchCategorizer(
        llm_client,
        config.primary_backend(),
        config.fallback_backend(),
        logger.bind("categorizer"),
    )
    return CategorizationPipeline(
        collector,
        categorizer,
        cache,
        RequestCoalescer(grace_seconds=config.coalesce_grace_seconds, logger=logger.bind("coalescer")),
        logger,
        categories_ttl_seconds=config.categories_cache_ttl_seconds,
        exclusive_categories=config.exclusive_categories,
    )
