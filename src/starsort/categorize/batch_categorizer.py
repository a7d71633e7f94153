from __future__ import annotations

import asyncio
from typing import List, Sequence

from ..constants import Defaults
from ..logging import StarSortLogger
from ..models import (
    AttemptOutcome,
    AttemptRecord,
    BackendConfig,
    BatchOutcome,
    BatchState,
    CategoryMap,
    Item,
)
from .llm_client import LLMClient, LLMResponse
from .prompt_builder import (
    CATEGORIZE_RETRY_SYSTEM,
    CATEGORIZE_SYSTEM,
    FACT_PROMPT,
    FACT_SYSTEM,
    build_categorize_prompt,
)
from .response_parser import ResponseParser


class BatchCategorizer:
    """
    Categorize batches of repositories, one primary attempt and one fallback.

    Per batch:
        DISPATCH_PRIMARY -> SUCCEEDED
        DISPATCH_PRIMARY -> (parse failure | transport failure | timeout) -> DISPATCH_FALLBACK
        DISPATCH_FALLBACK -> SUCCEEDED | EXHAUSTED (empty map)
    """

    def __init__(
        self,
        llm_client: LLMClient,
        primary: BackendConfig,
        fallback: BackendConfig,
        logger: StarSortLogger,
        parser: ResponseParser | None = None,
    ) -> None:
        self.llm_client = llm_client
        self.primary = primary
        self.fallback = fallback
        self.logger = logger
        self.parser = parser or ResponseParser()

    async def categorize(self, batch: Sequence[Item]) -> CategoryMap:
        outcome = await self.categorize_batch(batch, 0)
        return outcome.categories

    async def categorize_all(self, batches: Sequence[Sequence[Item]]) -> List[BatchOutcome]:
        """Dispatch every batch concurrently; results come back in batch order."""
        return list(
            await asyncio.gather(
                *(self.categorize_batch(batch, index) for index, batch in enumerate(batches))
            )
        )

    async def categorize_batch(self, batch: Sequence[Item], index: int) -> BatchOutcome:
        outcome = BatchOutcome(index=index, size=len(batch), state=BatchState.DISPATCH_PRIMARY)

        while outcome.state in (BatchState.DISPATCH_PRIMARY, BatchState.DISPATCH_FALLBACK):
            is_retry = outcome.state is BatchState.DISPATCH_FALLBACK
            backend = self.fallback if is_retry else self.primary
            record, categories = await self._attempt(batch, backend, is_retry=is_retry)
            outcome.attempts.append(record)

            if record.outcome is AttemptOutcome.SUCCESS:
                outcome.categories = categories
                outcome.state = BatchState.SUCCEEDED
            elif is_retry:
                outcome.state = BatchState.EXHAUSTED
            else:
                outcome.state = BatchState.DISPATCH_FALLBACK

            self.logger.debug(
                "Batch attempt",
                batch=index + 1,
                backend=backend.name,
                outcome=record.outcome.value,
                next_state=outcome.state.value,
            )

        if outcome.state is BatchState.EXHAUSTED:
            self.logger.error(
                "Batch categorization exhausted",
                batch=index + 1,
                repo_count=len(batch),
                errors=[a.error for a in outcome.attempts],
            )
        elif outcome.fallback_used:
            self.logger.info("Batch recovered with fallback backend", batch=index + 1)
        return outcome

    async def _attempt(
        self,
        batch: Sequence[Item],
        backend: BackendConfig,
        *,
        is_retry: bool,
    ) -> tuple[AttemptRecord, CategoryMap]:
        system = CATEGORIZE_RETRY_SYSTEM if is_retry else CATEGORIZE_SYSTEM
        prompt = build_categorize_prompt(batch, is_retry=is_retry)
        response = await self.llm_client.complete(backend, system, prompt)

        if not response.success:
            return self._failed(backend, response), {}

        parsed = self.parser.parse(response.content)
        if not parsed.ok:
            return (
                AttemptRecord(
                    backend=backend.name,
                    outcome=AttemptOutcome.PARSE_FAILURE,
                    latency_ms=response.usage.latency_ms,
                    error="; ".join(parsed.parse_errors),
                ),
                {},
            )
        return (
            AttemptRecord(
                backend=backend.name,
                outcome=AttemptOutcome.SUCCESS,
                latency_ms=response.usage.latency_ms,
            ),
            parsed.categories,
        )

    @staticmethod
    def _failed(backend: BackendConfig, response: LLMResponse) -> AttemptRecord:
        outcome = AttemptOutcome.TIMEOUT if response.timed_out else AttemptOutcome.TRANSPORT_FAILURE
        return AttemptRecord(
            backend=backend.name,
            outcome=outcome,
            latency_ms=response.usage.latency_ms,
            error=response.error,
        )

    async def generate_fact(self) -> str:
        """Short developer fact for subjects with nothing to categorize."""
        response = await self.llm_client.complete(self.primary, FACT_SYSTEM, FACT_PROMPT)
        fact = response.content.strip() if response.success else ""
        if not fact:
            self.logger.warning("Developer fact generation failed", error=response.error)
            return Defaults.FALLBACK_FACT
        return fact
