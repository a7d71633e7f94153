from __future__ import annotations

import asyncio
from typing import Dict, List

import pytest

from starsort.categorize.batch_categorizer import BatchCategorizer
from starsort.categorize.llm_client import LLMClient
from starsort.categorize.providers.base import ProviderResponse
from starsort.constants import Defaults
from starsort.models import AttemptOutcome, BackendConfig, BatchState, Item

PRIMARY = BackendConfig(name="primary", model="claude-fast", temperature=0.2, max_tokens=100, timeout_seconds=0.05)
FALLBACK = BackendConfig(name="fallback", model="claude-strong", temperature=0.6, max_tokens=200, timeout_seconds=0.1)

ITEMS = [
    Item(full_name="o/a", description="A web framework", primary_language="JavaScript", topics=("web",)),
    Item(full_name="o/b", description="A data science tool", primary_language="Python", topics=("data",)),
]

HANG = object()


class ScriptedProvider:
    """Replies per model from a queue of strings, exceptions or HANG."""

    def __init__(self, script: Dict[str, List[object]]) -> None:
        self.script = {model: list(steps) for model, steps in script.items()}
        self.calls: List[dict] = []

    async def call(self, **kwargs) -> ProviderResponse:
        self.calls.append(kwargs)
        step = self.script[kwargs["model"]].pop(0)
        if step is HANG:
            await asyncio.sleep(10)
        if isinstance(step, Exception):
            raise step
        return ProviderResponse(content=step, input_tokens=1, output_tokens=1, model=kwargs["model"])


def _categorizer(provider, logger) -> BatchCategorizer:
    client = LLMClient()
    client._providers["anthropic"] = provider
    return BatchCategorizer(client, PRIMARY, FALLBACK, logger)


@pytest.mark.anyio
async def test_primary_success(logger) -> None:
    provider = ScriptedProvider({"claude-fast": ['{"Web":["o/a"],"Data":["o/b"]}']})
    outcome = await _categorizer(provider, logger).categorize_batch(ITEMS, 0)

    assert outcome.state is BatchState.SUCCEEDED
    assert outcome.categories == {"Web": ["o/a"], "Data": ["o/b"]}
    assert [a.outcome for a in outcome.attempts] == [AttemptOutcome.SUCCESS]
    assert outcome.fallback_used is False
    assert "Repository: o/a" in provider.calls[0]["user"]


@pytest.mark.anyio
async def test_parse_failure_recovers_on_fallback(logger) -> None:
    provider = ScriptedProvider({
        "claude-fast": ["Sorry, I cannot help with that."],
        "claude-strong": ['```json\n{"Web":["o/a"]}\n```'],
    })
    outcome = await _categorizer(provider, logger).categorize_batch(ITEMS, 0)

    assert outcome.state is BatchState.SUCCEEDED
    assert outcome.categories == {"Web": ["o/a"]}
    assert [a.outcome for a in outcome.attempts] == [AttemptOutcome.PARSE_FAILURE, AttemptOutcome.SUCCESS]
    retry_call = provider.calls[1]
    assert retry_call["model"] == "claude-strong"
    assert retry_call["temperature"] == 0.6
    assert "valid JSON" in retry_call["system"]
    assert "Be extra careful" in retry_call["user"]


@pytest.mark.anyio
async def test_timeout_recovers_on_fallback(logger) -> None:
    provider = ScriptedProvider({"claude-fast": [HANG], "claude-strong": ['{"Data":["o/b"]}']})
    outcome = await _categorizer(provider, logger).categorize_batch(ITEMS, 0)

    assert outcome.categories == {"Data": ["o/b"]}
    assert outcome.attempts[0].outcome is AttemptOutcome.TIMEOUT


@pytest.mark.anyio
async def test_transport_failure_recovers_on_fallback(logger) -> None:
    provider = ScriptedProvider({"claude-fast": [ConnectionError("reset")], "claude-strong": ['{"Data":["o/b"]}']})
    outcome = await _categorizer(provider, logger).categorize_batch(ITEMS, 0)

    assert outcome.state is BatchState.SUCCEEDED
    assert outcome.attempts[0].outcome is AttemptOutcome.TRANSPORT_FAILURE
    assert outcome.attempts[0].error == "reset"


@pytest.mark.anyio
async def test_both_failures_yield_empty_map_without_more_retries(logger) -> None:
    provider = ScriptedProvider({"claude-fast": ["not json"], "claude-strong": [RuntimeError("overloaded")]})
    categorizer = _categorizer(provider, logger)

    outcome = await categorizer.categorize_batch(ITEMS, 3)

    assert outcome.state is BatchState.EXHAUSTED
    assert outcome.categories == {}
    assert len(provider.calls) == 2
    assert outcome.index == 3


@pytest.mark.anyio
async def test_categorize_never_raises(logger) -> None:
    provider = ScriptedProvider({"claude-fast": [HANG], "claude-strong": [HANG]})
    assert await _categorizer(provider, logger).categorize(ITEMS) == {}


@pytest.mark.anyio
async def test_batches_run_concurrently_and_keep_order(logger) -> None:
    started = 0
    both_started = asyncio.Event()

    class BarrierProvider:
        async def call(self, **kwargs):
            nonlocal started
            started += 1
            if started == 2:
                both_started.set()
            # Neither batch can finish unless the other has been dispatched.
            await asyncio.wait_for(both_started.wait(), timeout=1)
            name = "o/a" if "o/a" in kwargs["user"] else "o/b"
            return ProviderResponse(content=f'{{"Cat {name}": ["{name}"]}}', input_tokens=0, output_tokens=0, model="m")

    slow = BackendConfig(name="primary", model="claude-fast", temperature=0, max_tokens=1, timeout_seconds=2)
    client = LLMClient()
    client._providers["anthropic"] = BarrierProvider()
    categorizer = BatchCategorizer(client, slow, FALLBACK, logger)

    outcomes = await categorizer.categorize_all([[ITEMS[0]], [ITEMS[1]]])

    assert [o.index for o in outcomes] == [0, 1]
    assert outcomes[0].categories == {"Cat o/a": ["o/a"]}
    assert outcomes[1].categories == {"Cat o/b": ["o/b"]}
    assert all(len(o.attempts) == 1 for o in outcomes)


@pytest.mark.anyio
async def test_one_bad_batch_does_not_sink_siblings(logger) -> None:
    class SelectiveProvider:
        async def call(self, **kwargs):
            if "o/b" in kwargs["user"]:
                raise RuntimeError("boom")
            return ProviderResponse(content='{"Web": ["o/a"]}', input_tokens=0, output_tokens=0, model="m")

    client = LLMClient()
    client._providers["anthropic"] = SelectiveProvider()
    outcomes = await BatchCategorizer(client, PRIMARY, FALLBACK, logger).categorize_all([[ITEMS[0]], [ITEMS[1]]])

    assert outcomes[0].state is BatchState.SUCCEEDED
    assert outcomes[1].state is BatchState.EXHAUSTED


@pytest.mark.anyio
async def test_generate_fact(logger) -> None:
    provider = ScriptedProvider({"claude-fast": ["  Linus wrote git in about two weeks. "]})
    assert await _categorizer(provider, logger).generate_fact() == "Linus wrote git in about two weeks."


@pytest.mark.anyio
async def test_generate_fact_falls_back_to_static_fact(logger) -> None:
    provider = ScriptedProvider({"claude-fast": [RuntimeError("down")]})
    assert await _categorizer(provider, logger).generate_fact() == Defaults.FALLBACK_FACT
