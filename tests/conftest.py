from __future__ import annotations

import io
import sys
from pathlib import Path
from typing import Dict, List, Optional

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest

from starsort.logging import StarSortLogger
from starsort.models import ItemPage


@pytest.fixture(params=["asyncio"])
def anyio_backend(request):
    """Restrict anyio tests to asyncio only (trio is not installed)."""
    return request.param


@pytest.fixture
def log_stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def logger(log_stream: io.StringIO) -> StarSortLogger:
    return StarSortLogger("test", stream=log_stream)


def raw_repo(full_name: str, description: Optional[str] = None, language: Optional[str] = None,
             topics: Optional[List[str]] = None, stars: int = 0) -> Dict:
    return {
        "full_name": full_name,
        "description": description,
        "language": language,
        "topics": topics or [],
        "stargazers_count": stars,
    }


class PagedSource:
    """In-memory StarSource splitting records into fixed-size pages."""

    def __init__(self, records: List[Dict], per_page: int, *, with_last_hint: bool = True,
                 fail_on_page: Optional[int] = None, error: Optional[Exception] = None) -> None:
        self.records = records
        self.per_page = per_page
        self.with_last_hint = with_last_hint
        self.fail_on_page = fail_on_page
        self.error = error
        self.calls: List[int] = []

    @property
    def total_pages(self) -> int:
        return max(1, -(-len(self.records) // self.per_page))

    async def list_starred(self, subject: str, page: int, per_page: int) -> ItemPage:
        assert per_page == self.per_page
        self.calls.append(page)
        if page == self.fail_on_page:
            raise self.error or RuntimeError("boom")
        start = (page - 1) * per_page
        items = self.records[start : start + per_page]
        has_more = page < self.total_pages and bool(self.records)
        last = self.total_pages if (self.with_last_hint and self.total_pages > 1) else None
        return ItemPage(items=items, page_number=page, has_more=has_more, last_page=last)


@pytest.fixture
def paged_source():
    return PagedSource


@pytest.fixture
def make_raw_repo():
    return raw_repo
