from __future__ import annotations

from typing import Any, Dict, Optional, Protocol

import httpx

from .errors import UpstreamError
from .models import ItemPage

GITHUB_API = "https://api.github.com"
DEFAULT_HTTP_TIMEOUT_SECONDS = 15.0


class StarSource(Protocol):
    """Anything that can list one page of a user's starred repositories."""

    async def list_starred(self, subject: str, page: int, per_page: int) -> ItemPage:
        ...


def last_page_from_links(response: httpx.Response) -> Optional[int]:
    """Read the page number of the ``rel="last"`` Link header, if any."""
    last = response.links.get("last")
    if not last or not last.get("url"):
        return None
    page = httpx.URL(last["url"]).params.get("page")
    try:
        return int(page) if page is not None else None
    except ValueError:
        return None


class GitHubClient:
    """Async GitHub REST client for starred repositories and user profiles."""

    def __init__(
        self,
        token: str = "",
        *,
        base_url: str = GITHUB_API,
        timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "starsort",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy initialize the shared HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self.headers,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def list_starred(self, subject: str, page: int, per_page: int) -> ItemPage:
        response = await self._get(
            f"/users/{subject}/starred",
            subject,
            params={"per_page": per_page, "page": page, "sort": "created", "direction": "desc"},
        )
        items = response.json()
        if not isinstance(items, list):
            raise UpstreamError(response.status_code, f"Unexpected starred payload for {subject}")
        last_page = last_page_from_links(response)
        has_more = "next" in response.links
        return ItemPage(items=items, page_number=page, has_more=has_more, last_page=last_page)

    async def get_user_profile(self, subject: str) -> Dict[str, Any]:
        response = await self._get(f"/users/{subject}", subject)
        return response.json()

    async def _get(
        self,
        path: str,
        subject: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        try:
            response = await self.client.get(path, params=params)
        except httpx.TimeoutException as exc:
            raise UpstreamError(None, f"GitHub request timed out for {subject}") from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(None, f"GitHub request failed for {subject}: {exc}") from exc

        if response.status_code == 200:
            return response
        if response.status_code == 404:
            raise UpstreamError(404, f"GitHub user {subject} not found")
        if response.status_code in (403, 429) and _is_rate_limited(response):
            raise UpstreamError(response.status_code, "GitHub API rate limit exceeded", retryable=True)
        raise UpstreamError(
            response.status_code,
            f"Failed to fetch starred repos for {subject}. GitHub API error: {_error_message(response)}",
        )


def _is_rate_limited(response: httpx.Response) -> bool:
    if response.status_code == 429:
        return True
    if response.headers.get("x-ratelimit-remaining") == "0":
        return True
    return "rate limit" in response.text.lower()


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.reason_phrase or "unknown error"
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return response.reason_phrase or "unknown error"
