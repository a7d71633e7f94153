from __future__ import annotations

from typing import Optional


class StarSortError(Exception):
    """Base exception for all starsort errors."""

    status_code: int = 500
    code: str = "internal_error"
    retryable: bool = False

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message or self.__class__.__doc__ or ""


class ConfigError(StarSortError):
    """Configuration validation failed."""

    code = "config_error"


class InvalidSubjectError(StarSortError):
    """Subject key is missing or not a valid GitHub login."""

    status_code = 400
    code = "invalid_username"


class UpstreamError(StarSortError):
    """Fetching starred repositories from GitHub failed."""

    code = "upstream_error"

    def __init__(self, status: Optional[int], message: str, *, retryable: Optional[bool] = None) -> None:
        super().__init__(message)
        self.status = status
        if status is not None and 400 <= status < 600:
            self.status_code = status
        else:
            self.status_code = 502
        if retryable is None:
            # A 403 is only retryable when the caller knows it is a rate limit.
            retryable = status is None or status == 429 or status >= 500
        self.retryable = retryable

    def __str__(self) -> str:
        if self.status is None:
            return self.message
        return f"{self.message} (status {self.status})"
