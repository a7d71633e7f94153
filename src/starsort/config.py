from __future__ import annotations

from pydantic import Field, SecretStr, confloat, conint, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import CacheTTL, Defaults, Limits
from .models import BackendConfig, LLMProviderType


class StarSortConfig(BaseSettings):
    """Configuration loaded from STARSORT_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="STARSORT_",
        env_file=".env.local",
        env_file_encoding="utf-8",
        frozen=True,
        extra="ignore",
        protected_namespaces=(),
    )

    # GitHub
    github_token: SecretStr = Field(default="", description="Token for GitHub REST calls (optional)")
    github_api_url: str = Field(default="https://api.github.com")
    github_timeout_seconds: confloat(gt=0) = Field(default=15.0)
    page_size: conint(ge=1, le=Limits.MAX_PAGE_SIZE) = Field(default=Limits.MAX_PAGE_SIZE)
    page_concurrency: conint(ge=1) = Field(
        default=Defaults.PAGE_CONCURRENCY,
        description="Pages fetched concurrently per wave",
    )

    # LLM provider selection + keys
    llm_provider: LLMProviderType = Field(default="anthropic")
    anthropic_api_key: SecretStr = Field(default="")
    google_api_key: SecretStr = Field(default="")
    openai_api_key: SecretStr = Field(default="")

    # Primary backend
    model: str = Field(default="claude-haiku-4-5-20251001")
    temperature: confloat(ge=0, le=2) = Field(default=0.2)
    max_tokens: conint(ge=1) = Field(default=4096)
    timeout_seconds: confloat(gt=0) = Field(default=Defaults.PRIMARY_TIMEOUT_SECONDS)

    # Fallback backend (single retry per batch)
    model_fallback: str = Field(default="claude-sonnet-4-5-20250929")
    temperature_fallback: confloat(ge=0, le=2) = Field(default=0.6)
    max_tokens_fallback: conint(ge=1) = Field(default=8192)
    timeout_seconds_fallback: confloat(gt=0) = Field(default=Defaults.FALLBACK_TIMEOUT_SECONDS)

    # Caching / coalescing
    stars_cache_ttl_seconds: conint(ge=0) = Field(default=CacheTTL.STARS)
    categories_cache_ttl_seconds: conint(ge=0) = Field(default=CacheTTL.CATEGORIES)
    coalesce_grace_seconds: confloat(ge=0) = Field(default=Defaults.COALESCE_GRACE_SECONDS)
    exclusive_categories: bool = Field(
        default=True,
        description="Place each repository in at most one category; false allows one per category",
    )

    @field_validator("llm_provider", mode="before")
    @classmethod
    def _normalize_lowercase(cls, value: str) -> str:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("github_api_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @model_validator(mode="after")
    def _validate_backends(self) -> "StarSortConfig":
        """
        Cross-field validation.

        Keys are only checked for non-default providers; the default provider
        may run keyless in tests and local development.
        """
        provider = self.llm_provider
        if provider == "google" and not self.google_api_key.get_secret_value():
            raise ValueError("google_api_key is required when llm_provider=google")
        if provider == "openai" and not self.openai_api_key.get_secret_value():
            raise ValueError("openai_api_key is required when llm_provider=openai")
        if self.timeout_seconds_fallback < self.timeout_seconds:
            raise ValueError("timeout_seconds_fallback must not be shorter than timeout_seconds")
        return self

    def primary_backend(self) -> BackendConfig:
        return BackendConfig(
            name="primary",
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            timeout_seconds=self.timeout_seconds,
        )

    def fallback_backend(self) -> BackendConfig:
        return BackendConfig(
            name="fallback",
            model=self.model_fallback,
            temperature=self.temperature_fallback,
            max_tokens=self.max_tokens_fallback,
            timeout_seconds=self.timeout_seconds_fallback,
        )
