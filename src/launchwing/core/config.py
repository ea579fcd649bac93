from __future__ import annotations

import os
from typing import Any, Literal

from pydantic import BaseModel, Field

from launchwing.core.constants import (
    DEFAULT_BRANCH,
    DEFAULT_COMMIT_MESSAGE,
    DEFAULT_COMPATIBILITY_DATE,
    FALLBACK_BRANCH,
    PROJECT_PREFIX,
)
from launchwing.resilience.retry import RetryPolicy


def _env(*names: str) -> str | None:
    """Return the first non-empty environment variable among *names*."""
    for name in names:
        value = os.environ.get(name)
        if value:
            return value
    return None


def _env_flag(name: str) -> bool | None:
    value = os.environ.get(name)
    if not value:
        return None
    return value.strip().lower() in ("1", "true", "yes", "on")


class GeneratorConfig(BaseModel):
    base_url: str = "http://localhost:8000"
    api_key: str | None = None
    timeout: float = Field(default=300.0, gt=0, le=3600)
    """Seconds allowed for one generator call. Code generation is slow."""
    max_attempts: int = Field(default=3, ge=1, le=10)
    backoff_base: float = Field(default=2.0, ge=0.0)
    backoff_max: float = Field(default=30.0, ge=0.0)
    jitter: bool = False
    expect_content: bool = True
    """When ``False``, items without content decode to an empty string."""
    include_context: bool = True
    """Send already generated files as ``alreadyGenerated``."""
    batch_endpoint: str = "/generate-batch"
    fallback_endpoint: str | None = "/generate"
    extra_headers: dict[str, str] = Field(default_factory=dict)

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.max_attempts,
            backoff_base=self.backoff_base,
            backoff_max=self.backoff_max,
            jitter=self.jitter,
        )

    @classmethod
    def from_env(cls) -> GeneratorConfig:
        """Create a :class:`GeneratorConfig` from the environment.

        * ``AGENT_BASE_URL`` → ``base_url``
        * ``AGENT_API_KEY`` → ``api_key``
        * ``LAUNCHWING_GENERATOR_TIMEOUT`` → ``timeout`` (seconds)
        * ``LAUNCHWING_GENERATOR_ATTEMPTS`` → ``max_attempts``
        """
        kwargs: dict[str, Any] = {}
        base_url = _env("AGENT_BASE_URL")
        if base_url:
            kwargs["base_url"] = base_url
        api_key = _env("AGENT_API_KEY")
        if api_key:
            kwargs["api_key"] = api_key
        timeout = _env("LAUNCHWING_GENERATOR_TIMEOUT")
        if timeout:
            kwargs["timeout"] = float(timeout)
        attempts = _env("LAUNCHWING_GENERATOR_ATTEMPTS")
        if attempts:
            kwargs["max_attempts"] = int(attempts)
        return cls(**kwargs)


class GitHubConfig(BaseModel):
    token: str | None = None
    org: str | None = None
    username: str | None = None
    base_url: str = "https://api.github.com"
    web_url: str = "https://github.com"
    timeout: float = Field(default=30.0, gt=0, le=600)
    private: bool = False
    auto_init: bool = True
    """Initialize new repos with a first commit so the Git data API has a base."""
    branch: str = DEFAULT_BRANCH
    fallback_branch: str | None = FALLBACK_BRANCH
    commit_message: str = DEFAULT_COMMIT_MESSAGE
    repo_prefix: str = PROJECT_PREFIX

    @property
    def owner(self) -> str | None:
        return self.org or self.username

    @classmethod
    def from_env(cls) -> GitHubConfig:
        """Create a :class:`GitHubConfig` from the environment.

        * ``PAT_GITHUB`` or ``GITHUB_TOKEN`` → ``token``
        * ``GITHUB_ORG`` → ``org``
        * ``GITHUB_USERNAME`` → ``username``
        * ``GITHUB_PRIVATE_REPOS`` → ``private``
        """
        kwargs: dict[str, Any] = {}
        token = _env("PAT_GITHUB", "GITHUB_TOKEN")
        if token:
            kwargs["token"] = token
        org = _env("GITHUB_ORG")
        if org:
            kwargs["org"] = org
        username = _env("GITHUB_USERNAME")
        if username:
            kwargs["username"] = username
        private = _env_flag("GITHUB_PRIVATE_REPOS")
        if private is not None:
            kwargs["private"] = private
        return cls(**kwargs)


class CloudflareConfig(BaseModel):
    api_token: str | None = None
    account_id: str | None = None
    base_url: str = "https://api.cloudflare.com/client/v4"
    timeout: float = Field(default=30.0, gt=0, le=600)
    workers_subdomain: str | None = None
    """Skip the subdomain lookup when set (``<sub>.workers.dev``)."""

    @property
    def can_provision(self) -> bool:
        return bool(self.api_token and self.account_id)

    @classmethod
    def from_env(cls) -> CloudflareConfig:
        """Create a :class:`CloudflareConfig` from the environment.

        * ``CLOUDFLARE_API_TOKEN`` or ``CF_API_TOKEN`` → ``api_token``
        * ``CLOUDFLARE_ACCOUNT_ID`` or ``CF_ACCOUNT_ID`` → ``account_id``
        * ``CLOUDFLARE_WORKERS_SUBDOMAIN`` → ``workers_subdomain``
        """
        kwargs: dict[str, Any] = {}
        token = _env("CLOUDFLARE_API_TOKEN", "CF_API_TOKEN")
        if token:
            kwargs["api_token"] = token
        account_id = _env("CLOUDFLARE_ACCOUNT_ID", "CF_ACCOUNT_ID")
        if account_id:
            kwargs["account_id"] = account_id
        subdomain = _env("CLOUDFLARE_WORKERS_SUBDOMAIN")
        if subdomain:
            kwargs["workers_subdomain"] = subdomain
        return cls(**kwargs)


class PlannerConfig(BaseModel):
    api_key: str | None = None
    base_url: str = "https://api.openai.com/v1"
    model: str = "gpt-4o-mini"
    timeout: float = Field(default=120.0, gt=0, le=3600)
    temperature: float = Field(default=0.0, ge=0.0, le=2.0)

    @classmethod
    def from_env(cls) -> PlannerConfig:
        """Create a :class:`PlannerConfig` from ``OPENAI_API_KEY``,
        ``OPENAI_BASE_URL`` and ``PLANNER_MODEL``."""
        kwargs: dict[str, Any] = {}
        api_key = _env("OPENAI_API_KEY")
        if api_key:
            kwargs["api_key"] = api_key
        base_url = _env("OPENAI_BASE_URL")
        if base_url:
            kwargs["base_url"] = base_url
        model = _env("PLANNER_MODEL")
        if model:
            kwargs["model"] = model
        return cls(**kwargs)


class BuildConfig(BaseModel):
    generator: GeneratorConfig = Field(default_factory=GeneratorConfig)
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    cloudflare: CloudflareConfig = Field(default_factory=CloudflareConfig)
    planner: PlannerConfig = Field(default_factory=PlannerConfig)
    batch_size: int = Field(default=4, ge=1, le=50)
    compatibility_date: str = Field(
        default=DEFAULT_COMPATIBILITY_DATE, pattern=r"^\d{4}-\d{2}-\d{2}$"
    )
    strict_paths: bool = False
    """Raise on invalid generated paths instead of dropping them with a warning."""
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @classmethod
    def from_env(cls) -> BuildConfig:
        """Create a :class:`BuildConfig` from the environment.

        Nested configs read their own variables (see their ``from_env``).
        Top-level settings:

        * ``LAUNCHWING_BATCH_SIZE`` → ``batch_size``
        * ``LAUNCHWING_COMPATIBILITY_DATE`` → ``compatibility_date``
        * ``LAUNCHWING_STRICT_PATHS`` → ``strict_paths``
        * ``LAUNCHWING_LOG_LEVEL`` → ``log_level``
        """
        kwargs: dict[str, Any] = {
            "generator": GeneratorConfig.from_env(),
            "github": GitHubConfig.from_env(),
            "cloudflare": CloudflareConfig.from_env(),
            "planner": PlannerConfig.from_env(),
        }
        batch_size = _env("LAUNCHWING_BATCH_SIZE")
        if batch_size:
            kwargs["batch_size"] = int(batch_size)
        compat = _env("LAUNCHWING_COMPATIBILITY_DATE")
        if compat:
            kwargs["compatibility_date"] = compat
        strict = _env_flag("LAUNCHWING_STRICT_PATHS")
        if strict is not None:
            kwargs["strict_paths"] = strict
        log_level = _env("LAUNCHWING_LOG_LEVEL")
        if log_level:
            kwargs["log_level"] = log_level.upper()
        return cls(**kwargs)
