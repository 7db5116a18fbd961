"""Application settings loaded from environment variables and ``.env``."""

from __future__ import annotations

import logging
import shutil
import subprocess
from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from workboard.cache.models import DiscoveryPolicy
from workboard.jira.client import DEFAULT_JQL_VARIANTS
from workboard.jira.parsing import DEFAULT_SPRINT_FIELD
from workboard.linking import DEFAULT_PROJECT_CODE
from workboard.ordering.ranks import (
    DEFAULT_ISSUE_TYPE_FALLBACK,
    DEFAULT_ISSUE_TYPE_RANKS,
    DEFAULT_PRIORITY_FALLBACK,
    DEFAULT_PRIORITY_RANKS,
    DEFAULT_STATUS_FALLBACK,
    DEFAULT_STATUS_RANKS,
    RankTable,
    RankTables,
)

logger = logging.getLogger("workboard.config")


def _env(name: str) -> AliasChoices:
    """Accept both the prefixed variable and the conventional bare one."""
    return AliasChoices(f"WORKBOARD_{name}", name)


class Settings(BaseSettings):
    """Workboard settings. Every field reads ``WORKBOARD_<FIELD>``."""

    model_config = SettingsConfigDict(
        env_prefix="WORKBOARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Jira
    jira_domain: str | None = Field(None, validation_alias=_env("JIRA_DOMAIN"))
    jira_email: str | None = Field(None, validation_alias=_env("JIRA_EMAIL"))
    jira_api_token: str | None = Field(None, validation_alias=_env("JIRA_API_TOKEN"))
    jira_sprint_field: str = DEFAULT_SPRINT_FIELD
    jira_jql_variants: list[str] = Field(default_factory=lambda: list(DEFAULT_JQL_VARIANTS))

    # GitHub
    github_token: str | None = Field(None, validation_alias=_env("GITHUB_TOKEN"))
    github_api_url: str = "https://api.github.com"
    use_gh_cli_token: bool = True
    rate_limit_threshold: int = 0

    # Linking and reviews
    default_project_code: str = DEFAULT_PROJECT_CODE
    required_reviewers: dict[str, int] = Field(default_factory=dict)
    default_required_reviewers: int = 1

    # Caching and discovery
    active_repo_policy: DiscoveryPolicy = DiscoveryPolicy.PROBE
    active_repo_whitelist: list[str] = Field(default_factory=list)
    active_repo_probe_size: int = 30
    active_repo_probe_page_size: int = 10
    pr_cache_ttl_seconds: float = 300
    active_repo_ttl_seconds: float = 1800

    # Polling
    ticket_poll_seconds: float = 30
    review_inbox_poll_seconds: float = 30
    heartbeat_seconds: float = 15

    # Local state
    scan_roots: list[str] = Field(default_factory=list)
    database_path: str = "~/.workboard/workboard.db"

    # Ordering
    status_ranks: dict[str, int] = Field(default_factory=lambda: dict(DEFAULT_STATUS_RANKS))
    priority_ranks: dict[str, int] = Field(default_factory=lambda: dict(DEFAULT_PRIORITY_RANKS))
    issue_type_ranks: dict[str, int] = Field(
        default_factory=lambda: dict(DEFAULT_ISSUE_TYPE_RANKS)
    )

    # Server and logging
    host: str = "127.0.0.1"
    port: int = 8000
    log_dir: str = "logs"
    log_level: str = "INFO"

    @property
    def jira_configured(self) -> bool:
        return bool(self.jira_domain and self.jira_email and self.jira_api_token)

    def rank_tables(self) -> RankTables:
        return RankTables(
            status=RankTable.from_mapping(self.status_ranks, DEFAULT_STATUS_FALLBACK),
            priority=RankTable.from_mapping(self.priority_ranks, DEFAULT_PRIORITY_FALLBACK),
            issue_type=RankTable.from_mapping(self.issue_type_ranks, DEFAULT_ISSUE_TYPE_FALLBACK),
        )


def gh_cli_token() -> str | None:
    """Read a token from an authenticated GitHub CLI, if one is installed."""
    if shutil.which("gh") is None:
        return None
    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            check=True,
            timeout=10,
        )
    except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError) as e:
        logger.debug("gh auth token unavailable: %s", e)
        return None
    return result.stdout.strip() or None


def resolve_github_token(settings: Settings) -> str | None:
    """GitHub token from settings, falling back to ``gh auth token``."""
    if settings.github_token:
        return settings.github_token
    if settings.use_gh_cli_token:
        token = gh_cli_token()
        if token:
            logger.info("Using GitHub token from gh CLI")
            return token
    logger.warning("No GitHub token configured")
    return None


@lru_cache
def get_settings() -> Settings:
    """Load settings once per process."""
    return Settings()
