"""Cache - Pull request cache and active repository discovery."""

from workboard.cache.active_repos import ACTIVE_REPOSITORIES_TTL, ActiveRepositoryDiscovery
from workboard.cache.models import DiscoveryPolicy, PRFetchResult
from workboard.cache.pr_cache import PR_CACHE_TTL, PRCache

__all__ = [
    "ACTIVE_REPOSITORIES_TTL",
    "PR_CACHE_TTL",
    "ActiveRepositoryDiscovery",
    "DiscoveryPolicy",
    "PRCache",
    "PRFetchResult",
]
