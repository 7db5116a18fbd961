"""Local Git - Branch state of the user's local clones."""

from workboard.local_git.exceptions import LocalGitError, RepositoryNotFoundError
from workboard.local_git.manager import LocalGitManager
from workboard.local_git.models import (
    BranchStatus,
    GitOperationResult,
    LocalBranchStatus,
    LocalRepository,
    UpstreamStatus,
)
from workboard.local_git.scanner import (
    BranchStatusRequest,
    BranchStatusResult,
    RepositoryScanner,
)

__all__ = [
    "BranchStatus",
    "BranchStatusRequest",
    "BranchStatusResult",
    "GitOperationResult",
    "LocalBranchStatus",
    "LocalGitError",
    "LocalGitManager",
    "LocalRepository",
    "RepositoryNotFoundError",
    "RepositoryScanner",
    "UpstreamStatus",
]
