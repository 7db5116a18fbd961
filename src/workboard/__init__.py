"""Workboard - personal dashboard linking Jira tickets, GitHub PRs and local branches."""

__version__ = "0.1.0"


def get_version() -> str:
    """Return the package version."""
    return __version__
