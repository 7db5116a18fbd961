"""Custom exceptions for the GitHub pull request source."""


class GitHubError(Exception):
    """Base exception for GitHub errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RateLimitedError(GitHubError):
    """The API rate limit is exhausted."""
