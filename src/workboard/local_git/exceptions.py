"""Custom exceptions for the local git source."""


class LocalGitError(Exception):
    """Base exception for local git errors."""


class RepositoryNotFoundError(LocalGitError):
    """No local clone matches the requested repository name."""
