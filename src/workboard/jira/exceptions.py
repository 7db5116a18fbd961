"""Custom exceptions for the Jira ticket source."""


class JiraError(Exception):
    """Base exception for Jira errors."""


class JiraRequestError(JiraError):
    """Jira answered with a non-success status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
