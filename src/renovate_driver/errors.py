"""Exception types shared by the client, the pipeline and the CLI."""

from __future__ import annotations


class DriverError(Exception):
    """Base class for renovate-driver errors."""


class ConfigurationError(DriverError):
    """Raised before any repository is touched when the invocation is unusable."""


class GitHubApiError(DriverError):
    """Non-2xx response (or exhausted retries) from the GitHub REST API."""

    def __init__(self, status: int, message: str, url: str = "") -> None:
        self.status = status
        self.message = message
        self.url = url
        super().__init__(f"HTTP {status}: {message}" + (f" ({url})" if url else ""))

    @property
    def is_not_found(self) -> bool:
        return self.status == 404

    @property
    def is_conflict(self) -> bool:
        """409 / 422: stale blob sha or a concurrent edit on the branch."""
        return self.status in (409, 422)


class GitHubGraphQLError(DriverError):
    """GraphQL response carrying an ``errors`` list."""

    def __init__(self, errors: list[dict]) -> None:
        self.errors = errors
        messages = "; ".join(str(e.get("message", e)) for e in errors) or "unknown error"
        super().__init__(f"GraphQL error: {messages}")
