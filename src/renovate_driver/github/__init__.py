"""GitHub API access (REST, pagination, GraphQL)."""

from .client import DEFAULT_API_URL, GitHubClient, next_page_url

__all__ = [
    "DEFAULT_API_URL",
    "GitHubClient",
    "next_page_url",
]
