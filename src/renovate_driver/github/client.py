"""Minimal GitHub REST + GraphQL client over urllib.

Routes are written the way the GitHub docs print them, e.g.
``client.request("GET /repos/{owner}/{repo}/topics", owner="o", repo="r")``. Path
placeholders are filled from the keyword arguments; the remaining arguments become the
query string (GET/DELETE) or the JSON body (everything else).
"""

from __future__ import annotations

import json
import logging
import os
import re
import time
from collections.abc import Callable, Iterator
from typing import Any
from urllib.error import HTTPError
from urllib.parse import quote, urlencode
from urllib.request import Request, urlopen

from renovate_driver.errors import ConfigurationError, GitHubApiError, GitHubGraphQLError
from renovate_driver.helpers import backoff_for_attempt, fibonacci_backoff_sequence

log = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
USER_AGENT = "renovate-driver"

_PLACEHOLDER = re.compile(r"\{(\w+)\}")
_NEXT_LINK = re.compile(r'<([^>]+)>;\s*rel="next"')


def _split_route(route: str) -> tuple[str, str]:
    method, _, path = route.strip().partition(" ")
    if not path:
        return "GET", method
    return method.upper(), path.strip()


def _expand_path(path: str, params: dict[str, Any]) -> tuple[str, dict[str, Any]]:
    """Fill {placeholders} from params; return (path, unused params)."""
    rest = dict(params)

    def _sub(m: re.Match[str]) -> str:
        key = m.group(1)
        if key not in rest:
            msg = f"Missing path parameter {key!r} for {path}"
            raise ValueError(msg)
        # {path} for the contents API keeps its slashes
        return quote(str(rest.pop(key)), safe="/" if key == "path" else "")

    return _PLACEHOLDER.sub(_sub, path), rest


def next_page_url(link_header: str | None) -> str | None:
    """Extract the rel="next" URL from a Link header."""
    if not link_header:
        return None
    m = _NEXT_LINK.search(link_header)
    return m.group(1) if m else None


def _page_items(data: Any) -> list[Any]:
    """Items of one page: the list itself, or the list inside an object page (workflows, workflow_runs)."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key, value in data.items():
            if key != "total_count" and isinstance(value, list):
                return value
    return []


class GitHubClient:
    """Authenticated GitHub API client.

    GET requests and GraphQL queries are retried on 5xx and network errors. Writes and
    GraphQL mutations get a single attempt. 4xx responses always raise immediately.
    """

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_API_URL,
        *,
        max_retries: int = 5,
        timeout: float = 30,
    ) -> None:
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.max_retries = max(1, max_retries)
        self.timeout = timeout
        self._backoff = fibonacci_backoff_sequence(max_total_seconds=60)

    @classmethod
    def from_env(cls) -> GitHubClient:
        """Build a client from GITHUB_TOKEN / GH_TOKEN (and optional GITHUB_API_URL)."""
        token = os.getenv("GITHUB_TOKEN") or os.getenv("GH_TOKEN")
        if not token:
            msg = "GITHUB_TOKEN or GH_TOKEN environment variable is required"
            raise ConfigurationError(msg)
        return cls(token, base_url=os.getenv("GITHUB_API_URL") or DEFAULT_API_URL)

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self.token}",
            "User-Agent": USER_AGENT,
            "X-GitHub-Api-Version": "2022-11-28",
        }

    def _send(
        self, method: str, url: str, body: Any = None, *, retry: bool = True
    ) -> tuple[Any, dict[str, str]]:
        data = json.dumps(body).encode() if body is not None else None
        headers = self._headers()
        if data is not None:
            headers["Content-Type"] = "application/json"

        # a failed write may still have been applied: one attempt only
        attempts = self.max_retries if retry else 1
        last_error: OSError | None = None
        for attempt in range(attempts):
            req = Request(url, data=data, headers=headers, method=method)
            try:
                with urlopen(req, timeout=self.timeout) as response:
                    raw = response.read().decode()
                    response_headers = dict(response.headers.items())
                    return (json.loads(raw) if raw.strip() else None), response_headers
            except HTTPError as e:
                if e.code < 500:
                    raise GitHubApiError(e.code, _error_message(e), url) from e
                last_error = e
                problem = f"HTTP {e.code}"
            except OSError as e:
                # URLError, TimeoutError, ConnectionResetError, RemoteDisconnected
                last_error = e
                problem = f"network error ({getattr(e, 'reason', None) or e!r})"
            if attempt + 1 >= attempts:
                break
            wait_time = backoff_for_attempt(self._backoff, attempt)
            log.warning(
                "Retry %d/%d: %s on %s %s, waiting %ds",
                attempt + 1,
                attempts,
                problem,
                method,
                url,
                wait_time,
            )
            time.sleep(wait_time)

        if isinstance(last_error, HTTPError):
            status, reason = last_error.code, _error_message(last_error)
        else:
            status, reason = 0, str(getattr(last_error, "reason", None) or repr(last_error))
        if attempts > 1:
            reason = f"giving up after {attempts} attempts: {reason}"
        raise GitHubApiError(status, reason, url) from last_error

    def _build_url(self, method: str, route: str, params: dict[str, Any]) -> tuple[str, Any]:
        path, rest = _expand_path(route, params)
        url = path if path.startswith("http") else f"{self.base_url}{path}"
        if method in ("GET", "DELETE"):
            if rest:
                url = f"{url}?{urlencode(rest)}"
            return url, None
        return url, rest

    def request(self, route: str, **params: Any) -> Any:
        """Send one REST request and return the parsed JSON body (None for empty bodies)."""
        method, path = _split_route(route)
        url, body = self._build_url(method, path, params)
        log.debug("%s %s", method, url)
        data, _ = self._send(method, url, body, retry=method == "GET")
        return data

    def paginate(
        self,
        route: str,
        mapper: Callable[[Any], Any] | None = None,
        **params: Any,
    ) -> Iterator[Any]:
        """Yield items across all pages of a GET listing, following Link rel="next"."""
        method, path = _split_route(route)
        params.setdefault("per_page", 100)
        url: str | None
        url, _ = self._build_url(method, path, params)
        while url:
            log.debug("%s %s", method, url)
            data, headers = self._send(method, url)
            for item in _page_items(data):
                yield mapper(item) if mapper else item
            url = next_page_url(headers.get("Link") or headers.get("link"))

    def graphql(self, query: str, **variables: Any) -> dict[str, Any]:
        """Run one GraphQL query/mutation and return its ``data``."""
        data, _ = self._send(
            "POST",
            f"{self.base_url}/graphql",
            {"query": query, "variables": variables},
            retry=not query.lstrip().startswith("mutation"),
        )
        data = data or {}
        if data.get("errors"):
            raise GitHubGraphQLError(data["errors"])
        return data.get("data") or {}


def _error_message(error: HTTPError) -> str:
    try:
        payload = json.loads(error.read().decode() or "{}")
    except (ValueError, OSError):
        return str(error.reason)
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return str(error.reason)
