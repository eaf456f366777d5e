"""Cheap pre-flight checks that exclude a repository from any further work."""

from __future__ import annotations

import logging

from renovate_driver.config import Settings
from renovate_driver.github import GitHubClient
from renovate_driver.models import RepositoryTarget

log = logging.getLogger(__name__)


def fetch_topics(client: GitHubClient, repo: RepositoryTarget) -> frozenset[str]:
    data = client.request("GET /repos/{owner}/{repo}/topics", **repo.params) or {}
    return frozenset(data.get("names") or [])


def should_process(client: GitHubClient, repo: RepositoryTarget, settings: Settings) -> bool:
    """False for archived repositories (no API call) and for repositories carrying the opt-out topic.

    Topics already on the target are used as they are; otherwise one topics request is made.
    """
    if repo.archived:
        log.info("%s is archived, skipping.", repo.full_name)
        return False

    topics = repo.topics if repo.topics is not None else fetch_topics(client, repo)
    if settings.opt_out_topic in topics:
        log.warning("%s has label '%s'", repo.full_name, settings.opt_out_topic)
        return False
    return True
