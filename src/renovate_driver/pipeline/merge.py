"""Land an approved, green PR: GitHub auto-merge when allowed, else a direct squash merge."""

from __future__ import annotations

import logging
from enum import Enum

from renovate_driver.config import Settings
from renovate_driver.errors import DriverError
from renovate_driver.github import GitHubClient
from renovate_driver.models import CandidatePR, RepositoryTarget

log = logging.getLogger(__name__)

ENABLE_AUTO_MERGE_MUTATION = """
mutation enableAutoMerge($pullRequestId: ID!, $mergeMethod: PullRequestMergeMethod!) {
  enablePullRequestAutoMerge(input: {pullRequestId: $pullRequestId, mergeMethod: $mergeMethod}) {
    pullRequest {
      number
    }
  }
}
"""


class AutoMergeResult(Enum):
    ENABLED = "enabled"
    NOT_AVAILABLE = "not-available"


class MergeOutcome(Enum):
    AUTO_MERGE_ENABLED = "auto-merge-enabled"
    MERGED = "merged"
    VALIDATED = "validated"


def enable_auto_merge(client: GitHubClient, pr: CandidatePR) -> AutoMergeResult:
    """Best effort: a repository without auto-merge (or without permission) yields NOT_AVAILABLE."""
    if not pr.node_id:
        log.info("%s: no node id, auto-merge not available", pr.html_url)
        return AutoMergeResult.NOT_AVAILABLE
    try:
        client.graphql(
            ENABLE_AUTO_MERGE_MUTATION, pullRequestId=pr.node_id, mergeMethod="SQUASH"
        )
    except DriverError as e:
        log.info("%s: auto-merge not available: %s", pr.html_url, e)
        return AutoMergeResult.NOT_AVAILABLE
    return AutoMergeResult.ENABLED


def squash_merge(client: GitHubClient, repo: RepositoryTarget, pr: CandidatePR) -> None:
    client.request(
        "PUT /repos/{owner}/{repo}/pulls/{pull_number}/merge",
        **repo.params,
        pull_number=pr.number,
        commit_title=pr.merge_commit_title,
        merge_method="squash",
    )


def merge_pr(
    client: GitHubClient,
    repo: RepositoryTarget,
    pr: CandidatePR,
    settings: Settings,
) -> MergeOutcome:
    """Issue at most one merge request for the PR."""
    if not settings.merge:
        log.info("%s: ready to merge (merging disabled, not merging)", pr.html_url)
        return MergeOutcome.VALIDATED

    if settings.auto_merge and enable_auto_merge(client, pr) is AutoMergeResult.ENABLED:
        log.info("auto-merge enabled: %s", pr.html_url)
        return MergeOutcome.AUTO_MERGE_ENABLED

    squash_merge(client, repo, pr)
    log.info("pull request merged: %s", pr.html_url)
    return MergeOutcome.MERGED
