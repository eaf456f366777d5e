"""Approve a PR on behalf of the caller, then re-check the aggregated review decision."""

from __future__ import annotations

import logging

from renovate_driver.github import GitHubClient
from renovate_driver.models import CandidatePR, PRStatusSnapshot, RepositoryTarget, ReviewDecision
from renovate_driver.pipeline.status import fetch_review_decision

log = logging.getLogger(__name__)


def approve(
    client: GitHubClient,
    repo: RepositoryTarget,
    pr: CandidatePR,
    snapshot: PRStatusSnapshot,
) -> bool:
    """Submit an approval unless the caller authored or already approved the PR.

    Returns True only when the re-read review decision is APPROVED. The decision is
    aggregated asynchronously by GitHub, so the write alone proves nothing.
    """
    if snapshot.viewer_did_author or snapshot.viewer_did_approve:
        why = "authored" if snapshot.viewer_did_author else "already approved"
        log.info(
            "%s: awaiting approval (you %s this PR). Skipping [%s]",
            pr.html_url,
            why,
            snapshot.log_fields(),
        )
        return False

    client.request(
        "POST /repos/{owner}/{repo}/pulls/{pull_number}/reviews",
        **repo.params,
        pull_number=pr.number,
        event="APPROVE",
        commit_id=snapshot.latest_commit_id,
    )
    log.info("%s: approval submitted for %s", pr.html_url, snapshot.latest_commit_id)

    decision = fetch_review_decision(client, pr)
    if decision is not ReviewDecision.APPROVED:
        log.info(
            "%s: awaiting approval (review decision %s). Skipping", pr.html_url, decision.value
        )
        return False
    return True
