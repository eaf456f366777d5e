"""Run the decision pipeline for one repository.

Gatekeeper -> PR locator -> (PR found) content repair -> status evaluation -> approval
-> merge; (no PR) -> workflow rerun. Every stage may end the run for the repository;
the terminal reason is always logged with the repository name.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from enum import Enum

from renovate_driver.config import Settings, TitlePattern
from renovate_driver.github import GitHubClient
from renovate_driver.models import RepositoryTarget
from renovate_driver.pipeline.approval import approve
from renovate_driver.pipeline.gatekeeper import should_process
from renovate_driver.pipeline.locator import LocatorStatus, locate_pr
from renovate_driver.pipeline.merge import MergeOutcome, merge_pr
from renovate_driver.pipeline.rerun import RerunOutcome, maybe_rerun
from renovate_driver.pipeline.status import VerdictAction, evaluate, fetch_pr_status
from renovate_driver.repair import repair_pr_branch

log = logging.getLogger(__name__)


class Outcome(Enum):
    ARCHIVED = "archived"
    OPTED_OUT = "opted-out"
    ALREADY_MERGED = "already-merged"
    DRAFT = "draft"
    SKIPPED = "skipped"
    AWAITING_APPROVAL = "awaiting-approval"
    MERGED = "merged"
    AUTO_MERGE_ENABLED = "auto-merge-enabled"
    VALIDATED = "validated"
    RERUN_TRIGGERED = "rerun-triggered"
    RERUN_SKIPPED = "rerun-skipped"
    ERROR = "error"


_MERGE_OUTCOMES = {
    MergeOutcome.MERGED: Outcome.MERGED,
    MergeOutcome.AUTO_MERGE_ENABLED: Outcome.AUTO_MERGE_ENABLED,
    MergeOutcome.VALIDATED: Outcome.VALIDATED,
}


def _run_pipeline(
    client: GitHubClient,
    repo: RepositoryTarget,
    pattern: TitlePattern,
    settings: Settings,
) -> Outcome:
    if not should_process(client, repo, settings):
        return Outcome.ARCHIVED if repo.archived else Outcome.OPTED_OUT

    prs = client.paginate("GET /repos/{owner}/{repo}/pulls", **repo.params, state="all")
    found = locate_pr(prs, pattern)

    if found.status is LocatorStatus.ALREADY_MERGED:
        log.info("%s %s", repo.full_name, found.reason)
        return Outcome.ALREADY_MERGED
    if found.status is LocatorStatus.DRAFT:
        log.warning("%s %s", repo.full_name, found.reason)
        return Outcome.DRAFT
    if found.status is LocatorStatus.NONE or found.pr is None:
        if found.reason:
            log.info("%s %s", repo.full_name, found.reason)
        log.warning("%s has no PR for %s", repo.full_name, pattern.expected_title)
        rerun = maybe_rerun(client, repo, pattern, settings)
        return Outcome.RERUN_TRIGGERED if rerun is RerunOutcome.TRIGGERED else Outcome.RERUN_SKIPPED

    pr = found.pr
    if pattern.repairs_content:
        repair_pr_branch(client, repo, pr, settings)

    snapshot = fetch_pr_status(client, pr)
    verdict = evaluate(snapshot)
    if verdict.action is VerdictAction.SKIP:
        log.info(
            "%s %s: %s [pr=%d %s]",
            repo.full_name,
            pr.html_url,
            verdict.reason,
            pr.number,
            snapshot.log_fields(),
        )
        return Outcome.SKIPPED

    if verdict.action is VerdictAction.NEEDS_APPROVAL and not approve(client, repo, pr, snapshot):
        return Outcome.AWAITING_APPROVAL

    return _MERGE_OUTCOMES[merge_pr(client, repo, pr, settings)]


def process_repository(
    client: GitHubClient,
    repo: RepositoryTarget,
    pattern: TitlePattern,
    settings: Settings,
) -> Outcome:
    """Process one repository. Never raises: unexpected failures are logged and become ERROR."""
    try:
        return _run_pipeline(client, repo, pattern, settings)
    except Exception:
        log.exception("%s: unexpected failure", repo.full_name)
        return Outcome.ERROR


def process_repositories(
    client: GitHubClient,
    repos: Iterable[RepositoryTarget],
    pattern: TitlePattern,
    settings: Settings,
) -> dict[str, Outcome]:
    """Process repositories one after another; returns full_name -> Outcome."""
    return {repo.full_name: process_repository(client, repo, pattern, settings) for repo in repos}
