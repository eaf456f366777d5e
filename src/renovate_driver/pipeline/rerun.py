"""Re-trigger the workflow that generates the PR when none exists yet."""

from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum

from renovate_driver.config import Settings, TitlePattern
from renovate_driver.github import GitHubClient
from renovate_driver.helpers import minutes_between, utc_now
from renovate_driver.models import RepositoryTarget, WorkflowRun

log = logging.getLogger(__name__)

# https://docs.github.com/en/rest/actions/workflow-runs#get-a-workflow-run
ACTIVE_RUN_STATUSES = frozenset({"in_progress", "queued", "requested", "waiting", "pending"})


class RerunOutcome(Enum):
    TRIGGERED = "triggered"
    IN_FLIGHT = "in-flight"
    THROTTLED = "throttled"
    MISSING_WORKFLOW = "missing-workflow"
    NO_RUNS = "no-runs"


def find_workflow_id(client: GitHubClient, repo: RepositoryTarget, workflow_path: str) -> int | None:
    for workflow in client.paginate("GET /repos/{owner}/{repo}/actions/workflows", **repo.params):
        if workflow.get("path") == workflow_path:
            return workflow["id"]
    return None


def latest_run(runs: list[WorkflowRun], branch: str) -> WorkflowRun | None:
    """Highest run number on branch."""
    on_branch = [r for r in runs if r.head_branch == branch]
    if not on_branch:
        return None
    return max(on_branch, key=lambda r: r.run_number)


def maybe_rerun(
    client: GitHubClient,
    repo: RepositoryTarget,
    pattern: TitlePattern,
    settings: Settings,
    now: datetime | None = None,
) -> RerunOutcome:
    """Rerun the latest default-branch run unless one is active or it started inside the throttle window."""
    workflow_id = find_workflow_id(client, repo, pattern.workflow_path)
    if workflow_id is None:
        log.error("%s: missing workflow at %s", repo.full_name, pattern.workflow_path)
        return RerunOutcome.MISSING_WORKFLOW

    runs = list(
        client.paginate(
            "GET /repos/{owner}/{repo}/actions/workflows/{workflow_id}/runs",
            WorkflowRun.from_api,
            **repo.params,
            workflow_id=workflow_id,
        )
    )
    last = latest_run(runs, repo.default_branch)
    if last is None:
        log.warning(
            "%s: no %s runs on %s to rerun",
            repo.full_name,
            pattern.workflow_name,
            repo.default_branch,
        )
        return RerunOutcome.NO_RUNS

    log.info(
        "%s last run started at %s status: %s id: %d",
        repo.full_name,
        last.run_started_at.isoformat() if last.run_started_at else "unknown",
        last.status,
        last.id,
    )

    if last.status in ACTIVE_RUN_STATUSES:
        log.info(
            "%s: %s is currently %s: %s",
            repo.full_name,
            pattern.workflow_name,
            last.status,
            last.html_url,
        )
        return RerunOutcome.IN_FLIGHT

    if last.run_started_at is not None:
        elapsed = minutes_between(last.run_started_at, now or utc_now())
        if elapsed < settings.rerun_throttle_minutes:
            log.info(
                "%s: %s last ran %.0f minutes ago (< %g), not re-running",
                repo.full_name,
                pattern.workflow_name,
                elapsed,
                settings.rerun_throttle_minutes,
            )
            return RerunOutcome.THROTTLED

    log.info("%s: triggering re-run of %d", repo.full_name, last.id)
    client.request(
        "POST /repos/{owner}/{repo}/actions/runs/{run_id}/rerun",
        **repo.params,
        run_id=last.id,
    )
    return RerunOutcome.TRIGGERED
