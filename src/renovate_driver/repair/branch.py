"""Apply the rewrite rules to files on a PR branch through the contents API.

Each file is read, rewritten and committed on its own. A commit happens only when the
content changed, and always carries the blob sha that was read so a concurrent edit
makes the write fail instead of overwriting it.
"""

from __future__ import annotations

import base64
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

import yaml

from renovate_driver.config import Settings
from renovate_driver.errors import DriverError, GitHubApiError
from renovate_driver.github import GitHubClient
from renovate_driver.models import CandidatePR, RepositoryTarget
from renovate_driver.repair.rules import bump_pnpm_setup_version, remove_deprecated_pnpm_options

log = logging.getLogger(__name__)

CONTENTS_ROUTE = "/repos/{owner}/{repo}/contents/{path}"


class RepairStatus(Enum):
    MISSING = "missing"
    UNCHANGED = "unchanged"
    COMMITTED = "committed"
    FAILED = "failed"


@dataclass(frozen=True)
class FileRepair:
    path: str
    status: RepairStatus
    detail: str = ""


@dataclass(frozen=True)
class BranchFile:
    path: str
    text: str
    sha: str


def read_file(client: GitHubClient, repo: RepositoryTarget, path: str, ref: str) -> BranchFile | None:
    """Read a text file from a branch; None when it does not exist there."""
    try:
        data = client.request(f"GET {CONTENTS_ROUTE}", **repo.params, path=path, ref=ref)
    except GitHubApiError as e:
        if e.is_not_found:
            return None
        raise
    if not isinstance(data, dict) or data.get("type", "file") != "file":
        return None
    text = base64.b64decode(data.get("content") or "").decode("utf-8")
    return BranchFile(path=path, text=text, sha=data["sha"])


def write_file(
    client: GitHubClient,
    repo: RepositoryTarget,
    original: BranchFile,
    new_text: str,
    branch: str,
    message: str,
) -> None:
    client.request(
        f"PUT {CONTENTS_ROUTE}",
        **repo.params,
        path=original.path,
        message=message,
        content=base64.b64encode(new_text.encode("utf-8")).decode("ascii"),
        sha=original.sha,
        branch=branch,
    )


def _rewrite_file(
    client: GitHubClient,
    repo: RepositoryTarget,
    pr: CandidatePR,
    path: str,
    rewrite: Callable[[str], str | None],
    message: str,
) -> FileRepair:
    current = read_file(client, repo, path, pr.head_ref)
    if current is None:
        log.debug("%s: %s not found on %s, nothing to repair", repo.full_name, path, pr.head_ref)
        return FileRepair(path, RepairStatus.MISSING)

    new_text = rewrite(current.text)
    if new_text is None or new_text == current.text:
        return FileRepair(path, RepairStatus.UNCHANGED)

    write_file(client, repo, current, new_text, pr.head_ref, message)
    log.info("%s: committed %s to %s", repo.full_name, path, pr.head_ref)
    return FileRepair(path, RepairStatus.COMMITTED, message)


def repair_projenrc(
    client: GitHubClient,
    repo: RepositoryTarget,
    pr: CandidatePR,
    settings: Settings,
) -> FileRepair:
    """Remove the deprecated pnpm package-manager options from the projen config."""

    def _rewrite(text: str) -> str | None:
        removal = remove_deprecated_pnpm_options(text)
        if removal is None:
            return None
        if removal.pinned_version is not None and removal.pinned_version != settings.expected_pnpm_version:
            log.warning(
                "%s: %s pinned pnpmVersion '%s' (expected '%s'), removing it anyway",
                repo.full_name,
                settings.projenrc_path,
                removal.pinned_version,
                settings.expected_pnpm_version,
            )
        return removal.text

    return _rewrite_file(
        client,
        repo,
        pr,
        settings.projenrc_path,
        _rewrite,
        f"chore: remove deprecated pnpm options from {settings.projenrc_path}",
    )


def bump_workflow_pnpm(
    client: GitHubClient,
    repo: RepositoryTarget,
    pr: CandidatePR,
    path: str,
    settings: Settings,
) -> FileRepair:
    """Rewrite the pnpm/action-setup version in one workflow definition."""

    def _rewrite(text: str) -> str | None:
        new_text = bump_pnpm_setup_version(
            text, settings.pnpm_setup_old_version, settings.pnpm_setup_new_version
        )
        if new_text is None:
            return None
        try:
            yaml.safe_load(new_text)
        except yaml.YAMLError as e:
            msg = f"{path} would no longer be valid YAML: {e}"
            raise ValueError(msg) from e
        return new_text

    return _rewrite_file(
        client,
        repo,
        pr,
        path,
        _rewrite,
        f"chore: use pnpm {settings.pnpm_setup_new_version} in {path}",
    )


def repair_pr_branch(
    client: GitHubClient,
    repo: RepositoryTarget,
    pr: CandidatePR,
    settings: Settings,
) -> list[FileRepair]:
    """Repair every known file on the PR branch; one failing file does not stop the others."""
    steps: list[tuple[str, Callable[[], FileRepair]]] = [
        (settings.projenrc_path, lambda: repair_projenrc(client, repo, pr, settings)),
    ]
    for path in settings.workflow_files:
        steps.append((path, lambda path=path: bump_workflow_pnpm(client, repo, pr, path, settings)))

    results: list[FileRepair] = []
    for path, step in steps:
        try:
            results.append(step())
        except (DriverError, ValueError) as e:
            if isinstance(e, GitHubApiError) and e.is_conflict:
                log.error(
                    "%s: %s changed on %s while repairing: %s", repo.full_name, path, pr.head_ref, e
                )
            else:
                log.error("%s: failed to repair %s: %s", repo.full_name, path, e)
            results.append(FileRepair(path, RepairStatus.FAILED, str(e)))
        except Exception as e:
            log.exception("%s: unexpected failure repairing %s", repo.full_name, path)
            results.append(FileRepair(path, RepairStatus.FAILED, repr(e)))
    return results
