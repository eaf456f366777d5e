"""Find the one PR a run acts on.

PRs come from ``GET /repos/{owner}/{repo}/pulls?state=all``, which lists oldest first.
The scan relies on that order: once the first title match turns out to be a merged PR
older than the recency window, no later PR is looked at.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from renovate_driver.config import TitlePattern
from renovate_driver.helpers import days_between, utc_now
from renovate_driver.models import CandidatePR


class LocatorStatus(Enum):
    FOUND = "found"
    ALREADY_MERGED = "already-merged"
    DRAFT = "draft"
    NONE = "none"


@dataclass(frozen=True)
class LocatorResult:
    status: LocatorStatus
    pr: CandidatePR | None = None
    reason: str = ""


def locate_pr(
    prs: Iterable[dict[str, Any]],
    pattern: TitlePattern,
    now: datetime | None = None,
) -> LocatorResult:
    """Scan PR payloads in list order and classify the first usable title match."""
    now = now or utc_now()
    stale_reason = ""
    for data in prs:
        title = data.get("title") or ""
        if not title.startswith(pattern.expected_title):
            continue

        pr = CandidatePR.from_api(data)
        if pr.merged_at is not None:
            days_ago = days_between(pr.merged_at, now)
            merged_at = data.get("merged_at")
            if pattern.check_max_age and days_ago > pattern.max_age_days:
                stale_reason = (
                    f"already merged {pr.html_url} at {merged_at}, {days_ago:.1f} days ago, ignoring"
                )
                break
            return LocatorResult(
                LocatorStatus.ALREADY_MERGED,
                pr,
                f"already merged {pr.html_url} at {merged_at}",
            )

        if pr.closed_at is not None:
            continue

        if pr.draft:
            return LocatorResult(LocatorStatus.DRAFT, pr, f"has DRAFT PR at {pr.html_url}")

        return LocatorResult(LocatorStatus.FOUND, pr, f"found PR {pr.html_url}")

    return LocatorResult(LocatorStatus.NONE, None, stale_reason)
