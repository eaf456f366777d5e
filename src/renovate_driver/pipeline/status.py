"""PR status snapshot (one GraphQL read) and the merge decision table."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from renovate_driver.github import GitHubClient
from renovate_driver.models import (
    CandidatePR,
    MergeableState,
    PRStatusSnapshot,
    ReviewDecision,
    RollupState,
)

PR_STATUS_QUERY = """
query prStatus($htmlUrl: URI!) {
  resource(url: $htmlUrl) {
    ... on PullRequest {
      mergeable
      reviewDecision
      viewerCanUpdate
      viewerDidAuthor
      latestOpinionatedReviews(first: 10, writersOnly: true) {
        nodes {
          viewerDidAuthor
        }
      }
      commits(last: 1) {
        nodes {
          commit {
            oid
            statusCheckRollup {
              state
            }
          }
        }
      }
    }
  }
}
"""

REVIEW_DECISION_QUERY = """
query prReviewDecision($htmlUrl: URI!) {
  resource(url: $htmlUrl) {
    ... on PullRequest {
      reviewDecision
    }
  }
}
"""


def fetch_pr_status(client: GitHubClient, pr: CandidatePR) -> PRStatusSnapshot:
    data = client.graphql(PR_STATUS_QUERY, htmlUrl=pr.html_url)
    return PRStatusSnapshot.from_graphql(data.get("resource") or {})


def fetch_review_decision(client: GitHubClient, pr: CandidatePR) -> ReviewDecision:
    data = client.graphql(REVIEW_DECISION_QUERY, htmlUrl=pr.html_url)
    return ReviewDecision.parse((data.get("resource") or {}).get("reviewDecision"))


class VerdictAction(Enum):
    SKIP = "skip"
    NEEDS_APPROVAL = "needs-approval"
    READY = "ready"


@dataclass(frozen=True)
class Verdict:
    action: VerdictAction
    reason: str = ""


def evaluate(snapshot: PRStatusSnapshot) -> Verdict:
    """First matching row wins. Conflicting and still-computing mergeability are not told apart."""
    if not snapshot.viewer_can_update:
        return Verdict(VerdictAction.SKIP, "you cannot update this PR. Skipping")
    if snapshot.rollup_state is not RollupState.SUCCESS:
        return Verdict(
            VerdictAction.SKIP, f'status is "{snapshot.rollup_state.value}". Skipping'
        )
    if snapshot.mergeable is not MergeableState.MERGEABLE:
        return Verdict(
            VerdictAction.SKIP, f'mergeable status is "{snapshot.mergeable.value}". Skipping'
        )
    if snapshot.review_decision is not ReviewDecision.APPROVED:
        return Verdict(VerdictAction.NEEDS_APPROVAL, "not approved yet")
    return Verdict(VerdictAction.READY, "ready to merge")
