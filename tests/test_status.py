"""Tests for renovate_driver.pipeline.status and the PR status snapshot model."""

from github_fakes import FakeGitHub, pr_payload, review_decision_resource, status_resource

from renovate_driver.models import (
    CandidatePR,
    MergeableState,
    PRStatusSnapshot,
    ReviewDecision,
    RollupState,
)
from renovate_driver.pipeline.status import (
    VerdictAction,
    evaluate,
    fetch_pr_status,
    fetch_review_decision,
)


def _snapshot(**kwargs) -> PRStatusSnapshot:
    return PRStatusSnapshot.from_graphql(status_resource(**kwargs)["resource"])


class TestSnapshotParsing:
    def test_full_payload(self) -> None:
        snap = _snapshot(viewer_did_approve=True, oid="deadbeef")
        assert snap.mergeable is MergeableState.MERGEABLE
        assert snap.review_decision is ReviewDecision.APPROVED
        assert snap.rollup_state is RollupState.SUCCESS
        assert snap.viewer_did_approve is True
        assert snap.latest_commit_id == "deadbeef"

    def test_absent_rollup_is_unknown(self) -> None:
        assert _snapshot(rollup=None).rollup_state is RollupState.UNKNOWN

    def test_null_review_decision_is_none(self) -> None:
        assert _snapshot(review_decision=None).review_decision is ReviewDecision.NONE

    def test_unrecognised_mergeable_is_unknown(self) -> None:
        assert _snapshot(mergeable="SOMETHING_NEW").mergeable is MergeableState.UNKNOWN

    def test_empty_resource(self) -> None:
        snap = PRStatusSnapshot.from_graphql({})
        assert snap.viewer_can_update is False
        assert snap.rollup_state is RollupState.UNKNOWN
        assert snap.latest_commit_id == ""


class TestEvaluate:
    def test_cannot_update_wins_first(self) -> None:
        verdict = evaluate(_snapshot(viewer_can_update=False, rollup="FAILURE"))
        assert verdict.action is VerdictAction.SKIP
        assert "cannot update" in verdict.reason

    def test_rollup_not_success_skips(self) -> None:
        for rollup in ("PENDING", "FAILURE", "ERROR", None):
            verdict = evaluate(_snapshot(rollup=rollup, review_decision="REVIEW_REQUIRED"))
            assert verdict.action is VerdictAction.SKIP
            assert "status is" in verdict.reason

    def test_not_mergeable_skips(self) -> None:
        for mergeable in ("CONFLICTING", "UNKNOWN"):
            verdict = evaluate(_snapshot(mergeable=mergeable))
            assert verdict.action is VerdictAction.SKIP
            assert mergeable in verdict.reason

    def test_needs_approval(self) -> None:
        for decision in ("REVIEW_REQUIRED", "CHANGES_REQUESTED", None):
            assert evaluate(_snapshot(review_decision=decision)).action is VerdictAction.NEEDS_APPROVAL

    def test_ready(self) -> None:
        assert evaluate(_snapshot()).action is VerdictAction.READY


class TestFetch:
    def test_fetch_pr_status_queries_by_url(self) -> None:
        fake = FakeGitHub()
        fake.graphql_responses.append(status_resource())
        pr = CandidatePR.from_api(pr_payload(42, "t"))
        snap = fetch_pr_status(fake, pr)
        assert snap.review_decision is ReviewDecision.APPROVED
        query, variables = fake.graphql_calls[0]
        assert "statusCheckRollup" in query
        assert "latestOpinionatedReviews(first: 10, writersOnly: true)" in query
        assert variables == {"htmlUrl": "https://github.com/acme/widgets/pull/42"}

    def test_fetch_review_decision(self) -> None:
        fake = FakeGitHub()
        fake.graphql_responses.append(review_decision_resource("APPROVED"))
        pr = CandidatePR.from_api(pr_payload(42, "t"))
        assert fetch_review_decision(fake, pr) is ReviewDecision.APPROVED
