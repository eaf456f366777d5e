"""Request/response values read from the GitHub API. Nothing here is persisted between runs."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from renovate_driver.helpers import parse_timestamp


class MergeableState(Enum):
    MERGEABLE = "MERGEABLE"
    CONFLICTING = "CONFLICTING"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: str | None) -> MergeableState:
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


class ReviewDecision(Enum):
    APPROVED = "APPROVED"
    CHANGES_REQUESTED = "CHANGES_REQUESTED"
    REVIEW_REQUIRED = "REVIEW_REQUIRED"
    NONE = "NONE"

    @classmethod
    def parse(cls, value: str | None) -> ReviewDecision:
        # reviewDecision is null when the branch has no review requirement
        try:
            return cls(value)
        except ValueError:
            return cls.NONE


class RollupState(Enum):
    SUCCESS = "SUCCESS"
    PENDING = "PENDING"
    FAILURE = "FAILURE"
    ERROR = "ERROR"
    EXPECTED = "EXPECTED"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: str | None) -> RollupState:
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class RepositoryTarget:
    owner: str
    name: str
    archived: bool = False
    default_branch: str = "main"
    # None when the repository payload did not include them
    topics: frozenset[str] | None = None

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @property
    def params(self) -> dict[str, str]:
        """owner/repo path parameters for REST routes."""
        return {"owner": self.owner, "repo": self.name}

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> RepositoryTarget:
        owner, _, name = data["full_name"].partition("/")
        return cls(
            owner=owner,
            name=name,
            archived=bool(data.get("archived")),
            default_branch=data.get("default_branch") or "main",
            topics=frozenset(data["topics"]) if data.get("topics") is not None else None,
        )


@dataclass(frozen=True)
class CandidatePR:
    number: int
    title: str
    head_ref: str
    html_url: str
    draft: bool = False
    node_id: str = ""
    merged_at: datetime | None = None
    closed_at: datetime | None = None

    @property
    def merge_commit_title(self) -> str:
        return f"{self.title} (#{self.number})"

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> CandidatePR:
        return cls(
            number=data["number"],
            title=data.get("title") or "",
            head_ref=(data.get("head") or {}).get("ref", ""),
            html_url=data.get("html_url", ""),
            draft=bool(data.get("draft")),
            node_id=data.get("node_id", ""),
            merged_at=parse_timestamp(data.get("merged_at")),
            closed_at=parse_timestamp(data.get("closed_at")),
        )


@dataclass(frozen=True)
class PRStatusSnapshot:
    """Point-in-time PR status from one GraphQL read. Re-fetched, never cached."""

    mergeable: MergeableState
    review_decision: ReviewDecision
    viewer_can_update: bool
    viewer_did_author: bool
    viewer_did_approve: bool
    latest_commit_id: str
    rollup_state: RollupState

    def log_fields(self) -> str:
        return (
            f"review={self.review_decision.value} mergeable={self.mergeable.value} "
            f"status={self.rollup_state.value} can_update={self.viewer_can_update}"
        )

    @classmethod
    def from_graphql(cls, resource: dict[str, Any]) -> PRStatusSnapshot:
        commits = (resource.get("commits") or {}).get("nodes") or []
        commit = (commits[0].get("commit") or {}) if commits else {}
        rollup = commit.get("statusCheckRollup") or {}
        reviews = (resource.get("latestOpinionatedReviews") or {}).get("nodes") or []
        return cls(
            mergeable=MergeableState.parse(resource.get("mergeable")),
            review_decision=ReviewDecision.parse(resource.get("reviewDecision")),
            viewer_can_update=bool(resource.get("viewerCanUpdate")),
            viewer_did_author=bool(resource.get("viewerDidAuthor")),
            viewer_did_approve=any(node.get("viewerDidAuthor") for node in reviews),
            latest_commit_id=commit.get("oid", ""),
            rollup_state=RollupState.parse(rollup.get("state")),
        )


@dataclass(frozen=True)
class WorkflowRun:
    id: int
    run_number: int
    status: str
    head_branch: str
    run_started_at: datetime | None = None
    html_url: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> WorkflowRun:
        return cls(
            id=data["id"],
            run_number=data.get("run_number", 0),
            status=data.get("status") or "unknown",
            head_branch=data.get("head_branch") or "",
            run_started_at=parse_timestamp(data.get("run_started_at") or data.get("created_at")),
            html_url=data.get("html_url", ""),
        )
