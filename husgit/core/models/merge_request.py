"""
Merge request values — computed per invocation, never persisted.

``BranchPair`` is what the resolver produces, ``MergeRequestOutcome``
what the reconciler returns for it, and ``OpenMergeRequestRecord`` a row
of the read-only status scan.

Creation returns a tagged result instead of raising on conflict:
``MergeRequestCreated | MergeRequestAlreadyExists | MergeRequestCreateFailed``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from husgit.core.models.config import ProjectConfig
from husgit.core.models.flow import Direction

NO_MR_FOUND = "NO_MR_FOUND"


@dataclass(frozen=True)
class BranchPair:
    """Concrete source/target branches of one project for one step."""

    project: ProjectConfig
    source_branch: str
    target_branch: str


@dataclass(frozen=True)
class EnvironmentPair:
    """Two adjacent environments and the direction between them."""

    source_env: str
    target_env: str
    direction: Direction

    @property
    def label(self) -> str:
        return f"{self.source_env} → {self.target_env}"


# ── Client results ───────────────────────────────────────────────


@dataclass(frozen=True)
class RemoteProject:
    """A project as the source-control host describes it."""

    external_id: str
    name: str
    full_path: str


@dataclass(frozen=True)
class OpenMergeRequest:
    """An open merge request found on the host."""

    mr_id: str      # global id
    iid: str        # project-scoped id, used for updates
    web_url: str
    state: str = "opened"


@dataclass(frozen=True)
class MergeRequestCreated:
    mr_id: str
    mr_url: str


@dataclass(frozen=True)
class MergeRequestAlreadyExists:
    """An open merge request already exists for this exact branch pair."""

    detail: str = ""


@dataclass(frozen=True)
class MergeRequestCreateFailed:
    error: str
    status_code: int | None = None


CreateMergeRequestResult = (
    MergeRequestCreated | MergeRequestAlreadyExists | MergeRequestCreateFailed
)


# ── Outcomes ─────────────────────────────────────────────────────


class OutcomeStatus(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    FAILED = "failed"


@dataclass(frozen=True)
class MergeRequestOutcome:
    """Result of reconciling one branch pair."""

    project: ProjectConfig
    source_branch: str
    target_branch: str
    status: OutcomeStatus
    merge_request_url: str | None = None
    error_detail: str | None = None

    @classmethod
    def created(cls, pair: BranchPair, url: str) -> MergeRequestOutcome:
        return cls(pair.project, pair.source_branch, pair.target_branch,
                   OutcomeStatus.CREATED, merge_request_url=url)

    @classmethod
    def updated(cls, pair: BranchPair, url: str) -> MergeRequestOutcome:
        return cls(pair.project, pair.source_branch, pair.target_branch,
                   OutcomeStatus.UPDATED, merge_request_url=url)

    @classmethod
    def failed(cls, pair: BranchPair, error: str) -> MergeRequestOutcome:
        return cls(pair.project, pair.source_branch, pair.target_branch,
                   OutcomeStatus.FAILED, error_detail=error)

    @property
    def ok(self) -> bool:
        return self.status != OutcomeStatus.FAILED

    def to_dict(self) -> dict[str, Any]:
        return {
            "project": self.project.full_path,
            "name": self.project.name,
            "source_branch": self.source_branch,
            "target_branch": self.target_branch,
            "status": self.status.value,
            "merge_request_url": self.merge_request_url,
            "error": self.error_detail,
        }


@dataclass(frozen=True)
class OpenMergeRequestRecord:
    """One open merge request between two adjacent environments."""

    project: ProjectConfig
    source_env: str
    target_env: str
    direction: Direction
    source_branch: str
    target_branch: str
    external_mr_id: str
    merge_request_url: str
    state: str
    group_names: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "project": self.project.full_path,
            "name": self.project.name,
            "groups": list(self.group_names),
            "direction": self.direction.value,
            "source_env": self.source_env,
            "target_env": self.target_env,
            "source_branch": self.source_branch,
            "target_branch": self.target_branch,
            "mr_id": self.external_mr_id,
            "merge_request_url": self.merge_request_url,
            "state": self.state,
        }
