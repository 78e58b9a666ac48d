"""
Merge-request reconciler — create, or update what already exists.

For every branch pair, strictly one after the other:

    create ──▶ Created          → created
           ├─▶ AlreadyExists    → find open MR ──▶ none  → failed (NO_MR_FOUND)
           │                                   └─▶ found → update title
           │                                                ├─▶ ok    → updated
           │                                                └─▶ error → failed
           └─▶ CreateFailed     → failed

The update path touches only the title; the description is applied on
creation only, so manual edits survive repeated runs.

Per-pair failures never stop the batch. Transport and auth errors
(``GitlabTransportError``) propagate: the client cannot work at all.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from husgit.adapters.base import SourceControlClient
from husgit.adapters.gitlab.errors import GitlabRequestError
from husgit.core.models.merge_request import (
    NO_MR_FOUND,
    BranchPair,
    MergeRequestAlreadyExists,
    MergeRequestCreated,
    MergeRequestCreateFailed,
    MergeRequestOutcome,
    OutcomeStatus,
)

logger = logging.getLogger(__name__)


@dataclass
class ReconcileReport:
    """Outcomes of one batch, order-aligned with the input pairs."""

    outcomes: list[MergeRequestOutcome] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    def _count(self, status: OutcomeStatus) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    @property
    def created(self) -> int:
        return self._count(OutcomeStatus.CREATED)

    @property
    def updated(self) -> int:
        return self._count(OutcomeStatus.UPDATED)

    @property
    def failed(self) -> int:
        return self._count(OutcomeStatus.FAILED)

    @property
    def status(self) -> str:
        if self.failed == 0:
            return "ok"
        if self.failed < self.total:
            return "partial"
        return "failed"

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "total": self.total,
            "created": self.created,
            "updated": self.updated,
            "failed": self.failed,
            "outcomes": [o.to_dict() for o in self.outcomes],
        }


def _update_existing(
    client: SourceControlClient,
    pair: BranchPair,
    title: str,
) -> MergeRequestOutcome:
    """Retitle the open MR the conflict told us about."""
    full_path = pair.project.full_path
    try:
        existing = client.find_open_merge_request(
            full_path, pair.source_branch, pair.target_branch
        )
    except GitlabRequestError as e:
        return MergeRequestOutcome.failed(pair, str(e))

    if existing is None:
        # The conflict promised an open MR; re-creating would race.
        return MergeRequestOutcome.failed(pair, NO_MR_FOUND)

    try:
        client.update_merge_request_title(full_path, existing.iid, title)
    except GitlabRequestError as e:
        return MergeRequestOutcome.failed(pair, str(e))

    return MergeRequestOutcome.updated(pair, existing.web_url)


def reconcile_pair(
    client: SourceControlClient,
    pair: BranchPair,
    title: str,
    description: str | None = None,
) -> MergeRequestOutcome:
    """Create-or-update the merge request for a single pair."""
    result = client.create_merge_request(
        pair.project.external_id,
        title,
        pair.source_branch,
        pair.target_branch,
        description,
    )

    if isinstance(result, MergeRequestCreated):
        return MergeRequestOutcome.created(pair, result.mr_url)
    if isinstance(result, MergeRequestAlreadyExists):
        logger.debug(
            "MR already open for %s %s → %s, updating title",
            pair.project.full_path, pair.source_branch, pair.target_branch,
        )
        return _update_existing(client, pair, title)
    if isinstance(result, MergeRequestCreateFailed):
        return MergeRequestOutcome.failed(pair, result.error)

    raise TypeError(f"Unexpected create result: {result!r}")


def execute_merge_requests(
    client: SourceControlClient,
    pairs: Sequence[BranchPair],
    title: str,
    description: str | None = None,
) -> list[MergeRequestOutcome]:
    """Reconcile every pair in order; exactly one outcome per pair.

    Args:
        client: Source-control client.
        pairs: Branch pairs from the resolver.
        title: Title for new requests and for retitled existing ones.
        description: Body for newly created requests only.

    Returns:
        Outcomes aligned by index with ``pairs``.
    """
    outcomes: list[MergeRequestOutcome] = []

    for pair in pairs:
        outcome = reconcile_pair(client, pair, title, description)
        outcomes.append(outcome)

        marker = {"created": "✓", "updated": "↻", "failed": "✗"}[outcome.status.value]
        logger.info(
            "%s %s %s → %s: %s",
            marker,
            pair.project.full_path,
            pair.source_branch,
            pair.target_branch,
            outcome.status.value,
        )
        if outcome.error_detail:
            logger.warning("%s: %s", pair.project.full_path, outcome.error_detail)

    return outcomes


def execute_batch(
    client: SourceControlClient,
    pairs: Sequence[BranchPair],
    title: str,
    description: str | None = None,
) -> ReconcileReport:
    """``execute_merge_requests`` wrapped in a summary report."""
    return ReconcileReport(outcomes=execute_merge_requests(client, pairs, title, description))
