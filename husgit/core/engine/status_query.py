"""
Status query — list open merge requests between adjacent environments.

Read-only: only ``list_open_merge_requests`` is ever called. Unlike the
resolver, missing branch mappings are tolerated (the combination is
skipped) and a failed lookup only costs that one (project, pair) entry.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from husgit.adapters.base import SourceControlClient
from husgit.adapters.gitlab.errors import GitlabRequestError
from husgit.core.models.config import ProjectConfig
from husgit.core.models.merge_request import EnvironmentPair, OpenMergeRequestRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueryFailure:
    """A (project, pair) lookup that could not be completed."""

    project: ProjectConfig
    pair: EnvironmentPair
    error: str

    def to_dict(self) -> dict:
        return {
            "project": self.project.full_path,
            "source_env": self.pair.source_env,
            "target_env": self.pair.target_env,
            "error": self.error,
        }


def query_open_requests(
    client: SourceControlClient,
    projects: Iterable[ProjectConfig],
    env_pairs: Sequence[EnvironmentPair],
    group_index: Mapping[str, Sequence[str]] | None = None,
    failures: list[QueryFailure] | None = None,
) -> list[OpenMergeRequestRecord]:
    """Scan project × environment pair for open merge requests.

    Args:
        client: Source-control client.
        projects: Projects to scan, in display order.
        env_pairs: Environment pairs from ``build_all_environment_pairs``.
        group_index: full path → group names, copied onto each record.
        failures: When given, failed lookups are appended here.

    Returns:
        One record per open merge request found.
    """
    records: list[OpenMergeRequestRecord] = []
    group_index = group_index or {}

    for project in projects:
        groups = tuple(group_index.get(project.full_path, ()))

        for pair in env_pairs:
            source_branch = project.branch_for(pair.source_env)
            target_branch = project.branch_for(pair.target_env)
            if source_branch is None or target_branch is None:
                logger.debug(
                    "Skipping %s for %s: unmapped environment",
                    project.full_path, pair.label,
                )
                continue

            try:
                found = client.list_open_merge_requests(
                    project.full_path, source_branch, target_branch
                )
            except GitlabRequestError as e:
                logger.warning("Status query failed for %s (%s): %s", project.full_path, pair.label, e)
                if failures is not None:
                    failures.append(QueryFailure(project, pair, str(e)))
                continue

            for mr in found:
                records.append(
                    OpenMergeRequestRecord(
                        project=project,
                        source_env=pair.source_env,
                        target_env=pair.target_env,
                        direction=pair.direction,
                        source_branch=source_branch,
                        target_branch=target_branch,
                        external_mr_id=mr.iid,
                        merge_request_url=mr.web_url,
                        state=mr.state,
                        group_names=groups,
                    )
                )

    logger.info("Status scan found %d open merge request(s)", len(records))
    return records
