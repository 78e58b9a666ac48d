"""
Status use case — open merge requests between adjacent environments.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from husgit.adapters.base import SourceControlClient
from husgit.adapters.gitlab.errors import GitlabTransportError
from husgit.core.engine.resolver import build_all_environment_pairs
from husgit.core.engine.status_query import QueryFailure, query_open_requests
from husgit.core.models.config import HusgitConfig, RegistryError
from husgit.core.models.flow import Direction
from husgit.core.models.merge_request import EnvironmentPair, OpenMergeRequestRecord


@dataclass
class StatusResult:
    """Aggregated status scan."""

    records: list[OpenMergeRequestRecord] = field(default_factory=list)
    failures: list[QueryFailure] = field(default_factory=list)
    env_pairs: list[EnvironmentPair] = field(default_factory=list)
    projects_scanned: int = 0
    error: str | None = None

    def to_dict(self) -> dict:
        result: dict = {}
        if self.error:
            result["error"] = self.error
            return result

        result["projects_scanned"] = self.projects_scanned
        result["env_pairs"] = [
            {"source_env": p.source_env, "target_env": p.target_env, "direction": p.direction.value}
            for p in self.env_pairs
        ]
        result["open_merge_requests"] = [r.to_dict() for r in self.records]
        result["failures"] = [f.to_dict() for f in self.failures]
        return result


def get_status(
    config: HusgitConfig,
    client_factory: Callable[[], SourceControlClient],
    group: str | None = None,
    direction: Direction | None = None,
    source_env: str | None = None,
) -> StatusResult:
    """Scan for open merge requests between every pair of adjacent environments.

    Args:
        config: Configuration snapshot.
        client_factory: Builds the client (only once there is work to do).
        group: Restrict to one group's projects.
        direction: Restrict to release or backport pairs.
        source_env: Restrict to pairs leaving this environment.

    Returns:
        StatusResult with records and per-project failures.
    """
    result = StatusResult()

    if not config.has_environments:
        result.error = 'No environments configured. Run "husgit setup flow" first.'
        return result

    if source_env is not None and config.get_environment(source_env) is None:
        result.error = f'Environment "{source_env}" not found'
        return result

    try:
        projects = config.projects_in_group(group) if group else config.all_projects()
    except RegistryError as e:
        result.error = str(e)
        return result

    result.env_pairs = build_all_environment_pairs(
        config.environments, direction=direction, source_env=source_env
    )
    result.projects_scanned = len(projects)

    if not projects or not result.env_pairs:
        return result

    try:
        client = client_factory()
        result.records = query_open_requests(
            client,
            projects,
            result.env_pairs,
            group_index=config.group_index(),
            failures=result.failures,
        )
    except GitlabTransportError as e:
        result.error = str(e)

    return result
