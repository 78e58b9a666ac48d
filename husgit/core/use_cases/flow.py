"""
Flow use case — release or backport a selection of projects.

This is the top-level orchestrator for ``husgit release`` and
``husgit backport``: select projects from the config snapshot, resolve
branch pairs, then (unless dry-run) reconcile merge requests.

Resolution errors stop everything before the client is even built.
Transport/auth errors stop the batch where it stands.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from husgit.adapters.base import SourceControlClient
from husgit.adapters.gitlab.errors import GitlabTransportError
from husgit.core.engine.reconciler import ReconcileReport, execute_batch
from husgit.core.engine.resolver import ResolutionError, resolve_pairs, resolve_target
from husgit.core.models.config import HusgitConfig, ProjectConfig, RegistryError
from husgit.core.models.flow import Direction
from husgit.core.models.merge_request import BranchPair

logger = logging.getLogger(__name__)


@dataclass
class ProjectSelection:
    """Which projects a flow targets. Exactly one source is used."""

    group: str | None = None
    all_projects: bool = False
    paths: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.group or self.all_projects or self.paths)


def select_projects(config: HusgitConfig, selection: ProjectSelection) -> list[ProjectConfig]:
    """Expand a selection into registered projects, de-duplicated, in order.

    Raises:
        RegistryError: unknown group or unregistered project path.
    """
    if selection.all_projects:
        projects = config.all_projects()
    elif selection.paths:
        unknown = [p for p in selection.paths if p not in config.projects]
        if unknown:
            raise RegistryError(f"Unknown project(s): {', '.join(unknown)}")
        projects = [config.projects[p] for p in selection.paths]
    elif selection.group:
        projects = config.projects_in_group(selection.group)
    else:
        projects = []

    seen: set[str] = set()
    unique: list[ProjectConfig] = []
    for project in projects:
        if project.full_path not in seen:
            seen.add(project.full_path)
            unique.append(project)
    return unique


def default_title(direction: Direction, source_env: str, target_env: str) -> str:
    label = "Release" if direction is Direction.RELEASE else "Backport"
    return f"{label} {source_env} → {target_env}"


@dataclass
class FlowResult:
    """Result of a release/backport run."""

    direction: Direction = Direction.RELEASE
    source_env: str = ""
    target_env: str = ""
    title: str = ""
    dry_run: bool = False
    pairs: list[BranchPair] = field(default_factory=list)
    report: ReconcileReport | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        result: dict = {}
        if self.error:
            result["error"] = self.error
            return result

        result["direction"] = self.direction.value
        result["source_env"] = self.source_env
        result["target_env"] = self.target_env
        result["title"] = self.title
        result["dry_run"] = self.dry_run
        result["pairs"] = [
            {
                "project": p.project.full_path,
                "name": p.project.name,
                "source_branch": p.source_branch,
                "target_branch": p.target_branch,
            }
            for p in self.pairs
        ]
        if self.report:
            result["report"] = self.report.to_dict()
        return result


def plan_flow(
    config: HusgitConfig,
    source_env: str,
    direction: Direction,
    projects: list[ProjectConfig],
) -> FlowResult:
    """Resolve branch pairs without contacting the host."""
    result = FlowResult(direction=direction, source_env=source_env, dry_run=True)
    try:
        _source, target = resolve_target(config.environments, source_env, direction)
        result.target_env = target.name
        result.pairs = resolve_pairs(config.environments, source_env, direction, projects)
    except ResolutionError as e:
        result.error = str(e)
    return result


def run_flow(
    config: HusgitConfig,
    source_env: str,
    direction: Direction,
    selection: ProjectSelection,
    client_factory: Callable[[], SourceControlClient],
    title: str | None = None,
    description: str | None = None,
    dry_run: bool = False,
) -> FlowResult:
    """Release/backport the selected projects.

    Args:
        config: Configuration snapshot.
        source_env: Environment to move from.
        direction: RELEASE (next env) or BACKPORT (previous env).
        selection: Projects to target.
        client_factory: Builds the client; only called when executing.
        title: MR title (default: "Release dev → staging").
        description: MR body, applied on creation only.
        dry_run: Resolve and report pairs without creating anything.

    Returns:
        FlowResult with the resolved pairs and, when executed, the report.
    """
    try:
        projects = select_projects(config, selection)
    except RegistryError as e:
        return FlowResult(direction=direction, source_env=source_env, error=str(e))

    result = plan_flow(config, source_env, direction, projects)
    result.dry_run = dry_run
    if result.error:
        return result

    result.title = title or default_title(direction, source_env, result.target_env)

    if not result.pairs:
        result.error = f"No projects to {direction.verb}."
        return result

    if dry_run:
        logger.info("Dry run: %d pair(s) resolved, nothing created", len(result.pairs))
        return result

    try:
        client = client_factory()
        result.report = execute_batch(client, result.pairs, result.title, description)
    except GitlabTransportError as e:
        result.error = str(e)
        return result

    logger.info(
        "%s %s → %s: %d created, %d updated, %d failed",
        direction.value,
        source_env,
        result.target_env,
        result.report.created,
        result.report.updated,
        result.report.failed,
    )
    return result
