"""
Branch-pair resolver — turn a flow request into concrete branch pairs.

Two entry points:

    resolve_pairs()               one step, one direction, the selected
                                  projects; all-or-nothing.
    build_all_environment_pairs() every adjacent step in both directions,
                                  used by the read-only status scan.

Resolution never touches the network. Any error raised here aborts the
whole batch before a single merge request is attempted.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from husgit.core.models.config import ProjectConfig
from husgit.core.models.flow import Direction, Environment, sorted_chain
from husgit.core.models.merge_request import BranchPair, EnvironmentPair

logger = logging.getLogger(__name__)


class ResolutionError(Exception):
    """Base class for caller-input problems found before any network call."""


class EnvironmentNotFound(ResolutionError):
    def __init__(self, env_name: str):
        super().__init__(f'Environment "{env_name}" not found')
        self.env_name = env_name


class NoAdjacentEnvironment(ResolutionError):
    def __init__(self, env_name: str, direction: Direction):
        where = "after" if direction is Direction.RELEASE else "before"
        which = "next" if direction is Direction.RELEASE else "previous"
        super().__init__(
            f'No {which} environment {where} "{env_name}". Cannot {direction.verb}.'
        )
        self.env_name = env_name
        self.direction = direction


class MissingBranchMapping(ResolutionError):
    def __init__(self, project: ProjectConfig, env_name: str):
        super().__init__(
            f'Project "{project.name}" ({project.full_path}) is missing '
            f'a branch mapping for "{env_name}"'
        )
        self.project = project
        self.env_name = env_name


# ── Chain navigation ─────────────────────────────────────────────


def get_environment(environments: Sequence[Environment], name: str) -> Environment | None:
    for env in environments:
        if env.name == name:
            return env
    return None


def adjacent_environment(
    environments: Sequence[Environment],
    env_name: str,
    direction: Direction,
) -> Environment | None:
    """The environment one step away in ``direction``, by order."""
    env = get_environment(environments, env_name)
    if env is None:
        return None
    wanted = env.order + direction.step
    for candidate in environments:
        if candidate.order == wanted:
            return candidate
    return None


def next_environment(environments: Sequence[Environment], env_name: str) -> Environment | None:
    return adjacent_environment(environments, env_name, Direction.RELEASE)


def previous_environment(
    environments: Sequence[Environment], env_name: str
) -> Environment | None:
    return adjacent_environment(environments, env_name, Direction.BACKPORT)


def source_candidates(environments: Sequence[Environment], direction: Direction) -> list[Environment]:
    """Environments that have a neighbour in ``direction``."""
    return [
        e for e in sorted_chain(list(environments))
        if adjacent_environment(environments, e.name, direction) is not None
    ]


# ── Single-step resolution ───────────────────────────────────────


def resolve_target(
    environments: Sequence[Environment],
    source_env_name: str,
    direction: Direction,
) -> tuple[Environment, Environment]:
    """Validate the step and return (source, target) environments.

    Raises:
        EnvironmentNotFound: ``source_env_name`` is not in the chain.
        NoAdjacentEnvironment: the chain ends in that direction.
    """
    source = get_environment(environments, source_env_name)
    if source is None:
        raise EnvironmentNotFound(source_env_name)

    target = adjacent_environment(environments, source_env_name, direction)
    if target is None:
        raise NoAdjacentEnvironment(source_env_name, direction)

    return source, target


def resolve_pairs(
    environments: Sequence[Environment],
    source_env_name: str,
    direction: Direction,
    projects: Iterable[ProjectConfig],
) -> list[BranchPair]:
    """Compute one branch pair per project for a single release/backport step.

    Pairs come out in input order. A project lacking either mapping
    aborts the whole resolution: a partial batch would silently drop a
    project from a wave the operator believes is complete.

    Raises:
        EnvironmentNotFound, NoAdjacentEnvironment, MissingBranchMapping
    """
    source, target = resolve_target(environments, source_env_name, direction)

    pairs: list[BranchPair] = []
    for project in projects:
        source_branch = project.branch_for(source.name)
        if source_branch is None:
            raise MissingBranchMapping(project, source.name)
        target_branch = project.branch_for(target.name)
        if target_branch is None:
            raise MissingBranchMapping(project, target.name)
        pairs.append(BranchPair(project, source_branch, target_branch))

    logger.info(
        "Resolved %d pair(s) for %s %s → %s",
        len(pairs), direction.value, source.name, target.name,
    )
    return pairs


# ── Status-mode enumeration ──────────────────────────────────────


def build_all_environment_pairs(
    environments: Sequence[Environment],
    direction: Direction | None = None,
    source_env: str | None = None,
) -> list[EnvironmentPair]:
    """Every adjacent step of the chain, release sweep first.

    Release pairs are ``(env[i], env[i+1])`` for ``i`` ascending; backport
    pairs ``(env[i], env[i-1])`` for ``i`` descending, computed in their
    own sweep from the top of the chain. Filters only drop pairs, they
    never reorder. Chains shorter than two yield nothing.
    """
    chain = sorted_chain(list(environments))
    pairs: list[EnvironmentPair] = []

    for i in range(len(chain) - 1):
        pairs.append(EnvironmentPair(chain[i].name, chain[i + 1].name, Direction.RELEASE))

    for i in range(len(chain) - 1, 0, -1):
        pairs.append(EnvironmentPair(chain[i].name, chain[i - 1].name, Direction.BACKPORT))

    if direction is not None:
        pairs = [p for p in pairs if p.direction == direction]
    if source_env is not None:
        pairs = [p for p in pairs if p.source_env == source_env]

    return pairs
