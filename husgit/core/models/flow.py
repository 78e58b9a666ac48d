"""
Flow models — the environment chain and the direction of travel.

The chain is an ordered list of environments (develop → staging →
production). Releases move code one step forward, backports one step
back. Orders are 0-based and contiguous; the chain validator in
``HusgitConfig`` enforces that.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class Direction(StrEnum):
    """Direction of a merge request wave along the chain."""

    RELEASE = "release"     # promote: env[i] → env[i+1]
    BACKPORT = "backport"   # demote:  env[i] → env[i-1]

    @property
    def step(self) -> int:
        """Order offset from source to target environment."""
        return 1 if self is Direction.RELEASE else -1

    @property
    def verb(self) -> str:
        return "release" if self is Direction.RELEASE else "backport"

    @classmethod
    def parse(cls, value: str) -> Direction:
        """Accept the canonical names plus promote/demote synonyms."""
        aliases = {"promote": cls.RELEASE, "demote": cls.BACKPORT}
        key = value.strip().lower()
        if key in aliases:
            return aliases[key]
        return cls(key)


class Environment(BaseModel):
    """A named stage of the deployment pipeline with a fixed position."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1)
    order: int = Field(ge=0)
    default_branch: str | None = Field(
        default=None,
        validation_alias=AliasChoices("default_branch", "defaultBranch"),
    )


def sorted_chain(environments: list[Environment]) -> list[Environment]:
    """Return the chain ordered by position."""
    return sorted(environments, key=lambda e: e.order)


def chain_problems(environments: list[Environment]) -> list[str]:
    """List every way the chain breaks its ordering invariants.

    Names must be unique and orders must be exactly 0..N-1.
    An empty list means the chain is valid.
    """
    problems: list[str] = []

    seen: set[str] = set()
    for env in environments:
        if env.name in seen:
            problems.append(f"Duplicate environment name '{env.name}'")
        seen.add(env.name)

    orders = sorted(e.order for e in environments)
    expected = list(range(len(environments)))
    if orders != expected:
        problems.append(
            f"Environment orders must be exactly {expected}, got {orders}"
        )

    return problems
