"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from husgit.adapters.mock import MockGitlabClient
from husgit.core.config.loader import save_config
from husgit.core.models.config import Group, HusgitConfig, ProjectConfig
from husgit.core.models.flow import Environment

BRANCHES = {"dev": "develop", "staging": "staging", "prod": "main"}


def _make_project(
    full_path: str,
    external_id: str = "1",
    branch_map: dict[str, str] | None = None,
) -> ProjectConfig:
    """Project mapped on every env of the standard chain unless told otherwise."""
    return ProjectConfig(
        external_id=external_id,
        name=full_path.rsplit("/", 1)[-1],
        full_path=full_path,
        branch_map=dict(BRANCHES) if branch_map is None else branch_map,
    )


@pytest.fixture
def make_project():
    """Factory for registry entries."""
    return _make_project


@pytest.fixture
def chain() -> list[Environment]:
    """dev → staging → prod."""
    return [
        Environment(name="dev", order=0, default_branch="develop"),
        Environment(name="staging", order=1, default_branch="staging"),
        Environment(name="prod", order=2, default_branch="main"),
    ]


@pytest.fixture
def config(chain: list[Environment]) -> HusgitConfig:
    """Two projects, one per group."""
    api = _make_project("acme/api", external_id="101")
    web = _make_project("acme/web", external_id="102")
    return HusgitConfig(
        environments=chain,
        projects={api.full_path: api, web.full_path: web},
        groups={
            "backend": Group(project_paths=["acme/api"]),
            "frontend": Group(project_paths=["acme/web"]),
        },
    )


@pytest.fixture
def mock_client(config: HusgitConfig) -> MockGitlabClient:
    """Mock host that knows every registered project."""
    client = MockGitlabClient()
    for project in config.all_projects():
        client.add_project(
            project.full_path,
            external_id=project.external_id,
            name=project.name,
            branches=["develop", "staging", "main"],
        )
    return client


@pytest.fixture
def config_file(tmp_path: Path, config: HusgitConfig) -> Path:
    """The standard config written to a temporary config.yml."""
    path = tmp_path / "config.yml"
    save_config(config, path)
    return path
