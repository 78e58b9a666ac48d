"""
Tests for use cases — release/backport flow, status scan, config check.
"""

from pathlib import Path

import pytest

from husgit.adapters.gitlab.errors import GitlabAuthError, MissingCredentialError
from husgit.core.config.loader import save_config
from husgit.core.models.config import HusgitConfig, RegistryError
from husgit.core.models.flow import Direction
from husgit.core.use_cases.config_check import check_config
from husgit.core.use_cases.flow import (
    ProjectSelection,
    default_title,
    plan_flow,
    run_flow,
    select_projects,
)
from husgit.core.use_cases.status import get_status


def _factory(client):
    return lambda: client


def _no_client():
    raise AssertionError("client must not be built")


class TestSelectProjects:
    def test_all(self, config):
        selected = select_projects(config, ProjectSelection(all_projects=True))
        assert [p.full_path for p in selected] == ["acme/api", "acme/web"]

    def test_group(self, config):
        selected = select_projects(config, ProjectSelection(group="frontend"))
        assert [p.full_path for p in selected] == ["acme/web"]

    def test_paths_keep_order_and_dedupe(self, config):
        selection = ProjectSelection(paths=["acme/web", "acme/api", "acme/web"])
        assert [p.full_path for p in select_projects(config, selection)] == ["acme/web", "acme/api"]

    def test_unknown_path(self, config):
        with pytest.raises(RegistryError, match="acme/ghost"):
            select_projects(config, ProjectSelection(paths=["acme/ghost"]))

    def test_unknown_group(self, config):
        with pytest.raises(RegistryError):
            select_projects(config, ProjectSelection(group="nope"))

    def test_empty(self, config):
        assert ProjectSelection().is_empty
        assert select_projects(config, ProjectSelection()) == []


class TestDefaultTitle:
    def test_titles(self):
        assert default_title(Direction.RELEASE, "dev", "staging") == "Release dev → staging"
        assert default_title(Direction.BACKPORT, "prod", "staging") == "Backport prod → staging"


class TestRunFlow:
    def test_release_creates(self, config, mock_client):
        result = run_flow(
            config, "dev", Direction.RELEASE, ProjectSelection(all_projects=True),
            _factory(mock_client),
        )
        assert result.error is None
        assert result.target_env == "staging"
        assert result.title == "Release dev → staging"
        assert result.report.created == 2
        assert result.to_dict()["report"]["status"] == "ok"

    def test_custom_title(self, config, mock_client):
        result = run_flow(
            config, "prod", Direction.BACKPORT, ProjectSelection(group="backend"),
            _factory(mock_client), title="Hotfix backport",
        )
        assert result.report.created == 1
        assert mock_client.merge_requests[0].title == "Hotfix backport"
        assert (mock_client.merge_requests[0].source_branch,
                mock_client.merge_requests[0].target_branch) == ("main", "staging")

    def test_dry_run_builds_no_client(self, config):
        result = run_flow(
            config, "dev", Direction.RELEASE, ProjectSelection(all_projects=True),
            _no_client, dry_run=True,
        )
        assert result.error is None
        assert result.report is None
        assert len(result.pairs) == 2
        assert result.to_dict()["dry_run"] is True

    def test_resolution_error_builds_no_client(self, config):
        result = run_flow(
            config, "prod", Direction.RELEASE, ProjectSelection(all_projects=True), _no_client,
        )
        assert result.error == 'No next environment after "prod". Cannot release.'
        assert result.to_dict() == {"error": result.error}

    def test_missing_mapping_creates_nothing(self, config, mock_client):
        config.get_project("acme/web").branch_map.pop("staging")
        result = run_flow(
            config, "dev", Direction.RELEASE, ProjectSelection(all_projects=True),
            _factory(mock_client),
        )
        assert "acme/web" in result.error
        assert mock_client.merge_requests == []

    def test_no_projects(self, config):
        config.add_group("empty")
        result = run_flow(
            config, "dev", Direction.RELEASE, ProjectSelection(group="empty"), _no_client,
        )
        assert result.error == "No projects to release."

    def test_unknown_project(self, config):
        result = run_flow(
            config, "dev", Direction.RELEASE, ProjectSelection(paths=["acme/ghost"]), _no_client,
        )
        assert "acme/ghost" in result.error

    def test_missing_credential(self, config):
        def factory():
            raise MissingCredentialError()

        result = run_flow(
            config, "dev", Direction.RELEASE, ProjectSelection(all_projects=True), factory,
        )
        assert "GITLAB_TOKEN" in result.error

    def test_partial_failure(self, config, mock_client):
        mock_client.fail_create("acme/api")
        result = run_flow(
            config, "dev", Direction.RELEASE, ProjectSelection(all_projects=True),
            _factory(mock_client),
        )
        assert result.error is None
        assert result.report.status == "partial"


class TestPlanFlow:
    def test_plan(self, config):
        plan = plan_flow(config, "staging", Direction.BACKPORT, config.all_projects())
        assert plan.target_env == "dev"
        assert [(p.source_branch, p.target_branch) for p in plan.pairs] == [
            ("staging", "develop"), ("staging", "develop"),
        ]


class TestGetStatus:
    def test_lists_open_requests(self, config, mock_client):
        mock_client.open_merge_request("acme/api", "develop", "staging")
        result = get_status(config, _factory(mock_client))
        assert result.error is None
        assert result.projects_scanned == 2
        assert len(result.env_pairs) == 4
        assert len(result.records) == 1
        data = result.to_dict()
        assert data["open_merge_requests"][0]["groups"] == ["backend"]

    def test_group_filter(self, config, mock_client):
        mock_client.open_merge_request("acme/api", "develop", "staging")
        result = get_status(config, _factory(mock_client), group="frontend")
        assert result.projects_scanned == 1
        assert result.records == []

    def test_direction_and_env_filter(self, config, mock_client):
        result = get_status(
            config, _factory(mock_client), direction=Direction.BACKPORT, source_env="staging"
        )
        assert [(p.source_env, p.target_env) for p in result.env_pairs] == [("staging", "dev")]

    def test_no_environments(self):
        result = get_status(HusgitConfig(), _no_client)
        assert "husgit setup flow" in result.error

    def test_unknown_env(self, config):
        assert get_status(config, _no_client, source_env="qa").error == 'Environment "qa" not found'

    def test_unknown_group(self, config):
        assert "nope" in get_status(config, _no_client, group="nope").error

    def test_no_projects_builds_no_client(self, config):
        config.add_group("empty")
        result = get_status(config, _no_client, group="empty")
        assert result.error is None
        assert result.records == []

    def test_partial_failures(self, config, mock_client):
        mock_client.fail_query("acme/api")
        mock_client.open_merge_request("acme/web", "develop", "staging")
        result = get_status(config, _factory(mock_client))
        assert len(result.records) == 1
        assert len(result.failures) == 4

    def test_auth_error(self, config):
        def factory():
            raise GitlabAuthError("GitLab auth failed: 401 Unauthorized")

        assert "auth failed" in get_status(config, factory).error


class TestConfigCheck:
    def test_missing_file(self, tmp_path: Path):
        result = check_config(tmp_path / "config.yml")
        assert not result.valid
        assert "husgit setup flow" in result.errors[0]

    def test_valid(self, config_file: Path):
        result = check_config(config_file)
        assert result.valid
        assert result.warnings == []
        assert result.to_dict()["project_count"] == 2

    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / "config.yml"
        path.write_text("groups: {unclosed\n")
        result = check_config(path)
        assert not result.valid
        assert result.config is None

    def test_dangling_reference(self, tmp_path: Path, config: HusgitConfig):
        config.groups["backend"].project_paths.append("acme/ghost")
        path = tmp_path / "config.yml"
        save_config(config, path)
        result = check_config(path)
        assert not result.valid
        assert any("acme/ghost" in e for e in result.errors)

    def test_warnings(self, tmp_path: Path, config: HusgitConfig):
        config.add_group("empty")
        config.get_project("acme/api").branch_map.pop("prod")
        config.get_project("acme/web").branch_map["qa"] = "qa"
        path = tmp_path / "config.yml"
        save_config(config, path)
        result = check_config(path)
        assert result.valid
        text = "\n".join(result.warnings)
        assert "'empty' has no projects" in text
        assert "acme/api' has no branch for: prod" in text
        assert "unknown environment(s): qa" in text
