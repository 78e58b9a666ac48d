"""
Tests for core models — environment chain, project registry, groups.
"""

import pytest
from pydantic import ValidationError

from husgit.core.models.config import Group, HusgitConfig, ProjectConfig, RegistryError
from husgit.core.models.flow import Direction, Environment, chain_problems, sorted_chain
from husgit.core.models.merge_request import (
    BranchPair,
    EnvironmentPair,
    MergeRequestOutcome,
    OutcomeStatus,
)


class TestDirection:
    def test_steps(self):
        assert Direction.RELEASE.step == 1
        assert Direction.BACKPORT.step == -1

    def test_parse_canonical(self):
        assert Direction.parse("release") is Direction.RELEASE
        assert Direction.parse("BACKPORT") is Direction.BACKPORT

    def test_parse_synonyms(self):
        assert Direction.parse("promote") is Direction.RELEASE
        assert Direction.parse(" demote ") is Direction.BACKPORT

    def test_parse_invalid(self):
        with pytest.raises(ValueError):
            Direction.parse("sideways")


class TestEnvironment:
    def test_camel_case_alias(self):
        env = Environment.model_validate({"name": "dev", "order": 0, "defaultBranch": "develop"})
        assert env.default_branch == "develop"

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            Environment(name="", order=0)

    def test_negative_order_rejected(self):
        with pytest.raises(ValidationError):
            Environment(name="dev", order=-1)


class TestChain:
    def test_sorted_by_order(self):
        envs = [
            Environment(name="prod", order=2),
            Environment(name="dev", order=0),
            Environment(name="staging", order=1),
        ]
        assert [e.name for e in sorted_chain(envs)] == ["dev", "staging", "prod"]

    def test_valid_chain(self, chain):
        assert chain_problems(chain) == []

    def test_empty_chain_is_valid(self):
        assert chain_problems([]) == []

    def test_duplicate_names(self):
        envs = [Environment(name="dev", order=0), Environment(name="dev", order=1)]
        problems = chain_problems(envs)
        assert any("Duplicate" in p for p in problems)

    def test_gap_in_orders(self):
        envs = [Environment(name="dev", order=0), Environment(name="prod", order=2)]
        assert len(chain_problems(envs)) == 1

    def test_duplicate_orders(self):
        envs = [Environment(name="a", order=0), Environment(name="b", order=0)]
        assert chain_problems(envs)

    def test_config_rejects_broken_chain(self):
        with pytest.raises(ValidationError):
            HusgitConfig(
                environments=[
                    Environment(name="dev", order=1),
                    Environment(name="prod", order=2),
                ]
            )

    def test_config_sorts_chain(self):
        cfg = HusgitConfig(
            environments=[Environment(name="b", order=1), Environment(name="a", order=0)]
        )
        assert cfg.environment_names() == ["a", "b"]

    def test_set_environments_validates(self, config):
        with pytest.raises(RegistryError):
            config.set_environments(
                [Environment(name="x", order=0), Environment(name="x", order=1)]
            )

    def test_set_environments_replaces(self, config):
        config.set_environments(
            [Environment(name="qa", order=1), Environment(name="dev", order=0)]
        )
        assert config.environment_names() == ["dev", "qa"]


class TestProjectConfig:
    def test_branch_for(self, make_project):
        p = make_project("acme/api")
        assert p.branch_for("dev") == "develop"
        assert p.branch_for("nope") is None

    def test_empty_branch_is_unmapped(self, make_project):
        p = make_project("acme/api", branch_map={"dev": ""})
        assert p.branch_for("dev") is None

    def test_camel_case_keys(self):
        p = ProjectConfig.model_validate({
            "externalId": "7",
            "name": "api",
            "fullPath": "acme/api",
            "branchMap": {"dev": "develop"},
        })
        assert p.external_id == "7"
        assert p.full_path == "acme/api"
        assert p.branch_map == {"dev": "develop"}


class TestRegistry:
    def test_add_duplicate_project(self, config, make_project):
        with pytest.raises(RegistryError, match="already registered"):
            config.add_project(make_project("acme/api"))

    def test_remove_project_cascades_to_groups(self, config):
        config.add_project_to_group("frontend", "acme/api")
        config.remove_project("acme/api")
        assert config.get_project("acme/api") is None
        assert "acme/api" not in config.groups["backend"].project_paths
        assert "acme/api" not in config.groups["frontend"].project_paths

    def test_remove_unknown_project(self, config):
        with pytest.raises(RegistryError):
            config.remove_project("acme/nope")

    def test_remove_group_keeps_projects(self, config):
        config.remove_group("backend")
        assert config.get_group("backend") is None
        assert config.get_project("acme/api") is not None

    def test_add_group(self, config):
        config.add_group("ops")
        assert config.get_group("ops").project_paths == []

    def test_add_group_twice(self, config):
        with pytest.raises(RegistryError, match="already exists"):
            config.add_group("backend")

    def test_add_group_blank_name(self, config):
        with pytest.raises(RegistryError):
            config.add_group("   ")

    def test_add_unregistered_project_to_group(self, config):
        with pytest.raises(RegistryError, match="not registered"):
            config.add_project_to_group("backend", "acme/ghost")

    def test_add_project_twice_to_group(self, config):
        with pytest.raises(RegistryError, match="already exists"):
            config.add_project_to_group("backend", "acme/api")

    def test_remove_project_from_group(self, config):
        config.remove_project_from_group("backend", "acme/api")
        assert config.groups["backend"].project_paths == []
        assert config.get_project("acme/api") is not None

    def test_projects_in_group_skips_dangling(self, config):
        config.groups["backend"].project_paths.append("acme/ghost")
        assert [p.full_path for p in config.projects_in_group("backend")] == ["acme/api"]

    def test_projects_in_unknown_group(self, config):
        with pytest.raises(RegistryError):
            config.projects_in_group("nope")

    def test_group_index(self, config):
        config.add_project_to_group("frontend", "acme/api")
        index = config.group_index()
        assert index["acme/api"] == ["backend", "frontend"]
        assert index["acme/web"] == ["frontend"]

    def test_ungrouped_projects(self, config, make_project):
        config.add_project(make_project("acme/cli", external_id="103"))
        assert [p.full_path for p in config.ungrouped_projects()] == ["acme/cli"]

    def test_registry_key_must_match_path(self, make_project):
        with pytest.raises(ValidationError):
            HusgitConfig(projects={"wrong/key": make_project("acme/api")})


class TestLegacyLayout:
    def test_embedded_projects_are_migrated(self):
        cfg = HusgitConfig.model_validate({
            "gitlabUrl": "https://git.example.com",
            "environments": [
                {"name": "dev", "order": 0},
                {"name": "prod", "order": 1},
            ],
            "groups": {
                "backend": {
                    "projects": [
                        {
                            "externalId": "1",
                            "name": "api",
                            "fullPath": "acme/api",
                            "branchMap": {"dev": "develop", "prod": "main"},
                        }
                    ]
                }
            },
        })
        assert cfg.gitlab_url == "https://git.example.com"
        assert cfg.get_project("acme/api").branch_map["prod"] == "main"
        assert cfg.groups["backend"] == Group(project_paths=["acme/api"])

    def test_shared_project_registered_once(self):
        raw = {"externalId": "1", "name": "api", "fullPath": "acme/api"}
        cfg = HusgitConfig.model_validate({
            "groups": {"a": {"projects": [raw]}, "b": {"projects": [raw]}},
        })
        assert list(cfg.projects) == ["acme/api"]
        assert cfg.group_index()["acme/api"] == ["a", "b"]


class TestOutcomes:
    def test_constructors(self, make_project):
        pair = BranchPair(make_project("acme/api"), "develop", "staging")
        assert MergeRequestOutcome.created(pair, "u").status is OutcomeStatus.CREATED
        assert MergeRequestOutcome.updated(pair, "u").ok
        failed = MergeRequestOutcome.failed(pair, "boom")
        assert not failed.ok
        assert failed.merge_request_url is None
        assert failed.to_dict()["error"] == "boom"

    def test_env_pair_label(self):
        assert EnvironmentPair("dev", "staging", Direction.RELEASE).label == "dev → staging"
