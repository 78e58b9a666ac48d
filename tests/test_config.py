"""
Tests for config loading, saving, backups and GitLab settings.
"""

import json
from datetime import UTC, datetime
from pathlib import Path

import pytest
import yaml

from husgit.core.config.loader import (
    CONFIG_ENV_VAR,
    ConfigError,
    backup_config,
    default_config_path,
    dump_config,
    load_config,
    parse_config,
    read_config_file,
    save_config,
)
from husgit.core.config.settings import GitlabSettings
from husgit.core.models.config import DEFAULT_GITLAB_URL, HusgitConfig


class TestConfigPath:
    def test_default_under_home(self, tmp_path: Path):
        assert default_config_path({}, home=tmp_path) == tmp_path / ".husgit" / "config.yml"

    def test_env_override(self, tmp_path: Path):
        target = tmp_path / "elsewhere.yml"
        assert default_config_path({CONFIG_ENV_VAR: str(target)}) == target


class TestLoadConfig:
    def test_not_utf8(self, tmp_path: Path):
        path = tmp_path / "config.yml"
        path.write_bytes(b"gitlab_url: \xff\xfe\n")
        with pytest.raises(ConfigError, match="Cannot read"):
            load_config(path)

    def test_missing_file_gives_defaults(self, tmp_path: Path):
        cfg = load_config(tmp_path / "nope.yml")
        assert cfg.gitlab_url == DEFAULT_GITLAB_URL
        assert cfg.environments == []
        assert cfg.projects == {}
        assert cfg.groups == {}

    def test_round_trip(self, tmp_path: Path, config: HusgitConfig):
        path = tmp_path / "sub" / "config.yml"
        save_config(config, path)
        loaded = load_config(path)
        assert loaded.environment_names() == ["dev", "staging", "prod"]
        assert loaded.get_project("acme/api").external_id == "101"
        assert loaded.groups["backend"].project_paths == ["acme/api"]

    def test_empty_file_is_empty_config(self, tmp_path: Path):
        path = tmp_path / "config.yml"
        path.write_text("")
        assert load_config(path).environments == []

    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / "config.yml"
        path.write_text("environments: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(path)

    def test_not_a_mapping(self, tmp_path: Path):
        path = tmp_path / "config.yml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="Expected a mapping"):
            load_config(path)

    def test_invalid_schema(self, tmp_path: Path):
        path = tmp_path / "config.yml"
        path.write_text(
            "environments:\n"
            "  - {name: dev, order: 0}\n"
            "  - {name: dev, order: 1}\n"
        )
        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_config(path)

    def test_reads_camel_case_json(self, tmp_path: Path):
        path = tmp_path / "export.json"
        path.write_text(json.dumps({
            "gitlabUrl": "https://git.example.com",
            "environments": [
                {"name": "dev", "order": 0, "defaultBranch": "develop"},
                {"name": "prod", "order": 1},
            ],
        }))
        cfg = read_config_file(path)
        assert cfg.gitlab_url == "https://git.example.com"
        assert cfg.environments[0].default_branch == "develop"


class TestReadConfigFile:
    def test_directory(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="directory"):
            read_config_file(tmp_path)

    def test_missing(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="File not found"):
            read_config_file(tmp_path / "ghost.yml")


class TestSaveConfig:
    def test_snake_case_on_disk(self, tmp_path: Path, config: HusgitConfig):
        path = tmp_path / "config.yml"
        save_config(config, path)
        data = yaml.safe_load(path.read_text())
        assert data["gitlab_url"] == DEFAULT_GITLAB_URL
        assert data["projects"]["acme/api"]["branch_map"]["prod"] == "main"
        assert data["groups"]["frontend"] == {"project_paths": ["acme/web"]}

    def test_no_temp_files_left(self, tmp_path: Path, config: HusgitConfig):
        save_config(config, tmp_path / "config.yml")
        assert [p.name for p in tmp_path.iterdir()] == ["config.yml"]

    def test_overwrite(self, tmp_path: Path, config: HusgitConfig):
        path = tmp_path / "config.yml"
        save_config(config, path)
        config.remove_group("backend")
        save_config(config, path)
        assert "backend" not in load_config(path).groups

    def test_dump_json(self, config: HusgitConfig):
        data = json.loads(dump_config(config, "json"))
        assert data["environments"][0] == {
            "name": "dev", "order": 0, "default_branch": "develop",
        }

    def test_dump_omits_missing_default_branch(self):
        cfg = parse_config({"environments": [{"name": "a", "order": 0}]})
        assert "default_branch" not in dump_config(cfg)


class TestBackup:
    def test_nothing_to_back_up(self, tmp_path: Path):
        assert backup_config(tmp_path / "config.yml") is None

    def test_timestamped_copy(self, tmp_path: Path, config: HusgitConfig):
        path = tmp_path / "config.yml"
        save_config(config, path)
        now = datetime(2024, 5, 1, 12, 30, 0, tzinfo=UTC)
        backup = backup_config(path, now=now)
        assert backup == tmp_path / "config.backup.20240501T123000Z.yml"
        assert backup.read_text() == path.read_text()


class TestGitlabSettings:
    def test_defaults(self):
        s = GitlabSettings.from_mapping({})
        assert s.url == DEFAULT_GITLAB_URL
        assert s.token is None

    def test_config_url_used(self):
        s = GitlabSettings.from_mapping({}, config_url="https://git.example.com/")
        assert s.url == "https://git.example.com"
        assert s.api_url == "https://git.example.com/api/v4"
        assert s.graphql_url == "https://git.example.com/api/graphql"

    def test_env_url_wins(self):
        s = GitlabSettings.from_mapping(
            {"GITLAB_URL": "https://env.example.com"},
            config_url="https://cfg.example.com",
        )
        assert s.url == "https://env.example.com"

    def test_token_is_secret(self):
        s = GitlabSettings.from_mapping({"GITLAB_TOKEN": "glpat-abc"})
        assert s.token.get_secret_value() == "glpat-abc"
        assert "glpat-abc" not in repr(s)

    def test_empty_token_is_none(self):
        assert GitlabSettings.from_mapping({"GITLAB_TOKEN": ""}).token is None
