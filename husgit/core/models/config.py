"""
Configuration model — environments, project registry and groups.

Loaded from ``~/.husgit/config.yml``, this is the single snapshot every
command works from. Projects live in one registry keyed by full path;
groups only hold references into it, never copies.

Keys are snake_case on disk. The camelCase spelling written by earlier
JSON exports (``gitlabUrl``, ``fullPath``, ``branchMap``...) is accepted
on load, as is the legacy layout where groups embedded whole projects.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from husgit.core.models.flow import Environment, chain_problems, sorted_chain

DEFAULT_GITLAB_URL = "https://gitlab.com"


class RegistryError(ValueError):
    """Raised when a registry operation names a missing or duplicate entry."""


class ProjectConfig(BaseModel):
    """A GitLab project registered with husgit."""

    model_config = ConfigDict(populate_by_name=True)

    external_id: str = Field(
        min_length=1,
        validation_alias=AliasChoices("external_id", "externalId"),
    )
    name: str
    full_path: str = Field(
        min_length=1,
        validation_alias=AliasChoices("full_path", "fullPath"),
    )
    branch_map: dict[str, str] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("branch_map", "branchMap"),
    )

    def branch_for(self, env_name: str) -> str | None:
        """Mapped branch for an environment; empty strings count as unmapped."""
        return self.branch_map.get(env_name) or None


class Group(BaseModel):
    """Named selection of registered projects (references by full path)."""

    model_config = ConfigDict(populate_by_name=True)

    project_paths: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("project_paths", "projectPaths"),
    )


class HusgitConfig(BaseModel):
    """Root configuration document."""

    model_config = ConfigDict(populate_by_name=True)

    gitlab_url: str = Field(
        default=DEFAULT_GITLAB_URL,
        validation_alias=AliasChoices("gitlab_url", "gitlabUrl"),
    )
    environments: list[Environment] = Field(default_factory=list)
    projects: dict[str, ProjectConfig] = Field(default_factory=dict)
    groups: dict[str, Group] = Field(default_factory=dict)

    # ── Loading ──────────────────────────────────────────────────

    @model_validator(mode="before")
    @classmethod
    def _migrate_embedded_projects(cls, data: Any) -> Any:
        """Move projects embedded in groups into the registry."""
        if not isinstance(data, dict):
            return data

        groups = data.get("groups")
        if not isinstance(groups, dict):
            return data

        registry = dict(data.get("projects") or {})
        migrated: dict[str, Any] = {}
        for name, group in groups.items():
            if isinstance(group, dict) and isinstance(group.get("projects"), list):
                paths = []
                for raw in group["projects"]:
                    project = ProjectConfig.model_validate(raw)
                    registry.setdefault(project.full_path, project)
                    paths.append(project.full_path)
                migrated[name] = {"project_paths": paths}
            else:
                migrated[name] = group

        return {**data, "projects": registry, "groups": migrated}

    @model_validator(mode="after")
    def _check_chain(self) -> HusgitConfig:
        problems = chain_problems(self.environments)
        if problems:
            raise ValueError("; ".join(problems))
        self.environments = sorted_chain(self.environments)
        for key, project in self.projects.items():
            if key != project.full_path:
                raise ValueError(
                    f"Project registered under '{key}' has full_path '{project.full_path}'"
                )
        return self

    # ── Environments ─────────────────────────────────────────────

    @property
    def has_environments(self) -> bool:
        return len(self.environments) > 0

    def get_environment(self, name: str) -> Environment | None:
        """Look up an environment by name."""
        for env in self.environments:
            if env.name == name:
                return env
        return None

    def environment_names(self) -> list[str]:
        return [e.name for e in self.environments]

    def set_environments(self, environments: list[Environment]) -> None:
        """Replace the whole chain after validating it."""
        problems = chain_problems(environments)
        if problems:
            raise RegistryError("; ".join(problems))
        self.environments = sorted_chain(environments)

    # ── Projects ─────────────────────────────────────────────────

    def all_projects(self) -> list[ProjectConfig]:
        return list(self.projects.values())

    def get_project(self, full_path: str) -> ProjectConfig | None:
        return self.projects.get(full_path)

    def add_project(self, project: ProjectConfig) -> None:
        if project.full_path in self.projects:
            raise RegistryError(f'Project "{project.full_path}" is already registered')
        self.projects[project.full_path] = project

    def remove_project(self, full_path: str) -> ProjectConfig:
        """Remove a project from the registry and from every group."""
        project = self.projects.pop(full_path, None)
        if project is None:
            raise RegistryError(f'Project "{full_path}" not found')
        self._prune_project_refs(full_path)
        return project

    def _prune_project_refs(self, full_path: str) -> None:
        for group in self.groups.values():
            group.project_paths = [p for p in group.project_paths if p != full_path]

    # ── Groups ───────────────────────────────────────────────────

    def group_names(self) -> list[str]:
        return list(self.groups.keys())

    def get_group(self, name: str) -> Group | None:
        return self.groups.get(name)

    def add_group(self, name: str) -> None:
        if not name.strip():
            raise RegistryError("Group name cannot be empty")
        if name in self.groups:
            raise RegistryError(f'Group "{name}" already exists')
        self.groups[name] = Group()

    def remove_group(self, name: str) -> None:
        """Drop the group; its projects stay registered."""
        if name not in self.groups:
            raise RegistryError(f'Group "{name}" does not exist')
        del self.groups[name]

    def add_project_to_group(self, group_name: str, full_path: str) -> None:
        group = self.groups.get(group_name)
        if group is None:
            raise RegistryError(f'Group "{group_name}" does not exist')
        if full_path not in self.projects:
            raise RegistryError(f'Project "{full_path}" is not registered')
        if full_path in group.project_paths:
            raise RegistryError(
                f'Project "{full_path}" already exists in group "{group_name}"'
            )
        group.project_paths.append(full_path)

    def remove_project_from_group(self, group_name: str, full_path: str) -> None:
        group = self.groups.get(group_name)
        if group is None:
            raise RegistryError(f'Group "{group_name}" does not exist')
        if full_path not in group.project_paths:
            raise RegistryError(f'Project "{full_path}" is not in group "{group_name}"')
        group.project_paths.remove(full_path)

    def projects_in_group(self, name: str) -> list[ProjectConfig]:
        """Resolve a group's references; dangling paths are skipped."""
        group = self.groups.get(name)
        if group is None:
            raise RegistryError(f'Group "{name}" not found')
        return [self.projects[p] for p in group.project_paths if p in self.projects]

    def group_index(self) -> dict[str, list[str]]:
        """Map each project full path to the names of the groups holding it."""
        index: dict[str, list[str]] = {}
        for name, group in self.groups.items():
            for path in group.project_paths:
                index.setdefault(path, []).append(name)
        return index

    def ungrouped_projects(self) -> list[ProjectConfig]:
        grouped = self.group_index()
        return [p for p in self.projects.values() if p.full_path not in grouped]
