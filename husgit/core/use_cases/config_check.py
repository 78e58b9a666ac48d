"""
Config check use case — validate config.yml and report issues.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from husgit.core.config.loader import ConfigError, read_config_file
from husgit.core.models.config import HusgitConfig


@dataclass
class ConfigCheckResult:
    """Result of configuration validation."""

    valid: bool = False
    config: HusgitConfig | None = None
    config_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "config_path": str(self.config_path) if self.config_path else None,
            "errors": self.errors,
            "warnings": self.warnings,
            "environment_count": len(self.config.environments) if self.config else 0,
            "project_count": len(self.config.projects) if self.config else 0,
            "group_count": len(self.config.groups) if self.config else 0,
        }


def check_config(config_path: Path) -> ConfigCheckResult:
    """Validate the configuration file and report issues.

    Args:
        config_path: Path to config.yml.

    Returns:
        ConfigCheckResult with validation status and any issues.
    """
    result = ConfigCheckResult(config_path=config_path)

    if not config_path.exists():
        result.errors.append(
            f"No config at {config_path}. Run 'husgit setup flow' to create one."
        )
        return result

    try:
        config = read_config_file(config_path)
        result.config = config
    except ConfigError as e:
        result.errors.append(str(e))
        return result

    # Chain
    if len(config.environments) < 2:
        result.warnings.append(
            "Fewer than 2 environments defined — nothing can be released or backported."
        )

    env_names = set(config.environment_names())

    # Dangling group references
    for name, group in config.groups.items():
        missing = [p for p in group.project_paths if p not in config.projects]
        if missing:
            result.errors.append(
                f"Group '{name}' references unregistered project(s): {', '.join(missing)}"
            )
        dupes = {p for p in group.project_paths if group.project_paths.count(p) > 1}
        if dupes:
            result.warnings.append(
                f"Group '{name}' lists project(s) more than once: {', '.join(sorted(dupes))}"
            )
        if not group.project_paths:
            result.warnings.append(f"Group '{name}' has no projects.")

    # Branch mappings
    for project in config.all_projects():
        unmapped = [e for e in config.environment_names() if project.branch_for(e) is None]
        if unmapped:
            result.warnings.append(
                f"Project '{project.full_path}' has no branch for: {', '.join(unmapped)}"
            )
        unknown = sorted(set(project.branch_map) - env_names)
        if unknown:
            result.warnings.append(
                f"Project '{project.full_path}' maps unknown environment(s): {', '.join(unknown)}"
            )

    result.valid = len(result.errors) == 0
    return result
