"""
Configuration loader — reads and writes ``config.yml``.

The config lives in ``~/.husgit/config.yml`` unless ``--config`` or the
``HUSGIT_CONFIG`` environment variable points elsewhere. A missing file
is not an error: it yields an empty configuration so ``setup flow`` can
create it. Writes are atomic (write to temp file, then rename).
"""

from __future__ import annotations

import json
import logging
import tempfile
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from husgit.core.models.config import DEFAULT_GITLAB_URL, HusgitConfig

logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = ".husgit"
CONFIG_FILE_NAME = "config.yml"
CONFIG_ENV_VAR = "HUSGIT_CONFIG"


class ConfigError(Exception):
    """Raised when the configuration file is unreadable or invalid."""


def default_config_path(
    environ: Mapping[str, str] | None = None,
    home: Path | None = None,
) -> Path:
    """Resolve where the config lives.

    Args:
        environ: Environment mapping to consult for ``HUSGIT_CONFIG``.
        home: Home directory override (tests).

    Returns:
        Path to the config file (may not exist yet).
    """
    if environ and environ.get(CONFIG_ENV_VAR):
        return Path(environ[CONFIG_ENV_VAR]).expanduser()
    return (home or Path.home()) / CONFIG_DIR_NAME / CONFIG_FILE_NAME


def parse_config(data: Any, source: str = "<config>") -> HusgitConfig:
    """Validate already-parsed data into a ``HusgitConfig``."""
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a mapping in {source}, got {type(data).__name__}")
    try:
        return HusgitConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {source}: {e}") from e


def read_config_file(path: Path) -> HusgitConfig:
    """Read a YAML or JSON config file (JSON is a YAML subset)."""
    if path.is_dir():
        raise ConfigError(f"Path is a directory, not a file: {path}")
    if not path.is_file():
        raise ConfigError(f"File not found: {path}")

    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    return parse_config(data, source=str(path))


def load_config(path: Path) -> HusgitConfig:
    """Load the configuration snapshot, or an empty one if absent."""
    if not path.exists():
        logger.info("No config at %s — using defaults", path)
        return HusgitConfig(gitlab_url=DEFAULT_GITLAB_URL)

    logger.debug("Loading config from %s", path)
    config = read_config_file(path)
    logger.info(
        "Loaded config: %d environments, %d projects, %d groups",
        len(config.environments),
        len(config.projects),
        len(config.groups),
    )
    return config


def dump_config(config: HusgitConfig, fmt: str = "yaml") -> str:
    """Serialize the config as YAML or JSON text."""
    data = config.model_dump(mode="json", exclude_none=True)
    if fmt == "json":
        return json.dumps(data, indent=2, ensure_ascii=False) + "\n"
    return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)


def save_config(config: HusgitConfig, path: Path) -> None:
    """Save the config (atomic write).

    Args:
        config: The configuration to persist.
        path: Target file.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    content = dump_config(config)

    _fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=".config_", suffix=".tmp")
    tmp = Path(tmp_path)
    try:
        with open(_fd, "w", encoding="utf-8") as fh:
            fh.write(content)
        tmp.replace(path)
        logger.debug("Config saved to %s", path)
    except Exception:
        tmp.unlink(missing_ok=True)
        logger.error("Failed to save config to %s", path)
        raise


def backup_config(path: Path, now: datetime | None = None) -> Path | None:
    """Copy the current config next to itself with a timestamp suffix.

    Returns:
        The backup path, or None when there was nothing to back up.
    """
    if not path.is_file():
        return None
    stamp = (now or datetime.now(UTC)).strftime("%Y%m%dT%H%M%SZ")
    backup = path.with_name(f"{path.stem}.backup.{stamp}{path.suffix}")
    backup.write_text(path.read_text(encoding="utf-8"), encoding="utf-8")
    logger.info("Config backed up to %s", backup)
    return backup
