"""
Shared CLI helpers — config access, client construction, table output.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import NoReturn

import click

from husgit.adapters.base import SourceControlClient
from husgit.core.config.loader import ConfigError, load_config, save_config
from husgit.core.models.config import HusgitConfig


def config_path(ctx: click.Context) -> Path:
    """The config path chosen by the root command."""
    return ctx.find_root().obj["config_path"]


def load_or_exit(ctx: click.Context) -> HusgitConfig:
    """Load the config snapshot, exiting with a message on error."""
    try:
        return load_config(config_path(ctx))
    except ConfigError as e:
        fail(str(e))


def save(ctx: click.Context, config: HusgitConfig) -> None:
    save_config(config, config_path(ctx))


def fail(message: str, code: int = 1) -> NoReturn:
    click.secho(f"❌ {message}", fg="red")
    sys.exit(code)


def mock_client_for(config: HusgitConfig) -> SourceControlClient:
    """In-memory client pre-loaded with the registered projects."""
    from husgit.adapters.mock import MockGitlabClient

    client = MockGitlabClient()
    for project in config.all_projects():
        client.add_project(
            project.full_path,
            external_id=project.external_id,
            name=project.name,
            branches=sorted(set(project.branch_map.values())),
        )
    return client


def client_factory(
    config: HusgitConfig,
    mock: bool = False,
) -> Callable[[], SourceControlClient]:
    """Deferred client construction; credentials are only read when needed."""

    def build() -> SourceControlClient:
        if mock:
            return mock_client_for(config)

        from husgit.adapters.gitlab.client import GitlabClient
        from husgit.core.config.settings import GitlabSettings

        settings = GitlabSettings.from_mapping(os.environ, config_url=config.gitlab_url)
        return GitlabClient(settings)

    return build


def echo_table(headers: Sequence[str], rows: Sequence[Sequence[str]], indent: int = 3) -> None:
    """Print a plain aligned table."""
    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(str(cell)))

    pad = " " * indent
    header = "  ".join(h.ljust(widths[i]) for i, h in enumerate(headers))
    click.secho(f"{pad}{header}", fg="cyan", bold=True)
    click.echo(pad + "  ".join("─" * w for w in widths))
    for row in rows:
        click.echo(pad + "  ".join(str(c).ljust(widths[i]) for i, c in enumerate(row)))
