"""
CLI commands for the configuration file — show, export, set, check.
"""

from __future__ import annotations

import json
import shutil
import subprocess
import sys
from pathlib import Path

import click

from husgit.core.config.loader import (
    ConfigError,
    backup_config,
    dump_config,
    read_config_file,
    save_config,
)
from husgit.ui.cli.common import config_path, fail, load_or_exit

_CLIPBOARD_COMMANDS = (
    ("pbcopy",),
    ("clip",),
    ("xclip", "-selection", "clipboard"),
    ("xsel", "--clipboard", "--input"),
)


def copy_to_clipboard(text: str) -> bool:
    """Copy text with the first clipboard tool found on PATH."""
    for cmd in _CLIPBOARD_COMMANDS:
        if not shutil.which(cmd[0]):
            continue
        try:
            subprocess.run(list(cmd), input=text, text=True, check=True, timeout=5)
            return True
        except (subprocess.SubprocessError, OSError):
            continue
    return False


@click.group()
def config() -> None:
    """Configuration file — show, export, set, check."""


@config.command("path")
@click.pass_context
def path_cmd(ctx: click.Context) -> None:
    """Print the config file location."""
    click.echo(str(config_path(ctx)))


@config.command("show")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def show(ctx: click.Context, as_json: bool) -> None:
    """Print the current configuration."""
    cfg = load_or_exit(ctx)
    click.echo(dump_config(cfg, "json" if as_json else "yaml"), nl=False)


@config.command("export")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Export as JSON.")
@click.option("--copy", is_flag=True, help="Also copy to the clipboard.")
@click.pass_context
def export(ctx: click.Context, as_json: bool, copy: bool) -> None:
    """Print the configuration so it can be shared."""
    cfg = load_or_exit(ctx)
    text = dump_config(cfg, "json" if as_json else "yaml")
    click.echo(text, nl=False)

    if copy:
        if copy_to_clipboard(text):
            click.secho("\nConfig copied to clipboard.", fg="green", err=True)
        else:
            click.secho(
                "\nCould not copy to clipboard — paste the output above manually.",
                fg="yellow",
                err=True,
            )


@config.command("set")
@click.argument("file_path", type=click.Path(path_type=Path))
@click.pass_context
def set_cmd(ctx: click.Context, file_path: Path) -> None:
    """Replace the configuration with a JSON or YAML file.

    The current config is backed up with a timestamp first.
    """
    try:
        new_config = read_config_file(file_path.expanduser().resolve())
    except ConfigError as e:
        fail(str(e))

    target = config_path(ctx)
    try:
        backup = backup_config(target)
        save_config(new_config, target)
    except OSError as e:
        fail(f"Failed to write config: {e}")

    click.secho("✅ Config loaded successfully", fg="green")
    if backup:
        click.secho(f"   Backup saved: {backup}", dim=True)


@config.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def check(ctx: click.Context, as_json: bool) -> None:
    """Validate the configuration file."""
    from husgit.core.use_cases.config_check import check_config

    result = check_config(config_path(ctx))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)

    if result.valid:
        assert result.config is not None  # guaranteed when valid
        click.secho("✅ Configuration is valid", fg="green", bold=True)
        click.echo(f"   Environments: {len(result.config.environments)}")
        click.echo(f"   Projects: {len(result.config.projects)}")
        click.echo(f"   Groups: {len(result.config.groups)}")
    else:
        click.secho("❌ Configuration errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    click.echo()
    if not result.valid:
        sys.exit(1)
