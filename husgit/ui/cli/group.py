"""
CLI commands for project groups.

Groups only reference registered projects; removing a group never
removes its projects.
"""

from __future__ import annotations

import json

import click

from husgit.core.models.config import RegistryError
from husgit.ui.cli.common import echo_table, fail, load_or_exit, save
from husgit.ui.prompts import prompt_confirm


@click.group()
def group() -> None:
    """Project groups — add, list, remove, membership."""


@group.command("add")
@click.argument("name")
@click.pass_context
def add(ctx: click.Context, name: str) -> None:
    """Create an empty group."""
    config = load_or_exit(ctx)
    try:
        config.add_group(name)
    except RegistryError as e:
        fail(str(e))
    save(ctx, config)
    click.secho(f'✅ Group "{name}" created.', fg="green")


@group.command("list")
@click.option("--group", "group_name", default=None, help="Show only a specific group.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_groups(ctx: click.Context, group_name: str | None, as_json: bool) -> None:
    """List groups and their projects' branch mappings."""
    config = load_or_exit(ctx)
    names = [group_name] if group_name else config.group_names()

    if as_json:
        data = {
            name: [p.model_dump(mode="json") for p in config.projects_in_group(name)]
            for name in names
            if config.get_group(name) is not None
        }
        click.echo(json.dumps(data, indent=2))
        return

    if not names:
        click.secho("No groups configured.", fg="yellow")
        return

    env_names = config.environment_names()

    for name in names:
        if config.get_group(name) is None:
            click.secho(f'Group "{name}" not found.', fg="red")
            continue

        click.secho(f"\n{name}", fg="cyan", bold=True)
        projects = config.projects_in_group(name)
        if not projects:
            click.secho("   No projects", dim=True)
            continue

        echo_table(
            ["Project", "ID", *env_names],
            [
                [p.name, p.external_id, *(p.branch_for(e) or "-" for e in env_names)]
                for p in projects
            ],
        )
    click.echo()


@group.command("remove")
@click.argument("name")
@click.option("--force", is_flag=True, help="Skip confirmation.")
@click.pass_context
def remove(ctx: click.Context, name: str, force: bool) -> None:
    """Remove a group (its projects stay registered)."""
    config = load_or_exit(ctx)
    existing = config.get_group(name)
    if existing is None:
        fail(f'Group "{name}" does not exist.')

    if not force:
        count = len(existing.project_paths)
        plural = "" if count == 1 else "s"
        if not prompt_confirm(
            f'Remove group "{name}" ({count} project{plural})? This cannot be undone.',
            default=False,
        ):
            click.echo("Cancelled.")
            return

    config.remove_group(name)
    save(ctx, config)
    click.secho(f'✅ Group "{name}" removed.', fg="green")


@group.command("add-project")
@click.argument("group_name")
@click.argument("full_paths", nargs=-1, required=True)
@click.pass_context
def add_project(ctx: click.Context, group_name: str, full_paths: tuple[str, ...]) -> None:
    """Add registered projects to a group.

    Register projects first with 'husgit project add'.
    """
    config = load_or_exit(ctx)
    try:
        for path in full_paths:
            config.add_project_to_group(group_name, path)
    except RegistryError as e:
        fail(str(e))
    save(ctx, config)
    click.secho(
        f'✅ Added {len(full_paths)} project(s) to group "{group_name}".', fg="green"
    )


@group.command("remove-project")
@click.argument("group_name")
@click.argument("full_path")
@click.pass_context
def remove_project(ctx: click.Context, group_name: str, full_path: str) -> None:
    """Remove a project from a group (it stays registered)."""
    config = load_or_exit(ctx)
    try:
        config.remove_project_from_group(group_name, full_path)
    except RegistryError as e:
        fail(str(e))
    save(ctx, config)
    click.secho(f'✅ Removed "{full_path}" from group "{group_name}".', fg="green")
