"""
CLI commands for the project registry.

Projects are looked up on GitLab when added; their per-environment
branch mapping comes from ``--branch-map`` or interactive prompts.
"""

from __future__ import annotations

import json

import click

from husgit.adapters.gitlab.errors import GitlabError
from husgit.core.models.config import ProjectConfig, RegistryError
from husgit.core.models.merge_request import RemoteProject
from husgit.ui.cli.common import client_factory, echo_table, fail, load_or_exit, save
from husgit.ui.prompts import prompt_branch, prompt_confirm, prompt_input, prompt_select


def parse_branch_map(raw: str) -> dict[str, str]:
    """Decode ``--branch-map`` JSON into env → branch."""
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, ValueError) as e:
        raise click.BadParameter(f"Invalid JSON for --branch-map: {e}") from e
    if not isinstance(data, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in data.items()
    ):
        raise click.BadParameter("--branch-map must be a JSON object of strings")
    return data


@click.group()
def project() -> None:
    """Project registry — add, list, remove."""


@project.command("add")
@click.option("--project-id", default=None, help="GitLab project ID or full path.")
@click.option("--branch-map", "branch_map_json", default=None, help="Branch map as JSON.")
@click.option("--group", "group_name", default=None, help="Also add the project to this group.")
@click.option("--yes", "-y", is_flag=True, help="Add without confirmation.")
@click.pass_context
def add(
    ctx: click.Context,
    project_id: str | None,
    branch_map_json: str | None,
    group_name: str | None,
    yes: bool,
) -> None:
    """Register a GitLab project and its branch per environment."""
    config = load_or_exit(ctx)

    if not config.has_environments:
        fail('No environments configured. Run "husgit setup flow" first.')
    if group_name and config.get_group(group_name) is None:
        fail(f'Group "{group_name}" does not exist.')

    branch_map = parse_branch_map(branch_map_json) if branch_map_json else None

    try:
        client = client_factory(config)()

        remote: RemoteProject
        if project_id:
            remote = client.get_project(project_id)
        else:
            candidates = client.list_user_projects()
            term = prompt_input("Filter projects by name", "").strip().lower()
            if term:
                candidates = [p for p in candidates if term in p.name.lower()]
            if not candidates:
                fail("No matching projects.")
            chosen = prompt_select("Select a project:", [p.name for p in candidates])
            remote = next(p for p in candidates if p.name == chosen)

        click.secho(f"Found: {remote.name}", fg="green")

        if branch_map is None:
            branch_map = {}
            branches = client.search_branches(remote.full_path, "")
            for env in config.environments:
                branch_map[env.name] = prompt_branch(env.name, branches, env.default_branch)
    except GitlabError as e:
        fail(str(e))

    unknown = sorted(set(branch_map) - set(config.environment_names()))
    if unknown:
        click.secho(f"⚠️  Unknown environment(s) in branch map: {', '.join(unknown)}", fg="yellow")

    project_config = ProjectConfig(
        external_id=remote.external_id,
        name=remote.name,
        full_path=remote.full_path,
        branch_map=branch_map,
    )

    click.secho("\nProject summary:", fg="cyan")
    click.echo(f"  Name: {project_config.name}")
    click.echo(f"  ID:   {project_config.external_id}")
    click.echo(f"  Path: {project_config.full_path}")
    for env_name, branch in project_config.branch_map.items():
        click.echo(f"  {env_name} → {branch}")

    if not yes and not prompt_confirm("Add this project?"):
        click.echo("Cancelled.")
        return

    try:
        config.add_project(project_config)
        if group_name:
            config.add_project_to_group(group_name, project_config.full_path)
    except RegistryError as e:
        fail(str(e))

    save(ctx, config)
    suffix = f' and added to group "{group_name}"' if group_name else ""
    click.secho(f'✅ Project "{project_config.name}" registered{suffix}.', fg="green")


@project.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_projects(ctx: click.Context, as_json: bool) -> None:
    """List every registered project with its groups and branches."""
    config = load_or_exit(ctx)
    projects = config.all_projects()
    index = config.group_index()

    if as_json:
        data = [
            {**p.model_dump(mode="json"), "groups": index.get(p.full_path, [])}
            for p in projects
        ]
        click.echo(json.dumps(data, indent=2))
        return

    if not projects:
        click.secho("No projects configured.", fg="yellow")
        return

    env_names = config.environment_names()
    echo_table(
        ["Project", "ID", "Groups", *env_names],
        [
            [
                p.name,
                p.external_id,
                ", ".join(index.get(p.full_path, [])) or "—",
                *(p.branch_for(e) or "-" for e in env_names),
            ]
            for p in projects
        ],
    )


@project.command("remove")
@click.argument("full_path", required=False)
@click.option("--force", is_flag=True, help="Skip confirmation.")
@click.pass_context
def remove(ctx: click.Context, full_path: str | None, force: bool) -> None:
    """Remove a project from the registry and from all groups."""
    config = load_or_exit(ctx)
    projects = config.all_projects()

    if not projects:
        click.secho("No projects configured.", fg="yellow")
        return

    if full_path is None:
        full_path = prompt_select(
            "Select project to remove:", [p.full_path for p in projects]
        )

    existing = config.get_project(full_path)
    if existing is None:
        fail(f'Project "{full_path}" not found.')

    if not force and not prompt_confirm(
        f'Remove project "{existing.name}" from registry and all groups? This cannot be undone.',
        default=False,
    ):
        click.echo("Cancelled.")
        return

    config.remove_project(full_path)
    save(ctx, config)
    click.secho(f'✅ Project "{existing.name}" removed.', fg="green")
