"""
husgit — CLI entrypoint.

Usage:
    husgit --help
    husgit setup flow
    husgit release develop --group backend
    husgit backport production --all --dry-run
    husgit status --direction release
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from husgit import __version__
from husgit.core.config.loader import default_config_path
from husgit.core.engine.resolver import ResolutionError, resolve_target, source_candidates
from husgit.core.models.flow import Direction
from husgit.core.observability.logging_config import (
    LOG_FILE_ENV_VAR,
    LOG_FILE_LEVEL_ENV_VAR,
    LOG_LEVEL_ENV_VAR,
    resolve_level,
    setup_logging,
)
from husgit.ui.cli.common import client_factory, echo_table, fail, load_or_exit


@click.group()
@click.version_option(version=__version__, prog_name="husgit")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to config.yml (default: $HUSGIT_CONFIG or ~/.husgit/config.yml).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: Path | None,
) -> None:
    """husgit — orchestrate GitLab merge requests across environments."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = config_path or default_config_path(os.environ)

    setup_logging(
        level=resolve_level(debug, verbose, quiet, os.environ.get(LOG_LEVEL_ENV_VAR)),
        log_file=os.environ.get(LOG_FILE_ENV_VAR),
        log_file_level=os.environ.get(LOG_FILE_LEVEL_ENV_VAR),
        quiet_third_party=not debug,
    )


# ── Release / backport ──────────────────────────────────────────────


def _flow_options(fn):
    """Options shared by release and backport."""
    decorators = [
        click.argument("source_env", required=False),
        click.option("--group", "group_name", default=None, help="Target a specific group."),
        click.option("--all", "all_projects", is_flag=True, help="Target all projects."),
        click.option("--projects", default=None, help="Comma-separated project full paths."),
        click.option("--title", default=None, help="MR title."),
        click.option("--description", default=None, help="MR description (new MRs only)."),
        click.option("--dry-run", is_flag=True, help="Show what would be created without creating MRs."),
        click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON."),
        click.option("--mock", is_flag=True, help="Use the in-memory mock client (no GitLab calls)."),
        click.pass_context,
    ]
    for decorator in reversed(decorators):
        fn = decorator(fn)
    return fn


def _run_flow_command(
    ctx: click.Context,
    direction: Direction,
    source_env: str | None,
    group_name: str | None,
    all_projects: bool,
    projects: str | None,
    title: str | None,
    description: str | None,
    dry_run: bool,
    as_json: bool,
    mock: bool,
) -> None:
    from husgit.core.use_cases.flow import ProjectSelection, default_title, run_flow
    from husgit.ui.prompts import prompt_input, prompt_project_multi_select, prompt_select

    if sum(bool(x) for x in (group_name, all_projects, projects)) > 1:
        raise click.UsageError("Use only one of --group, --all and --projects.")

    config = load_or_exit(ctx)
    if not config.has_environments:
        fail('No environments configured. Run "husgit setup flow" first.')

    # ── Source environment ─────────────────────────────────────
    if source_env is None:
        candidates = source_candidates(config.environments, direction)
        if not candidates:
            fail(f"Not enough environments to {direction.verb}.")
        source_env = prompt_select("Source environment:", [e.name for e in candidates])

    try:
        _source, target = resolve_target(config.environments, source_env, direction)
    except ResolutionError as e:
        fail(str(e))

    # ── Project selection ──────────────────────────────────────
    selection = ProjectSelection(
        group=group_name,
        all_projects=all_projects,
        paths=[p.strip() for p in projects.split(",") if p.strip()] if projects else [],
    )
    if selection.is_empty:
        chosen = prompt_project_multi_select(config)
        if not chosen:
            click.secho("No projects selected.", fg="yellow")
            return
        selection = ProjectSelection(paths=[p.full_path for p in chosen])

    if title is None and not as_json:
        title = prompt_input("MR title", default_title(direction, source_env, target.name))

    result = run_flow(
        config,
        source_env,
        direction,
        selection,
        client_factory(config, mock=mock),
        title=title,
        description=description,
        dry_run=dry_run,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        if result.error or (result.report and result.report.failed > 0):
            sys.exit(1)
        return

    if result.error:
        fail(result.error)

    label = "Release" if direction is Direction.RELEASE else "Backport"
    count = len(result.pairs)
    click.secho(
        f"\n⚡ {label}: {result.source_env} → {result.target_env} "
        f"({count} MR{'' if count == 1 else 's'})",
        fg="cyan",
        bold=True,
    )
    echo_table(
        ["Project", "Source Branch", "Target Branch"],
        [[p.project.name, p.source_branch, p.target_branch] for p in result.pairs],
    )

    if dry_run:
        click.secho("\n--dry-run: No MRs created.", fg="yellow")
        return

    report = result.report
    assert report is not None  # set whenever not dry-run and no error

    click.echo()
    for outcome in report.outcomes:
        if outcome.status.value == "created":
            click.secho("   ✓ Created ", fg="green", nl=False)
        elif outcome.status.value == "updated":
            click.secho("   ↻ Updated ", fg="yellow", nl=False)
        else:
            click.secho("   ✗ Failed  ", fg="red", nl=False)
        click.echo(f"{outcome.project.name}  {outcome.merge_request_url or '-'}")
        if outcome.error_detail:
            click.echo(f"     │ {outcome.error_detail}")

    click.echo()
    click.secho(f"   {report.created} created", fg="green", nl=False)
    click.echo(", ", nl=False)
    click.secho(f"{report.updated} updated", fg="yellow", nl=False)
    click.echo(", ", nl=False)
    click.secho(f"{report.failed} failed", fg="red")
    click.echo()

    if report.failed > 0:
        sys.exit(1)


@cli.command()
@_flow_options
def release(ctx: click.Context, **kwargs) -> None:
    """Create merge requests to promote to the next environment."""
    _run_flow_command(ctx, Direction.RELEASE, **kwargs)


@cli.command()
@_flow_options
def backport(ctx: click.Context, **kwargs) -> None:
    """Create merge requests to backport to the previous environment."""
    _run_flow_command(ctx, Direction.BACKPORT, **kwargs)


# ── Status ──────────────────────────────────────────────────────────


@cli.command()
@click.option("--group", "group_name", default=None, help="Show only a specific group.")
@click.option(
    "--direction",
    type=click.Choice(["release", "backport", "promote", "demote"], case_sensitive=False),
    default=None,
    help="Only one direction.",
)
@click.option("--env", "source_env", default=None, help="Only pairs leaving this environment.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--mock", is_flag=True, help="Use the in-memory mock client (no GitLab calls).")
@click.pass_context
def status(
    ctx: click.Context,
    group_name: str | None,
    direction: str | None,
    source_env: str | None,
    as_json: bool,
    mock: bool,
) -> None:
    """Show open MRs between adjacent environments."""
    from husgit.core.use_cases.status import get_status

    config = load_or_exit(ctx)
    result = get_status(
        config,
        client_factory(config, mock=mock),
        group=group_name,
        direction=Direction.parse(direction) if direction else None,
        source_env=source_env,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        if result.error:
            sys.exit(1)
        return

    if result.error:
        fail(result.error)

    if result.records:
        click.secho(f"\n{len(result.records)} open MR(s):", fg="cyan", bold=True)
        echo_table(
            ["Groups", "Project", "Direction", "Source", "Target", "State", "URL"],
            [
                [
                    ", ".join(r.group_names) or "—",
                    r.project.name,
                    f"{r.source_env} → {r.target_env}",
                    r.source_branch,
                    r.target_branch,
                    r.state or "-",
                    r.merge_request_url or "-",
                ]
                for r in result.records
            ],
        )
    else:
        click.secho("\nNo open merge requests between environments.", fg="green")

    if result.failures:
        click.echo()
        click.secho(f"⚠️  {len(result.failures)} lookup(s) failed:", fg="yellow")
        for failure in result.failures:
            click.echo(
                f"   • {failure.project.full_path} ({failure.pair.label}): {failure.error}"
            )
    click.echo()


@cli.command()
@click.pass_context
def whoami(ctx: click.Context) -> None:
    """Check the GitLab token and show who it belongs to."""
    from husgit.adapters.gitlab.errors import GitlabError

    config = load_or_exit(ctx)
    try:
        name = client_factory(config)().current_user()
    except GitlabError as e:
        fail(str(e))
    click.secho(f"✅ Authenticated as {name}", fg="green")


# ── Register sub-command groups from husgit/ui/cli/ ─────────────────

from husgit.ui.cli.config import config  # noqa: E402
from husgit.ui.cli.group import group  # noqa: E402
from husgit.ui.cli.project import project  # noqa: E402
from husgit.ui.cli.setup import setup  # noqa: E402

cli.add_command(setup)
cli.add_command(group)
cli.add_command(project)
cli.add_command(config)


if __name__ == "__main__":
    cli()
