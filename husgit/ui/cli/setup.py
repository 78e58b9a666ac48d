"""
CLI commands for setting up the environment chain.
"""

from __future__ import annotations

import click

from husgit.core.models.config import RegistryError
from husgit.core.models.flow import Environment
from husgit.ui.cli.common import fail, load_or_exit, save
from husgit.ui.prompts import prompt_confirm, prompt_input

_DEFAULT_NAMES = ["develop", "staging", "production"]


def parse_env_option(value: str, order: int) -> Environment:
    """'staging' or 'staging:release/staging' → Environment."""
    name, _, branch = value.partition(":")
    name = name.strip()
    if not name:
        raise click.BadParameter(f"Invalid environment: {value!r}")
    return Environment(name=name, order=order, default_branch=branch.strip() or None)


def _echo_chain(environments: list[Environment]) -> None:
    for env in environments:
        note = f" (default branch: {env.default_branch})" if env.default_branch else ""
        click.echo(f"  {env.order + 1}. {env.name}", nl=False)
        click.secho(note, dim=True)
    click.echo("  " + " → ".join(e.name for e in environments))


@click.group()
def setup() -> None:
    """Configure the environment chain."""


@setup.command("flow")
@click.option(
    "--env",
    "env_options",
    multiple=True,
    help="Environment as NAME or NAME:DEFAULT_BRANCH, in chain order. Repeat per env.",
)
@click.option("--yes", "-y", is_flag=True, help="Save without confirmation.")
@click.pass_context
def flow(ctx: click.Context, env_options: tuple[str, ...], yes: bool) -> None:
    """Define the ordered environments (develop → staging → production)."""
    config = load_or_exit(ctx)

    if config.environments and not yes:
        click.secho("\nCurrent environments:", fg="yellow")
        _echo_chain(config.environments)
        if not prompt_confirm("Overwrite existing environments?", default=False):
            click.echo("Setup cancelled.")
            return

    if env_options:
        environments = [parse_env_option(value, i) for i, value in enumerate(env_options)]
    else:
        count_str = prompt_input("How many environments?", "3")
        try:
            count = int(count_str)
        except ValueError:
            count = 0
        if count < 2:
            fail("Need at least 2 environments.")

        environments = []
        for i in range(count):
            default_name = _DEFAULT_NAMES[i] if i < len(_DEFAULT_NAMES) else None
            name = prompt_input(f"Environment {i + 1} name", default_name).strip()
            if not name:
                fail("Environment name cannot be empty.")
            branch = prompt_input(
                f'Default branch for "{name}" (optional, "-" to skip)', name
            ).strip()
            environments.append(
                Environment(name=name, order=i, default_branch=None if branch in ("", "-") else branch)
            )

    if len(environments) < 2:
        fail("Need at least 2 environments.")

    click.secho("\nFlow chain:", fg="cyan")
    _echo_chain(environments)

    if not yes and not prompt_confirm("Save this flow?"):
        click.echo("Setup cancelled.")
        return

    try:
        config.set_environments(environments)
    except RegistryError as e:
        fail(str(e))

    save(ctx, config)
    click.secho("✅ Environments saved.", fg="green")
