"""
Interactive prompts — used when an argument was not given on the command line.

Built on ``click.prompt`` / ``click.confirm`` so CliRunner can feed
answers through ``input=`` in tests.
"""

from __future__ import annotations

from collections.abc import Sequence

import click

from husgit.core.models.config import HusgitConfig, ProjectConfig


def prompt_input(message: str, default: str | None = None) -> str:
    return click.prompt(message, default=default, show_default=default is not None)


def prompt_confirm(message: str, default: bool = True) -> bool:
    return click.confirm(message, default=default)


def prompt_select(message: str, choices: Sequence[str]) -> str:
    """Pick one value from a numbered list."""
    if not choices:
        raise click.UsageError(f"{message} — nothing to choose from")

    click.echo(message)
    for i, choice in enumerate(choices, start=1):
        click.echo(f"  {i}. {choice}")
    index = click.prompt("Choice", type=click.IntRange(1, len(choices)), default=1)
    return choices[index - 1]


def prompt_branch(
    env_name: str,
    branches: Sequence[str],
    default: str | None = None,
) -> str:
    """Ask for the branch of one environment, listing known candidates."""
    if branches:
        click.echo(f"  Branches: {', '.join(branches)}")
    value = click.prompt(
        f'Branch for "{env_name}" environment',
        default=default,
        show_default=default is not None,
    )
    return value.strip()


def parse_project_tokens(
    config: HusgitConfig,
    listed: Sequence[ProjectConfig],
    answer: str,
) -> list[ProjectConfig]:
    """Turn '1,3,@backend' into projects (numbers index ``listed``).

    ``all`` selects every listed project. Order follows the answer,
    duplicates are dropped.
    """
    tokens = [t.strip() for t in answer.split(",") if t.strip()]
    selected: list[ProjectConfig] = []

    def add(project: ProjectConfig) -> None:
        if project not in selected:
            selected.append(project)

    for token in tokens:
        if token.lower() == "all":
            for project in listed:
                add(project)
        elif token.startswith("@"):
            group = token[1:]
            if config.get_group(group) is None:
                raise click.BadParameter(f'Group "{group}" not found')
            for project in config.projects_in_group(group):
                add(project)
        elif token.isdigit() and 1 <= int(token) <= len(listed):
            add(listed[int(token) - 1])
        else:
            raise click.BadParameter(f"Invalid selection: {token}")

    return selected


def prompt_project_multi_select(config: HusgitConfig) -> list[ProjectConfig]:
    """Show groups then ungrouped projects; return the chosen ones."""
    listed: list[ProjectConfig] = []

    for name in config.group_names():
        members = config.projects_in_group(name)
        if not members:
            continue
        click.secho(f"── {name} (@{name}) ──", fg="cyan")
        for project in members:
            if project not in listed:
                listed.append(project)
            click.echo(f"  {listed.index(project) + 1}. {project.name}")

    ungrouped = config.ungrouped_projects()
    if ungrouped:
        click.secho("── Ungrouped ──", fg="cyan")
        for project in ungrouped:
            listed.append(project)
            click.echo(f"  {len(listed)}. {project.name}")

    if not listed:
        return []

    answer = click.prompt("Select projects (e.g. 1,3,@group or all)")
    return parse_project_tokens(config, listed, answer)
