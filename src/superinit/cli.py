"""
superinit.cli - Command Line Interface
======================================

This module provides the command-line interface for superinit using Typer.

Architecture
------------
    app (main entry point)
    ├── (no command) - Provision the workspace
    └── task         - Run development tasks

Running ``superinit`` with no arguments provisions ``./some_app`` with the
default configuration. Every option is optional.

Usage Examples
--------------
    $ superinit
    $ superinit --dry-run
    $ superinit --config superinit.toml --dir ~/work
    $ superinit --interactive
    $ superinit task --list
    $ superinit task check

Exit Codes
----------
0 on success. When an external tool fails, superinit exits with that tool's
exit status; the tool's own output is the last thing on screen. Other errors
(bad configuration, missing files) exit with 1.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import questionary
import typer
from pydantic import ValidationError
from rich import print as rprint
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from superinit import __version__
from superinit.errors import CommandError, SuperinitError
from superinit.models import ProvisionConfig, StepStatus
from superinit.provisioner import plan_provisioning, provision
from superinit.runner import EXIT_NOT_FOUND, CommandRunner
from superinit.tasks import TASKS, TaskContext, run_task


logger = logging.getLogger(__name__)


# =============================================================================
# CLI Application Setup
# =============================================================================

app = typer.Typer(
    name="superinit",
    help="Bootstrap a Django REST API project with Poetry, PostgreSQL and pre-commit.",
    rich_markup_mode="rich",
    add_completion=False,
)

# Console for rich output
console = Console()


def version_callback(value: bool) -> None:
    """Display version information and exit."""
    if value:
        console.print(Panel(
            f"[bold green]superinit[/] version [cyan]{__version__}[/]\n\n"
            f"[dim]Django REST API project bootstrapper[/]\n"
            f"[dim]Toolchain: git + poetry + django + pre-commit[/]",
            border_style="green",
        ))
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    """Route log records through rich; DEBUG shows every external command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Path | None, base_dir: Path | None) -> ProvisionConfig:
    """
    Build the configuration from an optional TOML file and ``--dir``.

    Raises
    ------
    typer.Exit
        With code 1 if the file is unreadable or has invalid values.
    """
    overrides: dict[str, object] = {}
    if base_dir is not None:
        overrides["base_dir"] = base_dir.resolve()

    try:
        if config_path is not None:
            return ProvisionConfig.from_toml(config_path, **overrides)
        return ProvisionConfig(**overrides)
    except FileNotFoundError as e:
        rprint(f"[red]Error:[/] {escape(str(e))}")
        raise typer.Exit(1)
    except (ValidationError, ValueError) as e:
        rprint(f"[red]Error:[/] Invalid configuration: {escape(str(e))}")
        raise typer.Exit(1)


def prompt_names(config: ProvisionConfig) -> ProvisionConfig:
    """
    Ask for the workspace, Django project and app names.

    The current values are offered as defaults; the answers are validated
    by rebuilding the model.
    """
    answers: dict[str, str] = {}
    questions = [
        ("project_name", "Workspace / Poetry project name:"),
        ("django_project_name", "Django project name:"),
        ("app_name", "Django app name:"),
    ]
    for field_name, prompt in questions:
        answer = questionary.text(prompt, default=getattr(config, field_name)).ask()
        if answer is None:
            raise typer.Abort()
        answers[field_name] = answer

    try:
        return ProvisionConfig(**{**config.model_dump(), **answers})
    except ValidationError as e:
        rprint(f"[red]Error:[/] {escape(str(e))}")
        raise typer.Exit(1)


def show_plan(config: ProvisionConfig) -> None:
    """Print which steps are done and which would run."""
    table = Table(title=f"Provisioning plan for {config.workspace}", show_header=True)
    table.add_column("#", style="dim", width=3)
    table.add_column("Step", style="cyan")
    table.add_column("Status")
    table.add_column("Detail", style="dim")

    for i, step in enumerate(plan_provisioning(config), 1):
        status = (
            "[green]done[/]" if step.status == StepStatus.DONE else "[yellow]pending[/]"
        )
        table.add_row(str(i), step.name, status, step.message)

    console.print(table)


# =============================================================================
# Main Application Callback
# =============================================================================

@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="TOML file overriding the default configuration",
            dir_okay=False,
        ),
    ] = None,
    base_dir: Annotated[
        Path | None,
        typer.Option(
            "--dir",
            "-C",
            help="Directory in which to create the workspace (default: current directory)",
            file_okay=False,
        ),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            help="Show which steps would run without changing anything",
        ),
    ] = False,
    interactive: Annotated[
        bool,
        typer.Option(
            "--interactive",
            "-i",
            help="Prompt for project and app names",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Log every external command",
        ),
    ] = False,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """
    [bold]superinit[/] - Django REST API project bootstrapper.

    With no command, provisions the workspace: git, Poetry, Django project
    and app, PostgreSQL settings, lint/format config, pre-commit hooks and
    an initial commit. Completed steps are skipped, so rerun after fixing
    any failure.
    """
    configure_logging(verbose)
    if ctx.invoked_subcommand is not None:
        return

    config = load_config(config_path, base_dir)
    if interactive:
        config = prompt_names(config)

    if dry_run:
        show_plan(config)
        return

    if interactive and not questionary.confirm(
        f"Provision {config.workspace}?", default=True
    ).ask():
        raise typer.Abort()

    try:
        provision(config, output=console)
    except CommandError as e:
        logger.debug("%s", e)
        # The tool already printed its own diagnostic unless it never started
        if e.returncode == EXIT_NOT_FOUND:
            rprint(f"[red]Error:[/] {e.command[0]}: command not found")
        raise typer.Exit(e.returncode)
    except SuperinitError as e:
        rprint(f"[red]Error:[/] {escape(str(e))}")
        raise typer.Exit(1)


# =============================================================================
# Task Command
# =============================================================================

@app.command()
def task(
    names: Annotated[
        list[str] | None,
        typer.Argument(help="Tasks to run, in order"),
    ] = None,
    list_tasks: Annotated[
        bool,
        typer.Option(
            "--list",
            "-l",
            help="List available tasks",
        ),
    ] = False,
) -> None:
    """
    Run development tasks (lint, test, docs, ...).

    [bold]Examples:[/]

        superinit task --list
        superinit task lint test
        superinit task check
    """
    if list_tasks or not names:
        table = Table(title="Tasks", show_header=True)
        table.add_column("Task", style="cyan")
        table.add_column("Description")
        table.add_column("Runs first", style="dim")
        for name, entry in TASKS.items():
            table.add_row(name, entry.description, ", ".join(entry.depends))
        console.print(table)
        return

    unknown = [name for name in names if name not in TASKS]
    if unknown:
        rprint(f"[red]Error:[/] Unknown task '{unknown[0]}'")
        rprint(f"[dim]Valid tasks: {', '.join(TASKS)}[/]")
        raise typer.Exit(1)

    context = TaskContext(root=Path.cwd(), runner=CommandRunner(), console=console)
    try:
        for name in names:
            run_task(name, context)
    except CommandError as e:
        logger.debug("%s", e)
        if e.returncode == EXIT_NOT_FOUND:
            rprint(f"[red]Error:[/] {e.command[0]}: command not found")
        raise typer.Exit(e.returncode)
    except SuperinitError as e:
        rprint(f"[red]Error:[/] {escape(str(e))}")
        raise typer.Exit(1)


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    app()
