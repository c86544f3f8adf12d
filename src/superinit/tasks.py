"""
superinit.tasks - Development Task Runner
=========================================

Named wrappers around the tools used to develop superinit itself. Each task
is a row in ``TASKS``: a list of commands, optionally preceded by other
tasks and/or followed by a Python handler for the few tasks that need a
decision (which opener to use, which tools are missing).

Usage
-----
    $ superinit task --list
    $ superinit task lint test
    $ superinit task check

Tasks
-----
- format, lint, test, docs, open-docs, clean: day-to-day development
- check: format + lint + test + docs
- install-deps: editable install with the dev extra
- pipx-installs, winget-installs, brew-installs, install-all: tooling
- validate-dependencies: report tools missing from PATH
- watch-tests: rerun tests when a source file changes (needs entr)
- update-tools: upgrade pipx-managed tools
"""

from __future__ import annotations

import platform
import re
import shutil
import sys
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from rich.console import Console

from superinit.errors import CommandError, PreconditionError, UnknownTaskError
from superinit.runner import CommandRunner


@dataclass
class TaskContext:
    """Where tasks run and how they report."""

    root: Path
    runner: CommandRunner
    console: Console
    system: str = field(default_factory=platform.system)


@dataclass(frozen=True)
class Task:
    """
    One entry of the task table.

    Attributes
    ----------
    description : str
        Shown by ``superinit task --list``.

    commands : tuple[tuple[str, ...], ...]
        Run in order from the repository root.

    depends : tuple[str, ...]
        Tasks run, in order, before this one.

    handler : Callable[[TaskContext], None] | None
        Python step run after ``commands``.

    tolerate_failures : bool
        Report a failing command and carry on instead of aborting.
    """

    description: str
    commands: tuple[tuple[str, ...], ...] = ()
    depends: tuple[str, ...] = ()
    handler: Callable[[TaskContext], None] | None = None
    tolerate_failures: bool = False


# =============================================================================
# Handlers
# =============================================================================

DOCS_DIR = "docs"

REQUIRED_TOOLS = ("git", "poetry", "pre-commit", "ruff", "pytest", "pdoc")

CLEAN_TARGETS = (DOCS_DIR, ".pytest_cache", ".ruff_cache")


def open_command_for(system: str) -> list[str] | None:
    """
    The file-opener command for an OS identifier from ``platform.system()``.

    Returns None on anything other than Linux, macOS or Windows-like
    environments (MinGW, MSYS, Cygwin).
    """
    if system == "Linux":
        return ["xdg-open"]
    if system == "Darwin":
        return ["open"]
    if re.search(r"mingw|msys|cygwin|windows", system, re.IGNORECASE):
        return ["cmd", "/c", "start", ""]
    return None


def open_docs(ctx: TaskContext) -> None:
    opener = open_command_for(ctx.system)
    if opener is None:
        ctx.console.print("Unsupported OS")
        return

    index = ctx.root / DOCS_DIR / "index.html"
    if not index.is_file():
        raise PreconditionError(f"{index} not found; run 'superinit task docs' first")
    ctx.runner.run([*opener, str(index)], cwd=ctx.root)


def validate_dependencies(ctx: TaskContext) -> None:
    ctx.console.print("Validating if all dependencies are installed correctly...")
    for tool in REQUIRED_TOOLS:
        location = shutil.which(tool)
        if location:
            ctx.console.print(f"  [green]✓[/] {tool}: {location}")
        else:
            ctx.console.print(f"  [yellow]⚠[/] {tool} not installed")


def clean(ctx: TaskContext) -> None:
    for name in CLEAN_TARGETS:
        target = ctx.root / name
        if target.is_dir():
            shutil.rmtree(target)
            ctx.console.print(f"  Removed {name}/")


# =============================================================================
# Task Table
# =============================================================================

TASKS: dict[str, Task] = {
    "install-deps": Task(
        description="Install superinit in editable mode with dev tools",
        commands=((sys.executable, "-m", "pip", "install", "-e", ".[dev]"),),
    ),
    "pipx-installs": Task(
        description="Install command-line tools with pipx",
        commands=(
            ("pipx", "install", "poetry"),
            ("pipx", "install", "pre-commit"),
            ("pipx", "install", "ruff"),
            ("pipx", "install", "pdoc"),
        ),
        tolerate_failures=True,
    ),
    "winget-installs": Task(
        description="Install git and Python with winget (Windows)",
        commands=(
            ("winget", "install", "--id", "Git.Git"),
            ("winget", "install", "--id", "Python.Python.3.12"),
        ),
        tolerate_failures=True,
    ),
    "brew-installs": Task(
        description="Install entr with Homebrew (macOS/Linux)",
        commands=(("brew", "install", "entr"),),
        tolerate_failures=True,
    ),
    "install-all": Task(
        description="Install every tool for every platform",
        depends=("pipx-installs", "winget-installs", "brew-installs"),
    ),
    "format": Task(
        description="Format the sources with ruff",
        commands=(("ruff", "format", "src", "tests"),),
    ),
    "lint": Task(
        description="Lint the sources with ruff",
        commands=(("ruff", "check", "src", "tests"),),
    ),
    "test": Task(
        description="Run the test suite",
        commands=(("pytest",),),
    ),
    "clean": Task(
        description="Remove generated docs and tool caches",
        handler=clean,
    ),
    "docs": Task(
        description="Generate HTML API docs into docs/",
        commands=(("pdoc", "superinit", "-o", DOCS_DIR),),
    ),
    "open-docs": Task(
        description="Open the generated docs in a browser",
        handler=open_docs,
    ),
    "check": Task(
        description="Format, lint, test and build docs",
        depends=("format", "lint", "test", "docs"),
    ),
    "validate-dependencies": Task(
        description="Report tools missing from PATH",
        handler=validate_dependencies,
    ),
    "watch-tests": Task(
        description="Rerun tests whenever a Python file changes (needs entr)",
        commands=(
            ("sh", "-c", "find src tests -name '*.py' | entr -c superinit task test"),
        ),
    ),
    "update-tools": Task(
        description="Upgrade pipx-managed tools",
        commands=(
            ("pipx", "upgrade", "poetry"),
            ("pipx", "upgrade", "pre-commit"),
            ("pipx", "upgrade", "ruff"),
            ("pipx", "upgrade", "pdoc"),
        ),
        tolerate_failures=True,
    ),
}


# =============================================================================
# Dispatch
# =============================================================================

def run_task(name: str, ctx: TaskContext, tasks: dict[str, Task] = TASKS) -> None:
    """
    Run a task, its dependencies first.

    Raises
    ------
    UnknownTaskError
        If ``name`` (or one of its dependencies) is not in ``tasks``.
    CommandError
        If a command fails in a task that does not tolerate failures.
    """
    task = tasks.get(name)
    if task is None:
        raise UnknownTaskError(name, list(tasks))

    for dependency in task.depends:
        run_task(dependency, ctx, tasks)

    ctx.console.print(f"[bold]▶ {name}[/] [dim]{task.description}[/]")
    for command in task.commands:
        try:
            ctx.runner.run(command, cwd=ctx.root)
        except CommandError as e:
            if not task.tolerate_failures:
                raise
            ctx.console.print(f"  [yellow]⚠[/] {e}")

    if task.handler is not None:
        task.handler(ctx)
