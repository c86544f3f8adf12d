"""
superinit.provisioner - Provisioning Pipeline
=============================================

This module runs the step table from ``steps.py`` against a workspace.

Architecture
------------
The pipeline is strictly linear:

    for each step, in order:
        completion predicate holds  -> print "already done", skip
        otherwise                   -> print start message, run action

The pipeline is designed to be:
- **Idempotent**: a rerun skips every step whose marker exists
- **Fail-fast**: the first exception stops the run; nothing is rolled back
- **Resumable**: after fixing the cause, rerunning picks up at the failed step

Usage Example
-------------
>>> from superinit.models import ProvisionConfig
>>> from superinit.provisioner import provision
>>> result = provision(ProvisionConfig(project_name="blog"))
>>> result.ran
['repository-init', 'project-init', ...]
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from rich.console import Console
from rich.panel import Panel

from superinit.errors import SuperinitError
from superinit.models import ProvisionConfig, ProvisionResult, StepResult, StepStatus
from superinit.runner import CommandRunner
from superinit.steps import STEPS, Step, StepContext


logger = logging.getLogger(__name__)

# Console for rich output
console = Console()


class Provisioner:
    """
    Run a sequence of steps against one workspace.

    Parameters
    ----------
    config : ProvisionConfig
        What to build and where.

    runner : CommandRunner | None
        Executes external commands. Defaults to a real subprocess runner.

    output : Console | None
        Where progress is printed. Defaults to the module console.

    steps : Sequence[Step]
        The step table; ``STEPS`` unless a test substitutes its own.

    Attributes
    ----------
    result : ProvisionResult
        Filled in as steps complete. After a failure it still holds every
        step up to and including the failed one.
    """

    def __init__(
        self,
        config: ProvisionConfig,
        runner: CommandRunner | None = None,
        output: Console | None = None,
        steps: Sequence[Step] = STEPS,
    ) -> None:
        self.config = config
        self.steps = tuple(steps)
        self.console = output or console
        self.context = StepContext(
            config=config,
            runner=runner or CommandRunner(),
            console=self.console,
        )
        self.result = ProvisionResult(success=False, workspace=config.workspace)

    def plan(self) -> list[StepResult]:
        """
        Evaluate every completion predicate without running any action.

        Predicates only read the workspace (and probe ``git rev-parse``),
        so this is safe to call at any point.
        """
        planned: list[StepResult] = []
        for step in self.steps:
            if step.is_done(self.context):
                planned.append(StepResult(step.name, StepStatus.DONE, step.done_message))
            else:
                planned.append(StepResult(step.name, StepStatus.PENDING, step.start_message))
        return planned

    def run(self) -> ProvisionResult:
        """
        Run every step in order.

        Returns
        -------
        ProvisionResult
            With ``success=True`` and one entry per step.

        Raises
        ------
        SuperinitError
            Whatever the failing step raised, typically ``CommandError``.
        """
        self.console.print()
        self.console.print(
            Panel(
                f"[bold blue]Provisioning:[/] [green]{self.config.project_name}[/]\n"
                f"[dim]Django project: {self.config.django_project_name} | "
                f"App: {self.config.app_name} | "
                f"Database: {self.config.database.engine}[/]",
                title="[bold]superinit[/]",
                border_style="blue",
            )
        )
        self.console.print()

        for step in self.steps:
            self._run_step(step)

        self.result.success = True
        self.console.print()
        self.console.print(
            Panel(
                f"[bold green]All done![/] Your Django REST API project "
                f"'{self.config.project_name}' has been successfully set up.\n\n"
                f"[dim]Location:[/] {self.config.workspace}",
                title="[bold green]Success[/]",
                border_style="green",
            )
        )
        return self.result

    def _run_step(self, step: Step) -> None:
        if step.is_done(self.context):
            logger.debug("Skipping %s: completion marker present", step.name)
            self.console.print(f"[dim]{step.done_message}[/]")
            self.result.steps.append(
                StepResult(step.name, StepStatus.SKIPPED, step.done_message)
            )
            return

        logger.debug("Running %s", step.name)
        self.console.print(f"[bold]{step.start_message}[/]")
        try:
            step.action(self.context)
        except SuperinitError as e:
            logger.debug("Step %s failed: %s", step.name, e)
            self.result.steps.append(StepResult(step.name, StepStatus.FAILED, str(e)))
            raise

        self.result.steps.append(StepResult(step.name, StepStatus.RAN, step.start_message))


def provision(
    config: ProvisionConfig,
    *,
    runner: CommandRunner | None = None,
    output: Console | None = None,
) -> ProvisionResult:
    """
    Provision the workspace described by ``config``.

    This is the main entry point. See ``Provisioner.run`` for the failure
    behaviour.
    """
    return Provisioner(config, runner=runner, output=output).run()


def plan_provisioning(
    config: ProvisionConfig,
    *,
    runner: CommandRunner | None = None,
) -> list[StepResult]:
    """Report which steps are already done and which would run."""
    return Provisioner(config, runner=runner).plan()
