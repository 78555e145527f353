"""Sequential task execution with status reporting.

Post-resolution work (fetching a remote template, copying, git init,
dependency installation) runs as an ordered list of :class:`Task` objects.
Every task receives the same explicit :class:`TaskContext` and returns a
:class:`TaskOutcome`; the runner inspects outcomes to decide what runs next:

1. A task whose ``enabled`` predicate is false is recorded as ``disabled``.
2. A task that raises is recorded as ``failed`` and every remaining task is
   recorded as ``skipped``.
3. The primary package-manager task never fails: it flips
   ``ctx.use_fallback`` and reports ``skipped``, which enables the fallback
   package-manager task.
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from rich.markup import escape
from rich.tree import Tree

from relax.utils import console, format_duration, run_command


class TaskStatus(str, Enum):
    """Final state of a task."""

    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"
    DISABLED = "disabled"


@dataclass
class TaskOutcome:
    """Result of one task."""

    title: str
    status: TaskStatus
    detail: str = ""
    duration_seconds: float = 0.0


@dataclass
class TaskContext:
    """State shared, explicitly, between the tasks of one run."""

    cwd: Path
    use_fallback: bool = False
    copied_files: int = 0


class TaskError(Exception):
    """Raised by a task action to report a failure."""

    def __init__(self, message: str, command: str = "", stderr: str = "") -> None:
        self.command = command
        self.stderr = stderr
        super().__init__(message)


TaskAction = Callable[[TaskContext], Awaitable["TaskOutcome | None"]]


@dataclass
class Task:
    """A titled step; ``action`` returning ``None`` means success."""

    title: str
    action: TaskAction
    enabled: Callable[[TaskContext], bool] | None = None


@dataclass
class TaskReport:
    """Ordered outcomes of a task run."""

    outcomes: list[TaskOutcome] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not any(o.status == TaskStatus.FAILED for o in self.outcomes)

    @property
    def failed(self) -> list[TaskOutcome]:
        return [o for o in self.outcomes if o.status == TaskStatus.FAILED]

    def status_of(self, title: str) -> TaskStatus | None:
        for outcome in self.outcomes:
            if outcome.title == title:
                return outcome.status
        return None


class TaskRunner:
    """Runs tasks one after another."""

    async def run(self, tasks: list[Task], ctx: TaskContext) -> TaskReport:
        report = TaskReport()
        halted_by: str | None = None

        for task in tasks:
            if halted_by is not None:
                report.outcomes.append(
                    TaskOutcome(task.title, TaskStatus.SKIPPED, f"'{halted_by}' failed")
                )
                continue

            if task.enabled is not None and not task.enabled(ctx):
                report.outcomes.append(TaskOutcome(task.title, TaskStatus.DISABLED))
                continue

            console.print(f"[cyan]>[/cyan] {escape(task.title)}")
            start = time.monotonic()
            try:
                outcome = await task.action(ctx)
            except Exception as exc:
                outcome = TaskOutcome(task.title, TaskStatus.FAILED, str(exc))
                halted_by = task.title
            if outcome is None:
                outcome = TaskOutcome(task.title, TaskStatus.SUCCESS)
            outcome.duration_seconds = time.monotonic() - start
            report.outcomes.append(outcome)

        return report


# ---------------------------------------------------------------------------
# Built-in tasks
# ---------------------------------------------------------------------------


def git_init_task(cwd: Path, timeout: int = 120) -> Task:
    """``git init`` + ``git add --all`` + ``git status`` in *cwd*."""

    async def _action(ctx: TaskContext) -> None:
        for cmd in (["git", "init"], ["git", "add", "--all"], ["git", "status"]):
            returncode, stdout, stderr = await run_command(cmd, cwd=cwd, timeout=timeout)
            if returncode != 0:
                cmd_str = " ".join(cmd)
                raise TaskError(
                    f"{cmd_str} failed (exit {returncode}): {stderr}",
                    command=cmd_str,
                    stderr=stderr,
                )
            if stdout:
                console.print(stdout, markup=False, highlight=False)

    return Task(title=f"initialize git in {cwd}", action=_action)


def install_task(manager: str, fallback: str, cwd: Path, timeout: int = 600) -> Task:
    """Install dependencies with *manager*; on failure enable *fallback*."""

    async def _action(ctx: TaskContext) -> TaskOutcome | None:
        returncode, _, _ = await run_command([manager, "install"], cwd=cwd, timeout=timeout)
        if returncode != 0:
            ctx.use_fallback = True
            return TaskOutcome(
                title,
                TaskStatus.SKIPPED,
                f"{manager} not available, install it via `{fallback} install -g {manager}`",
            )
        return None

    title = f"install package dependencies with {manager}"
    return Task(title=title, action=_action)


def fallback_install_task(manager: str, cwd: Path, timeout: int = 600) -> Task:
    """Install dependencies with *manager*, only after the primary one failed."""

    async def _action(ctx: TaskContext) -> None:
        cmd = [manager, "install"]
        returncode, _, stderr = await run_command(cmd, cwd=cwd, timeout=timeout)
        if returncode != 0:
            raise TaskError(
                f"{manager} install failed (exit {returncode}): {stderr}",
                command=" ".join(cmd),
                stderr=stderr,
            )

    return Task(
        title=f"install package dependencies with {manager}",
        action=_action,
        enabled=lambda ctx: ctx.use_fallback,
    )


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------

_STATUS_SYMBOLS: dict[TaskStatus, str] = {
    TaskStatus.SUCCESS: "[green]●[/green]",
    TaskStatus.SKIPPED: "[yellow]○[/yellow]",
    TaskStatus.FAILED: "[red]●[/red]",
    TaskStatus.DISABLED: "[bright_black]○[/bright_black]",
}


def render_report(report: TaskReport, title: str = "Tasks") -> Tree:
    """Build a Rich tree with one line per task outcome."""
    tree = Tree(f"[cyan]{escape(title)}[/cyan]", guide_style="grey50")
    for outcome in report.outcomes:
        symbol = _STATUS_SYMBOLS[outcome.status]
        line = f"{symbol} [white]{escape(outcome.title)}[/white]"
        if outcome.status in (TaskStatus.SUCCESS, TaskStatus.FAILED) and outcome.duration_seconds:
            line += f" [bright_black]{format_duration(outcome.duration_seconds)}[/bright_black]"
        if outcome.detail:
            line += f" [bright_black]({escape(outcome.detail)})[/bright_black]"
        tree.add(line)
    return tree


def print_report(report: TaskReport, title: str = "Tasks") -> None:
    console.print()
    console.print(render_report(report, title))
    console.print()
