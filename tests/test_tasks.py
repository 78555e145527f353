"""Tests for sequential task execution (relax.tasks).

Covers:
- Success / failure / halt semantics of TaskRunner
- enabled predicates evaluated against the explicit context
- yarn -> npm fallback path
- git init task command sequence and failure
- Report rendering
"""

from __future__ import annotations

from pathlib import Path

import pytest
from rich.console import Console

from relax.tasks import (
    Task,
    TaskContext,
    TaskError,
    TaskOutcome,
    TaskReport,
    TaskRunner,
    TaskStatus,
    fallback_install_task,
    git_init_task,
    install_task,
    render_report,
)

pytestmark = pytest.mark.unit


def _recording_task(title: str, calls: list[str]) -> Task:
    async def _action(ctx: TaskContext) -> None:
        calls.append(title)

    return Task(title=title, action=_action)


def _failing_task(title: str) -> Task:
    async def _action(ctx: TaskContext) -> None:
        raise TaskError(f"{title} broke")

    return Task(title=title, action=_action)


# ---------------------------------------------------------------------------
# TaskRunner
# ---------------------------------------------------------------------------


class TestTaskRunner:
    async def test_runs_tasks_in_order(self, tmp_path: Path):
        calls: list[str] = []
        tasks = [_recording_task("one", calls), _recording_task("two", calls)]

        report = await TaskRunner().run(tasks, TaskContext(cwd=tmp_path))

        assert calls == ["one", "two"]
        assert report.success
        assert [o.status for o in report.outcomes] == [TaskStatus.SUCCESS, TaskStatus.SUCCESS]

    async def test_failure_halts_remaining_tasks(self, tmp_path: Path):
        calls: list[str] = []
        tasks = [
            _recording_task("one", calls),
            _failing_task("two"),
            _recording_task("three", calls),
        ]

        report = await TaskRunner().run(tasks, TaskContext(cwd=tmp_path))

        assert calls == ["one"]
        assert not report.success
        assert report.status_of("two") == TaskStatus.FAILED
        assert report.status_of("three") == TaskStatus.SKIPPED
        assert report.failed[0].detail == "two broke"
        assert "'two' failed" in report.outcomes[2].detail

    async def test_unexpected_exception_marks_failure(self, tmp_path: Path):
        async def _boom(ctx: TaskContext) -> None:
            raise OSError("disk full")

        report = await TaskRunner().run([Task("copy", _boom)], TaskContext(cwd=tmp_path))

        assert report.status_of("copy") == TaskStatus.FAILED
        assert report.failed[0].detail == "disk full"

    async def test_disabled_task_not_run(self, tmp_path: Path):
        calls: list[str] = []
        task = _recording_task("maybe", calls)
        task.enabled = lambda ctx: ctx.use_fallback

        report = await TaskRunner().run([task], TaskContext(cwd=tmp_path))

        assert calls == []
        assert report.status_of("maybe") == TaskStatus.DISABLED
        assert report.success

    async def test_returned_outcome_kept(self, tmp_path: Path):
        async def _skip(ctx: TaskContext) -> TaskOutcome:
            return TaskOutcome("s", TaskStatus.SKIPPED, "nothing to do")

        report = await TaskRunner().run([Task("s", _skip)], TaskContext(cwd=tmp_path))

        assert report.outcomes[0].status == TaskStatus.SKIPPED
        assert report.outcomes[0].detail == "nothing to do"
        assert report.success

    async def test_status_of_unknown_title(self):
        assert TaskReport().status_of("missing") is None


# ---------------------------------------------------------------------------
# Dependency installation fallback
# ---------------------------------------------------------------------------


class TestInstallFallback:
    async def test_primary_success_keeps_fallback_disabled(
        self, tmp_path: Path, mock_run_command
    ):
        tasks = [
            install_task("yarn", "npm", tmp_path),
            fallback_install_task("npm", tmp_path),
        ]
        ctx = TaskContext(cwd=tmp_path)

        report = await TaskRunner().run(tasks, ctx)

        assert not ctx.use_fallback
        assert report.status_of("install package dependencies with yarn") == TaskStatus.SUCCESS
        assert report.status_of("install package dependencies with npm") == TaskStatus.DISABLED
        mock_run_command.assert_awaited_once()
        assert mock_run_command.call_args.args[0] == ["yarn", "install"]

    async def test_primary_failure_enables_fallback(self, tmp_path: Path, mock_run_command):
        mock_run_command.side_effect = [(127, "", "yarn: not found"), (0, "", "")]
        tasks = [
            install_task("yarn", "npm", tmp_path),
            fallback_install_task("npm", tmp_path),
        ]
        ctx = TaskContext(cwd=tmp_path)

        report = await TaskRunner().run(tasks, ctx)

        assert ctx.use_fallback
        yarn = report.outcomes[0]
        assert yarn.status == TaskStatus.SKIPPED
        assert yarn.detail == "yarn not available, install it via `npm install -g yarn`"
        assert report.status_of("install package dependencies with npm") == TaskStatus.SUCCESS
        assert report.success
        assert mock_run_command.call_args.args[0] == ["npm", "install"]

    async def test_fallback_failure_fails_run(self, tmp_path: Path, mock_run_command):
        mock_run_command.side_effect = [(1, "", "no yarn"), (1, "", "npm ERR!")]
        tasks = [
            install_task("yarn", "npm", tmp_path),
            fallback_install_task("npm", tmp_path),
        ]

        report = await TaskRunner().run(tasks, TaskContext(cwd=tmp_path))

        assert not report.success
        assert "npm ERR!" in report.failed[0].detail


# ---------------------------------------------------------------------------
# git init
# ---------------------------------------------------------------------------


class TestGitInitTask:
    async def test_runs_git_sequence(self, tmp_path: Path, mock_run_command):
        mock_run_command.return_value = (0, "On branch main", "")

        report = await TaskRunner().run([git_init_task(tmp_path)], TaskContext(cwd=tmp_path))

        assert report.success
        commands = [call.args[0] for call in mock_run_command.call_args_list]
        assert commands == [["git", "init"], ["git", "add", "--all"], ["git", "status"]]
        assert all(call.kwargs["cwd"] == tmp_path for call in mock_run_command.call_args_list)

    async def test_git_failure_reported(self, tmp_path: Path, mock_run_command):
        mock_run_command.return_value = (127, "", "Command not found: git init")

        report = await TaskRunner().run([git_init_task(tmp_path)], TaskContext(cwd=tmp_path))

        assert not report.success
        assert "git init failed" in report.failed[0].detail
        assert mock_run_command.await_count == 1


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------


class TestRenderReport:
    def test_tree_lists_every_outcome(self):
        report = TaskReport(
            outcomes=[
                TaskOutcome("copy template", TaskStatus.SUCCESS, duration_seconds=0.4),
                TaskOutcome("yarn", TaskStatus.SKIPPED, "yarn not available"),
                TaskOutcome("npm", TaskStatus.FAILED, "npm [ERR]"),
                TaskOutcome("extra", TaskStatus.DISABLED),
            ]
        )
        console = Console(record=True, width=120)
        console.print(render_report(report, title="relax create"))
        text = console.export_text()

        assert "relax create" in text
        for title in ("copy template", "yarn", "npm", "extra"):
            assert title in text
        assert "(yarn not available)" in text
        assert "npm [ERR]" in text
        assert "0.4s" in text
