"""Shared utility functions for Relax.

Provides async subprocess execution, name checks, duration formatting and the
Rich console every other module prints through.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Mapping, Sequence
from pathlib import Path

from rich.console import Console
from rich.table import Table
from rich.text import Text

console = Console()

# Return codes used when the child never produced one.
NOT_FOUND_RC = 127
TIMEOUT_RC = -1

# ---------------------------------------------------------------------------
# Async command execution
# ---------------------------------------------------------------------------


async def run_command(
    cmd: Sequence[str],
    cwd: str | Path | None = None,
    timeout: int = 120,
    env: Mapping[str, str] | None = None,
) -> tuple[int, str, str]:
    """Run *cmd* (an argument list, no shell) and capture its output.

    Args:
        cmd: Executable followed by its arguments.
        cwd: Working directory for the child process.
        timeout: Seconds to wait before the child is killed.
        env: Extra environment variables layered over ``os.environ``.

    Returns:
        ``(returncode, stdout, stderr)`` with both streams decoded and
        stripped.  A missing executable yields ``127`` and a timeout ``-1``.
    """
    args = list(cmd)
    label = " ".join(args)
    child_env = {**os.environ, **env} if env else None

    try:
        process = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(cwd) if cwd is not None else None,
            env=child_env,
        )
    except FileNotFoundError:
        return (NOT_FOUND_RC, "", f"Command not found: {label}")

    try:
        out, err = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        return (TIMEOUT_RC, "", f"Command timed out after {timeout}s: {label}")

    return (process.returncode or 0, _decode(out), _decode(err))


def _decode(data: bytes | None) -> str:
    return (data or b"").decode("utf-8", errors="replace").strip()


# ---------------------------------------------------------------------------
# Name / formatting helpers
# ---------------------------------------------------------------------------


def check_name(name: str | None) -> bool:
    """Return ``True`` if *name* can be used as a target directory argument."""
    return bool(name and name.strip())


def format_duration(seconds: float) -> str:
    """Render *seconds* compactly: ``3.7s`` below a minute, ``1m 5s`` above."""
    seconds = max(seconds, 0.0)
    minutes, rest = divmod(seconds, 60)
    if minutes:
        return f"{int(minutes)}m {int(rest)}s"
    return f"{rest:.1f}s"


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------

LOGO = (
    " ____      _\n"
    "|  _ \\ ___| | __ ___  __\n"
    "| |_) / _ \\ |/ _` \\ \\/ /\n"
    "|  _ <  __/ | (_| |>  <\n"
    "|_| \\_\\___|_|\\__,_/_/\\_\\\n"
)


def print_logo() -> None:
    console.print(Text(LOGO, style="green"))


def print_summary_table(data: Mapping[str, object], title: str = "Summary") -> None:
    """Print *data* as a two-column key/value table."""
    table = Table(title=title, title_justify="left", show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan", no_wrap=True)
    table.add_column()
    for key, value in data.items():
        table.add_row(key, str(value))
    console.print(table)


def _print_status(style: str, message: str) -> None:
    console.print(message, style=style)


def print_success(message: str) -> None:
    _print_status("bold green", message)


def print_error(message: str) -> None:
    _print_status("bold red", message)


def print_warning(message: str) -> None:
    _print_status("yellow", message)
