"""Relax scaffold orchestrator and CLI.

Drives one scaffold run:

1. Refuse silently when the destination already exists.
2. Scan the template root (fatal if it is missing).
3. Resolve the template selection, prompting for anything not supplied.
4. Run the task sequence: fetch (links only), copy, git init, install.

Usage::

    relax create my-app
    relax create my-app --template react --language typescript
    relax generate src/components/MyButton
    python -m relax --version
"""

from __future__ import annotations

import argparse
import asyncio
import shutil
import sys
from collections.abc import Sequence
from pathlib import Path

from pydantic import ValidationError
from rich.markup import escape

from relax.config import (
    COMPONENT_NAME_TOKEN,
    PROJECT_NAME_TOKEN,
    VERSION,
    Config,
)
from relax.scaffolder.copier import copy_tree
from relax.scaffolder.fetcher import RemoteFetcher
from relax.scaffolder.prompts import Prompter, RichPrompter
from relax.scaffolder.registry import TemplateRegistry, TemplateRootError
from relax.scaffolder.resolver import ResolvedTemplate, SelectionError, TemplateResolver
from relax.tasks import (
    Task,
    TaskContext,
    TaskReport,
    TaskRunner,
    fallback_install_task,
    git_init_task,
    install_task,
    print_report,
)
from relax.utils import (
    check_name,
    console,
    print_error,
    print_logo,
    print_success,
    print_summary_table,
)


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class Pipeline:
    """Scaffolds projects (``create``) and components (``generate``).

    Attributes:
        config: Invocation configuration.
        prompter: Source of interactive answers.
        runner: Executes the post-resolution task list.
        fetcher: Fetches ``link`` templates into the scratch directory.
    """

    def __init__(
        self,
        config: Config,
        prompter: Prompter | None = None,
        runner: TaskRunner | None = None,
        fetcher: RemoteFetcher | None = None,
    ) -> None:
        self.config = config
        self.prompter = prompter or RichPrompter()
        self.runner = runner or TaskRunner()
        self.fetcher = fetcher or RemoteFetcher(
            scratch_dir=config.scratch_dir, timeout=config.command_timeout
        )

    async def create(
        self,
        target: str | Path,
        template: str | None = None,
        language: str | None = None,
        link: str | None = None,
        tokens: dict[str, str] | None = None,
    ) -> TaskReport | None:
        """Scaffold a new project at *target*.

        Returns:
            The task report, or ``None`` when *target* already exists and
            nothing was done.

        Raises:
            TemplateRootError: If the bundled template root is missing.
            SelectionError: If the selection names no available template.
        """
        return await self._scaffold(
            Path(target),
            root=self.config.template_dir,
            token_name=PROJECT_NAME_TOKEN,
            setup=True,
            template=template,
            language=language,
            link=link,
            tokens=tokens,
        )

    async def generate(
        self,
        target: str | Path,
        template: str | None = None,
        language: str | None = None,
        link: str | None = None,
        tokens: dict[str, str] | None = None,
    ) -> TaskReport | None:
        """Scaffold a single component at *target* from the widget root.

        Only the fetch and copy steps run; no git or dependency setup.
        """
        return await self._scaffold(
            Path(target),
            root=self.config.widget_dir,
            token_name=COMPONENT_NAME_TOKEN,
            setup=False,
            template=template,
            language=language,
            link=link,
            tokens=tokens,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _scaffold(
        self,
        target: Path,
        *,
        root: Path,
        token_name: str,
        setup: bool,
        template: str | None,
        language: str | None,
        link: str | None,
        tokens: dict[str, str] | None,
    ) -> TaskReport | None:
        if target.exists():
            return None

        registry = TemplateRegistry.scan(root)
        resolver = TemplateResolver(registry, self.prompter, scratch_dir=self.fetcher.scratch_dir)
        resolved = await resolver.resolve(template=template, language=language, link=link)

        token_map = {token_name: target.name, **(tokens or {})}
        tasks = self._build_tasks(resolved, target, token_map, setup)

        ctx = TaskContext(cwd=target)
        report = await self.runner.run(tasks, ctx)
        print_report(report, title=f"relax {'create' if setup else 'generate'}")

        if report.success:
            print_summary_table(
                {
                    "Destination": str(target),
                    "Template": resolved.label,
                    "Files": str(ctx.copied_files),
                },
                title="Scaffold",
            )
        return report

    def _build_tasks(
        self,
        resolved: ResolvedTemplate,
        target: Path,
        tokens: dict[str, str],
        setup: bool,
    ) -> list[Task]:
        tasks: list[Task] = []

        if resolved.is_remote:
            link = resolved.link or ""

            async def _fetch(ctx: TaskContext) -> None:
                await self.fetcher.fetch(link)

            tasks.append(Task(title=f"fetch {link} into {resolved.source}", action=_fetch))

        async def _copy(ctx: TaskContext) -> None:
            try:
                records = await asyncio.to_thread(copy_tree, resolved.source, target, tokens)
            except Exception:
                # Created by this run; remove the partial tree.
                if target.exists():
                    await asyncio.to_thread(shutil.rmtree, target, ignore_errors=True)
                raise
            ctx.copied_files = len(records)

        tasks.append(Task(title=f"copy template into {target}", action=_copy))

        if setup and self.config.init_git:
            tasks.append(git_init_task(target, timeout=self.config.command_timeout))
        if setup and self.config.install_dependencies:
            tasks.append(
                install_task(
                    self.config.primary_package_manager,
                    self.config.fallback_package_manager,
                    target,
                    timeout=self.config.command_timeout,
                )
            )
            tasks.append(
                fallback_install_task(
                    self.config.fallback_package_manager,
                    target,
                    timeout=self.config.command_timeout,
                )
            )
        return tasks


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def _parse_tokens(values: Sequence[str]) -> dict[str, str]:
    """Parse repeated ``KEY=VALUE`` options into a token mapping."""
    tokens: dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Invalid token '{item}' (expected KEY=VALUE)")
        tokens[key.strip()] = value
    return tokens


def build_parser() -> tuple[argparse.ArgumentParser, dict[str, argparse.ArgumentParser]]:
    """Build the top-level parser and return it with its sub-command parsers."""
    parser = argparse.ArgumentParser(
        prog="relax",
        description="Relax -- scaffold projects and components from templates",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  relax create my-app\n"
            "  relax create my-app --template react --language typescript\n"
            "  relax create my-app --link https://github.com/me/my-template.git\n"
            "  relax generate src/components/MyButton\n"
        ),
    )
    parser.add_argument(
        "-v", "--version",
        action="version",
        version=VERSION,
        help="show current version",
    )
    parser.add_argument(
        "--no-logo",
        action="store_true",
        help="do not print the banner",
    )

    subparsers = parser.add_subparsers(dest="command")
    commands: dict[str, argparse.ArgumentParser] = {}

    for name, help_text in (
        ("create", "create a new project in [dir]"),
        ("generate", "generate a component in [dir]"),
    ):
        sub = subparsers.add_parser(name, help=help_text, description=help_text)
        sub.add_argument("dir", nargs="?", default=None, help="target directory")
        sub.add_argument("--template", "-t", default=None, help="template name (or 'link')")
        sub.add_argument("--language", "-l", default=None, help="language variant")
        sub.add_argument("--link", default=None, help="remote template repository or archive URL")
        sub.add_argument(
            "--token",
            action="append",
            default=[],
            metavar="KEY=VALUE",
            help="extra token for file and name rendering (repeatable)",
        )
        if name == "create":
            sub.add_argument("--skip-git", action="store_true", help="do not run git init")
            sub.add_argument(
                "--skip-install", action="store_true", help="do not install dependencies"
            )
        commands[name] = sub

    return parser, commands


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point for ``relax`` and ``python -m relax``."""
    parser, commands = build_parser()
    args = parser.parse_args(argv)

    try:
        config = Config.from_env()
    except ValidationError as exc:
        print_error(f"Invalid configuration: {escape(str(exc))}")
        sys.exit(1)
    if args.no_logo:
        config.show_logo = False
    if config.show_logo:
        print_logo()

    if args.command is None:
        parser.print_help()
        return

    if not check_name(args.dir):
        commands[args.command].print_help()
        return

    try:
        tokens = _parse_tokens(args.token)
    except ValueError as exc:
        commands[args.command].error(str(exc))

    if args.command == "create":
        if args.skip_git:
            config.init_git = False
        if args.skip_install:
            config.install_dependencies = False

    target = (Path.cwd() / args.dir).resolve()
    pipeline = Pipeline(config)
    scaffold = pipeline.create if args.command == "create" else pipeline.generate

    try:
        report = asyncio.run(
            scaffold(
                target,
                template=args.template,
                language=args.language,
                link=args.link,
                tokens=tokens,
            )
        )
    except TemplateRootError as exc:
        print_error(f"Error: {escape(str(exc))}")
        sys.exit(1)
    except SelectionError as exc:
        print_error(f"Error: {escape(str(exc))}")
        sys.exit(1)

    if report is None:
        return
    if report.success:
        print_success(f"Done. Scaffolded {escape(str(target))}")
    else:
        for outcome in report.failed:
            console.print(f"[bold red]{escape(outcome.title)} failed:[/bold red] {escape(outcome.detail)}")
        sys.exit(1)


if __name__ == "__main__":
    main()
