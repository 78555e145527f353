"""Interactive prompts.

The resolver only depends on the :class:`Prompter` protocol, so tests (and
non-interactive callers) can supply canned answers instead of a terminal.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Protocol

from rich.prompt import Prompt

from relax.utils import console


class Prompter(Protocol):
    """Collects user selections."""

    async def select(self, message: str, choices: Sequence[str]) -> str: ...

    async def text(self, message: str) -> str: ...


class RichPrompter:
    """Terminal prompts rendered with Rich.

    The blocking ``Prompt.ask`` calls run in a worker thread so the event
    loop stays responsive.
    """

    async def select(self, message: str, choices: Sequence[str]) -> str:
        options = list(choices)
        return await asyncio.to_thread(
            Prompt.ask, message, choices=options, default=options[0], console=console
        )

    async def text(self, message: str) -> str:
        answer = await asyncio.to_thread(Prompt.ask, message, console=console)
        return answer.strip()


class StaticPrompter:
    """Answers prompts from pre-recorded values, in order."""

    def __init__(self, selections: Sequence[str] = (), texts: Sequence[str] = ()) -> None:
        self._selections = list(selections)
        self._texts = list(texts)
        self.asked: list[str] = []

    async def select(self, message: str, choices: Sequence[str]) -> str:
        self.asked.append(message)
        if not self._selections:
            raise LookupError(f"No answer recorded for prompt: {message}")
        return self._selections.pop(0)

    async def text(self, message: str) -> str:
        self.asked.append(message)
        if not self._texts:
            raise LookupError(f"No answer recorded for prompt: {message}")
        return self._texts.pop(0)
