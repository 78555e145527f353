"""Template selection and resolution.

Turns a user's selection -- a template key, an optional language variant,
or the ``link`` pseudo-choice with a URL -- into the one source directory
the tree copier reads from.

Rules:
- key without variants       -> ``<root>/<key>``
- key with one variant       -> ``<root>/<key>-<variant>`` (no prompt)
- key with several variants  -> prompt for the language, then as above
- ``link``                   -> prompt for the URL; source is the scratch dir
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from relax.config import DEFAULT_SCRATCH_DIR, LINK_CHOICE
from relax.scaffolder.prompts import Prompter
from relax.scaffolder.registry import TemplateRegistry


class SelectionError(Exception):
    """Raised when a selection does not name an available template."""


@dataclass(frozen=True)
class ResolvedTemplate:
    """Concrete template source chosen for one scaffold run."""

    source: Path
    key: str
    variant: str | None = None
    link: str | None = None

    @property
    def is_remote(self) -> bool:
        return self.link is not None

    @property
    def label(self) -> str:
        if self.link is not None:
            return self.link
        if self.variant:
            return f"{self.key} ({self.variant})"
        return self.key


def resolve_builtin(
    registry: TemplateRegistry,
    key: str,
    variant: str | None = None,
) -> ResolvedTemplate:
    """Resolve a built-in template without prompting.

    Raises:
        SelectionError: If *key* is unknown, *variant* is not offered by
            *key*, *key* has several variants and none was given, or the
            resolved directory does not exist.
    """
    if key not in registry:
        raise SelectionError(
            f"Unknown template '{key}'. Available: {', '.join(registry.keys()) or '(none)'}"
        )

    variants = registry.variants(key)
    if variant is not None:
        variant = variant.lower()
        if variant not in variants:
            offered = ", ".join(variants) if variants else "no language variants"
            raise SelectionError(f"Template '{key}' has {offered}; cannot use '{variant}'")
    elif len(variants) == 1:
        variant = variants[0]
    elif len(variants) > 1:
        raise SelectionError(
            f"Template '{key}' needs a language: {', '.join(variants)}"
        )

    source = registry.path_for(key, variant)
    if not source.is_dir():
        raise SelectionError(f"Template directory not found: {source}")
    return ResolvedTemplate(source=source, key=key, variant=variant)


def resolve_link(link: str, scratch_dir: str | Path = DEFAULT_SCRATCH_DIR) -> ResolvedTemplate:
    """Resolve a remote link to the scratch directory it will be fetched into."""
    link = link.strip()
    if not link:
        raise SelectionError("A template link is required")
    return ResolvedTemplate(source=Path(scratch_dir), key=LINK_CHOICE, link=link)


class TemplateResolver:
    """Resolves a selection, asking the prompter only for missing answers."""

    def __init__(
        self,
        registry: TemplateRegistry,
        prompter: Prompter,
        scratch_dir: str | Path = DEFAULT_SCRATCH_DIR,
    ) -> None:
        self.registry = registry
        self.prompter = prompter
        self.scratch_dir = Path(scratch_dir)

    async def resolve(
        self,
        template: str | None = None,
        language: str | None = None,
        link: str | None = None,
    ) -> ResolvedTemplate:
        """Resolve the selection.

        Args:
            template: Template key or ``link``; prompted for when omitted
                (unless *link* is given).
            language: Language variant; prompted for when the template has
                several variants and none is given.
            link: Remote template URL; prompted for when ``link`` is
                selected without one. Giving a link together with a template
                key other than ``link`` raises :class:`SelectionError`.
        """
        if link and template not in (None, LINK_CHOICE):
            raise SelectionError(
                f"Template '{template}' and a link were both given; choose one"
            )
        if template is None and link:
            template = LINK_CHOICE
        if template is None:
            template = await self.prompter.select("pick template", self.registry.choices())

        if template == LINK_CHOICE:
            if not link:
                link = await self.prompter.text("template link")
            return resolve_link(link or "", self.scratch_dir)

        if template not in self.registry:
            return resolve_builtin(self.registry, template, language)

        variants = self.registry.variants(template)
        if language is None and len(variants) > 1:
            language = await self.prompter.select("pick language", variants)
        return resolve_builtin(self.registry, template, language)
