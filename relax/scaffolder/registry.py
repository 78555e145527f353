"""Template discovery.

A template root holds one directory per template.  A directory whose name ends
in a recognised language tag (``react-typescript``) is a *variant* of the
template key formed by the remaining segments (``react``); any other directory
is a standalone template without variants.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from relax.config import LANGUAGES, LINK_CHOICE


class TemplateRootError(Exception):
    """Raised when a template root is missing or is not a directory."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        self.path = path
        super().__init__(message)


def _split_name(name: str, known: set[str]) -> tuple[str, str | None]:
    """Split a directory name into ``(key, variant)``; variant is lower-cased."""
    segments = name.split("-")
    language = segments[-1].lower()
    key = "-".join(segments[:-1])
    if len(segments) > 1 and language in known and key:
        return key, language
    return name, None


def parse_template_names(
    names: Iterable[str],
    languages: Iterable[str] = LANGUAGES,
) -> dict[str, list[str]]:
    """Group directory names into ``{template_key: [variants]}``.

    Keys and variants keep the order in which they are first seen; a variant
    listed twice for the same key is recorded once.

    Examples::

        parse_template_names(["vue-javascript", "vue-typescript", "plain"])
        -> {"vue": ["javascript", "typescript"], "plain": []}
    """
    known = {language.lower() for language in languages}
    templates: dict[str, list[str]] = {}

    for name in names:
        key, language = _split_name(name, known)
        variants = templates.setdefault(key, [])
        if language is not None and language not in variants:
            variants.append(language)

    return templates


def template_dir_names(
    names: Iterable[str],
    languages: Iterable[str] = LANGUAGES,
) -> dict[tuple[str, str | None], str]:
    """Map each ``(key, variant)`` to the directory name it was found under.

    Variant tags match case-insensitively, so ``app-TypeScript`` is recorded
    as ``("app", "typescript") -> "app-TypeScript"``.  The first directory
    seen for a pair wins.
    """
    known = {language.lower() for language in languages}
    dirs: dict[tuple[str, str | None], str] = {}
    for name in names:
        dirs.setdefault(_split_name(name, known), name)
    return dirs


def list_template_dirs(root: str | Path) -> list[str]:
    """Return the names of the immediate child directories of *root*.

    Listing order is preserved as returned by the file system.

    Raises:
        TemplateRootError: If *root* does not exist or is not a directory.
    """
    root_path = Path(root)
    if not root_path.is_dir():
        raise TemplateRootError(
            f"Template root not found or not a directory: {root_path}", path=root_path
        )
    return [entry.name for entry in root_path.iterdir() if entry.is_dir()]


def scan_templates(root: str | Path) -> dict[str, list[str]]:
    """Scan *root* and return the ``{template_key: [variants]}`` mapping."""
    return parse_template_names(list_template_dirs(root))


@dataclass
class TemplateRegistry:
    """Templates available under one template root.

    ``dirs`` maps each ``(key, variant)`` to its directory name so that a
    tag spelled ``TypeScript`` on disk still resolves to a real path.
    """

    root: Path
    templates: dict[str, list[str]] = field(default_factory=dict)
    dirs: dict[tuple[str, str | None], str] = field(default_factory=dict)

    @classmethod
    def scan(cls, root: str | Path) -> "TemplateRegistry":
        root_path = Path(root)
        names = list_template_dirs(root_path)
        return cls(
            root=root_path,
            templates=parse_template_names(names),
            dirs=template_dir_names(names),
        )

    def __contains__(self, key: object) -> bool:
        return key in self.templates

    def keys(self) -> list[str]:
        return list(self.templates)

    def choices(self) -> list[str]:
        """Template keys followed by the ``link`` pseudo-choice."""
        return self.keys() + [LINK_CHOICE]

    def variants(self, key: str) -> list[str]:
        """Return the language variants of *key* (``KeyError`` if unknown)."""
        return list(self.templates[key])

    def path_for(self, key: str, variant: str | None = None) -> Path:
        """Return the source directory of *key*, or of its *variant*."""
        variant = variant or None
        name = self.dirs.get((key, variant))
        if name is None:
            name = f"{key}-{variant}" if variant else key
        return self.root / name
