"""Recursive template tree copy.

Mirrors a source directory into a destination, rendering every directory and
file name through the token renderer.  Files whose name ends with the
template marker (``.art``) have the marker stripped and their content
rendered; all other files are copied byte-for-byte.

Existing destination files are overwritten.
"""

from __future__ import annotations

import os
import shutil
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from rich.markup import escape

from relax.config import TEMPLATE_MARKER
from relax.scaffolder.renderer import render, unresolved_tokens
from relax.utils import console, print_warning


class UnsafePathError(Exception):
    """Raised when a rendered name would leave its parent directory."""

    def __init__(self, message: str, name: str = "") -> None:
        self.name = name
        super().__init__(message)


@dataclass(frozen=True)
class CopyRecord:
    """One file written by :func:`copy_tree`."""

    source: Path
    destination: Path


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


def digest_path(path: str | os.PathLike[str]) -> str:
    """Strip one trailing path separator (``"a/b/"`` -> ``"a/b"``)."""
    text = os.fspath(path)
    if len(text) > 1 and text[-1] in {"/", os.sep}:
        return text[:-1]
    return text


def is_template_file(name: str) -> bool:
    """Return ``True`` if *name* carries the template marker suffix."""
    return Path(name).suffix == TEMPLATE_MARKER


def render_destination_name(
    name: str,
    tokens: Mapping[str, str] | None = None,
    is_file: bool = True,
) -> str:
    """Compute the output name of a source entry.

    The marker suffix of template files is stripped before rendering;
    directory names keep it.

    Raises:
        UnsafePathError: If the rendered name is empty, ``.``/``..``, or
            contains a path separator.
    """
    if is_file and is_template_file(name):
        name = name[: -len(TEMPLATE_MARKER)]
    rendered = render(name, tokens)
    if rendered in {"", ".", ".."} or "/" in rendered or os.sep in rendered:
        raise UnsafePathError(
            f"Rendered name {rendered!r} (from {name!r}) is not a valid path segment",
            name=rendered,
        )
    return rendered


# ---------------------------------------------------------------------------
# Tree copy
# ---------------------------------------------------------------------------


def copy_tree(
    src: str | Path,
    dst: str | Path,
    tokens: Mapping[str, str] | None = None,
) -> list[CopyRecord]:
    """Copy the *contents* of *src* into *dst*, rendering names and ``.art`` files.

    A missing or non-directory *src* is a no-op.  Children are visited in
    file-system listing order.

    Args:
        src: Template directory to copy from.
        dst: Destination directory, created with its parents when missing.
        tokens: Token mapping used for names and template file contents.

    Returns:
        One :class:`CopyRecord` per file written, in write order.

    Raises:
        UnsafePathError: If any rendered name is unsafe.  Every name is
            checked before *dst* is created, so nothing is written.
    """
    src_path = Path(digest_path(src))
    if not src_path.is_dir():
        return []

    tokens = tokens or {}
    check_tree_names(src_path, tokens)

    dst_path = Path(digest_path(dst))
    dst_path.mkdir(parents=True, exist_ok=True)

    records: list[CopyRecord] = []
    for child in src_path.iterdir():
        _copy_entry(child, dst_path, tokens, records)
    return records


def check_tree_names(src: Path, tokens: Mapping[str, str] | None = None) -> None:
    """Render every name below *src* without writing anything.

    Raises:
        UnsafePathError: On the first name that renders unsafely.
    """
    for child in src.iterdir():
        is_dir = child.is_dir()
        render_destination_name(child.name, tokens, is_file=not is_dir)
        if is_dir:
            check_tree_names(child, tokens)


def _copy_entry(
    src: Path,
    dst_dir: Path,
    tokens: Mapping[str, str],
    records: list[CopyRecord],
) -> None:
    is_dir = src.is_dir()
    target = dst_dir / render_destination_name(src.name, tokens, is_file=not is_dir)
    _warn_unresolved(src.name, tokens)

    if is_dir:
        target.mkdir(parents=True, exist_ok=True)
        for child in src.iterdir():
            _copy_entry(child, target, tokens, records)
        return

    console.print(f"copy file from {src} to {target}", style="dim", markup=False, highlight=False)
    if is_template_file(src.name):
        # newline="" keeps CRLF line endings as written in the template.
        with open(src, encoding="utf-8", newline="") as fh:
            content = fh.read()
        _warn_unresolved(content, tokens, where=str(src))
        with open(target, "w", encoding="utf-8", newline="") as fh:
            fh.write(render(content, tokens))
    else:
        shutil.copyfile(src, target)
    records.append(CopyRecord(source=src, destination=target))


def _warn_unresolved(text: str, tokens: Mapping[str, str], where: str = "") -> None:
    missing = unresolved_tokens(text, tokens)
    if missing:
        location = escape(where or text)
        print_warning(f"Unresolved token(s) {', '.join(missing)} left as-is in {location}")
