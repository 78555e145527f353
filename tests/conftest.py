"""Shared pytest fixtures for the Relax test suite.

Provides reusable fixtures for:
- Temporary template and widget roots with language variants
- A Config pointing at those roots with git/install disabled
- A patched async ``run_command``
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from relax.config import Config


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def write_tree(root: Path, files: dict[str, str | bytes]) -> Path:
    """Create *files* (relative path -> content) under *root*."""
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def make_tree():
    """Return the :func:`write_tree` helper."""
    return write_tree


# ---------------------------------------------------------------------------
# Template roots
# ---------------------------------------------------------------------------

@pytest.fixture
def template_root(tmp_path: Path) -> Path:
    """Template root with a two-variant, a one-variant and a plain template."""
    root = tmp_path / "templates"
    write_tree(
        root,
        {
            "basic-javascript/index.art": "Hello {{PROJECT_NAME}}",
            "basic-typescript/index.art": "Hello {{PROJECT_NAME}}",
            "node-typescript/package.json.art": '{"name": "{{PROJECT_NAME}}"}',
            "plain/README.md": "# {{PROJECT_NAME}}\n",
            "plain/src/{{PROJECT_NAME}}.txt.art": "name={{ PROJECT_NAME | upperCase }}",
        },
    )
    (root / "NOTES.txt").write_text("not a template", encoding="utf-8")
    return root


@pytest.fixture
def widget_root(tmp_path: Path) -> Path:
    """Widget root holding a single template without variants."""
    root = tmp_path / "widgets"
    write_tree(
        root,
        {
            "widget/src/{{COMPONENT_NAME}}.art": (
                "export const {{COMPONENT_NAME}} = () => '{{COMPONENT_NAME}}';\n"
            ),
        },
    )
    return root


@pytest.fixture
def config(template_root: Path, widget_root: Path, tmp_path: Path) -> Config:
    """Config bound to the temporary roots; no git, no dependency install."""
    return Config(
        template_dir=template_root,
        widget_dir=widget_root,
        scratch_dir=tmp_path / "scratch" / "relax-template-repo",
        init_git=False,
        install_dependencies=False,
        show_logo=False,
    )


@pytest.fixture
def workdir(tmp_path: Path) -> Path:
    """Empty directory that scaffolds are written into."""
    path = tmp_path / "work"
    path.mkdir()
    return path


# ---------------------------------------------------------------------------
# Subprocess mocking
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_run_command():
    """Patch ``run_command`` in ``relax.tasks`` to succeed with empty output.

    Tests adjust ``side_effect`` / ``return_value`` to simulate failures.
    """
    mock = AsyncMock(return_value=(0, "", ""))
    with patch("relax.tasks.run_command", mock):
        yield mock
