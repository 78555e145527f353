"""Relax configuration.

Typed configuration for a single CLI invocation. Settings use Pydantic v2
models so they are validated at construction time and can be loaded from a
YAML file or from environment variables without boiler-plate.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from relax import __version__

# ---------------------------------------------------------------------------
# Fixed conventions (not configurable)
# ---------------------------------------------------------------------------

VERSION = __version__

# Files ending in this suffix have their *content* rendered; the suffix is
# stripped from the output name.
TEMPLATE_MARKER = ".art"

# Trailing hyphen-segments recognised as language variants.
LANGUAGES: tuple[str, ...] = ("javascript", "typescript")

# Pseudo-choice appended to the template list to scaffold from a remote link.
LINK_CHOICE = "link"

PROJECT_NAME_TOKEN = "PROJECT_NAME"
COMPONENT_NAME_TOKEN = "COMPONENT_NAME"

_PACKAGE_DIR = Path(__file__).parent
DEFAULT_TEMPLATE_DIR = _PACKAGE_DIR / "template"
DEFAULT_WIDGET_DIR = _PACKAGE_DIR / "widget"
DEFAULT_SCRATCH_DIR = Path(tempfile.gettempdir()) / "relax-template-repo"


def _env_flag(name: str) -> bool:
    """Interpret an environment variable as a boolean switch."""
    return os.environ.get(name, "").strip().lower() in {"1", "true", "yes", "on"}


class Config(BaseModel):
    """Global Relax configuration.

    Instances are created once by the CLI entry point (usually via
    :meth:`from_env`) and passed to the ``Pipeline``.
    """

    template_dir: Path = Field(
        default=DEFAULT_TEMPLATE_DIR, description="Root of the bundled project templates"
    )
    widget_dir: Path = Field(
        default=DEFAULT_WIDGET_DIR, description="Root of the bundled component templates"
    )
    scratch_dir: Path = Field(
        default=DEFAULT_SCRATCH_DIR,
        description="Fixed location remote templates are fetched into",
    )
    init_git: bool = Field(default=True, description="Run git init in new projects")
    install_dependencies: bool = Field(
        default=True, description="Install package dependencies after copying"
    )
    primary_package_manager: str = Field(default="yarn")
    fallback_package_manager: str = Field(default="npm")
    command_timeout: int = Field(
        default=600, ge=1, description="Per-command timeout in seconds"
    )
    show_logo: bool = Field(default=True)

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a YAML file.

        Returns:
            The path where the file was written.
        """
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        data = self.model_dump(mode="json")
        target.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load a configuration from a YAML file.

        An empty file yields the defaults.

        Raises:
            FileNotFoundError: If the file does not exist.
            pydantic.ValidationError: If a value is invalid.
        """
        raw = Path(path).read_text(encoding="utf-8")
        data: dict[str, Any] = yaml.safe_load(raw) or {}
        return cls.model_validate(data)

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            RELAX_TEMPLATE_DIR, RELAX_WIDGET_DIR, RELAX_SCRATCH_DIR,
            RELAX_SKIP_GIT, RELAX_SKIP_INSTALL, RELAX_COMMAND_TIMEOUT,
            RELAX_NO_LOGO.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("RELAX_TEMPLATE_DIR"):
            kwargs["template_dir"] = Path(os.environ["RELAX_TEMPLATE_DIR"])
        if os.environ.get("RELAX_WIDGET_DIR"):
            kwargs["widget_dir"] = Path(os.environ["RELAX_WIDGET_DIR"])
        if os.environ.get("RELAX_SCRATCH_DIR"):
            kwargs["scratch_dir"] = Path(os.environ["RELAX_SCRATCH_DIR"])
        if os.environ.get("RELAX_COMMAND_TIMEOUT"):
            kwargs["command_timeout"] = os.environ["RELAX_COMMAND_TIMEOUT"]

        return cls(
            init_git=not _env_flag("RELAX_SKIP_GIT"),
            install_dependencies=not _env_flag("RELAX_SKIP_INSTALL"),
            show_logo=not _env_flag("RELAX_NO_LOGO"),
            **kwargs,
        )
