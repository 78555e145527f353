"""Relax scaffolder -- template discovery, resolution and rendering.

Quick usage::

    from relax.scaffolder import TemplateRegistry, copy_tree, resolve_builtin

    registry = TemplateRegistry.scan("/path/to/templates")
    resolved = resolve_builtin(registry, "react", "typescript")
    copy_tree(resolved.source, "./demo", {"PROJECT_NAME": "demo"})
"""

from relax.scaffolder.copier import CopyRecord, UnsafePathError, check_tree_names, copy_tree
from relax.scaffolder.fetcher import FetchError, RemoteFetcher
from relax.scaffolder.prompts import Prompter, RichPrompter, StaticPrompter
from relax.scaffolder.registry import (
    TemplateRegistry,
    TemplateRootError,
    parse_template_names,
    scan_templates,
    template_dir_names,
)
from relax.scaffolder.renderer import TokenRenderer, render
from relax.scaffolder.resolver import (
    ResolvedTemplate,
    SelectionError,
    TemplateResolver,
    resolve_builtin,
    resolve_link,
)

__all__ = [
    "CopyRecord",
    "FetchError",
    "Prompter",
    "RemoteFetcher",
    "ResolvedTemplate",
    "RichPrompter",
    "SelectionError",
    "StaticPrompter",
    "TemplateRegistry",
    "TemplateResolver",
    "TemplateRootError",
    "TokenRenderer",
    "UnsafePathError",
    "check_tree_names",
    "copy_tree",
    "parse_template_names",
    "render",
    "resolve_builtin",
    "resolve_link",
    "scan_templates",
    "template_dir_names",
]
