"""Token rendering for names and file contents.

Provides the TokenRenderer class which replaces ``{{TOKEN}}`` placeholders
with values from a flat token mapping.  A token may be piped through filters
taken from a Jinja2 environment's filter table, e.g.
``{{ PROJECT_NAME | upperCase }}``.  The same function renders directory
names, file names and ``.art`` file contents.

Rendering is a single ``re.sub`` pass: substituted values are never scanned
again, and a placeholder whose name or filter is unknown is left exactly as
written.
"""

from __future__ import annotations

import re
from collections.abc import Mapping

from jinja2 import Environment

# ---------------------------------------------------------------------------
# Token syntax
# ---------------------------------------------------------------------------

_NAME = r"[A-Za-z_][A-Za-z0-9_]*"

TOKEN_PATTERN = re.compile(
    r"\{\{\s*(?P<name>" + _NAME + r")(?P<filters>(?:\s*\|\s*" + _NAME + r")*)\s*\}\}"
)

# Jinja2 built-ins that map a string to a string without needing a context.
_BUILTIN_STRING_FILTERS = ("upper", "lower", "title", "capitalize", "trim")


# ---------------------------------------------------------------------------
# TokenRenderer
# ---------------------------------------------------------------------------


class TokenRenderer:
    """Renders ``{{TOKEN}}`` placeholders from a flat token mapping.

    Filters are resolved through a private Jinja2 ``Environment`` that only
    exposes string-to-string filters, so no placeholder can trigger template
    logic.
    """

    def __init__(self) -> None:
        base = Environment()
        self.env = Environment()
        self.env.filters = {name: base.filters[name] for name in _BUILTIN_STRING_FILTERS}
        # Register custom filters
        self.env.filters["upperCase"] = _upper_case_filter
        self.env.filters["upper_case"] = _upper_case_filter
        self.env.filters["lower_case"] = _lower_case_filter
        self.env.filters["slugify"] = _slugify_filter
        self.env.filters["pascal_case"] = _pascal_case_filter
        self.env.filters["snake_case"] = _snake_case_filter
        self.env.filters["camel_case"] = _camel_case_filter
        self.env.filters["kebab_case"] = _kebab_case_filter

    @property
    def filter_names(self) -> list[str]:
        """Sorted names of every filter usable inside a placeholder."""
        return sorted(self.env.filters)

    def render(self, text: str | None, tokens: Mapping[str, str] | None = None) -> str:
        """Substitute every bound placeholder in *text*.

        ``None`` is rendered as an empty string and an empty mapping is the
        identity transform.
        """
        if not text:
            return ""
        if not tokens:
            return text

        def _substitute(match: re.Match[str]) -> str:
            name = match.group("name")
            if name not in tokens:
                return match.group(0)
            value = str(tokens[name])
            for filter_name in _split_filters(match.group("filters")):
                if filter_name not in self.env.filters:
                    return match.group(0)
                value = str(self.env.call_filter(filter_name, value))
            return value

        return TOKEN_PATTERN.sub(_substitute, text)


def render(text: str | None, tokens: Mapping[str, str] | None = None) -> str:
    """Render *text* with the shared default :class:`TokenRenderer`."""
    return _default_renderer.render(text, tokens)


def find_tokens(text: str | None) -> list[str]:
    """Return the distinct token names referenced in *text*, in order of appearance."""
    if not text:
        return []
    seen: dict[str, None] = {}
    for match in TOKEN_PATTERN.finditer(text):
        seen.setdefault(match.group("name"), None)
    return list(seen)


def unresolved_tokens(text: str | None, tokens: Mapping[str, str] | None = None) -> list[str]:
    """Return the token names in *text* that have no binding in *tokens*."""
    bound = tokens or {}
    return [name for name in find_tokens(text) if name not in bound]


def _split_filters(chain: str) -> list[str]:
    return [part.strip() for part in chain.split("|") if part.strip()]


# ---------------------------------------------------------------------------
# Custom filters
# ---------------------------------------------------------------------------

def _upper_case_filter(value: str) -> str:
    return value.upper()


def _lower_case_filter(value: str) -> str:
    return value.lower()


def _slugify_filter(value: str) -> str:
    """Convert a string to a URL/filename-safe slug."""
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower().strip())
    return slug.strip("-")


def _pascal_case_filter(value: str) -> str:
    """Convert ``some-thing`` or ``some_thing`` to ``SomeThing``."""
    parts = re.split(r"[-_\s]+", value)
    return "".join(word[:1].upper() + word[1:] for word in parts if word)


def _snake_case_filter(value: str) -> str:
    """Convert ``SomeThing`` or ``some-thing`` to ``some_thing``."""
    s1 = re.sub(r"(.)([A-Z][a-z]+)", r"\1_\2", value)
    s2 = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", s1)
    return re.sub(r"[-\s]+", "_", s2).lower()


def _camel_case_filter(value: str) -> str:
    """Convert ``some-thing`` or ``some_thing`` to ``someThing``."""
    pascal = _pascal_case_filter(value)
    if pascal:
        return pascal[0].lower() + pascal[1:]
    return ""


def _kebab_case_filter(value: str) -> str:
    """Convert ``SomeThing`` or ``some_thing`` to ``some-thing``."""
    return _snake_case_filter(value).replace("_", "-")


_default_renderer = TokenRenderer()
