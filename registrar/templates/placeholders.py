#!/usr/bin/env python3
"""
placeholders.py
---------------
Placeholder grammar and value formatting for templates.

A placeholder is ``{`` optional whitespace, a path expression, optional
whitespace ``}``:

    "{name}"              whole-string placeholder, replaced by the typed value
    "v{ version }-beta"   inline placeholder, interpolated as text

A placeholder body containing a quote character, or one that is not a
valid path expression, is not a placeholder and stays verbatim.

The reserved body ``@items`` stands for the rendered frontmatter records
(see ``x-template-items``); it is expanded only when the caller supplies
an expansion.

Inline formatting:
    - str           as-is
    - None/missing  empty text
    - bool          true / false
    - int, float    str()
    - list, dict    compact JSON
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import json
import re
from typing import Any, Callable, List, Optional, Tuple

# --- Local imports ---
from registrar.core.exceptions import InvalidPathSyntax
from registrar.datapath.expression import PathExpression, parse_path

PLACEHOLDER_RE = re.compile(r"\{\s*([^{}]*?)\s*\}")
QUOTES = ("\"", "'")
ITEMS_BODY = "@items"

# Looks up a parsed path; returns (found, value)
Lookup = Callable[[PathExpression], Tuple[bool, Any]]
# Expands {@items}; None when there is nothing to expand
ItemsExpansion = Callable[[], Optional[List[Any]]]


def parse_placeholder(body: str) -> Optional[PathExpression]:
    """
    Parse a placeholder body.

    Returns:
        The path expression, or None when the body is not a placeholder
        (contains a quote or is not a valid path)
    """
    if any(quote in body for quote in QUOTES):
        return None
    try:
        return parse_path(body)
    except InvalidPathSyntax:
        return None


def whole_placeholder(text: str) -> Optional[PathExpression]:
    """Path of ``text`` if the entire string is one placeholder, else None."""
    match = PLACEHOLDER_RE.fullmatch(text)
    if match is None:
        return None
    return parse_placeholder(match.group(1))


def has_placeholder(text: str) -> bool:
    """True if ``text`` contains at least one valid placeholder."""
    return any(
        parse_placeholder(m.group(1)) is not None for m in PLACEHOLDER_RE.finditer(text)
    )


def is_items_placeholder(text: str) -> bool:
    """True if the entire string is the ``{@items}`` placeholder."""
    match = PLACEHOLDER_RE.fullmatch(text)
    return match is not None and match.group(1) == ITEMS_BODY


def interpolate(
    text: str, lookup: Lookup, items: Optional[ItemsExpansion] = None
) -> str:
    """
    Replace every inline placeholder in ``text``.

    Args:
        text: Text containing placeholders
        lookup: Resolves a path to ``(found, value)``; misses render as
            empty text
        items: Expands ``{@items}``; the records are formatted one by one
            and joined with ``",\\n"``. Without it ``{@items}`` stays verbatim.

    Returns:
        The interpolated text
    """

    def replace(match: "re.Match[str]") -> str:
        if match.group(1) == ITEMS_BODY and items is not None:
            expanded = items()
            if expanded is None:
                return ""
            return ",\n".join(format_inline(value) for value in expanded)
        expr = parse_placeholder(match.group(1))
        if expr is None:
            return match.group(0)
        found, value = lookup(expr)
        return format_inline(value) if found else ""

    return PLACEHOLDER_RE.sub(replace, text)


def format_inline(value: Any) -> str:
    """Format a value for interpolation into text."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (list, dict)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)
    return str(value)
