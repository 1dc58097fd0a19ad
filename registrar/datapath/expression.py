#!/usr/bin/env python3
"""
expression.py
-------------
Parsed path expressions.

A path expression is a dot-separated list of segments. Each segment is an
identifier followed by zero or more bracket suffixes:

    - ``[n]``  index into an array
    - ``[]``   expansion: continue with every element of an array

Examples:
    tools.commands[0].c1
    tools.commands[].c1
    a[].b[]
    matrix[1][0]

Expressions are parsed eagerly; malformed syntax raises InvalidPathSyntax
before any data is touched.

Usage:
    from registrar.datapath.expression import parse_path

    expr = parse_path("tools.commands[].c1")
    expr.has_expansion  # True
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import re
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

# --- Local imports ---
from registrar.core.exceptions import InvalidPathSyntax


IDENTIFIER_PATTERN = r"[A-Za-z_$][A-Za-z0-9_$-]*"
SEGMENT_RE = re.compile(rf"^({IDENTIFIER_PATTERN})((?:\[\d*\])*)$")
SUFFIX_RE = re.compile(r"\[(\d*)\]")

# Operation codes produced by PathExpression.operations()
KEY = "key"
INDEX = "index"
EXPAND = "expand"


@dataclass(frozen=True)
class PathSegment:
    """
    One dot-separated segment of a path expression.

    Attributes:
        name: Property name to look up
        suffixes: Bracket suffixes in order; an int is an index, None is an
            expansion
    """

    name: str
    suffixes: Tuple[Optional[int], ...] = ()

    @property
    def has_expansion(self) -> bool:
        return any(s is None for s in self.suffixes)

    def __str__(self) -> str:
        tail = "".join("[]" if s is None else f"[{s}]" for s in self.suffixes)
        return f"{self.name}{tail}"


@dataclass(frozen=True)
class PathExpression:
    """
    A parsed, validated path expression.

    Attributes:
        raw: The expression text as written
        segments: Parsed segments, never empty
    """

    raw: str
    segments: Tuple[PathSegment, ...]

    @property
    def has_expansion(self) -> bool:
        """True if any segment carries a ``[]`` suffix."""
        return any(seg.has_expansion for seg in self.segments)

    @property
    def head(self) -> str:
        """Name of the first segment."""
        return self.segments[0].name

    def operations(self) -> List[Tuple[str, object]]:
        """
        Flatten the expression into a list of traversal operations.

        Returns:
            List of ``(op, arg)`` pairs where op is KEY (arg: name),
            INDEX (arg: int) or EXPAND (arg: None)
        """
        ops: List[Tuple[str, object]] = []
        for seg in self.segments:
            ops.append((KEY, seg.name))
            for suffix in seg.suffixes:
                if suffix is None:
                    ops.append((EXPAND, None))
                else:
                    ops.append((INDEX, suffix))
        return ops

    def __iter__(self) -> Iterator[PathSegment]:
        return iter(self.segments)

    def __str__(self) -> str:
        return self.raw


def parse_path(path: str) -> PathExpression:
    """
    Parse and validate a path expression.

    Args:
        path: Expression text, e.g. ``"tools.commands[].c1"``

    Returns:
        PathExpression with at least one segment

    Raises:
        InvalidPathSyntax: If the expression is empty, contains whitespace,
            has empty segments (leading, trailing or consecutive dots) or a
            malformed identifier or bracket suffix
    """
    if not isinstance(path, str):
        raise InvalidPathSyntax(
            f"Path expression must be a string, got {type(path).__name__}",
            repr(path),
        )
    if not path:
        raise InvalidPathSyntax("Path expression is empty", path)
    if any(ch.isspace() for ch in path):
        raise InvalidPathSyntax(f"Whitespace in path expression '{path}'", path)

    segments: List[PathSegment] = []
    for position, part in enumerate(path.split(".")):
        if not part:
            if position == 0:
                reason = "Leading dot"
            elif position == path.count("."):
                reason = "Trailing dot"
            else:
                reason = "Consecutive dots"
            raise InvalidPathSyntax(f"{reason} in path expression '{path}'", path)

        match = SEGMENT_RE.match(part)
        if not match:
            raise InvalidPathSyntax(
                f"Malformed segment '{part}' in path expression '{path}'", path
            )

        name, tail = match.group(1), match.group(2)
        suffixes = tuple(
            int(digits) if digits else None for digits in SUFFIX_RE.findall(tail)
        )
        segments.append(PathSegment(name=name, suffixes=suffixes))

    return PathExpression(raw=path, segments=tuple(segments))


def is_valid_path(path: str) -> bool:
    """Return True if ``path`` parses as a path expression."""
    try:
        parse_path(path)
    except InvalidPathSyntax:
        return False
    return True
