#!/usr/bin/env python3
"""
resolver.py
-----------
Evaluates path expressions against a JSON-like data tree.

The resolver is a pure function over its data: it never mutates the tree,
keeps no cache between calls, and returns the stored values themselves
(callers copy when they need ownership).

Resolution rules:
    - A missing key, an index out of range, or a null value met before the
      last operation raises PathNotFound. A terminal null is a valid result.
    - ``[]`` over a non-array raises ArrayExpected (null raises PathNotFound).
    - During expansion, elements for which the remainder of the path raises
      PathNotFound are skipped rather than null-padded.
    - Every further expansion in the remainder flattens one level into the
      running collection, so ``a[].b[]`` yields a flat list.

Usage:
    from registrar.datapath.resolver import PathResolver

    resolver = PathResolver({"a": [{"b": [1, 2]}, {"b": [3]}]})
    resolver.resolve("a[].b[]")          # [1, 2, 3]
    resolver.resolve_as_array("a[0].c")  # []
    resolver.exists("a[1].b")            # True
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from typing import Any, List, Sequence, Tuple, Union

# --- Local imports ---
from registrar.core.exceptions import ArrayExpected, PathError, PathNotFound
from registrar.datapath.expression import (
    EXPAND,
    INDEX,
    KEY,
    PathExpression,
    parse_path,
)

PathLike = Union[str, PathExpression]


class PathResolver:
    """
    Path evaluation over one data tree.

    Attributes:
        data: Root of the tree paths are resolved against
    """

    def __init__(self, data: Any) -> None:
        self.data = data

    def resolve(self, path: PathLike) -> Any:
        """
        Resolve a path expression.

        Args:
            path: Expression text or a parsed PathExpression

        Returns:
            The value at the path, or a list of collected values when the
            path contains an expansion (even for a single match)

        Raises:
            InvalidPathSyntax: If the expression is malformed
            PathNotFound: If any step is absent
            ArrayExpected: If ``[]`` meets a non-array value
        """
        expr = _as_expression(path)
        return _walk(self.data, expr.operations(), 0, expr.raw)

    def resolve_as_array(self, path: PathLike) -> List[Any]:
        """
        Resolve a path and always return a list.

        Missing paths and null values give an empty list; lists are returned
        as they are; any other value is wrapped in a one-element list.

        Raises:
            InvalidPathSyntax: If the expression is malformed
            ArrayExpected: If ``[]`` meets a non-array value
        """
        try:
            value = self.resolve(path)
        except PathNotFound:
            return []
        if value is None:
            return []
        if isinstance(value, list):
            return value
        return [value]

    def exists(self, path: PathLike) -> bool:
        """True iff ``resolve(path)`` succeeds."""
        try:
            self.resolve(path)
        except PathError:
            return False
        return True


def _as_expression(path: PathLike) -> PathExpression:
    if isinstance(path, PathExpression):
        return path
    return parse_path(path)


def _walk(
    current: Any,
    ops: Sequence[Tuple[str, object]],
    start: int,
    raw: str,
) -> Any:
    """Apply ``ops[start:]`` to ``current``."""
    for position in range(start, len(ops)):
        op, arg = ops[position]

        if current is None:
            raise PathNotFound(
                f"Null value before '{_describe(op, arg)}' in '{raw}'", raw
            )

        if op == KEY:
            if not isinstance(current, dict) or arg not in current:
                raise PathNotFound(f"Key '{arg}' not found in '{raw}'", raw)
            current = current[arg]

        elif op == INDEX:
            if not isinstance(current, list):
                raise PathNotFound(
                    f"Index [{arg}] applied to {type(current).__name__} in '{raw}'",
                    raw,
                )
            if arg >= len(current):  # type: ignore[operator]
                raise PathNotFound(
                    f"Index [{arg}] out of range ({len(current)} items) in '{raw}'",
                    raw,
                )
            current = current[arg]  # type: ignore[index]

        else:  # EXPAND
            if not isinstance(current, list):
                raise ArrayExpected(
                    f"Expansion '[]' applied to {type(current).__name__} in '{raw}'",
                    raw,
                )
            return _expand(current, ops, position + 1, raw)

    return current


def _expand(
    items: List[Any],
    ops: Sequence[Tuple[str, object]],
    start: int,
    raw: str,
) -> List[Any]:
    """Resolve ``ops[start:]`` against each element and collect the results."""
    nested = any(op == EXPAND for op, _ in ops[start:])
    collected: List[Any] = []
    for item in items:
        try:
            value = _walk(item, ops, start, raw)
        except PathNotFound:
            continue
        if nested:
            collected.extend(value)
        else:
            collected.append(value)
    return collected


def _describe(op: str, arg: object) -> str:
    if op == KEY:
        return str(arg)
    if op == INDEX:
        return f"[{arg}]"
    return "[]"
