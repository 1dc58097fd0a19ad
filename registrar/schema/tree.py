#!/usr/bin/env python3
"""
tree.py
-------
Parsed schema tree.

``parse_schema`` walks a raw JSON Schema mapping once and produces an
immutable tree of ``SchemaNode`` objects. Each node carries its typed
directives (see ``registrar.schema.directives``), its child property nodes
in declaration order, its array item schema and its ``default`` value.

Usage:
    from registrar.schema.tree import parse_schema

    root = parse_schema(raw_schema)
    for node in root.walk():
        if node.has(DirectiveKind.FRONTMATTER_PART):
            ...
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional, Tuple, Union

# --- Local imports ---
from registrar.core.exceptions import ConfigurationError
from registrar.datapath.expression import EXPAND, INDEX, KEY, PathExpression, parse_path
from registrar.schema.directives import Directive, DirectiveKind, DirectiveRegistry


class _Missing:
    """Sentinel type for an absent ``default``."""

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


@dataclass(frozen=True)
class SchemaNode:
    """
    One node of a parsed schema.

    Attributes:
        name: Property name ("" for the root, "[]" for an item schema)
        path: Property chain from the root; item schemas share the path of
            their array node
        types: Declared JSON Schema types (empty when untyped)
        directives: Typed directives keyed by kind
        properties: Child property nodes in declaration order
        items: Item schema of an array node
        default: Declared default value, or MISSING
        in_items: Node is an array item schema or nested below one
        raw: Raw schema mapping the node was parsed from
    """

    name: str
    path: Tuple[str, ...] = ()
    types: Tuple[str, ...] = ()
    directives: Dict[DirectiveKind, Directive] = field(default_factory=dict)
    properties: Dict[str, "SchemaNode"] = field(default_factory=dict)
    items: Optional["SchemaNode"] = None
    default: Any = MISSING
    in_items: bool = False
    raw: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def location(self) -> str:
        """Dotted property path, ``<root>`` for the root node."""
        location = ".".join(self.path)
        if self.name == "[]":
            location += "[]"
        return location or "<root>"

    @property
    def is_array(self) -> bool:
        return _is_array(self.types, self.raw)

    @property
    def is_object(self) -> bool:
        return _is_object(self.types, self.raw)

    @property
    def has_default(self) -> bool:
        return self.default is not MISSING

    def has(self, kind: DirectiveKind) -> bool:
        return kind in self.directives

    def directive(self, kind: DirectiveKind) -> Optional[Directive]:
        return self.directives.get(kind)

    def walk(self, include_items: bool = False) -> Iterator["SchemaNode"]:
        """
        Depth-first, left-to-right preorder over the property chain.

        Yields this node first, then each property subtree in declaration
        order. Array item schemas are entered only with ``include_items``.
        """
        yield self
        for child in self.properties.values():
            yield from child.walk(include_items)
        if include_items and self.items is not None:
            yield from self.items.walk(include_items)

    def find(self, path: Union[str, PathExpression]) -> Optional["SchemaNode"]:
        """
        Locate the schema node describing the value at a data path.

        Keys descend into ``properties``; indexes and expansions descend
        into ``items``.

        Returns:
            The matching node, or None when the schema does not describe
            the path
        """
        expr = path if isinstance(path, PathExpression) else parse_path(path)
        node: Optional[SchemaNode] = self
        for op, arg in expr.operations():
            if node is None:
                return None
            if op == KEY:
                node = node.properties.get(arg)  # type: ignore[arg-type]
            elif op in (INDEX, EXPAND):
                node = node.items
        return node


def parse_schema(
    raw: Dict[str, Any],
    registry: Optional[DirectiveRegistry] = None,
) -> SchemaNode:
    """
    Parse a raw schema mapping into a SchemaNode tree.

    Args:
        raw: Schema mapping (``$ref`` already resolved)
        registry: Directive registry; defaults to the bundled configuration

    Returns:
        Root SchemaNode

    Raises:
        ConfigurationError: If a node is malformed or a directive is
            misconfigured
    """
    if not isinstance(raw, dict):
        raise ConfigurationError(
            f"Schema must be a mapping, got {type(raw).__name__}"
        )
    registry = registry or DirectiveRegistry.default()
    return _parse_node(raw, "", (), registry, is_items=False, in_items=False)


def _parse_node(
    raw: Dict[str, Any],
    name: str,
    path: Tuple[str, ...],
    registry: DirectiveRegistry,
    is_items: bool,
    in_items: bool,
) -> SchemaNode:
    location = ".".join(path)
    if is_items:
        location = f"{location}[]" if location else "[]"

    types = _types(raw.get("type"), location)
    is_array = _is_array(types, raw)
    is_object = _is_object(types, raw)

    directives = registry.extract(
        raw,
        path=location,
        is_array=is_array,
        is_object=is_object,
        is_items=is_items,
        in_items=in_items,
    )

    raw_properties = raw.get("properties", {})
    if not isinstance(raw_properties, dict):
        raise ConfigurationError(f"'properties' at '{location or '<root>'}' must be a mapping")

    properties: Dict[str, SchemaNode] = {}
    for prop_name, prop_raw in raw_properties.items():
        if not isinstance(prop_raw, dict):
            raise ConfigurationError(
                f"Property schema '{prop_name}' at '{location or '<root>'}' must be a mapping"
            )
        properties[prop_name] = _parse_node(
            prop_raw,
            prop_name,
            path + (prop_name,),
            registry,
            is_items=False,
            in_items=in_items,
        )

    items: Optional[SchemaNode] = None
    raw_items = raw.get("items")
    if isinstance(raw_items, dict):
        items = _parse_node(
            raw_items, "[]", path, registry, is_items=True, in_items=True
        )

    return SchemaNode(
        name=name,
        path=path,
        types=types,
        directives=directives,
        properties=properties,
        items=items,
        default=raw.get("default", MISSING),
        in_items=in_items or is_items,
        raw=raw,
    )


def _types(declared: Any, location: str) -> Tuple[str, ...]:
    if declared is None:
        return ()
    if isinstance(declared, str):
        return (declared,)
    if isinstance(declared, list) and all(isinstance(t, str) for t in declared):
        return tuple(declared)
    raise ConfigurationError(
        f"'type' at '{location or '<root>'}' must be a string or list of strings"
    )


def _is_array(types: Tuple[str, ...], raw: Dict[str, Any]) -> bool:
    if types:
        return "array" in types
    return "items" in raw


def _is_object(types: Tuple[str, ...], raw: Dict[str, Any]) -> bool:
    if types:
        return "object" in types
    return "properties" in raw
