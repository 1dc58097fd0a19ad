#!/usr/bin/env python3
"""
directives.py
-------------
Directive registry: classifies schema ``x-*`` keys into a closed set of
directive variants.

A schema is inspected once, at parse time. Every recognised key is turned
into a typed directive object (``FrontmatterPart``, ``DerivedFrom``, ...)
and checked against the configuration in ``directives.yaml``: accepted
value types, the node shapes it may attach to, directives it depends on
and directives it conflicts with. Aggregation and rendering then dispatch
on the variant, never on key strings.

Directive keys may sit directly on a schema node or inside a nested
``extensions`` mapping; a direct key wins over the nested one. A ``false``
value is treated as if the key were absent.

Usage:
    from registrar.schema.directives import DirectiveKind, DirectiveRegistry

    registry = DirectiveRegistry.default()
    directives = registry.extract(
        raw_node, path="tools.commands", is_array=True, is_object=False
    )
    directives[DirectiveKind.FRONTMATTER_PART]  # FrontmatterPart()
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Union

# --- Third party imports ---
import yaml

# --- Local imports ---
from registrar.core.exceptions import ConfigurationError
from registrar.core.paths import DIRECTIVES_CONFIG, TEMPLATE_SUFFIXES


EXTENSIONS_KEY = "extensions"

AGGREGATE_PHASE = "aggregate"
RENDER_PHASE = "render"

_VALUE_TYPES = {
    "string": str,
    "boolean": bool,
    "object": dict,
    "array": list,
}
_SHAPES = ("array", "object", "items", "root", "any")


class DirectiveKind(Enum):
    """Closed set of schema directives, keyed by their schema key."""

    FRONTMATTER_PART = "x-frontmatter-part"
    FLATTEN_ARRAYS = "x-flatten-arrays"
    DERIVED_FROM = "x-derived-from"
    DERIVED_UNIQUE = "x-derived-unique"
    JMESPATH_FILTER = "x-jmespath-filter"
    TEMPLATE = "x-template"
    TEMPLATE_ITEMS = "x-template-items"

    @property
    def key(self) -> str:
        return self.value


# ═══════════════════════════════════════════════════════════════════════════
# DIRECTIVE VARIANTS
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class FrontmatterPart:
    """Populate an array node with one element per document."""

    kind: ClassVar[DirectiveKind] = DirectiveKind.FRONTMATTER_PART


@dataclass(frozen=True)
class FlattenArrays:
    """
    Normalize a scalar-or-array field into one flat array.

    Attributes:
        field: Path of the field to collect; None means the node's own name
    """

    field: Optional[str] = None
    kind: ClassVar[DirectiveKind] = DirectiveKind.FLATTEN_ARRAYS


@dataclass(frozen=True)
class DerivedFrom:
    """
    Compute a node value by projecting a path over the aggregate.

    Attributes:
        expression: Path expression text, e.g. ``"commands[].c1"``
        unique: Deduplicate the result keeping first-seen order
            (folded in from ``x-derived-unique``)
    """

    expression: str
    unique: bool = False
    kind: ClassVar[DirectiveKind] = DirectiveKind.DERIVED_FROM


@dataclass(frozen=True)
class JMESPathFilter:
    """Apply a JMESPath query to the node value or the aggregate root."""

    query: str
    kind: ClassVar[DirectiveKind] = DirectiveKind.JMESPATH_FILTER


@dataclass(frozen=True)
class TemplateDirective:
    """
    Reshape a node (or each array element) during rendering.

    Attributes:
        source: Either the name of a template resource (a string ending in a
            template suffix) or an inline template (string, object or array)
    """

    source: Any
    kind: ClassVar[DirectiveKind] = DirectiveKind.TEMPLATE

    @property
    def is_reference(self) -> bool:
        """True if ``source`` names a template resource."""
        return isinstance(self.source, str) and self.source.lower().endswith(
            TEMPLATE_SUFFIXES
        )


@dataclass(frozen=True)
class TemplateItems(TemplateDirective):
    """
    Item template for the ``{@items}`` placeholder of the root template.

    Each document record of the frontmatter part is rendered through this
    template and the results are spliced where ``{@items}`` appears.
    """

    kind: ClassVar[DirectiveKind] = DirectiveKind.TEMPLATE_ITEMS


Directive = Union[
    FrontmatterPart, FlattenArrays, DerivedFrom, JMESPathFilter, TemplateDirective,
    TemplateItems,
]


# ═══════════════════════════════════════════════════════════════════════════
# REGISTRY
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class DirectiveSpec:
    """Configuration for one directive, as read from ``directives.yaml``."""

    kind: DirectiveKind
    stage: int
    phase: str
    description: str = ""
    value_types: Tuple[str, ...] = ()
    applies_to: Tuple[str, ...] = ("any",)
    depends_on: Tuple[DirectiveKind, ...] = ()
    conflicts_with: Tuple[DirectiveKind, ...] = ()
    handled_by: Optional[DirectiveKind] = None

    def accepts_value(self, value: Any) -> bool:
        return any(isinstance(value, _VALUE_TYPES[t]) for t in self.value_types)

    def accepts_shape(
        self, is_array: bool, is_object: bool, is_items: bool, is_root: bool = False
    ) -> bool:
        for shape in self.applies_to:
            if shape == "any":
                return True
            if shape == "array" and is_array:
                return True
            if shape == "object" and is_object:
                return True
            if shape == "items" and is_items:
                return True
            if shape == "root" and is_root:
                return True
        return False


class DirectiveRegistry:
    """
    Classifies and validates the directives carried by schema nodes.

    Attributes:
        specs: Directive configuration keyed by kind
    """

    def __init__(self, specs: Dict[DirectiveKind, DirectiveSpec]) -> None:
        missing = [kind.key for kind in DirectiveKind if kind not in specs]
        if missing:
            raise ConfigurationError(
                f"Directive configuration is missing: {', '.join(missing)}"
            )
        self.specs = specs

    @classmethod
    def default(cls) -> "DirectiveRegistry":
        """Registry built from the bundled ``directives.yaml``."""
        return cls.from_yaml(DIRECTIVES_CONFIG)

    @classmethod
    def from_yaml(cls, path: Path) -> "DirectiveRegistry":
        """
        Load directive configuration from a YAML file.

        Args:
            path: Path to a directive configuration file

        Returns:
            DirectiveRegistry instance

        Raises:
            ConfigurationError: If the file cannot be read or an entry is
                malformed
        """
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(
                f"Cannot load directive configuration {path}: {e}"
            ) from e

        if not isinstance(config, dict) or not isinstance(
            config.get("directives"), dict
        ):
            raise ConfigurationError(
                f"Directive configuration {path} must have a 'directives' mapping"
            )

        specs: Dict[DirectiveKind, DirectiveSpec] = {}
        for key, entry in config["directives"].items():
            spec = _parse_spec(key, entry)
            specs[spec.kind] = spec
        return cls(specs)

    def spec(self, kind: DirectiveKind) -> DirectiveSpec:
        return self.specs[kind]

    def classify(self, key: str) -> Optional[DirectiveKind]:
        """Map a schema key to its directive kind, or None if not a directive."""
        try:
            return DirectiveKind(key)
        except ValueError:
            return None

    def processing_order(self, phase: Optional[str] = None) -> List[DirectiveKind]:
        """
        Directive kinds in processing order.

        Sorted by stage; within a stage a directive follows the directives
        it depends on. Kinds folded into another directive are excluded.

        Args:
            phase: Restrict to ``"aggregate"`` or ``"render"`` directives
        """
        kinds = [
            spec.kind
            for spec in self.specs.values()
            if spec.handled_by is None and (phase is None or spec.phase == phase)
        ]
        return sorted(kinds, key=lambda k: (self.specs[k].stage, self._depth(k)))

    def _depth(self, kind: DirectiveKind, seen: Tuple[DirectiveKind, ...] = ()) -> int:
        if kind in seen:
            raise ConfigurationError(f"Circular directive dependency at {kind.key}")
        deps = self.specs[kind].depends_on
        if not deps:
            return 0
        return 1 + max(self._depth(dep, seen + (kind,)) for dep in deps)

    def extract(
        self,
        raw: Dict[str, Any],
        path: str,
        is_array: bool,
        is_object: bool,
        is_items: bool = False,
        in_items: bool = False,
    ) -> Dict[DirectiveKind, Directive]:
        """
        Extract and validate the directives carried by one schema node.

        Args:
            raw: Raw schema node mapping
            path: Dotted location of the node, for error messages
            is_array: Node is array-shaped
            is_object: Node is object-shaped
            is_items: Node is the item schema of an array
            in_items: Node is the item schema of an array or nested below one

        Returns:
            Directive variants keyed by kind (folded kinds excluded)

        Raises:
            ConfigurationError: On a wrong value type, a disallowed node
                shape, a missing dependency, a conflict, or an aggregation
                directive inside an array item schema
        """
        values = self._collect(raw, path)
        where = path or "<root>"

        for kind, value in values.items():
            spec = self.specs[kind]
            if not spec.accepts_value(value):
                raise ConfigurationError(
                    f"{kind.key} at '{where}' must be "
                    f"{' or '.join(spec.value_types)}, got {type(value).__name__}"
                )
            if not spec.accepts_shape(is_array, is_object, is_items, is_root=not path):
                raise ConfigurationError(
                    f"{kind.key} at '{where}' requires a node of shape "
                    f"{' or '.join(spec.applies_to)}"
                )
            if in_items and spec.phase == AGGREGATE_PHASE:
                raise ConfigurationError(
                    f"{kind.key} at '{where}' is not allowed inside an array item schema"
                )
            for dep in spec.depends_on:
                if dep not in values:
                    raise ConfigurationError(
                        f"{kind.key} at '{where}' requires {dep.key}"
                    )
            for other in spec.conflicts_with:
                if other in values:
                    raise ConfigurationError(
                        f"{kind.key} and {other.key} cannot both be set at '{where}'"
                    )

        return self._build(values)

    def _collect(self, raw: Dict[str, Any], path: str) -> Dict[DirectiveKind, Any]:
        """Gather directive values from the node and its ``extensions`` mapping."""
        merged: Dict[str, Any] = {}
        extensions = raw.get(EXTENSIONS_KEY)
        if isinstance(extensions, dict):
            merged.update(extensions)
        elif extensions is not None:
            raise ConfigurationError(
                f"'{EXTENSIONS_KEY}' at '{path or '<root>'}' must be a mapping"
            )
        merged.update(raw)

        values: Dict[DirectiveKind, Any] = {}
        for key, value in merged.items():
            kind = self.classify(key)
            if kind is None or value is False:
                continue
            values[kind] = value
        return values

    @staticmethod
    def _build(values: Dict[DirectiveKind, Any]) -> Dict[DirectiveKind, Directive]:
        directives: Dict[DirectiveKind, Directive] = {}
        if DirectiveKind.FRONTMATTER_PART in values:
            directives[DirectiveKind.FRONTMATTER_PART] = FrontmatterPart()
        if DirectiveKind.FLATTEN_ARRAYS in values:
            value = values[DirectiveKind.FLATTEN_ARRAYS]
            directives[DirectiveKind.FLATTEN_ARRAYS] = FlattenArrays(
                field=value if isinstance(value, str) else None
            )
        if DirectiveKind.DERIVED_FROM in values:
            directives[DirectiveKind.DERIVED_FROM] = DerivedFrom(
                expression=values[DirectiveKind.DERIVED_FROM],
                unique=DirectiveKind.DERIVED_UNIQUE in values,
            )
        if DirectiveKind.JMESPATH_FILTER in values:
            directives[DirectiveKind.JMESPATH_FILTER] = JMESPathFilter(
                query=values[DirectiveKind.JMESPATH_FILTER]
            )
        if DirectiveKind.TEMPLATE in values:
            directives[DirectiveKind.TEMPLATE] = TemplateDirective(
                source=values[DirectiveKind.TEMPLATE]
            )
        if DirectiveKind.TEMPLATE_ITEMS in values:
            directives[DirectiveKind.TEMPLATE_ITEMS] = TemplateItems(
                source=values[DirectiveKind.TEMPLATE_ITEMS]
            )
        return directives


def _parse_spec(key: str, entry: Any) -> DirectiveSpec:
    """Build a DirectiveSpec from one configuration entry."""
    try:
        kind = DirectiveKind(key)
    except ValueError:
        raise ConfigurationError(f"Unknown directive in configuration: {key}")

    if not isinstance(entry, dict):
        raise ConfigurationError(f"Directive '{key}' must be a mapping")
    if not isinstance(entry.get("stage"), int):
        raise ConfigurationError(f"Directive '{key}' must have integer 'stage'")
    if entry.get("phase") not in (AGGREGATE_PHASE, RENDER_PHASE):
        raise ConfigurationError(
            f"Directive '{key}' must have phase '{AGGREGATE_PHASE}' or '{RENDER_PHASE}'"
        )

    value_types = tuple(entry.get("value_types") or ())
    unknown_types = [t for t in value_types if t not in _VALUE_TYPES]
    if not value_types or unknown_types:
        raise ConfigurationError(
            f"Directive '{key}' has invalid 'value_types': {list(value_types)}"
        )

    applies_to = tuple(entry.get("applies_to") or ("any",))
    if any(shape not in _SHAPES for shape in applies_to):
        raise ConfigurationError(
            f"Directive '{key}' has invalid 'applies_to': {list(applies_to)}"
        )

    def kinds(field_name: str) -> Tuple[DirectiveKind, ...]:
        names = entry.get(field_name) or []
        if not isinstance(names, list):
            raise ConfigurationError(f"Directive '{key}' must have list '{field_name}'")
        try:
            return tuple(DirectiveKind(name) for name in names)
        except ValueError as e:
            raise ConfigurationError(f"Directive '{key}': {e}") from e

    handled_by = entry.get("handled_by")
    try:
        handled_kind = DirectiveKind(handled_by) if handled_by else None
    except ValueError as e:
        raise ConfigurationError(f"Directive '{key}': {e}") from e

    return DirectiveSpec(
        kind=kind,
        stage=entry["stage"],
        phase=entry["phase"],
        description=entry.get("description", ""),
        value_types=value_types,
        applies_to=applies_to,
        depends_on=kinds("depends_on"),
        conflicts_with=kinds("conflicts_with"),
        handled_by=handled_kind,
    )
