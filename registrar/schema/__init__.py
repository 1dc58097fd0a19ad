"""
Schema handling: directive registry, parsed schema tree and schema loading.

Import commonly-used names directly from this package:
    from registrar.schema import DirectiveRegistry, SchemaNode, parse_schema, load_schema
"""

from .directives import DirectiveKind, DirectiveRegistry
from .tree import SchemaNode, parse_schema
from .loader import load_schema

__all__ = [
    "DirectiveKind",
    "DirectiveRegistry",
    "SchemaNode",
    "load_schema",
    "parse_schema",
]
