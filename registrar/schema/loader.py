#!/usr/bin/env python3
"""
loader.py
---------
Schema file loading and ``$ref`` resolution.

Schemas may be written in JSON or YAML. References are resolved eagerly
when the file is loaded:

    - ``#/definitions/command``         pointer into the same document
    - ``command.json``                  whole file, relative to the
                                        referring file's directory
    - ``command.json#/definitions/x``   pointer into another file

Keys written next to ``$ref`` override the referenced content. Unreadable
files, dangling pointers and reference cycles raise SchemaLoadError.

Usage:
    from registrar.schema.loader import load_schema

    root = load_schema(Path("schemas/registry_schema.json"))
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import json
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

# --- Third party imports ---
import yaml

# --- Local imports ---
from registrar.core.exceptions import SchemaLoadError
from registrar.schema.directives import DirectiveRegistry
from registrar.schema.tree import SchemaNode, parse_schema

REF_KEY = "$ref"

_RefKey = Tuple[str, str]


def load_schema(
    path: Path,
    registry: Optional[DirectiveRegistry] = None,
) -> SchemaNode:
    """
    Load, resolve and parse a schema file.

    Args:
        path: JSON or YAML schema file
        registry: Directive registry; defaults to the bundled configuration

    Returns:
        Root SchemaNode

    Raises:
        SchemaLoadError: If the schema or a referenced file cannot be loaded
        ConfigurationError: If a directive is misconfigured
    """
    return parse_schema(load_raw_schema(path), registry)


def load_raw_schema(path: Path) -> Dict[str, Any]:
    """
    Load a schema file and resolve every ``$ref`` in it.

    Returns:
        Schema mapping with references replaced by their targets
    """
    path = Path(path).resolve()
    document = read_schema_file(path)
    if not isinstance(document, dict):
        raise SchemaLoadError(f"Schema must be a mapping: {path}")
    return resolve_refs(document, path)


def read_schema_file(path: Path) -> Any:
    """
    Read one JSON or YAML file.

    Raises:
        SchemaLoadError: If the file is missing or cannot be parsed
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise SchemaLoadError(f"Schema not found: {path}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise SchemaLoadError(f"Cannot read schema {path}: {e}") from e

    try:
        if Path(path).suffix.lower() == ".json":
            return json.loads(text)
        return yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise SchemaLoadError(f"Invalid schema {path}: {e}") from e


def resolve_refs(document: Dict[str, Any], source: Path) -> Dict[str, Any]:
    """
    Resolve ``$ref`` entries in an in-memory schema document.

    Args:
        document: Schema mapping
        source: File the document came from; file references resolve
            relative to its directory

    Returns:
        New mapping with references resolved (the input is not modified)
    """
    resolver = _RefResolver()
    resolver.documents[str(Path(source).resolve())] = document
    return resolver.resolve(document, Path(source).resolve(), ())


class _RefResolver:
    """Resolves references, caching each loaded file for one load call."""

    def __init__(self) -> None:
        self.documents: Dict[str, Any] = {}

    def resolve(self, node: Any, source: Path, stack: Tuple[_RefKey, ...]) -> Any:
        if isinstance(node, list):
            return [self.resolve(item, source, stack) for item in node]
        if not isinstance(node, dict):
            return node

        if REF_KEY in node:
            ref = node[REF_KEY]
            if not isinstance(ref, str):
                raise SchemaLoadError(f"$ref must be a string in {source}")
            target, target_source, key = self._dereference(ref, source)
            if key in stack:
                raise SchemaLoadError(f"Circular $ref: {ref} in {source}")
            resolved = self.resolve(target, target_source, stack + (key,))

            siblings = {k: v for k, v in node.items() if k != REF_KEY}
            if not siblings:
                return resolved
            if not isinstance(resolved, dict):
                raise SchemaLoadError(
                    f"$ref {ref} in {source} points to a non-mapping but has sibling keys"
                )
            merged = dict(resolved)
            merged.update(self.resolve(siblings, source, stack))
            return merged

        return {k: self.resolve(v, source, stack) for k, v in node.items()}

    def _dereference(self, ref: str, source: Path) -> Tuple[Any, Path, _RefKey]:
        file_part, _, pointer = ref.partition("#")
        target_source = (source.parent / file_part).resolve() if file_part else source

        document_key = str(target_source)
        if document_key not in self.documents:
            self.documents[document_key] = read_schema_file(target_source)
        document = self.documents[document_key]

        return (
            _follow_pointer(document, pointer, ref),
            target_source,
            (document_key, pointer),
        )


def _follow_pointer(document: Any, pointer: str, ref: str) -> Any:
    """Follow a JSON pointer (``/definitions/x``) into a document."""
    if not pointer or pointer == "/":
        return document
    if not pointer.startswith("/"):
        raise SchemaLoadError(f"Unsupported $ref pointer: {ref}")

    current = document
    for token in pointer[1:].split("/"):
        token = token.replace("~1", "/").replace("~0", "~")
        if isinstance(current, dict) and token in current:
            current = current[token]
        elif isinstance(current, list) and token.isdigit() and int(token) < len(current):
            current = current[int(token)]
        else:
            raise SchemaLoadError(f"Unresolvable $ref: {ref}")
    return current
