#!/usr/bin/env python3
"""
documents.py
------------
Input documents and the aggregation context.

A ``Document`` is an identifier plus the property map extracted from one
source file. An ``AggregationContext`` pairs an ordered tuple of documents
with the parsed schema; document order is caller-supplied and preserved
through aggregation.

``load_documents`` reads documents from disk:

    - Markdown (``.md``, ``.markdown``): YAML frontmatter between ``---`` lines
    - YAML (``.yaml``, ``.yml``) and JSON (``.json``): the whole file

Directories expand to their supported files in lexical order; explicitly
listed files keep the order given.

Usage:
    from registrar.aggregation.documents import AggregationContext, load_documents

    documents = load_documents([Path("prompts")])
    context = AggregationContext(documents=tuple(documents), schema=schema)
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

# --- Third party imports ---
import yaml

# --- Local imports ---
from registrar.core.exceptions import DocumentLoadError
from registrar.core.logging_manager import RegistrarLogger, safe_logger
from registrar.core.paths import DOCUMENT_SUFFIXES
from registrar.schema.tree import SchemaNode

MARKDOWN_SUFFIXES = (".md", ".markdown")


@dataclass(frozen=True)
class Document:
    """
    One input document.

    Attributes:
        identifier: Stable identifier, usually the source file path
        properties: Extracted property map (read-only by convention)
    """

    identifier: str
    properties: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AggregationContext:
    """
    Ordered documents plus the schema they are aggregated into.

    Attributes:
        documents: Documents in semantic order
        schema: Root of the parsed schema tree
    """

    documents: Tuple[Document, ...]
    schema: SchemaNode

    @classmethod
    def from_records(
        cls, records: Sequence[Dict[str, Any]], schema: SchemaNode
    ) -> "AggregationContext":
        """Build a context from bare property maps, numbering identifiers."""
        documents = tuple(
            Document(identifier=f"doc{i + 1}", properties=record)
            for i, record in enumerate(records)
        )
        return cls(documents=documents, schema=schema)

    @property
    def records(self) -> List[Dict[str, Any]]:
        return [doc.properties for doc in self.documents]


# ----- Frontmatter -----
def split_frontmatter(content: str) -> Tuple[str, List[str]]:
    """
    Split markdown content into YAML frontmatter and body.

    Expected format:
        ---
        yaml: content
        ---

        Body content here...

    Args:
        content: Full markdown file content

    Returns:
        Tuple of (frontmatter_text, body_lines); frontmatter_text is empty
        when the file has no frontmatter block
    """
    lines = content.splitlines()

    if not lines or lines[0].strip() != "---":
        return "", lines

    frontmatter_end = None
    for i, line in enumerate(lines[1:], 1):
        if line.strip() == "---":
            frontmatter_end = i
            break

    if frontmatter_end is None:
        return "", lines

    frontmatter_lines = lines[1:frontmatter_end]
    body_lines = lines[frontmatter_end + 1 :]

    while body_lines and body_lines[0].strip() == "":
        body_lines.pop(0)

    return "\n".join(frontmatter_lines), body_lines


# ----- Loading -----
def load_documents(
    paths: Iterable[Path],
    logger: Optional[RegistrarLogger] = None,
) -> List[Document]:
    """
    Load documents from files and directories.

    Args:
        paths: Files and/or directories, in caller order
        logger: Optional logger

    Returns:
        Documents in input order (directory contents in lexical order)

    Raises:
        DocumentLoadError: If a path does not exist or a file cannot be
            read or parsed into a mapping
    """
    documents: List[Document] = []
    for path in _expand_paths(paths):
        documents.append(load_document(path))
        safe_logger(logger).log_debug("Loaded document", {"path": str(path)})

    safe_logger(logger).log_operation(
        "load_documents", {"documents": len(documents)}
    )
    return documents


def load_document(path: Path) -> Document:
    """
    Load a single document file.

    Markdown files without a frontmatter block yield an empty property map.

    Raises:
        DocumentLoadError: If the file cannot be read, is not valid
            YAML/JSON, or does not hold a mapping
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise DocumentLoadError(f"Cannot read document {path}: {e}") from e

    suffix = path.suffix.lower()
    try:
        if suffix in MARKDOWN_SUFFIXES:
            frontmatter, _ = split_frontmatter(text)
            properties = yaml.safe_load(frontmatter) if frontmatter.strip() else {}
        elif suffix == ".json":
            properties = json.loads(text)
        else:
            properties = yaml.safe_load(text)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise DocumentLoadError(f"Invalid metadata in {path}: {e}") from e

    if properties is None:
        properties = {}
    if not isinstance(properties, dict):
        raise DocumentLoadError(
            f"Frontmatter must be a mapping: {path} "
            f"(got {type(properties).__name__})"
        )

    return Document(identifier=str(path), properties=properties)


def _expand_paths(paths: Iterable[Path]) -> List[Path]:
    expanded: List[Path] = []
    for path in paths:
        path = Path(path)
        if path.is_dir():
            expanded.extend(
                sorted(
                    p
                    for p in path.rglob("*")
                    if p.is_file() and p.suffix.lower() in DOCUMENT_SUFFIXES
                )
            )
        elif path.is_file():
            expanded.append(path)
        else:
            raise DocumentLoadError(f"Input not found: {path}")
    return expanded
