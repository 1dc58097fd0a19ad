#!/usr/bin/env python3
"""
output.py
---------
Serialization of build output to JSON or YAML.

``write_output`` uses change detection: the file is only rewritten when
the serialized content differs, preserving timestamps for unchanged
registries.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import json
from pathlib import Path
from typing import Any

# --- Third party imports ---
import yaml

OUTPUT_FORMATS = ("json", "yaml")


def serialize_output(data: Any, fmt: str = "json") -> str:
    """
    Serialize a tree as JSON (indent 2) or YAML, with a trailing newline.

    Plain-text output (a rendered text template) is returned as-is.

    Raises:
        ValueError: If the format is not supported
    """
    if isinstance(data, str):
        return data if data.endswith("\n") else data + "\n"
    if fmt == "json":
        return json.dumps(data, indent=2, ensure_ascii=False, default=str) + "\n"
    if fmt == "yaml":
        return yaml.safe_dump(
            data, sort_keys=False, allow_unicode=True, default_flow_style=False
        )
    raise ValueError(f"Unsupported output format: {fmt} (expected one of {OUTPUT_FORMATS})")


def write_output(data: Any, output_path: Path, fmt: str = "json") -> bool:
    """
    Serialize and write output, with change detection.

    Args:
        data: Tree (or text) to write
        output_path: Destination file; parent directories are created
        fmt: json or yaml

    Returns:
        True if the file was written, False if content was unchanged
    """
    content = serialize_output(data, fmt)
    output_path = Path(output_path)

    if output_path.exists():
        existing = output_path.read_text(encoding="utf-8")
        if existing == content:
            return False

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(content, encoding="utf-8")
    return True
