#!/usr/bin/env python3
"""
paths.py
-------------------
Path constants and configuration for the Registrar project.

This module defines all project paths as Path objects for consistent path
handling across the codebase. Package-internal resources (the bundled
directive configuration) are resolved relative to this file; runtime
locations (logs) are resolved relative to the project root.

The project structure:
    ROOT/
    ├── registrar/                # Import package
    │   └── schema/directives.yaml
    ├── logs/                     # Application logs
    └── tests/

All paths are resolved at import time.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from pathlib import Path


def _get_package_dir() -> Path:
    """
    Determine the import package directory.

    Assumes this file is at ROOT/registrar/core/paths.py.

    Returns:
        Path object for the registrar package directory

    Raises:
        RuntimeError: If the package directory cannot be validated
    """
    current_file = Path(__file__).resolve()

    # Navigate up: paths.py -> core/ -> registrar/
    package_dir = current_file.parent.parent

    if not (package_dir / "schema").is_dir():
        raise RuntimeError(
            f"Cannot determine valid package directory. "
            f"Expected {package_dir / 'schema'} to exist. "
            f"Current file: {current_file}"
        )

    return package_dir


# ----- Package -----
PACKAGE_DIR: Path = _get_package_dir()
ROOT: Path = PACKAGE_DIR.parent

# ---- Schema ----
SCHEMA_DIR = PACKAGE_DIR / "schema"
DIRECTIVES_CONFIG = SCHEMA_DIR / "directives.yaml"

# ---- Logs ----
LOG_DIR = ROOT / "logs"

# ---- Inputs ----
# Suffixes recognised when a directory is given as document input
DOCUMENT_SUFFIXES = (".md", ".markdown", ".yaml", ".yml", ".json")

# Suffixes that mark an x-template value as a named template resource
TEMPLATE_SUFFIXES = (".json", ".yaml", ".yml", ".md", ".txt")
