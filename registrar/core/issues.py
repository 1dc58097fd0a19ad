#!/usr/bin/env python3
"""
issues.py
---------
Non-fatal processing issues recorded during aggregation and rendering.

Failures that only affect one node or one placeholder never abort the
surrounding pass. They are captured as ``ProcessingIssue`` records and
returned alongside the result, so a caller (CLI, service) can decide how
to surface them.

Usage:
    from registrar.core.issues import IssueKind, ProcessingIssue

    issue = ProcessingIssue(
        kind=IssueKind.VARIABLE_SUBSTITUTION_MISS,
        path="tools.version",
        message="Placeholder '{version}' did not resolve",
    )
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class IssueKind(Enum):
    """Kinds of non-fatal issues."""

    PATH_NOT_FOUND = "path_not_found"
    INVALID_DERIVATION = "invalid_derivation"
    JMESPATH_COMPILATION_FAILED = "jmespath_compilation_failed"
    JMESPATH_EXECUTION_FAILED = "jmespath_execution_failed"
    VARIABLE_SUBSTITUTION_MISS = "variable_substitution_miss"


@dataclass(frozen=True)
class ProcessingIssue:
    """Represents a non-fatal issue attached to one node or placeholder."""

    kind: IssueKind
    path: str  # e.g., "tools.availableConfigs" or a placeholder path
    message: str
    severity: str = "warning"
    detail: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging and JSON output."""
        return {
            "kind": self.kind.value,
            "path": self.path,
            "message": self.message,
            "severity": self.severity,
            "detail": self.detail,
        }

    def __str__(self) -> str:
        return f"[{self.kind.value}] {self.path}: {self.message}"
