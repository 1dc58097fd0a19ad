#!/usr/bin/env python3
"""
cli.py
------
Shared CLI utilities and statistics for registrar commands.

Functions:
    setup_logger: Initialize RegistrarLogger for CLI operations

Classes:
    OperationStats: Base class for all statistics
    BuildStats: For registry build operations

Usage:
    from registrar.core.cli import setup_logger, BuildStats

    logger = setup_logger(log_dir, "build", Verbosity.NORMAL)
    stats = BuildStats()
    stats.documents_loaded += 1
    print(stats.summary())
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from pathlib import Path
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Any, Optional

# --- Local imports ---
from registrar.core.logging_manager import RegistrarLogger, Verbosity


# ═══════════════════════════════════════════════════════════════════════════
# LOGGER SETUP
# ═══════════════════════════════════════════════════════════════════════════

def setup_logger(
    log_dir: Path,
    component_name: str,
    verbosity: Verbosity = Verbosity.NORMAL,
) -> RegistrarLogger:
    """
    Setup logging for CLI operations.

    Creates the operations log directory if it doesn't exist and initializes
    a RegistrarLogger whose console level follows the given verbosity.

    Args:
        log_dir: Base log directory (typically from paths.LOG_DIR)
        component_name: Component identifier for logging (e.g., 'build')
        verbosity: Console verbosity for this run

    Returns:
        Configured RegistrarLogger instance

    Examples:
        >>> from registrar.core.paths import LOG_DIR
        >>> logger = setup_logger(LOG_DIR, "build")
        >>> logger.log_info("Starting build...")
    """
    operations_log_dir = Path(log_dir) / "operations"
    operations_log_dir.mkdir(parents=True, exist_ok=True)
    return RegistrarLogger(
        operations_log_dir,
        component_name=component_name,
        console_level=verbosity.console_level,
    )


# ═══════════════════════════════════════════════════════════════════════════
# STATISTICS CLASSES
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class OperationStats:
    """
    Base class for CLI operation statistics.

    Attributes:
        errors: Number of errors encountered
        warnings: Number of non-fatal issues recorded
        start_time: Operation start timestamp
    """
    errors: int = 0
    warnings: int = 0
    start_time: datetime = field(default_factory=datetime.now)
    _duration_cached: Optional[float] = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        """Validate statistics on initialization."""
        if self.errors < 0:
            raise ValueError(f"errors must be non-negative, got {self.errors}")
        if self.warnings < 0:
            raise ValueError(f"warnings must be non-negative, got {self.warnings}")

    def duration(self) -> float:
        """
        Get elapsed time in seconds (cached after first call).

        Returns:
            Seconds elapsed since start_time
        """
        if self._duration_cached is None:
            self._duration_cached = (datetime.now() - self.start_time).total_seconds()
        return self._duration_cached

    def summary(self) -> str:
        """Get formatted summary string."""
        return (
            f"{self.warnings} warnings, "
            f"{self.errors} errors, "
            f"{self.duration():.2f}s"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "errors": self.errors,
            "warnings": self.warnings,
            "duration": self.duration(),
        }


@dataclass
class BuildStats(OperationStats):
    """
    Statistics for registry build operations.

    Attributes:
        documents_loaded: Number of input documents aggregated
        output_written: Whether the output file changed on disk
    """
    documents_loaded: int = 0
    output_written: bool = False

    def __post_init__(self) -> None:
        """Validate statistics on initialization."""
        super().__post_init__()
        if self.documents_loaded < 0:
            raise ValueError(
                f"documents_loaded must be non-negative, got {self.documents_loaded}"
            )

    def summary(self) -> str:
        """Get formatted summary with build metrics."""
        return (
            f"{self.documents_loaded} documents aggregated, "
            f"{self.warnings} warnings, "
            f"{self.errors} errors, "
            f"{self.duration():.2f}s"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary with build metrics."""
        d = super().to_dict()
        d.update({
            "documents_loaded": self.documents_loaded,
            "output_written": self.output_written,
        })
        return d
