#!/usr/bin/env python3
"""
logging_manager.py
--------------------
Centralized logging system for all registrar operations.

Provides structured logging with rotation for aggregation, rendering and
CLI runs. Core components never read process-wide logging toggles:
they receive an optional logger plus an explicit ``Verbosity`` and decide
per call what to emit.

Usage:
    logger = RegistrarLogger(log_dir, "build", console_level=logging.DEBUG)
    gate = VerbosityGate(logger, Verbosity.VERBOSE)
    gate.debug("Applying x-derived-from", {"node": "tools.availableConfigs"})
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import json
import logging
import sys
import traceback
from enum import IntEnum
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

# --- Third party imports ---
import click

FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(funcName)s:%(lineno)d] - %(message)s"
CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class Verbosity(IntEnum):
    """
    Explicit verbosity setting threaded through aggregation and rendering.

    QUIET suppresses all core log output, NORMAL logs operations and
    warnings, VERBOSE additionally logs per-directive and per-placeholder
    detail. Verbosity never changes results.
    """

    QUIET = 0
    NORMAL = 1
    VERBOSE = 2

    @property
    def console_level(self) -> int:
        """Console handler level matching this verbosity."""
        if self is Verbosity.QUIET:
            return logging.ERROR
        if self is Verbosity.VERBOSE:
            return logging.DEBUG
        return logging.WARNING


def format_cli_error(error: Exception, show_traceback: bool = False) -> str:
    """One-line ``❌ Type: message`` text, optionally followed by the traceback."""
    message = f"❌ {type(error).__name__}: {error}"
    if show_traceback and error.__traceback__ is not None:
        tb = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        return f"{message}\n\n{tb}"
    return message


class RegistrarLogger:
    """
    File and console logging for one registrar component.

    Attributes:
        log_dir: Directory for log files
        main_logger: ``<component>.operations``, written to
            ``<component>.log`` and echoed to the console
        error_logger: ``<component>.errors``, written to ``errors.log``
    """

    def __init__(
        self,
        log_dir: Path,
        component_name: str = "registrar",
        console_level: int = logging.WARNING,
        max_bytes: int = 10 * 1024 * 1024,
        backup_count: int = 5,
    ) -> None:
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)

        def rotating(file_name: str, level: int) -> RotatingFileHandler:
            handler = RotatingFileHandler(
                self.log_dir / file_name,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
            handler.setLevel(level)
            handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
            return handler

        console = logging.StreamHandler()
        console.setLevel(console_level)
        console.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt="%H:%M:%S"))

        self.main_logger = _reset_logger(
            f"{component_name}.operations",
            logging.DEBUG,
            rotating(f"{component_name}.log", logging.DEBUG),
            console,
        )
        self.error_logger = _reset_logger(
            f"{component_name}.errors",
            logging.ERROR,
            rotating("errors.log", logging.ERROR),
        )

    def log_operation(self, operation: str, details: Optional[Dict[str, Any]] = None) -> None:
        self._emit(logging.INFO, "OPERATION", operation, details)

    def log_debug(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self._emit(logging.DEBUG, "DEBUG", message, details)

    def log_info(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self._emit(logging.INFO, "INFO", message, details)

    def log_warning(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self._emit(logging.WARNING, "WARNING", message, details)

    def log_error(self, error: Exception, context: Optional[Dict[str, Any]] = None) -> None:
        """Record an exception, its context and traceback in errors.log."""
        lines = [f"ERROR - {type(error).__name__}: {error}"]
        if context:
            lines.append("Context: " + ", ".join(f"{k}={v}" for k, v in context.items()))
        self.error_logger.error(
            "\n".join(lines),
            exc_info=error if error.__traceback__ is not None else None,
        )

    def log_cli_error(
        self,
        error: Exception,
        context: Optional[Dict[str, Any]] = None,
        show_traceback: bool = False,
    ) -> str:
        """
        Log full error details to file and return the CLI message.

        Examples:
            >>> logger.log_cli_error(TemplateNotFound("Template not found: t.json"))
            '❌ TemplateNotFound: Template not found: t.json'
        """
        self.log_error(error, context or {"source": "cli"})
        return format_cli_error(error, show_traceback)

    def _emit(
        self, level: int, label: str, message: str, details: Optional[Dict[str, Any]]
    ) -> None:
        text = f"{label} - {message}"
        if details:
            text += f": {json.dumps(details, default=str)}"
        self.main_logger.log(level, text)


def _reset_logger(name: str, level: int, *handlers: logging.Handler) -> logging.Logger:
    # Only this logger's handlers are replaced, global logging state is untouched
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.handlers = list(handlers)
    return logger


def handle_cli_error(
    ctx: "click.Context",
    error: Exception,
    operation: str,
    additional_context: Optional[Dict[str, Any]] = None,
    exit_code: int = 1,
) -> None:
    """
    Standardized error handling for all CLI commands.

    Retrieves the logger from the Click context, logs complete error
    details to file, prints a one-line message to stderr and exits.

    Args:
        ctx: Click context object containing logger and verbosity
        error: Exception that occurred
        operation: Name of the operation that failed (e.g., 'build')
        additional_context: Optional extra context (schema path, etc.)
        exit_code: Exit code for sys.exit() (default: 1)

    Note:
        This function never returns - it always calls sys.exit()
    """
    logger: Optional[RegistrarLogger] = ctx.obj.get("logger")
    verbosity: Verbosity = ctx.obj.get("verbosity", Verbosity.NORMAL)

    context = {"operation": operation}
    if additional_context:
        context.update(additional_context)

    error_msg = safe_logger(logger).log_cli_error(
        error, context, show_traceback=verbosity is Verbosity.VERBOSE
    )

    click.echo(error_msg, err=True)
    sys.exit(exit_code)


class NullLogger:
    """
    Null Object standing in for RegistrarLogger when no logger is given.

    Every log call is a no-op; ``log_cli_error`` still formats the message.
    """

    def log_operation(self, operation: str, details: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_debug(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_info(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_warning(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_error(self, error: Exception, context: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_cli_error(
        self,
        error: Exception,
        context: Optional[Dict[str, Any]] = None,
        show_traceback: bool = False,
    ) -> str:
        return format_cli_error(error, show_traceback)


_null_logger = NullLogger()


def safe_logger(logger: Optional[RegistrarLogger]) -> RegistrarLogger:
    """
    Return the provided logger or the shared NullLogger.

    Use ``safe_logger(logger).log_info(...)`` instead of ``if logger:``.
    """
    return logger if logger is not None else _null_logger  # type: ignore[return-value]


class VerbosityGate:
    """
    Routes log calls through a verbosity threshold.

    Wraps a (possibly null) logger for the duration of one aggregation or
    render call, so components can log unconditionally and let the
    explicit verbosity parameter decide what is emitted.
    """

    def __init__(self, logger: Optional[RegistrarLogger], verbosity: Verbosity) -> None:
        self._logger = safe_logger(logger)
        self.verbosity = verbosity

    def debug(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        """Emit only at VERBOSE."""
        if self.verbosity >= Verbosity.VERBOSE:
            self._logger.log_debug(message, details)

    def info(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        """Emit at NORMAL and above."""
        if self.verbosity >= Verbosity.NORMAL:
            self._logger.log_info(message, details)

    def operation(self, operation: str, details: Optional[Dict[str, Any]] = None) -> None:
        """Emit at NORMAL and above."""
        if self.verbosity >= Verbosity.NORMAL:
            self._logger.log_operation(operation, details)

    def warning(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        """Emit at NORMAL and above."""
        if self.verbosity >= Verbosity.NORMAL:
            self._logger.log_warning(message, details)
