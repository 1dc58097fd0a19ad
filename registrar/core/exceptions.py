#!/usr/bin/env python3
"""
exceptions.py
--------------------
Custom exception classes for the Registrar project.

This module defines a hierarchy of exceptions used throughout the project
to handle specific error conditions in different subsystems. Only fatal
conditions are raised to callers; conditions that merely degrade a single
node or placeholder are recorded as issues (see ``registrar.core.issues``).

Exception Hierarchy:
    Exception (built-in)
    ├── PathError - Base for path-expression evaluation failures
    │   ├── InvalidPathSyntax - Malformed path expression
    │   ├── PathNotFound - Segment absent, null mid-traversal, index out of range
    │   └── ArrayExpected - Expansion applied to a non-array value
    ├── ConfigurationError - Directive attached to an incompatible node
    │   └── SchemaLoadError - Schema file or $ref cannot be loaded
    ├── FilterError - Base for JMESPath directive failures
    │   ├── JMESPathCompilationFailed - Query does not compile
    │   └── JMESPathExecutionFailed - Query fails at evaluation time
    ├── TemplateError - Base for template resource failures
    │   ├── TemplateNotFound - Named template does not exist
    │   └── TemplateReadFailure - Template cannot be read or parsed
    └── DocumentLoadError - Input document cannot be read

Usage:
    from registrar.core.exceptions import PathNotFound, ConfigurationError

    try:
        value = resolver.resolve("tools.commands[0].c1")
    except PathNotFound as e:
        logger.log_warning(f"Optional field missing: {e}")
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from typing import Optional


class PathError(Exception):
    """
    Base exception for path-expression failures.

    Carries the offending expression so callers can report which
    placeholder or directive failed without re-parsing messages.

    Attributes:
        path: The raw path expression being evaluated
    """

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.path = path


class InvalidPathSyntax(PathError):
    """
    Exception for malformed path expressions.

    Raised before evaluation when the expression does not follow
    ``segment ('.' segment)*`` with optional ``[n]`` / ``[]`` suffixes.

    Examples:
        >>> raise InvalidPathSyntax("Consecutive dots at position 5", "tools..c1")
        >>> raise InvalidPathSyntax("Unclosed bracket in segment 'items['", "items[")
    """

    pass


class PathNotFound(PathError):
    """
    Exception for paths that do not resolve.

    Raised when a segment is absent, a null value is met before the last
    segment, or an index is out of range. Callers treat it as non-fatal.

    Examples:
        >>> raise PathNotFound("Key 'c3' not found", "commands[0].c3")
    """

    pass


class ArrayExpected(PathError):
    """
    Exception for expansion over a non-array value.

    Examples:
        >>> raise ArrayExpected("Expansion '[]' on str at 'title'", "title[]")
    """

    pass


class ConfigurationError(Exception):
    """
    Exception for schema directive misconfiguration.

    Raised while parsing a schema when a directive is attached to a node of
    the wrong shape, carries a value of the wrong type, lacks a directive it
    depends on, or conflicts with a sibling directive. Aggregation cannot
    proceed with a misconfigured schema.

    Examples:
        >>> raise ConfigurationError("x-frontmatter-part requires an array node at 'tools.name'")
        >>> raise ConfigurationError("x-derived-unique requires x-derived-from at 'tools.ids'")
    """

    pass


class SchemaLoadError(ConfigurationError):
    """
    Exception for schema loading failures.

    Raised when a schema file (or a file referenced through ``$ref``)
    cannot be read or parsed, or when references form a cycle.

    Examples:
        >>> raise SchemaLoadError("Schema not found: registry_schema.json")
        >>> raise SchemaLoadError("Circular $ref: #/definitions/node")
    """

    pass


class FilterError(Exception):
    """
    Base exception for x-jmespath-filter failures.

    Never escapes the aggregation engine: the engine catches it, leaves the
    affected node unset and records an issue.

    Attributes:
        query: The JMESPath query that failed
    """

    def __init__(self, message: str, query: Optional[str] = None) -> None:
        super().__init__(message)
        self.query = query


class JMESPathCompilationFailed(FilterError):
    """Exception for JMESPath queries that fail to compile."""

    pass


class JMESPathExecutionFailed(FilterError):
    """Exception for JMESPath queries that fail during evaluation."""

    pass


class TemplateError(Exception):
    """
    Base exception for template resource errors.

    Rendering cannot proceed without its template, so both subclasses are
    fatal for the render that requested the resource.

    Attributes:
        template_name: Name of the template resource
    """

    def __init__(self, message: str, template_name: Optional[str] = None) -> None:
        super().__init__(message)
        self.template_name = template_name


class TemplateNotFound(TemplateError):
    """
    Exception for missing template resources.

    Examples:
        >>> raise TemplateNotFound("Template not found: registry_template.json")
    """

    pass


class TemplateReadFailure(TemplateError):
    """
    Exception for unreadable or unparseable template resources.

    Examples:
        >>> raise TemplateReadFailure("Invalid JSON in registry_template.json: line 3")
    """

    pass


class DocumentLoadError(Exception):
    """
    Exception for input document loading failures.

    Raised when a document file cannot be read, its frontmatter is not
    valid YAML, or the parsed properties are not a mapping.

    Examples:
        >>> raise DocumentLoadError("Frontmatter must be a mapping: prompts/git.md")
    """

    pass
