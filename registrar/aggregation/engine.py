#!/usr/bin/env python3
"""
engine.py
---------
Aggregation engine: turns N document records plus a schema into one
aggregate tree.

Every directive found anywhere in the schema's property chain is honored,
including several independent occurrences at sibling paths. Stages run in
a fixed order, and within a stage nodes are visited depth-first,
left-to-right:

    1. x-frontmatter-part  populate arrays, one element per document
    2. x-flatten-arrays    normalize scalar-or-array fields into flat arrays
    3. x-derived-from      project paths over the aggregate
                           (x-derived-unique applied immediately)
    4. x-jmespath-filter   query the node value or the aggregate root

Schema ``default`` values are then applied to nodes left without a value.

Failure isolation:
    A misconfigured directive is rejected when the schema is parsed
    (ConfigurationError). At aggregation time, path and query failures
    only affect their own node: the node is left empty or unset and a
    ProcessingIssue is recorded, while siblings and the rest of the
    aggregate complete normally.

The engine holds no state between calls; each ``aggregate`` call works on
fresh copies of the document records.

Usage:
    from registrar.aggregation.engine import AggregationEngine

    engine = AggregationEngine(logger=logger)
    result = engine.aggregate(context, verbosity=Verbosity.VERBOSE)
    result.data["tools"]["availableConfigs"]
    for issue in result.warnings:
        print(issue)
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import copy
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

# --- Third party imports ---
import jmespath
from jmespath.exceptions import JMESPathError

# --- Local imports ---
from registrar.aggregation.documents import AggregationContext
from registrar.aggregation.matching import PropertyMatcher
from registrar.core.exceptions import (
    ArrayExpected,
    FilterError,
    InvalidPathSyntax,
    JMESPathCompilationFailed,
    JMESPathExecutionFailed,
    PathNotFound,
)
from registrar.core.issues import IssueKind, ProcessingIssue
from registrar.core.logging_manager import RegistrarLogger, Verbosity, VerbosityGate
from registrar.datapath.expression import parse_path
from registrar.datapath.resolver import PathResolver
from registrar.schema.directives import (
    AGGREGATE_PHASE,
    DerivedFrom,
    DirectiveKind,
    DirectiveRegistry,
    FlattenArrays,
    JMESPathFilter,
)
from registrar.schema.tree import SchemaNode


@dataclass
class AggregationResult:
    """
    Outcome of one aggregation.

    Attributes:
        data: The aggregate tree
        warnings: Non-fatal issues in the order they were recorded
    """

    data: Any
    warnings: List[ProcessingIssue] = field(default_factory=list)

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)


def apply_jmespath(query: str, data: Any) -> Any:
    """
    Compile and evaluate a JMESPath query.

    Args:
        query: JMESPath expression
        data: Input value

    Returns:
        Query result

    Raises:
        JMESPathCompilationFailed: If the query does not compile
        JMESPathExecutionFailed: If evaluation fails
    """
    try:
        compiled = jmespath.compile(query)
    except JMESPathError as e:
        raise JMESPathCompilationFailed(f"Invalid JMESPath query '{query}': {e}", query) from e

    try:
        return compiled.search(data)
    except (JMESPathError, TypeError, ValueError) as e:
        raise JMESPathExecutionFailed(f"JMESPath query '{query}' failed: {e}", query) from e


class AggregationEngine:
    """
    Schema-directed aggregation of document records.

    Attributes:
        registry: Directive registry supplying the processing order
        matcher: Property-name matcher used to project records onto
            item schemas
    """

    def __init__(
        self,
        registry: Optional[DirectiveRegistry] = None,
        logger: Optional[RegistrarLogger] = None,
        field_mapping: Optional[Dict[str, str]] = None,
    ) -> None:
        self.registry = registry or DirectiveRegistry.default()
        self.logger = logger
        self.matcher = PropertyMatcher(field_mapping)

    def aggregate(
        self,
        context: AggregationContext,
        verbosity: Verbosity = Verbosity.NORMAL,
    ) -> AggregationResult:
        """
        Aggregate the context's documents into one tree.

        Args:
            context: Ordered documents plus the target schema
            verbosity: Log detail for this call; never changes results

        Returns:
            AggregationResult with the aggregate and recorded warnings
        """
        run = _AggregationRun(context, VerbosityGate(self.logger, verbosity))
        run.log.operation(
            "aggregate",
            {"documents": len(context.documents), "schema": context.schema.location},
        )

        stages = {
            DirectiveKind.FRONTMATTER_PART: self._populate_frontmatter_part,
            DirectiveKind.FLATTEN_ARRAYS: self._flatten_arrays,
            DirectiveKind.DERIVED_FROM: self._derive,
            DirectiveKind.JMESPATH_FILTER: self._filter,
        }
        nodes = list(context.schema.walk())
        for kind in self.registry.processing_order(AGGREGATE_PHASE):
            handler = stages[kind]
            for node in nodes:
                directive = node.directive(kind)
                if directive is not None:
                    run.log.debug(
                        f"Applying {kind.key}", {"node": node.location}
                    )
                    handler(run, node, directive)

        self._apply_defaults(run, nodes)

        run.log.info(
            "Aggregation complete",
            {"documents": len(context.documents), "warnings": len(run.warnings)},
        )
        return AggregationResult(data=run.data, warnings=run.warnings)

    # ----- Stage 1 -----
    def _populate_frontmatter_part(
        self, run: "_AggregationRun", node: SchemaNode, directive: Any
    ) -> None:
        candidates = list(node.items.properties) if node.items is not None else []
        records = []
        for document in run.context.documents:
            record = copy.deepcopy(document.properties)
            if candidates:
                record = self.matcher.project(record, candidates)
            records.append(record)
        run.set(node, records)
        run.log.debug(
            "Populated frontmatter part",
            {"node": node.location, "elements": len(records)},
        )

    # ----- Stage 2 -----
    def _flatten_arrays(
        self, run: "_AggregationRun", node: SchemaNode, directive: FlattenArrays
    ) -> None:
        field_path = directive.field or node.name
        try:
            expr = parse_path(field_path)
        except InvalidPathSyntax as e:
            run.record(IssueKind.INVALID_DERIVATION, node, str(e))
            run.set(node, [])
            return

        found, current = run.get(node.path)
        if found and isinstance(current, list):
            source = current
        else:
            source = copy.deepcopy(run.context.records)

        flattened: List[Any] = []
        for element in source:
            if not isinstance(element, dict):
                flattened.extend(_normalize(element))
                continue
            try:
                value = PathResolver(element).resolve(expr)
            except PathNotFound:
                continue
            except ArrayExpected as e:
                run.record(IssueKind.INVALID_DERIVATION, node, str(e))
                continue
            flattened.extend(_normalize(value))

        run.set(node, flattened)

    # ----- Stage 3 -----
    def _derive(
        self, run: "_AggregationRun", node: SchemaNode, directive: DerivedFrom
    ) -> None:
        wants_array = node.is_array or not node.types
        try:
            found, value = run.resolve_near(node, directive.expression)
        except (InvalidPathSyntax, ArrayExpected) as e:
            run.record(IssueKind.INVALID_DERIVATION, node, str(e), directive.expression)
            if wants_array:
                run.set(node, [])
            return

        if wants_array:
            values = [] if not found or value is None else value
            if not isinstance(values, list):
                values = [values]
            values = [copy.deepcopy(v) for v in values if v is not None]
            if directive.unique:
                values = _unique(values)
            run.set(node, values)
            run.log.debug(
                "Derived values",
                {"node": node.location, "expression": directive.expression, "count": len(values)},
            )
            return

        if not found:
            run.record(
                IssueKind.PATH_NOT_FOUND,
                node,
                f"'{directive.expression}' did not resolve",
                directive.expression,
            )
            return
        if isinstance(value, list):
            value = [v for v in value if v is not None]
            if directive.unique:
                value = _unique(value)
        run.set(node, copy.deepcopy(value))

    # ----- Stage 4 -----
    def _filter(
        self, run: "_AggregationRun", node: SchemaNode, directive: JMESPathFilter
    ) -> None:
        found, current = run.get(node.path)
        source = current if found else run.data

        try:
            result = apply_jmespath(directive.query, source)
        except FilterError as e:
            kind = (
                IssueKind.JMESPATH_EXECUTION_FAILED
                if isinstance(e, JMESPathExecutionFailed)
                else IssueKind.JMESPATH_COMPILATION_FAILED
            )
            run.record(kind, node, str(e), directive.query)
            run.unset(node)
            return

        if result is None and node.is_array:
            result = []
        run.set(node, copy.deepcopy(result))

    # ----- Defaults -----
    def _apply_defaults(self, run: "_AggregationRun", nodes: List[SchemaNode]) -> None:
        for node in nodes:
            if not node.path or not node.has_default:
                continue
            found, _ = run.get(node.path)
            if not found:
                run.set(node, copy.deepcopy(node.default))


class _AggregationRun:
    """Mutable state of one ``aggregate`` call."""

    def __init__(self, context: AggregationContext, log: VerbosityGate) -> None:
        self.context = context
        self.log = log
        self.data: Any = {}
        self.warnings: List[ProcessingIssue] = []

    def record(
        self,
        kind: IssueKind,
        node: SchemaNode,
        message: str,
        detail: Optional[str] = None,
    ) -> None:
        issue = ProcessingIssue(kind=kind, path=node.location, message=message, detail=detail)
        self.warnings.append(issue)
        self.log.warning(str(issue))

    def get(self, path: Tuple[str, ...]) -> Tuple[bool, Any]:
        current = self.data
        for key in path:
            if not isinstance(current, dict) or key not in current:
                return False, None
            current = current[key]
        return True, current

    def set(self, node: SchemaNode, value: Any) -> None:
        if not node.path:
            self.data = value
            return
        current = self.data
        for key in node.path[:-1]:
            if not isinstance(current, dict):
                break
            current = current.setdefault(key, {})
        if not isinstance(current, dict):
            self.record(
                IssueKind.PATH_NOT_FOUND,
                node,
                "Parent value is not an object; node left unset",
            )
            return
        current[node.path[-1]] = value

    def unset(self, node: SchemaNode) -> None:
        # The root holds every earlier stage's results and is never cleared
        if not node.path:
            return
        found, parent = self.get(node.path[:-1])
        if found and isinstance(parent, dict):
            parent.pop(node.path[-1], None)

    def resolve_near(self, node: SchemaNode, expression: str) -> Tuple[bool, Any]:
        """
        Resolve an expression at the aggregate root, then beside the node.

        Returns:
            Tuple of (found, value)

        Raises:
            InvalidPathSyntax: If the expression is malformed
            ArrayExpected: If an expansion meets a non-array
        """
        expr = parse_path(expression)
        try:
            return True, PathResolver(self.data).resolve(expr)
        except PathNotFound:
            pass

        if len(node.path) > 1:
            found, parent = self.get(node.path[:-1])
            if found and isinstance(parent, dict):
                try:
                    return True, PathResolver(parent).resolve(expr)
                except PathNotFound:
                    pass
        return False, None


def _normalize(value: Any) -> List[Any]:
    """Null to nothing, scalar to one element, array spliced one level."""
    if value is None:
        return []
    if not isinstance(value, list):
        return [value]
    flattened: List[Any] = []
    for element in value:
        if isinstance(element, list):
            flattened.extend(element)
        elif element is not None:
            flattened.append(element)
    return flattened


def _unique(values: List[Any]) -> List[Any]:
    """Deduplicate by JSON value identity, keeping first-seen order."""
    seen = set()
    unique: List[Any] = []
    for value in values:
        key = _identity(value)
        if key not in seen:
            seen.add(key)
            unique.append(value)
    return unique


def _identity(value: Any) -> Tuple[str, Any]:
    # true and 1 are distinct JSON values even though True == 1 in Python
    if isinstance(value, (dict, list)):
        return "structure", json.dumps(value, sort_keys=True, default=str)
    return type(value).__name__, value
