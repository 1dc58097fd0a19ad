#!/usr/bin/env python3
"""
renderer.py
-----------
Template renderer: substitutes resolved values into a template while
keeping the template's literal shape.

Rendering a template against a data context produces a value with exactly
the template's structure. Every placeholder is resolved with
``PathResolver`` against the context; everything else is copied verbatim.
Nothing that is absent from the template appears in the output.

Substitution rules:
    - A string that is exactly one placeholder becomes the typed value
      (string, number, boolean, null, list or map).
    - Placeholders inside longer strings, and in plain-text templates, are
      interpolated as text.
    - An unresolvable placeholder becomes null (whole string) or empty
      text (inline) and records a VARIABLE_SUBSTITUTION_MISS warning.
    - Map keys are never substituted.

Schema-aware reshaping:
    When a schema is given, the schema node describing each resolved path
    is consulted before substitution. If the node's item schema carries
    ``x-template``, every array element is rendered through the item
    template first (element as context, plus ``$index``), and only the
    reshaped results are substituted. If the node itself carries
    ``x-template`` and the value is a map, the map is rendered through it.
    Otherwise the value is walked property by property and element by
    element, so templates deeper in the schema apply to a placeholder
    that resolves to one of their ancestors.

Frontmatter items:
    ``{@items}`` expands to the records of the schema's first
    ``x-frontmatter-part`` node, each rendered through the root
    ``x-template-items`` (or that node's item ``x-template``). As a whole
    string it becomes the list; as an array element it is spliced into
    the array; inline, the formatted records are joined with ``",\\n"``.

Usage:
    from registrar.templates.renderer import TemplateRenderer

    renderer = TemplateRenderer(repository=TemplateRepository(templates_dir))
    result = renderer.render({"name": "{name}"}, {"name": "x", "extra": "y"})
    result.output  # {"name": "x"}
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

# --- Local imports ---
from registrar.core.exceptions import ArrayExpected, PathNotFound
from registrar.core.issues import IssueKind, ProcessingIssue
from registrar.core.logging_manager import RegistrarLogger, Verbosity, VerbosityGate
from registrar.datapath.expression import PathExpression
from registrar.datapath.resolver import PathResolver
from registrar.schema.directives import DirectiveKind, TemplateDirective
from registrar.schema.tree import SchemaNode
from registrar.templates.placeholders import (
    ITEMS_BODY,
    interpolate,
    is_items_placeholder,
    whole_placeholder,
)
from registrar.templates.repository import TEXT_FORMAT, Template, TemplateRepository

INDEX_KEY = "$index"
VALUE_KEY = "value"


@dataclass
class RenderResult:
    """
    Outcome of one render.

    Attributes:
        output: The rendered tree (or text for plain-text templates)
        warnings: Non-fatal issues in the order they were recorded
    """

    output: Any
    warnings: List[ProcessingIssue] = field(default_factory=list)

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)


class TemplateRenderer:
    """
    Renders templates against data contexts.

    Attributes:
        repository: Source of named template resources
    """

    def __init__(
        self,
        repository: Optional[TemplateRepository] = None,
        logger: Optional[RegistrarLogger] = None,
    ) -> None:
        self.repository = repository
        self.logger = logger

    def render(
        self,
        template: Any,
        context: Any,
        schema: Optional[SchemaNode] = None,
        verbosity: Verbosity = Verbosity.NORMAL,
    ) -> RenderResult:
        """
        Render a template against a data context.

        Args:
            template: A loaded Template, or a raw template structure
            context: Data the placeholders resolve against
            schema: Schema node describing ``context``; enables item and
                node template reshaping
            verbosity: Log detail for this call; never changes results

        Returns:
            RenderResult with the output and recorded warnings

        Raises:
            TemplateNotFound: If a nested template resource does not exist
            TemplateReadFailure: If a nested template resource is unreadable
        """
        if not isinstance(template, Template):
            template = Template.inline(template)

        run = _RenderRun(
            self._repository(), VerbosityGate(self.logger, verbosity), schema, context
        )
        run.log.operation("render", {"template": template.name})

        output = run.render_template(template, context, schema)

        run.log.info(
            "Render complete",
            {"template": template.name, "warnings": len(run.warnings)},
        )
        return RenderResult(output=output, warnings=run.warnings)

    def reshape(
        self,
        data: Any,
        schema: SchemaNode,
        verbosity: Verbosity = Verbosity.NORMAL,
    ) -> RenderResult:
        """
        Apply the schema's nested ``x-template`` directives to ``data``
        without a surrounding template.

        Used when a build has no root template: the aggregate keeps its
        shape except where a node or item template reshapes part of it.

        Raises:
            TemplateNotFound: If a nested template resource does not exist
            TemplateReadFailure: If a nested template resource is unreadable
        """
        run = _RenderRun(
            self._repository(), VerbosityGate(self.logger, verbosity), schema, data
        )
        run.log.operation("reshape", {"schema": schema.location})
        output = run.reshape(data, schema)
        return RenderResult(output=output, warnings=run.warnings)

    def render_named(
        self,
        name: str,
        context: Any,
        schema: Optional[SchemaNode] = None,
        verbosity: Verbosity = Verbosity.NORMAL,
    ) -> RenderResult:
        """
        Load a template resource by name and render it.

        Raises:
            TemplateNotFound: If the resource does not exist
            TemplateReadFailure: If it cannot be read or parsed
        """
        template = self._repository().load(name)
        return self.render(template, context, schema, verbosity)

    def _repository(self) -> TemplateRepository:
        if self.repository is None:
            self.repository = TemplateRepository()
        return self.repository


class _RenderRun:
    """Mutable state of one ``render`` call."""

    def __init__(
        self,
        repository: TemplateRepository,
        log: VerbosityGate,
        root: Optional[SchemaNode] = None,
        root_context: Any = None,
    ) -> None:
        self.repository = repository
        self.log = log
        self.root = root
        self.root_context = root_context
        self.warnings: List[ProcessingIssue] = []
        self._template_name = "<inline>"
        self._expanding_items = False

    def render_template(
        self, template: Template, context: Any, schema: Optional[SchemaNode]
    ) -> Any:
        previous, self._template_name = self._template_name, template.name
        try:
            if template.format == TEXT_FORMAT and template.name != "<inline>":
                return interpolate(
                    template.content,
                    lambda expr: self.lookup(expr, context, schema),
                    self.expand_items,
                )
            return self.render_value(template.content, context, schema)
        finally:
            self._template_name = previous

    def render_value(self, node: Any, context: Any, schema: Optional[SchemaNode]) -> Any:
        if isinstance(node, dict):
            return {key: self.render_value(value, context, schema) for key, value in node.items()}
        if isinstance(node, list):
            rendered: List[Any] = []
            for element in node:
                if isinstance(element, str) and is_items_placeholder(element):
                    rendered.extend(self.expand_items() or [])
                else:
                    rendered.append(self.render_value(element, context, schema))
            return rendered
        if isinstance(node, str):
            if is_items_placeholder(node):
                return self.expand_items()
            expr = whole_placeholder(node)
            if expr is not None:
                _, value = self.lookup(expr, context, schema)
                return value
            return interpolate(
                node, lambda e: self.lookup(e, context, schema), self.expand_items
            )
        return node

    def lookup(
        self, expr: PathExpression, context: Any, schema: Optional[SchemaNode]
    ) -> Tuple[bool, Any]:
        """Resolve one placeholder and reshape the value; misses are recorded."""
        try:
            value = PathResolver(context).resolve(expr)
        except (PathNotFound, ArrayExpected) as e:
            self.miss(expr.raw, str(e))
            return False, None

        self.log.debug("Substituted placeholder", {"path": expr.raw})
        node = schema.find(expr) if schema is not None else None
        return True, self.reshape(value, node)

    def miss(self, path: str, detail: str) -> None:
        issue = ProcessingIssue(
            kind=IssueKind.VARIABLE_SUBSTITUTION_MISS,
            path=path,
            message=f"Placeholder '{{{path}}}' did not resolve in {self._template_name}",
            detail=detail,
        )
        self.warnings.append(issue)
        self.log.warning(str(issue))

    def reshape(self, value: Any, node: Optional[SchemaNode]) -> Any:
        """
        Apply item and node templates at every depth of ``value``.

        An array whose item schema carries ``x-template`` is rendered
        element by element; a map whose node carries ``x-template`` is
        rendered through it. Otherwise the walk continues into the map's
        properties or the array's elements.
        """
        if node is None:
            return copy.deepcopy(value)

        if isinstance(value, list):
            item_schema = node.items
            if item_schema is None:
                return copy.deepcopy(value)
            item_template = item_schema.directive(DirectiveKind.TEMPLATE)
            if isinstance(item_template, TemplateDirective):
                template = self.resolve_directive(item_template)
                self.log.debug(
                    "Applying item template",
                    {"node": node.location, "items": len(value)},
                )
                return [
                    self.render_template(template, _item_context(element, index), item_schema)
                    for index, element in enumerate(value)
                ]
            return [self.reshape(element, item_schema) for element in value]

        if isinstance(value, dict):
            node_template = node.directive(DirectiveKind.TEMPLATE)
            if isinstance(node_template, TemplateDirective):
                return self.render_template(self.resolve_directive(node_template), value, node)
            return {
                key: self.reshape(element, node.properties.get(key))
                for key, element in value.items()
            }

        return copy.deepcopy(value)

    def expand_items(self) -> Optional[List[Any]]:
        """
        Frontmatter records rendered for ``{@items}``, or None on a miss.

        The records are the value of the first ``x-frontmatter-part`` node.
        Each is rendered through the root ``x-template-items``, else the
        part's item ``x-template``, else copied as-is.
        """
        if self._expanding_items:
            self.miss(ITEMS_BODY, "{@items} cannot be used inside an item template")
            return None
        part = _frontmatter_part(self.root)
        if part is None:
            self.miss(ITEMS_BODY, "The schema has no x-frontmatter-part")
            return None
        found, records = _value_at(self.root_context, part.path)
        if not found or not isinstance(records, list):
            self.miss(ITEMS_BODY, f"No records at '{part.location}'")
            return None

        directive = self.root.directive(DirectiveKind.TEMPLATE_ITEMS)  # type: ignore[union-attr]
        if directive is None and part.items is not None:
            directive = part.items.directive(DirectiveKind.TEMPLATE)

        self._expanding_items = True
        try:
            if not isinstance(directive, TemplateDirective):
                return [self.reshape(record, part.items) for record in records]
            template = self.resolve_directive(directive)
            self.log.debug(
                "Expanding items",
                {"node": part.location, "items": len(records), "template": template.name},
            )
            return [
                self.render_template(template, _item_context(record, index), part.items)
                for index, record in enumerate(records)
            ]
        finally:
            self._expanding_items = False

    def resolve_directive(self, directive: TemplateDirective) -> Template:
        if directive.is_reference:
            return self.repository.load(directive.source)
        return Template.inline(directive.source)


def _item_context(element: Any, index: int) -> Dict[str, Any]:
    """Context for one array element rendered through an item template."""
    if isinstance(element, dict):
        context = dict(element)
        context.setdefault(INDEX_KEY, index)
        return context
    return {VALUE_KEY: element, INDEX_KEY: index}


def _frontmatter_part(root: Optional[SchemaNode]) -> Optional[SchemaNode]:
    if root is None:
        return None
    for node in root.walk():
        if node.has(DirectiveKind.FRONTMATTER_PART):
            return node
    return None


def _value_at(data: Any, path: Tuple[str, ...]) -> Tuple[bool, Any]:
    current = data
    for key in path:
        if not isinstance(current, dict) or key not in current:
            return False, None
        current = current[key]
    return True, current
