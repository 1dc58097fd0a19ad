#!/usr/bin/env python3
"""
build.py
--------
End-to-end registry build.

Data flow:
    documents + schema → AggregationEngine → aggregate tree
    aggregate tree + template → TemplateRenderer → output tree

The template is, in order of preference: the one passed explicitly, the
root schema's ``x-template``, or none. Without a template the aggregate is
the output, reshaped only where nested ``x-template`` directives apply.

Usage:
    from registrar.pipeline.build import build_registry

    result = build_registry(
        documents,
        schema,
        repository=TemplateRepository(templates_dir=schema_path.parent),
    )
    write_output(result.output, Path("registry.json"))
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

# --- Local imports ---
from registrar.aggregation.documents import AggregationContext, Document
from registrar.aggregation.engine import AggregationEngine
from registrar.core.issues import ProcessingIssue
from registrar.core.logging_manager import (
    RegistrarLogger,
    Verbosity,
    VerbosityGate,
)
from registrar.schema.directives import DirectiveKind, DirectiveRegistry, TemplateDirective
from registrar.schema.tree import SchemaNode, parse_schema
from registrar.templates.renderer import TemplateRenderer
from registrar.templates.repository import Template, TemplateRepository


@dataclass
class BuildResult:
    """
    Outcome of one build.

    Attributes:
        aggregate: The aggregate tree before rendering
        output: The rendered output (the reshaped aggregate when no
            template applies)
        warnings: Aggregation warnings followed by render warnings
    """

    aggregate: Any
    output: Any
    warnings: List[ProcessingIssue] = field(default_factory=list)

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)


def build_registry(
    documents: Sequence[Union[Document, Dict[str, Any]]],
    schema: Union[SchemaNode, Dict[str, Any]],
    repository: Optional[TemplateRepository] = None,
    template: Optional[Union[str, Template, Any]] = None,
    verbosity: Verbosity = Verbosity.NORMAL,
    logger: Optional[RegistrarLogger] = None,
    field_mapping: Optional[Dict[str, str]] = None,
    registry: Optional[DirectiveRegistry] = None,
) -> BuildResult:
    """
    Aggregate documents and render the result.

    Args:
        documents: Documents (or bare property maps) in semantic order
        schema: Parsed schema, or a raw schema mapping
        repository: Source of named templates
        template: Template name, loaded Template, or inline template
            structure; overrides the root schema's x-template
        verbosity: Log detail; never changes results
        logger: Optional logger
        field_mapping: Explicit raw-name to schema-name property mapping
        registry: Directive registry; defaults to the bundled configuration

    Returns:
        BuildResult

    Raises:
        ConfigurationError: If the schema is misconfigured
        TemplateNotFound: If a template resource does not exist
        TemplateReadFailure: If a template resource cannot be read or parsed
    """
    log = VerbosityGate(logger, verbosity)
    registry = registry or DirectiveRegistry.default()
    if not isinstance(schema, SchemaNode):
        schema = parse_schema(schema, registry)

    docs = tuple(
        doc if isinstance(doc, Document) else Document(identifier=f"doc{i + 1}", properties=doc)
        for i, doc in enumerate(documents)
    )
    context = AggregationContext(documents=docs, schema=schema)

    engine = AggregationEngine(registry=registry, logger=logger, field_mapping=field_mapping)
    aggregated = engine.aggregate(context, verbosity)
    warnings = list(aggregated.warnings)

    renderer = TemplateRenderer(repository=repository, logger=logger)
    selected = _select_template(template, schema, repository)
    if selected is None:
        log.info("No template configured; reshaping the aggregate")
        reshaped = renderer.reshape(aggregated.data, schema, verbosity)
        warnings.extend(reshaped.warnings)
        return BuildResult(aggregate=aggregated.data, output=reshaped.output, warnings=warnings)

    rendered = renderer.render(selected, aggregated.data, schema, verbosity)
    warnings.extend(rendered.warnings)

    log.operation(
        "build_registry",
        {"documents": len(docs), "template": selected.name, "warnings": len(warnings)},
    )
    return BuildResult(aggregate=aggregated.data, output=rendered.output, warnings=warnings)


def _select_template(
    template: Any,
    schema: SchemaNode,
    repository: Optional[TemplateRepository],
) -> Optional[Template]:
    if isinstance(template, Template):
        return template
    if isinstance(template, str):
        return (repository or TemplateRepository()).load(template)
    if template is not None:
        return Template.inline(template)

    directive = schema.directive(DirectiveKind.TEMPLATE)
    if not isinstance(directive, TemplateDirective):
        return None
    if directive.is_reference:
        return (repository or TemplateRepository()).load(directive.source)
    return Template.inline(directive.source)
