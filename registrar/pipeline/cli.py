#!/usr/bin/env python3
"""
Registrar CLI
-------------

Command-line interface for building registries from document metadata.

Commands:
    - build: Aggregate documents through a schema and render the output
    - inspect: List the directives a schema carries, in processing order

Usage:
    # Build to stdout, templates resolved next to the schema
    registrar build schemas/registry_schema.json prompts/

    # Build to a file, with an explicit template and field mapping
    registrar build schema.json docs/*.md -o registry.json \\
        --template registry_template.json --map cmd=c1

    # Show directives
    registrar inspect schemas/registry_schema.json

    # Verbose logging
    registrar -v build schema.json prompts/
"""
from __future__ import annotations

import click
from pathlib import Path
from typing import Dict, Optional, Tuple

from registrar.aggregation.documents import load_documents
from registrar.core.cli import BuildStats, setup_logger
from registrar.core.logging_manager import RegistrarLogger, Verbosity, handle_cli_error
from registrar.core.paths import LOG_DIR
from registrar.pipeline.build import build_registry
from registrar.pipeline.output import OUTPUT_FORMATS, serialize_output, write_output
from registrar.schema.directives import DirectiveKind, DirectiveRegistry
from registrar.schema.loader import load_schema
from registrar.templates.repository import TemplateRepository


def _parse_mappings(
    ctx: click.Context, param: click.Parameter, values: Tuple[str, ...]
) -> Dict[str, str]:
    mapping: Dict[str, str] = {}
    for value in values:
        raw, sep, target = value.partition("=")
        if not sep or not raw or not target:
            raise click.BadParameter(f"expected RAW=SCHEMA, got '{value}'")
        mapping[raw] = target
    return mapping


@click.group()
@click.option(
    "--log-dir",
    type=click.Path(),
    default=str(LOG_DIR),
    help="Directory for log files",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose logging")
@click.option("-q", "--quiet", is_flag=True, help="Only report errors")
@click.pass_context
def cli(ctx: click.Context, log_dir: str, verbose: bool, quiet: bool) -> None:
    """Registrar: build registries from document metadata"""
    if verbose and quiet:
        raise click.UsageError("--verbose and --quiet are mutually exclusive")

    verbosity = Verbosity.NORMAL
    if verbose:
        verbosity = Verbosity.VERBOSE
    elif quiet:
        verbosity = Verbosity.QUIET

    ctx.ensure_object(dict)
    ctx.obj["log_dir"] = Path(log_dir)
    ctx.obj["verbosity"] = verbosity
    ctx.obj["logger"] = setup_logger(Path(log_dir), "registrar", verbosity)


@cli.command()
@click.argument(
    "schema", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.argument(
    "inputs", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path)
)
@click.option(
    "--templates-dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Directory holding template files (default: the schema's directory)",
)
@click.option("-t", "--template", help="Template name, overrides the schema's x-template")
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output file (default: stdout)",
)
@click.option(
    "-f",
    "--format",
    "fmt",
    type=click.Choice(OUTPUT_FORMATS),
    help="Output format (default: from output suffix, else json)",
)
@click.option(
    "--map",
    "mappings",
    multiple=True,
    callback=_parse_mappings,
    metavar="RAW=SCHEMA",
    help="Map a raw document field onto a schema property (repeatable)",
)
@click.pass_context
def build(
    ctx: click.Context,
    schema: Path,
    inputs: Tuple[Path, ...],
    templates_dir: Optional[Path],
    template: Optional[str],
    output: Optional[Path],
    fmt: Optional[str],
    mappings: Dict[str, str],
) -> None:
    """
    Build a registry from document metadata.

    Aggregates the metadata of INPUTS (files or directories) through the
    SCHEMA directives and renders the result through its template.
    """
    logger: RegistrarLogger = ctx.obj["logger"]
    verbosity: Verbosity = ctx.obj["verbosity"]
    stats = BuildStats()

    if fmt is None:
        fmt = "yaml" if output is not None and output.suffix.lower() in (".yaml", ".yml") else "json"

    try:
        root = load_schema(schema)
        documents = load_documents(inputs, logger=logger)
        stats.documents_loaded = len(documents)

        repository = TemplateRepository(templates_dir=templates_dir or schema.parent)
        result = build_registry(
            documents,
            root,
            repository=repository,
            template=template,
            verbosity=verbosity,
            logger=logger,
            field_mapping=mappings,
        )
        stats.warnings = len(result.warnings)

        if verbosity is not Verbosity.QUIET:
            for issue in result.warnings:
                click.echo(f"⚠️  {issue}", err=True)

        if output is None:
            click.echo(serialize_output(result.output, fmt), nl=False)
        else:
            stats.output_written = write_output(result.output, output, fmt)
            if verbosity is not Verbosity.QUIET:
                if stats.output_written:
                    click.echo(f"✅ Registry written: {output}", err=True)
                else:
                    click.echo(f"✓ Registry unchanged: {output}", err=True)

        logger.log_operation("build_complete", stats.to_dict())
        if verbosity is not Verbosity.QUIET:
            click.echo(f"  {stats.summary()}", err=True)

    except Exception as e:
        handle_cli_error(ctx, e, "build", {"schema": str(schema)})


@cli.command()
@click.argument(
    "schema", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.pass_context
def inspect(ctx: click.Context, schema: Path) -> None:
    """
    List the directives carried by SCHEMA, in processing order.
    """
    try:
        registry = DirectiveRegistry.default()
        root = load_schema(schema, registry)
        nodes = list(root.walk(include_items=True))

        found = 0
        for kind in registry.processing_order():
            spec = registry.spec(kind)
            for node in nodes:
                directive = node.directive(kind)
                if directive is None:
                    continue
                found += 1
                click.echo(
                    f"{spec.stage}. {kind.key:<20} {node.location:<32} {_describe(directive)}"
                )

        if found == 0:
            click.echo("No directives found")

    except Exception as e:
        handle_cli_error(ctx, e, "inspect", {"schema": str(schema)})


def _describe(directive: object) -> str:
    kind = getattr(directive, "kind", None)
    if kind is DirectiveKind.DERIVED_FROM:
        unique = " (unique)" if directive.unique else ""  # type: ignore[attr-defined]
        return f"{directive.expression}{unique}"  # type: ignore[attr-defined]
    if kind is DirectiveKind.FLATTEN_ARRAYS:
        return directive.field or "<own name>"  # type: ignore[attr-defined]
    if kind is DirectiveKind.JMESPATH_FILTER:
        return directive.query  # type: ignore[attr-defined]
    if kind in (DirectiveKind.TEMPLATE, DirectiveKind.TEMPLATE_ITEMS):
        source = directive.source  # type: ignore[attr-defined]
        return source if isinstance(source, str) else "<inline>"
    return ""


if __name__ == "__main__":
    cli(obj={})
