"""
Registrar
=========

Schema-driven registry builder.

Collects metadata blocks scattered across many documents and turns them
into one schema-shaped, template-rendered artifact (an index, registry or
catalog).

Main Components:
    - datapath: Path expressions and the PathResolver
    - schema: Directive registry, parsed schema tree, schema loading
    - aggregation: Documents, property matching, AggregationEngine
    - templates: Placeholder substitution and TemplateRenderer
    - pipeline: End-to-end build, output serialization, CLI
    - core: Logging, exceptions, issues, paths

Primary Interfaces:
    - registrar.pipeline.build.build_registry: documents + schema -> output tree
    - registrar.pipeline.cli: `registrar build` / `registrar inspect`

Example Usage:
    >>> from registrar.pipeline.build import build_registry
    >>> result = build_registry(documents, schema)
    >>> result.output["tools"]["availableConfigs"]
    ['git', 'spec']
"""

__version__ = "1.0.0"
