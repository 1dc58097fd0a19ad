"""
conftest.py
-----------
Shared pytest fixtures for registrar tests.

Provides fixtures for:
- Directive registry and parsed schemas
- Sample document records
- Schema, template and document files on disk
"""
import json

import pytest
from pathlib import Path

from registrar.aggregation.documents import AggregationContext
from registrar.schema.directives import DirectiveRegistry
from registrar.schema.tree import parse_schema


# ----- Registry and Schema Fixtures -----

@pytest.fixture
def registry():
    """Registry built from the bundled directive configuration."""
    return DirectiveRegistry.default()


@pytest.fixture
def command_schema_raw():
    """Schema with one frontmatter part and a unique derived list."""
    return {
        "type": "object",
        "properties": {
            "tools": {
                "type": "object",
                "properties": {
                    "commands": {
                        "type": "array",
                        "x-frontmatter-part": True,
                        "items": {"type": "object"},
                    },
                    "availableConfigs": {
                        "type": "array",
                        "x-derived-from": "tools.commands[].c1",
                        "x-derived-unique": True,
                        "items": {"type": "string"},
                    },
                },
            }
        },
    }


@pytest.fixture
def command_schema(command_schema_raw, registry):
    """Parsed command schema."""
    return parse_schema(command_schema_raw, registry)


@pytest.fixture
def partitioned_schema_raw():
    """Two sibling frontmatter parts scoped by a type field."""
    return {
        "type": "object",
        "properties": {
            "tools": {
                "type": "object",
                "properties": {
                    "commands": {
                        "type": "array",
                        "x-frontmatter-part": True,
                        "x-jmespath-filter": "[?type=='command']",
                        "items": {"type": "object"},
                    },
                    "tutorials": {
                        "type": "array",
                        "x-frontmatter-part": True,
                        "x-jmespath-filter": "[?type=='tutorial']",
                        "items": {"type": "object"},
                    },
                },
            }
        },
    }


# ----- Document Fixtures -----

@pytest.fixture
def command_records():
    """Two command documents."""
    return [
        {"c1": "git", "c2": "create"},
        {"c1": "spec", "c2": "analyze"},
    ]


@pytest.fixture
def mixed_records():
    """Commands and tutorials mixed in one document set."""
    return [
        {"type": "command", "c1": "git"},
        {"type": "tutorial", "title": "Getting started"},
        {"type": "command", "c1": "spec"},
        {"type": "tutorial", "title": "Advanced usage"},
    ]


@pytest.fixture
def make_context(registry):
    """Factory building an AggregationContext from records and a raw schema."""

    def _make(records, schema_raw):
        return AggregationContext.from_records(records, parse_schema(schema_raw, registry))

    return _make


# ----- File Fixtures -----

@pytest.fixture
def project_dir(tmp_path):
    """
    Schema, templates and Markdown documents on disk.

    Layout:
        schemas/registry_schema.json
        schemas/registry_template.json
        schemas/command_template.json
        prompts/a_git.md
        prompts/b_spec.md
    """
    schemas = tmp_path / "schemas"
    prompts = tmp_path / "prompts"
    schemas.mkdir()
    prompts.mkdir()

    schema = {
        "type": "object",
        "x-template": "registry_template.json",
        "properties": {
            "version": {"type": "string", "default": "1.0.0"},
            "tools": {
                "type": "object",
                "properties": {
                    "availableConfigs": {
                        "type": "array",
                        "x-derived-from": "commands[].c1",
                        "x-derived-unique": True,
                        "items": {"type": "string"},
                    },
                    "commands": {
                        "type": "array",
                        "x-frontmatter-part": True,
                        "items": {"$ref": "#/definitions/command"},
                    },
                },
            },
        },
        "definitions": {
            "command": {
                "type": "object",
                "x-template": "command_template.json",
                "properties": {
                    "c1": {"type": "string"},
                    "c2": {"type": "string"},
                    "description": {"type": "string"},
                },
            }
        },
    }
    (schemas / "registry_schema.json").write_text(json.dumps(schema, indent=2))
    (schemas / "registry_template.json").write_text(
        json.dumps(
            {
                "version": "{version}",
                "tools": {
                    "availableConfigs": "{tools.availableConfigs}",
                    "commands": "{tools.commands}",
                },
            }
        )
    )
    (schemas / "command_template.json").write_text(
        json.dumps({"c1": "{c1}", "c2": "{c2}", "description": "{description}"})
    )

    (prompts / "a_git.md").write_text(
        "---\nc1: git\nc2: create\ndescription: Create a branch\nauthor: someone\n---\n\n# Git\n"
    )
    (prompts / "b_spec.md").write_text(
        "---\nc1: spec\nc2: analyze\ndescription: Analyze a spec\n---\n\n# Spec\n"
    )
    return tmp_path
