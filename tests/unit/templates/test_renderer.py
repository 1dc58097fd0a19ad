#!/usr/bin/env python3
"""
test_renderer.py
----------------
Tests for the TemplateRenderer class.

Covers template fidelity, typed and inline substitution, misses,
schema-driven item and node templates, and named templates.
"""
# --- Annotations ---
from __future__ import annotations

# --- Third-party imports ---
import pytest
from unittest.mock import MagicMock

# --- Local imports ---
from registrar.core.exceptions import TemplateNotFound
from registrar.core.issues import IssueKind
from registrar.core.logging_manager import RegistrarLogger, Verbosity
from registrar.schema.tree import parse_schema
from registrar.templates.renderer import TemplateRenderer
from registrar.templates.repository import Template, TemplateRepository


@pytest.fixture
def renderer() -> TemplateRenderer:
    return TemplateRenderer(repository=TemplateRepository(templates={}))


# ==================== Fidelity ====================

class TestTemplateFidelity:
    """Output mirrors the template, never the context."""

    def test_only_template_keys_appear(self, renderer) -> None:
        """Context fields missing from the template are not emitted."""
        result = renderer.render({"name": "{name}"}, {"name": "x", "extra": "y"})
        assert result.output == {"name": "x"}
        assert not result.has_warnings

    def test_literals_copied_verbatim(self, renderer) -> None:
        """Non-placeholder values keep their type and value."""
        template = {"n": 1, "flag": True, "none": None, "list": ["a", 2], "text": "plain"}
        assert renderer.render(template, {}).output == template

    def test_keys_not_substituted(self, renderer) -> None:
        """Map keys are never treated as placeholders."""
        result = renderer.render({"{name}": "{name}"}, {"name": "x"})
        assert result.output == {"{name}": "x"}

    def test_template_not_mutated(self, renderer) -> None:
        """Rendering leaves the template structure untouched."""
        template = {"tools": {"commands": "{commands}"}}
        renderer.render(template, {"commands": [1]})
        assert template == {"tools": {"commands": "{commands}"}}


# ==================== Substitution ====================

class TestSubstitution:
    """Typed, inline and missing substitutions."""

    def test_whole_placeholder_keeps_type(self, renderer) -> None:
        """A whole-string placeholder yields the typed value."""
        context = {"count": 3, "ok": False, "tags": ["a"], "meta": {"k": "v"}}
        template = {"c": "{count}", "o": "{ok}", "t": "{tags}", "m": "{meta}"}
        assert renderer.render(template, context).output == {
            "c": 3, "o": False, "t": ["a"], "m": {"k": "v"},
        }

    def test_nested_and_indexed_paths(self, renderer) -> None:
        """Placeholders accept dotted, indexed and expanded paths."""
        context = {"tools": {"commands": [{"c1": "git"}, {"c1": "spec"}]}}
        template = {"first": "{tools.commands[0].c1}", "all": "{tools.commands[].c1}"}
        assert renderer.render(template, context).output == {
            "first": "git",
            "all": ["git", "spec"],
        }

    def test_inline_placeholders(self, renderer) -> None:
        """Placeholders inside longer strings are interpolated as text."""
        context = {"version": "1.0.0", "n": 2, "beta": True}
        result = renderer.render({"label": "v{version} ({n} tools, beta={beta})"}, context)
        assert result.output == {"label": "v1.0.0 (2 tools, beta=true)"}

    def test_whole_miss_gives_null_and_warning(self, renderer) -> None:
        """An unresolved whole placeholder becomes None with a warning."""
        result = renderer.render({"a": "{missing.path}"}, {})
        assert result.output == {"a": None}
        assert len(result.warnings) == 1
        issue = result.warnings[0]
        assert issue.kind is IssueKind.VARIABLE_SUBSTITUTION_MISS
        assert issue.path == "missing.path"

    def test_inline_miss_gives_empty_text(self, renderer) -> None:
        """An unresolved inline placeholder becomes empty text with a warning."""
        result = renderer.render({"a": "x{missing}y"}, {})
        assert result.output == {"a": "xy"}
        assert result.warnings[0].kind is IssueKind.VARIABLE_SUBSTITUTION_MISS

    def test_quoted_body_left_verbatim(self, renderer) -> None:
        """Brace text with quotes is not a placeholder."""
        result = renderer.render({"a": "{'literal'}"}, {"literal": "no"})
        assert result.output == {"a": "{'literal'}"}
        assert not result.has_warnings

    def test_null_value_resolves(self, renderer) -> None:
        """A present null value is a hit, not a miss."""
        result = renderer.render({"a": "{v}"}, {"v": None})
        assert result.output == {"a": None}
        assert not result.has_warnings

    def test_inline_string_template(self, renderer) -> None:
        """A bare string template renders to a value."""
        assert renderer.render("{count}", {"count": 5}).output == 5


# ==================== Schema-Driven Reshaping ====================

class TestItemTemplates:
    """Item and node templates declared in the schema."""

    def test_item_template_reshapes_elements(self, registry, renderer) -> None:
        """Each element is rendered through the item template."""
        schema = parse_schema(
            {
                "type": "object",
                "properties": {
                    "entries": {
                        "type": "array",
                        "items": {"type": "object", "x-template": "{id}"},
                    }
                },
            },
            registry,
        )
        context = {"entries": [{"id": "1", "x": 0}, {"id": "2", "x": 0}]}
        result = renderer.render({"ids": "{entries}"}, context, schema)
        assert result.output == {"ids": ["1", "2"]}

    def test_item_template_for_scalars_with_index(self, registry, renderer) -> None:
        """Scalar elements are exposed as value with their $index."""
        schema = parse_schema(
            {
                "type": "object",
                "properties": {
                    "tags": {
                        "type": "array",
                        "items": {
                            "type": "string",
                            "x-template": {"pos": "{$index}", "tag": "{value}"},
                        },
                    }
                },
            },
            registry,
        )
        result = renderer.render({"tags": "{tags}"}, {"tags": ["a", "b"]}, schema)
        assert result.output == {
            "tags": [{"pos": 0, "tag": "a"}, {"pos": 1, "tag": "b"}]
        }

    def test_item_template_by_name(self, registry) -> None:
        """Item templates may reference a template resource."""
        repository = TemplateRepository(
            templates={"command.json": '{"name": "{c1}", "label": "{c1}-{c2}"}'}
        )
        renderer = TemplateRenderer(repository=repository)
        schema = parse_schema(
            {
                "type": "object",
                "properties": {
                    "commands": {
                        "type": "array",
                        "items": {"type": "object", "x-template": "command.json"},
                    }
                },
            },
            registry,
        )
        context = {"commands": [{"c1": "git", "c2": "create", "author": "me"}]}
        result = renderer.render({"commands": "{commands}"}, context, schema)
        assert result.output == {"commands": [{"name": "git", "label": "git-create"}]}

    def test_missing_item_template_raises(self, registry, renderer) -> None:
        """A missing template resource is an error, not a warning."""
        schema = parse_schema(
            {
                "type": "object",
                "properties": {
                    "commands": {
                        "type": "array",
                        "items": {"type": "object", "x-template": "absent.json"},
                    }
                },
            },
            registry,
        )
        with pytest.raises(TemplateNotFound):
            renderer.render({"c": "{commands}"}, {"commands": [{}]}, schema)

    def test_node_template_reshapes_map(self, registry, renderer) -> None:
        """A map value is rendered through its node template."""
        schema = parse_schema(
            {
                "type": "object",
                "properties": {
                    "meta": {
                        "type": "object",
                        "x-template": {"title": "{name}"},
                        "properties": {"name": {"type": "string"}},
                    }
                },
            },
            registry,
        )
        result = renderer.render({"m": "{meta}"}, {"meta": {"name": "n", "secret": 1}}, schema)
        assert result.output == {"m": {"title": "n"}}

    def test_parent_placeholder_reaches_nested_item_template(self, registry, renderer) -> None:
        """A placeholder for an ancestor still applies item templates below it."""
        schema = parse_schema(
            {
                "type": "object",
                "properties": {
                    "tools": {
                        "type": "object",
                        "properties": {
                            "commands": {
                                "type": "array",
                                "x-frontmatter-part": True,
                                "items": {"type": "object", "x-template": "{c1}"},
                            }
                        },
                    }
                },
            },
            registry,
        )
        context = {"tools": {"commands": [{"c1": "git", "c2": "create"}, {"c1": "spec"}]}}
        result = renderer.render({"tools": "{tools}"}, context, schema)
        assert result.output == {"tools": {"commands": ["git", "spec"]}}
        assert context["tools"]["commands"][0] == {"c1": "git", "c2": "create"}

    def test_nested_arrays_walk_item_schemas(self, registry, renderer) -> None:
        """Arrays without an item template are walked element by element."""
        schema = parse_schema(
            {
                "type": "object",
                "properties": {
                    "groups": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "members": {
                                    "type": "array",
                                    "items": {"type": "object", "x-template": "{name}"},
                                }
                            },
                        },
                    }
                },
            },
            registry,
        )
        context = {
            "groups": [
                {"label": "a", "members": [{"name": "x", "id": 1}]},
                {"label": "b", "members": [{"name": "y", "id": 2}, {"name": "z"}]},
            ]
        }
        result = renderer.render({"g": "{groups}"}, context, schema)
        assert result.output == {
            "g": [
                {"label": "a", "members": ["x"]},
                {"label": "b", "members": ["y", "z"]},
            ]
        }

    def test_reshape_without_template(self, registry, renderer) -> None:
        """reshape applies nested templates and keeps everything else."""
        schema = parse_schema(
            {
                "type": "object",
                "properties": {
                    "version": {"type": "string"},
                    "commands": {
                        "type": "array",
                        "items": {"type": "object", "x-template": {"id": "{c1}"}},
                    },
                },
            },
            registry,
        )
        data = {"version": "1.0", "commands": [{"c1": "git", "c2": "create"}]}
        result = renderer.reshape(data, schema)
        assert result.output == {"version": "1.0", "commands": [{"id": "git"}]}
        assert not result.has_warnings

    def test_without_schema_values_copied(self, renderer) -> None:
        """Without a schema resolved values are substituted unchanged."""
        context = {"commands": [{"c1": "git"}]}
        result = renderer.render({"c": "{commands}"}, context)
        assert result.output == {"c": [{"c1": "git"}]}
        result.output["c"][0]["c1"] = "changed"
        assert context["commands"][0]["c1"] == "git"


# ==================== Frontmatter Items ====================

def items_schema(registry, root=None, item_template=None):
    """Schema with one frontmatter part under tools.commands."""
    items = {"type": "object"}
    if item_template is not None:
        items["x-template"] = item_template
    raw = {
        "type": "object",
        "properties": {
            "tools": {
                "type": "object",
                "properties": {
                    "commands": {
                        "type": "array",
                        "x-frontmatter-part": True,
                        "items": items,
                    }
                },
            }
        },
    }
    raw.update(root or {})
    return parse_schema(raw, registry)


COMMANDS = {"tools": {"commands": [{"c1": "git", "c2": "create"}, {"c1": "spec"}]}}


class TestFrontmatterItems:
    """The {@items} placeholder and x-template-items."""

    def test_whole_string_becomes_rendered_list(self, registry, renderer) -> None:
        """Each record is rendered through x-template-items."""
        schema = items_schema(
            registry,
            {"x-template": "registry.json", "x-template-items": {"name": "{c1}", "n": "{$index}"}},
        )
        result = renderer.render({"commands": "{@items}"}, COMMANDS, schema)
        assert result.output == {
            "commands": [{"name": "git", "n": 0}, {"name": "spec", "n": 1}]
        }
        assert not result.has_warnings

    def test_array_element_is_spliced(self, registry, renderer) -> None:
        """{@items} inside an array is replaced by the records in place."""
        schema = items_schema(
            registry, {"x-template": "registry.json", "x-template-items": "{c1}"}
        )
        result = renderer.render({"all": ["first", "{@items}", "last"]}, COMMANDS, schema)
        assert result.output == {"all": ["first", "git", "spec", "last"]}

    def test_item_template_by_name(self, registry) -> None:
        """x-template-items may name a template resource."""
        renderer = TemplateRenderer(
            repository=TemplateRepository(templates={"item.json": '{"id": "{c1}"}'})
        )
        schema = items_schema(
            registry, {"x-template": "registry.json", "x-template-items": "item.json"}
        )
        result = renderer.render({"c": "{@items}"}, COMMANDS, schema)
        assert result.output == {"c": [{"id": "git"}, {"id": "spec"}]}

    def test_inline_joins_records(self, registry, renderer) -> None:
        """Inline {@items} joins the formatted records with a comma and newline."""
        schema = items_schema(
            registry, {"x-template": "registry.json", "x-template-items": "{c1}"}
        )
        result = renderer.render({"summary": "Commands: {@items}"}, COMMANDS, schema)
        assert result.output == {"summary": "Commands: git,\nspec"}

    def test_falls_back_to_part_item_template(self, registry, renderer) -> None:
        """Without x-template-items the part's item x-template is used."""
        schema = items_schema(registry, item_template="{c1}-{$index}")
        result = renderer.render({"c": "{@items}"}, COMMANDS, schema)
        assert result.output == {"c": ["git-0", "spec-1"]}

    def test_records_copied_without_item_template(self, registry, renderer) -> None:
        """With no item template the records are substituted as they are."""
        result = renderer.render({"c": "{@items}"}, COMMANDS, items_schema(registry))
        assert result.output == {"c": COMMANDS["tools"]["commands"]}

    def test_miss_without_frontmatter_part(self, registry, renderer) -> None:
        """A schema without x-frontmatter-part cannot expand {@items}."""
        schema = parse_schema({"type": "object", "properties": {}}, registry)
        result = renderer.render({"c": "{@items}", "s": "a{@items}b"}, {}, schema)
        assert result.output == {"c": None, "s": "ab"}
        assert [(w.kind, w.path) for w in result.warnings] == [
            (IssueKind.VARIABLE_SUBSTITUTION_MISS, "@items"),
            (IssueKind.VARIABLE_SUBSTITUTION_MISS, "@items"),
        ]

    def test_miss_inside_item_template(self, registry, renderer) -> None:
        """An item template cannot itself expand {@items}."""
        schema = items_schema(
            registry, {"x-template": "registry.json", "x-template-items": "{@items}"}
        )
        result = renderer.render({"c": "{@items}"}, COMMANDS, schema)
        assert result.output == {"c": [None, None]}
        assert len(result.warnings) == 2


# ==================== Named Templates ====================

class TestNamedTemplates:
    """Templates loaded from the repository."""

    def test_render_named_json(self) -> None:
        """render_named loads and renders a JSON template."""
        renderer = TemplateRenderer(
            repository=TemplateRepository(templates={"reg.json": '{"v": "{version}"}'})
        )
        assert renderer.render_named("reg.json", {"version": "1.0"}).output == {"v": "1.0"}

    def test_text_template_interpolates(self) -> None:
        """Plain-text templates are interpolated as text."""
        renderer = TemplateRenderer(
            repository=TemplateRepository(templates={"notes.md": "# {title}\n\n{count} items\n"})
        )
        result = renderer.render_named("notes.md", {"title": "Registry", "count": 2})
        assert result.output == "# Registry\n\n2 items\n"

    def test_render_named_missing(self, renderer) -> None:
        """An unknown template name raises TemplateNotFound."""
        with pytest.raises(TemplateNotFound):
            renderer.render_named("nope.json", {})

    def test_loaded_template_object(self, renderer) -> None:
        """A loaded Template renders like its content."""
        template = Template.from_string('{"v": "{v}"}', "t.json")
        assert renderer.render(template, {"v": 1}).output == {"v": 1}


# ==================== Verbosity ====================

class TestVerbosity:
    """Verbosity changes logging only."""

    def test_same_output_at_every_level(self) -> None:
        """QUIET and VERBOSE renders are identical; QUIET logs nothing."""
        logger = MagicMock(spec=RegistrarLogger)
        renderer = TemplateRenderer(repository=TemplateRepository(templates={}), logger=logger)
        template = {"a": "{a}", "b": "{missing}"}

        quiet = renderer.render(template, {"a": 1}, verbosity=Verbosity.QUIET)
        assert logger.method_calls == []
        verbose = renderer.render(template, {"a": 1}, verbosity=Verbosity.VERBOSE)

        assert quiet.output == verbose.output
        assert quiet.warnings == verbose.warnings
        logger.log_debug.assert_called()
