"""
Tests for build_registry.
"""
import pytest

from registrar.aggregation.documents import Document
from registrar.core.exceptions import ConfigurationError, TemplateNotFound
from registrar.core.issues import IssueKind
from registrar.pipeline.build import build_registry
from registrar.templates.repository import Template, TemplateRepository


class TestBuildRegistry:
    """Tests for the aggregate-then-render flow."""

    def test_without_template_output_is_aggregate(self, command_schema_raw, command_records):
        """With no template the aggregate is the output."""
        result = build_registry(command_records, command_schema_raw)
        assert result.output == result.aggregate
        assert result.output["tools"]["availableConfigs"] == ["git", "spec"]

    def test_without_template_nested_templates_apply(self, command_schema_raw, command_records):
        """With no root template, item templates in the schema still reshape the output."""
        commands = command_schema_raw["properties"]["tools"]["properties"]["commands"]
        commands["items"] = {"type": "object", "x-template": {"name": "{c1}"}}
        result = build_registry(command_records, command_schema_raw)
        assert result.output["tools"]["commands"] == [{"name": "git"}, {"name": "spec"}]
        assert result.output["tools"]["availableConfigs"] == ["git", "spec"]
        assert result.aggregate["tools"]["commands"][0] == {"c1": "git", "c2": "create"}
        assert not result.has_warnings

    def test_items_placeholder_in_root_template(self, command_schema_raw, command_records):
        """{@items} in the root template lists the records through x-template-items."""
        schema = dict(
            command_schema_raw,
            **{
                "x-template": {"count": "{tools.availableConfigs}", "items": ["{@items}"]},
                "x-template-items": "{c1}:{c2}",
            },
        )
        result = build_registry(command_records, schema)
        assert result.output == {
            "count": ["git", "spec"],
            "items": ["git:create", "spec:analyze"],
        }

    def test_root_template_from_schema(self, command_schema_raw, command_records):
        """The root x-template shapes the output."""
        schema = dict(command_schema_raw, **{"x-template": "registry.json"})
        repository = TemplateRepository(
            templates={"registry.json": '{"configs": "{tools.availableConfigs}"}'}
        )
        result = build_registry(command_records, schema, repository=repository)
        assert result.output == {"configs": ["git", "spec"]}
        assert "commands" in result.aggregate["tools"]

    def test_inline_root_template(self, command_schema_raw, command_records):
        """An inline root template needs no repository."""
        schema = dict(command_schema_raw, **{"x-template": {"n": "{tools.commands[0].c1}"}})
        assert build_registry(command_records, schema).output == {"n": "git"}

    def test_explicit_template_overrides_schema(self, command_schema_raw, command_records):
        """A template argument wins over the root x-template."""
        schema = dict(command_schema_raw, **{"x-template": {"ignored": True}})
        template = Template.inline({"first": "{tools.commands[0].c2}"})
        result = build_registry(command_records, schema, template=template)
        assert result.output == {"first": "create"}

    def test_template_by_name(self, command_schema_raw, command_records):
        """A template name is loaded from the repository."""
        repository = TemplateRepository(templates={"t.yaml": "count: '{tools.commands}'\n"})
        result = build_registry(
            command_records, command_schema_raw, repository=repository, template="t.yaml"
        )
        assert len(result.output["count"]) == 2

    def test_accepts_documents(self, command_schema):
        """Document objects and bare records are both accepted."""
        documents = [Document("a.md", {"c1": "git"}), Document("b.md", {"c1": "git"})]
        result = build_registry(documents, command_schema)
        assert result.output["tools"]["availableConfigs"] == ["git"]

    def test_warnings_from_both_phases(self, command_schema_raw, command_records):
        """Aggregation warnings come before render warnings."""
        schema = {
            "type": "object",
            "properties": {
                "docs": {"type": "array", "x-frontmatter-part": True},
                "bad": {"type": "array", "x-jmespath-filter": "[?"},
            },
        }
        result = build_registry(command_records, schema, template={"x": "{nothing}"})
        assert [w.kind for w in result.warnings] == [
            IssueKind.JMESPATH_COMPILATION_FAILED,
            IssueKind.VARIABLE_SUBSTITUTION_MISS,
        ]
        assert result.has_warnings

    def test_misconfigured_schema_raises(self, command_records):
        """Directive misconfiguration aborts the build."""
        schema = {
            "type": "object",
            "properties": {
                "x": {"type": "array", "x-frontmatter-part": True, "x-derived-from": "a[]"}
            },
        }
        with pytest.raises(ConfigurationError):
            build_registry(command_records, schema)

    def test_missing_template_raises(self, command_schema_raw, command_records):
        """A missing root template aborts the build."""
        schema = dict(command_schema_raw, **{"x-template": "absent.json"})
        with pytest.raises(TemplateNotFound):
            build_registry(
                command_records, schema, repository=TemplateRepository(templates={})
            )
