#!/usr/bin/env python3
"""
repository.py
-------------
Template resource loading.

Templates are loaded through a Jinja2 loader: a ``FileSystemLoader`` for a
templates directory, or a ``DictLoader`` for in-memory template sets
(tests, embedded use). Only the loader is used; placeholder substitution
is done by ``TemplateRenderer``, not by Jinja2.

Formats by suffix:
    - ``.json``          parsed as JSON
    - ``.yaml``/``.yml`` parsed as YAML
    - anything else      plain text

Usage:
    from registrar.templates.repository import TemplateRepository

    # Production: templates next to the schema
    repository = TemplateRepository(templates_dir=Path("schemas"))
    template = repository.load("registry_template.json")

    # Testing: supply templates as dict
    repository = TemplateRepository(templates={"item.json": '{"id": "{id}"}'})
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

# --- Third party imports ---
import jinja2
import yaml
from jinja2 import BaseLoader, DictLoader, Environment, FileSystemLoader

# --- Local imports ---
from registrar.core.exceptions import TemplateNotFound, TemplateReadFailure

JSON_FORMAT = "json"
YAML_FORMAT = "yaml"
TEXT_FORMAT = "text"


def template_format(name: str) -> str:
    """Template format implied by a resource name's suffix."""
    suffix = Path(name).suffix.lower()
    if suffix == ".json":
        return JSON_FORMAT
    if suffix in (".yaml", ".yml"):
        return YAML_FORMAT
    return TEXT_FORMAT


@dataclass(frozen=True)
class Template:
    """
    A loaded template.

    Attributes:
        name: Resource name ("<inline>" for inline templates)
        format: json, yaml or text
        content: Parsed structure for json/yaml, the raw string for text
    """

    name: str
    format: str
    content: Any

    @classmethod
    def from_string(cls, source: str, name: str, format: Optional[str] = None) -> "Template":
        """
        Parse template text.

        Raises:
            TemplateReadFailure: If structured content cannot be parsed
        """
        fmt = format or template_format(name)
        try:
            if fmt == JSON_FORMAT:
                content = json.loads(source)
            elif fmt == YAML_FORMAT:
                content = yaml.safe_load(source)
            else:
                content = source
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise TemplateReadFailure(f"Invalid {fmt} in {name}: {e}", name) from e
        return cls(name=name, format=fmt, content=content)

    @classmethod
    def inline(cls, content: Any) -> "Template":
        """Wrap an inline template value from a schema."""
        fmt = TEXT_FORMAT if isinstance(content, str) else JSON_FORMAT
        return cls(name="<inline>", format=fmt, content=content)


class TemplateRepository:
    """
    Loads template resources by name.

    Attributes:
        env: Jinja2 Environment holding the configured loader
    """

    def __init__(
        self,
        templates_dir: Optional[Path] = None,
        templates: Optional[Dict[str, str]] = None,
    ) -> None:
        """
        Initialize the repository.

        Args:
            templates_dir: Directory of template files (FileSystemLoader)
            templates: Dict of template_name → template_string (DictLoader)

        Raises:
            ValueError: If both templates_dir and templates are provided
        """
        if templates_dir and templates:
            raise ValueError("Provide either templates_dir or templates, not both")

        loader: BaseLoader
        if templates is not None:
            loader = DictLoader(templates)
        elif templates_dir is not None:
            loader = FileSystemLoader(str(templates_dir))
        else:
            loader = FileSystemLoader(str(Path.cwd()))

        self.env = Environment(loader=loader, keep_trailing_newline=True)

    def source(self, name: str) -> str:
        """
        Raw text of a template resource.

        Raises:
            TemplateNotFound: If no resource has this name
            TemplateReadFailure: If the resource cannot be read
        """
        normalized = _normalize_name(name)
        try:
            text, _, _ = self.env.loader.get_source(self.env, normalized)  # type: ignore[union-attr]
        except jinja2.TemplateNotFound as e:
            raise TemplateNotFound(f"Template not found: {name}", name) from e
        except (OSError, UnicodeDecodeError) as e:
            raise TemplateReadFailure(f"Cannot read template {name}: {e}", name) from e
        return text

    def load(self, name: str) -> Template:
        """
        Load and parse a template resource.

        Raises:
            TemplateNotFound: If no resource has this name
            TemplateReadFailure: If it cannot be read or parsed
        """
        return Template.from_string(self.source(name), name)

    def exists(self, name: str) -> bool:
        try:
            self.source(name)
        except TemplateNotFound:
            return False
        return True


def _normalize_name(name: str) -> str:
    # Jinja2 loaders use forward-slash names without a leading "./"
    name = name.replace("\\", "/")
    while name.startswith("./"):
        name = name[2:]
    return name
