"""
Template resources and placeholder rendering.
"""

from .repository import Template, TemplateRepository
from .renderer import RenderResult, TemplateRenderer

__all__ = [
    "RenderResult",
    "Template",
    "TemplateRenderer",
    "TemplateRepository",
]
