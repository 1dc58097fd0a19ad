"""
Path expressions over JSON-like data trees.

Import commonly-used names directly from this package:
    from registrar.datapath import PathExpression, PathResolver
"""

from .expression import PathExpression, PathSegment, parse_path
from .resolver import PathResolver

__all__ = [
    "PathExpression",
    "PathSegment",
    "PathResolver",
    "parse_path",
]
