"""
Aggregation of per-document records into one schema-shaped tree.
"""

from .documents import AggregationContext, Document, load_documents
from .engine import AggregationEngine, AggregationResult
from .matching import PropertyMatcher

__all__ = [
    "AggregationContext",
    "AggregationEngine",
    "AggregationResult",
    "Document",
    "PropertyMatcher",
    "load_documents",
]
