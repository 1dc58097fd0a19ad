#!/usr/bin/env python3
"""
matching.py
-----------
Property-name matching between raw document fields and schema properties.

Document authors are inconsistent about field names (``availableConfigs``,
``available_configs``, ``Available-Configs``). Before a document record is
placed into an ``x-frontmatter-part`` array, its keys are projected onto the
property names declared by the array's item schema.

Matching Strategy:
    Strategies are tried in fixed priority order; the first that yields a
    match wins. Each is a pure function returning a schema name or None.

    1. exact             key equals a schema name
    2. explicit mapping  caller-supplied ``{raw: schema}`` mapping
    3. case-insensitive  unique schema name equal ignoring case
    4. structural        unique schema name equal after normalization
                         (lowercase, accents stripped, ``-``/``_``/spaces
                         removed)

    No strategy guesses beyond these. Keys matched by none pass through
    unchanged.

Usage:
    from registrar.aggregation.matching import PropertyMatcher

    matcher = PropertyMatcher({"cmd": "c1"})
    matcher.project({"cmd": "git", "Available_Configs": []},
                    ["c1", "availableConfigs"])
    # {"c1": "git", "availableConfigs": []}
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import unicodedata
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

Strategy = Callable[[str, Sequence[str], Dict[str, str]], Optional[str]]


def normalize_key(key: str) -> str:
    """
    Normalize a property name for structural comparison.

    Transformations:
        - Lowercase
        - Remove accents (Descripción → descripcion)
        - Remove hyphens, underscores and spaces

    Examples:
        >>> normalize_key("Available-Configs")
        'availableconfigs'
        >>> normalize_key("available_configs")
        'availableconfigs'
    """
    if not key:
        return ""

    result = key.lower()

    # Remove accents (NFD decomposition + remove combining marks)
    result = unicodedata.normalize("NFD", result)
    result = "".join(c for c in result if unicodedata.category(c) != "Mn")

    for separator in ("-", "_", " "):
        result = result.replace(separator, "")

    return result


# ----- Strategies -----
def match_exact(key: str, candidates: Sequence[str], mapping: Dict[str, str]) -> Optional[str]:
    return key if key in candidates else None


def match_explicit(key: str, candidates: Sequence[str], mapping: Dict[str, str]) -> Optional[str]:
    target = mapping.get(key)
    return target if target in candidates else None


def match_case_insensitive(
    key: str, candidates: Sequence[str], mapping: Dict[str, str]
) -> Optional[str]:
    folded = key.casefold()
    return _unique([c for c in candidates if c.casefold() == folded])


def match_structural(
    key: str, candidates: Sequence[str], mapping: Dict[str, str]
) -> Optional[str]:
    normalized = normalize_key(key)
    if not normalized:
        return None
    return _unique([c for c in candidates if normalize_key(c) == normalized])


def _unique(matches: List[str]) -> Optional[str]:
    # Ambiguous matches are treated as no match
    return matches[0] if len(matches) == 1 else None


DEFAULT_STRATEGIES: Tuple[Tuple[str, Strategy], ...] = (
    ("exact", match_exact),
    ("explicit", match_explicit),
    ("case_insensitive", match_case_insensitive),
    ("structural", match_structural),
)


class PropertyMatcher:
    """
    Ordered property-name matching.

    Attributes:
        mapping: Explicit raw-name to schema-name mapping
        strategies: Named strategies in priority order
    """

    def __init__(
        self,
        mapping: Optional[Dict[str, str]] = None,
        strategies: Sequence[Tuple[str, Strategy]] = DEFAULT_STRATEGIES,
    ) -> None:
        self.mapping = dict(mapping or {})
        self.strategies = tuple(strategies)

    def match(self, key: str, candidates: Sequence[str]) -> Optional[str]:
        """Schema name for ``key``, or None if no strategy matches."""
        match, _ = self.match_with_strategy(key, candidates)
        return match

    def match_with_strategy(
        self, key: str, candidates: Sequence[str]
    ) -> Tuple[Optional[str], Optional[str]]:
        """
        Match a key and report which strategy matched.

        Returns:
            Tuple of (schema name, strategy name), both None on no match
        """
        for name, strategy in self.strategies:
            result = strategy(key, candidates, self.mapping)
            if result is not None:
                return result, name
        return None, None

    def project(self, record: Dict[str, Any], candidates: Sequence[str]) -> Dict[str, Any]:
        """
        Rename a record's keys onto schema property names.

        A key that already equals a schema name keeps its value when another
        key would be renamed onto it. Unmatched keys pass through.

        Args:
            record: Raw document properties
            candidates: Property names declared by the schema

        Returns:
            New mapping; key order follows the record
        """
        if not candidates:
            return dict(record)

        projected: Dict[str, Any] = {}
        for key, value in record.items():
            target = self.match(key, candidates) or key
            if target in projected and target != key:
                continue
            if target != key and target in record:
                continue
            projected[target] = value
        return projected
