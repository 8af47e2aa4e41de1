"""Utility modules for transit-scheduler."""

from .fuzzy import (
    MATCH_THRESHOLD,
    is_fuzzy_equal,
    jaro_winkler,
    matches_query,
    similarity,
)

__all__ = [
    "MATCH_THRESHOLD",
    "is_fuzzy_equal",
    "jaro_winkler",
    "matches_query",
    "similarity",
]
