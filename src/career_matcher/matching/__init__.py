"""Scoring and the job posting catalog."""

from .scorer import MatchScorer, round_half_up, score
from .catalog import (
    AppliedFilter,
    CatalogEntry,
    MatchCatalog,
    SortKey,
    parse_status_filter
)

__all__ = [
    "MatchScorer",
    "round_half_up",
    "score",
    "AppliedFilter",
    "CatalogEntry",
    "MatchCatalog",
    "SortKey",
    "parse_status_filter"
]
