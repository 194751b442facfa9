"""hardstop models package.

Defines the data contracts shared by the store, compiler, and engine:

  - pattern.py — Pattern, PatternCollection, PatternMeta, MatchResult,
                 Classification, Severity, MatchMode, Verdict
"""
from hardstop.models.pattern import (
    NO_MATCH,
    Classification,
    MatchMode,
    MatchResult,
    Pattern,
    PatternCollection,
    PatternExamples,
    PatternMeta,
    Severity,
    Verdict,
)

__all__ = [
    "NO_MATCH",
    "Classification",
    "MatchMode",
    "MatchResult",
    "Pattern",
    "PatternCollection",
    "PatternExamples",
    "PatternMeta",
    "Severity",
    "Verdict",
]
