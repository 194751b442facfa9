"""Pattern data contracts for hardstop.

Defines the shapes shared by the store, compiler, and engine:

  - ``Pattern``            — one curated entry (id, regex source, metadata).
  - ``PatternCollection``  — ordered patterns + scope/type/match_mode.
  - ``PatternMeta``        — aggregate counts loaded from meta.yaml.
  - ``MatchResult``        — result of a single-collection check.
  - ``Classification``     — result of a tiered classify_command/classify_path call.

INVARIANTS:
  - ``PatternCollection`` compares and hashes by identity (``eq=False``).
    The compiled-pattern cache is keyed by the collection object itself.
  - ``MatchResult.pattern`` is None if and only if ``matched`` is False.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class Severity(str, Enum):
    """Severity of a dangerous/sensitive pattern. Ordinal: CRITICAL > HIGH > MEDIUM."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.MEDIUM: 1,
    Severity.HIGH: 2,
    Severity.CRITICAL: 3,
}


class MatchMode(str, Enum):
    """How a collection's regexes are applied to the normalized input."""

    SEARCH = "search"        # substring match anywhere
    FULLMATCH = "fullmatch"  # must match the entire input


class Verdict(str, Enum):
    """Tiered verdict returned by the combined classification calls."""

    DANGEROUS = "dangerous"
    SENSITIVE = "sensitive"
    SAFE = "safe"
    UNKNOWN = "unknown"  # no tier matched: escalate, never default-allow


@dataclass(frozen=True)
class PatternExamples:
    """Authored positive/negative example inputs for a pattern (used by tests)."""

    should_match: tuple[str, ...] = ()
    should_not_match: tuple[str, ...] = ()


@dataclass(frozen=True)
class Pattern:
    """A single curated pattern entry.

    Fields:
        id:        Unique within its collection (e.g. ``"DEL-001"``).
        pattern:   Raw regex source, exactly as authored.
        category:  Free-form grouping label (e.g. ``"deletion"``).
        platforms: Platform tags this pattern applies to.
        added:     Provenance marker (pattern data version that introduced it).
        message:   Human-readable explanation. Dangerous/sensitive only.
        severity:  Severity level. Dangerous/sensitive only.
        notes:     Optional curator notes.
        tests:     Authored examples; never consulted at evaluation time.
    """

    id: str
    pattern: str
    category: str
    platforms: tuple[str, ...]
    added: str
    message: Optional[str] = None
    severity: Optional[Severity] = None
    notes: Optional[str] = None
    tests: PatternExamples = field(default_factory=PatternExamples)

    def to_dict(self) -> dict[str, Any]:
        """Serialize back to the data-file record shape (None fields omitted)."""
        out: dict[str, Any] = {
            "id": self.id,
            "pattern": self.pattern,
            "category": self.category,
            "platforms": list(self.platforms),
            "added": self.added,
        }
        if self.message is not None:
            out["message"] = self.message
        if self.severity is not None:
            out["severity"] = self.severity.value
        if self.notes is not None:
            out["notes"] = self.notes
        return out


@dataclass(frozen=True, eq=False)
class PatternCollection:
    """An ordered, named group of patterns sharing scope/type/match_mode.

    Order is a priority contract: evaluation is first-match-wins.
    """

    name: str
    version: str
    scope: str
    type: str
    match_mode: MatchMode
    patterns: tuple[Pattern, ...]

    def __len__(self) -> int:
        return len(self.patterns)


@dataclass(frozen=True)
class PatternMeta:
    """Aggregate metadata loaded from meta.yaml.

    Consumed only by self-consistency checks, never by the evaluator.
    ``stats`` keys use underscores (``bash_dangerous``), matching the data file.
    """

    schema_version: str
    patterns_version: str
    stats: dict[str, int]
    total: int


@dataclass(frozen=True)
class MatchResult:
    """Result of checking one input against one collection."""

    matched: bool
    pattern: Optional[Pattern] = None

    def to_dict(self) -> dict[str, Any]:
        if not self.matched or self.pattern is None:
            return {"matched": False}
        return {"matched": True, "pattern": self.pattern.to_dict()}


#: Canonical negative result. Returned for no-match AND for non-string input.
NO_MATCH = MatchResult(matched=False)


@dataclass(frozen=True)
class Classification:
    """Result of a tiered classification (dangerous → [sensitive →] safe)."""

    verdict: Verdict
    pattern: Optional[Pattern] = None

    @property
    def is_unknown(self) -> bool:
        return self.verdict is Verdict.UNKNOWN
