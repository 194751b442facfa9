"""Pattern compiler for hardstop.

Turns a PatternCollection into an ordered tuple of CompiledPattern objects.

Per pattern, in collection order:
  1. fullmatch collections: enforce_fullmatch() wraps the source as
     ``^(?:<source>)$`` unless it is already anchored at both ends. Anchoring
     is enforced here, never trusted from data: an unanchored "safe" pattern
     would otherwise accept ``git status; rm -rf /``.
  2. Compile case-insensitively with google-re2 (fixed, not configurable).
  3. re2.error → skip this pattern, emit a CompileDiagnostic, keep going.
     One malformed entry must not disable a whole category.

IMPORT RULES:
  - ``import re2`` ONLY; ``import re`` is PROHIBITED in hardstop/patterns/.
    re2 is linear-time; a pattern it rejects could backtrack exponentially
    under stdlib ``re``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

import re2  # google-re2, NOT stdlib re

from hardstop.models.pattern import MatchMode, Pattern, PatternCollection
from hardstop.utils.logger import get_logger

logger = get_logger(__name__)

# Inline flag prefix: all patterns are authored case-insensitively.
_CASE_INSENSITIVE = "(?i)"


# ---------------------------------------------------------------------------
# Data types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CompiledPattern:
    """A Pattern paired with its executable matcher.

    Fields:
        pattern: The source Pattern record (returned to callers on match).
        regex:   Compiled re2 object. For fullmatch collections it is anchored
                 at both ends, so ``search`` behaves as a full match.
        source:  The effective regex source that was compiled (after anchoring).
    """

    pattern: Pattern
    regex: Any  # re2._Regexp
    source: str

    def matches(self, text: str) -> bool:
        return self.regex.search(text) is not None


@dataclass(frozen=True)
class CompileDiagnostic:
    """Structured record of a pattern dropped at compile time."""

    collection: str
    pattern_id: str
    source: str
    error: str


DiagnosticHandler = Callable[[CompileDiagnostic], None]


# ---------------------------------------------------------------------------
# enforce_fullmatch()
# ---------------------------------------------------------------------------


def _has_end_anchor(source: str) -> bool:
    """True if ``source`` ends with an unescaped ``$``."""
    if not source.endswith("$"):
        return False
    backslashes = len(source) - 1 - len(source[:-1].rstrip("\\"))
    return backslashes % 2 == 0


def _has_top_level_alternation(source: str) -> bool:
    """True if ``source`` contains a ``|`` outside any group or character class.

    ``^a|b$`` is anchored at both ends textually, but each anchor binds to
    one branch only, so it still accepts ``a`` followed by anything.
    """
    depth = 0
    in_class = False
    escaped = False
    for ch in source:
        if escaped:
            escaped = False
        elif ch == "\\":
            escaped = True
        elif in_class:
            if ch == "]":
                in_class = False
        elif ch == "[":
            in_class = True
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth = max(depth - 1, 0)
        elif ch == "|" and depth == 0:
            return True
    return False


def enforce_fullmatch(source: str) -> str:
    """Return a regex source that can only match the entire input.

    Cases:
      - ``^...$`` (both anchors)  → returned unchanged.
      - ``^...`` / ``...$`` / bare → partial anchors stripped, then wrapped
        as ``^(?:...)$``. Stripping avoids ``^(?:^ls)$``-style artifacts.
      - ``^a|b$`` (top-level alternation) → wrapped as ``^(?:a|b)$``; the
        textual anchors do not cover every branch.
      - ``...\\$`` (escaped dollar) is a literal, not an anchor; it is kept.
      - ``""``                     → ``^(?:)$`` (matches only the empty input).

    Pure function: no I/O and no logging.
    """
    has_start = source.startswith("^")
    has_end = _has_end_anchor(source)
    if has_start and has_end and len(source) > 1 and not _has_top_level_alternation(source):
        return source

    body = source
    if has_start:
        body = body[1:]
    if _has_end_anchor(body):
        body = body[:-1]
    return f"^(?:{body})$"


# ---------------------------------------------------------------------------
# compile_collection()
# ---------------------------------------------------------------------------


def compile_pattern(pattern: Pattern, match_mode: MatchMode) -> CompiledPattern:
    """Compile a single pattern for ``match_mode``.

    Raises:
        re2.error: the (effective) source is not a valid re2 regex.
    """
    source = pattern.pattern
    if match_mode is MatchMode.FULLMATCH:
        source = enforce_fullmatch(source)
    regex = re2.compile(_CASE_INSENSITIVE + source)
    return CompiledPattern(pattern=pattern, regex=regex, source=source)


def compile_collection(
    collection: PatternCollection,
    on_diagnostic: Optional[DiagnosticHandler] = None,
) -> tuple[CompiledPattern, ...]:
    """Compile every pattern in ``collection``, preserving order.

    INVARIANT: NEVER raises for a bad regex. Failed entries are excluded from
    the result and reported as a WARNING log event plus ``on_diagnostic``.

    Returns:
        Compiled patterns in collection order, minus any that failed.
    """
    compiled: list[CompiledPattern] = []

    for pattern in collection.patterns:
        try:
            compiled.append(compile_pattern(pattern, collection.match_mode))
        except re2.error as exc:
            diagnostic = CompileDiagnostic(
                collection=collection.name,
                pattern_id=pattern.id,
                source=pattern.pattern,
                error=str(exc),
            )
            logger.warning(
                "pattern_compile_failed",
                collection=diagnostic.collection,
                pattern_id=diagnostic.pattern_id,
                source=diagnostic.source,
                error=diagnostic.error,
            )
            if on_diagnostic is not None:
                on_diagnostic(diagnostic)

    return tuple(compiled)
