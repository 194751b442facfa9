"""hardstop pattern pipeline: store → compiler → platform filter.

Public API:
    PatternStore        — lazy, write-once loader for collections and meta.yaml
    compile_collection  — ordered compile with per-pattern failure isolation
    enforce_fullmatch   — anchoring transform for fullmatch collections
    applies             — platform filter
"""
from hardstop.patterns.compiler import (
    CompileDiagnostic,
    CompiledPattern,
    compile_collection,
    enforce_fullmatch,
)
from hardstop.patterns.platform import applies, detect_platform, resolve_platform
from hardstop.patterns.store import DEFAULT_PATTERNS_DIR, PatternStore

__all__ = [
    "DEFAULT_PATTERNS_DIR",
    "CompileDiagnostic",
    "CompiledPattern",
    "PatternStore",
    "applies",
    "compile_collection",
    "detect_platform",
    "enforce_fullmatch",
    "resolve_platform",
]
