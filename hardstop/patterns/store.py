"""Pattern store for hardstop.

Loads the curated pattern collections (bash-dangerous, bash-safe,
read-dangerous, read-sensitive, read-safe) and meta.yaml from a data
directory, on demand, exactly once per store instance.

DESIGN:
  - ensure_loaded(name) is idempotent: every call after the first returns the
    identical PatternCollection object (the compiler cache keys on identity).
  - Loaded values are write-once. Concurrent first calls may each parse the
    file; dict.setdefault() makes every caller observe the first stored
    object, so the redundant work converges.
  - Any read / YAML / schema failure raises LoadError chained to the cause.
    A corrupt data file is a deployment error; it is never skipped silently.
    (Individual bad regexes are a compiler concern, see compiler.py.)
"""

from __future__ import annotations

import os
from typing import Any, Optional

import yaml

from hardstop.constants import (
    COLLECTION_NAMES,
    DATA_FILE_EXTENSIONS,
    META_NAME,
    TYPES_REQUIRING_MESSAGE,
    VALID_MATCH_MODES,
    VALID_PLATFORMS,
    VALID_SCOPES,
    VALID_TYPES,
)
from hardstop.errors import LoadError
from hardstop.models.pattern import (
    MatchMode,
    Pattern,
    PatternCollection,
    PatternExamples,
    PatternMeta,
    Severity,
)
from hardstop.utils.logger import get_logger

logger = get_logger(__name__)

#: Bundled data directory (hardstop/data/).
DEFAULT_PATTERNS_DIR: str = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "data"
)

_REQUIRED_COLLECTION_FIELDS = ("version", "scope", "type", "match_mode", "patterns")
_REQUIRED_PATTERN_FIELDS = ("id", "pattern", "category", "platforms", "added")


class SchemaError(ValueError):
    """A data file parsed as YAML but does not follow the collection schema."""


# ─── PatternStore ─────────────────────────────────────────────────────────────


class PatternStore:
    """Lazily loads and caches pattern collections from a data directory.

    Usage:
        store = PatternStore()                       # bundled data
        store = PatternStore("/etc/hardstop/data")   # curated override
        collection = store.ensure_loaded("bash-safe")
    """

    def __init__(self, patterns_dir: Optional[str] = None) -> None:
        self._dir = os.path.expanduser(patterns_dir) if patterns_dir else DEFAULT_PATTERNS_DIR
        self._collections: dict[str, PatternCollection] = {}
        self._meta: Optional[PatternMeta] = None

    @property
    def patterns_dir(self) -> str:
        return self._dir

    def loaded_names(self) -> list[str]:
        """Names of collections loaded so far, in load order."""
        return list(self._collections)

    # ── Collections ───────────────────────────────────────────────────────────

    def ensure_loaded(self, name: str) -> PatternCollection:
        """Return the collection ``name``, loading it on first access.

        Raises:
            LoadError: unknown collection name, or the data file is missing,
                       unreadable, not valid YAML, or fails schema validation.
        """
        cached = self._collections.get(name)
        if cached is not None:
            return cached

        if name not in COLLECTION_NAMES:
            raise LoadError(
                name,
                f"unknown collection (expected one of {list(COLLECTION_NAMES)})",
            )

        path, raw = self._read(name)
        try:
            collection = _parse_collection(name, raw)
        except SchemaError as exc:
            logger.error("Pattern collection failed schema validation", name=name, path=path, error=str(exc))
            raise LoadError(name, str(exc), path=path, cause=exc) from exc

        winner = self._collections.setdefault(name, collection)
        logger.debug(
            "Pattern collection loaded",
            name=name,
            path=path,
            count=len(winner),
            match_mode=winner.match_mode.value,
        )
        return winner

    # ── Meta ──────────────────────────────────────────────────────────────────

    def meta(self) -> PatternMeta:
        """Return aggregate metadata from meta.yaml, loading it on first access.

        Raises:
            LoadError: meta.yaml missing, unreadable, or malformed.
        """
        if self._meta is not None:
            return self._meta

        path, raw = self._read(META_NAME)
        try:
            meta = _parse_meta(raw)
        except SchemaError as exc:
            logger.error("meta.yaml failed schema validation", path=path, error=str(exc))
            raise LoadError(META_NAME, str(exc), path=path, cause=exc) from exc

        if self._meta is None:
            self._meta = meta
        return self._meta

    # ── File access ───────────────────────────────────────────────────────────

    def _resolve_path(self, name: str) -> Optional[str]:
        for ext in DATA_FILE_EXTENSIONS:
            candidate = os.path.join(self._dir, name + ext)
            if os.path.isfile(candidate):
                return candidate
        return None

    def _read(self, name: str) -> tuple[str, Any]:
        path = self._resolve_path(name)
        if path is None:
            exc = FileNotFoundError(
                f"no {name}{{{','.join(DATA_FILE_EXTENSIONS)}}} in {self._dir}"
            )
            logger.error("Pattern data file not found", name=name, patterns_dir=self._dir)
            raise LoadError(name, str(exc), cause=exc) from exc

        try:
            with open(path, encoding="utf-8") as fh:
                return path, yaml.safe_load(fh)
        except yaml.YAMLError as exc:
            logger.error("Pattern data file is not valid YAML/JSON", name=name, path=path, error=str(exc))
            raise LoadError(name, f"parse error: {exc}", path=path, cause=exc) from exc
        except OSError as exc:
            logger.error("Could not read pattern data file", name=name, path=path, error=str(exc))
            raise LoadError(name, f"read error: {exc}", path=path, cause=exc) from exc


# ─── Parsing helpers ──────────────────────────────────────────────────────────


def _parse_collection(name: str, raw: Any) -> PatternCollection:
    """Validate a parsed data file and build a PatternCollection.

    Raises SchemaError on the first violation found.
    """
    if not isinstance(raw, dict):
        raise SchemaError(f"root must be a mapping, got {type(raw).__name__}")

    missing = [key for key in _REQUIRED_COLLECTION_FIELDS if key not in raw]
    if missing:
        raise SchemaError(f"missing top-level field(s): {', '.join(missing)}")

    scope = raw["scope"]
    if scope not in VALID_SCOPES:
        raise SchemaError(f"invalid scope {scope!r}")
    ctype = raw["type"]
    if ctype not in VALID_TYPES:
        raise SchemaError(f"invalid type {ctype!r}")
    match_mode = raw["match_mode"]
    if match_mode not in VALID_MATCH_MODES:
        raise SchemaError(f"invalid match_mode {match_mode!r}")

    patterns_raw = raw["patterns"]
    if not isinstance(patterns_raw, list):
        raise SchemaError("patterns must be a list")

    requires_message = ctype in TYPES_REQUIRING_MESSAGE
    patterns: list[Pattern] = []
    seen_ids: set[str] = set()
    for index, item in enumerate(patterns_raw):
        pattern = _parse_pattern(item, index, requires_message)
        if pattern.id in seen_ids:
            raise SchemaError(f"duplicate pattern id {pattern.id!r}")
        seen_ids.add(pattern.id)
        patterns.append(pattern)

    return PatternCollection(
        name=name,
        version=str(raw["version"]),
        scope=scope,
        type=ctype,
        match_mode=MatchMode(match_mode),
        patterns=tuple(patterns),
    )


def _parse_pattern(item: Any, index: int, requires_message: bool) -> Pattern:
    if not isinstance(item, dict):
        raise SchemaError(f"pattern #{index} is not a mapping")

    missing = [key for key in _REQUIRED_PATTERN_FIELDS if key not in item]
    if missing:
        raise SchemaError(f"pattern #{index} missing field(s): {', '.join(missing)}")

    pattern_id = item["id"]
    if not isinstance(pattern_id, str) or not pattern_id:
        raise SchemaError(f"pattern #{index} has a non-string id")
    source = item["pattern"]
    if not isinstance(source, str):
        raise SchemaError(f"{pattern_id}: pattern must be a string")

    platforms = item["platforms"]
    if not isinstance(platforms, list) or not platforms:
        raise SchemaError(f"{pattern_id}: platforms must be a non-empty list")
    unknown = [p for p in platforms if p not in VALID_PLATFORMS]
    if unknown:
        raise SchemaError(f"{pattern_id}: unknown platform(s) {unknown}")

    message = item.get("message")
    severity_raw = item.get("severity")
    severity: Optional[Severity] = None
    if requires_message:
        if not isinstance(message, str) or not message:
            raise SchemaError(f"{pattern_id}: message is required")
        try:
            severity = Severity(severity_raw)
        except ValueError:
            raise SchemaError(f"{pattern_id}: invalid severity {severity_raw!r}") from None

    tests_raw = item.get("tests") or {}
    if not isinstance(tests_raw, dict):
        raise SchemaError(f"{pattern_id}: tests must be a mapping")
    tests = PatternExamples(
        should_match=tuple(tests_raw.get("should_match") or ()),
        should_not_match=tuple(tests_raw.get("should_not_match") or ()),
    )

    return Pattern(
        id=pattern_id,
        pattern=source,
        category=str(item["category"]),
        platforms=tuple(platforms),
        added=str(item["added"]),
        message=message if requires_message else None,
        severity=severity,
        notes=item.get("notes"),
        tests=tests,
    )


def _parse_meta(raw: Any) -> PatternMeta:
    if not isinstance(raw, dict):
        raise SchemaError(f"root must be a mapping, got {type(raw).__name__}")
    stats = raw.get("stats")
    if not isinstance(stats, dict) or not all(isinstance(v, int) for v in stats.values()):
        raise SchemaError("stats must be a mapping of collection -> integer count")
    total = raw.get("total")
    if not isinstance(total, int):
        raise SchemaError("total must be an integer")
    return PatternMeta(
        schema_version=str(raw.get("schema_version", "")),
        patterns_version=str(raw.get("patterns_version", "")),
        stats=dict(stats),
        total=total,
    )
