"""Shared constants for hardstop.

Collection names, closed enumerations, and data file names are defined here.
No magic strings in other modules; import from here.
"""

from __future__ import annotations

# ─── Collections ──────────────────────────────────────────────────────────────

BASH_DANGEROUS: str = "bash-dangerous"
BASH_SAFE: str = "bash-safe"
READ_DANGEROUS: str = "read-dangerous"
READ_SENSITIVE: str = "read-sensitive"
READ_SAFE: str = "read-safe"

# Load/preload order. Also the order of the stats keys in meta.yaml.
COLLECTION_NAMES: tuple[str, ...] = (
    BASH_DANGEROUS,
    BASH_SAFE,
    READ_DANGEROUS,
    READ_SENSITIVE,
    READ_SAFE,
)

# Name used for LoadError / logging when meta.yaml fails to load.
META_NAME: str = "meta"

# ─── Data files ───────────────────────────────────────────────────────────────

# Extensions tried, in order, for each collection / meta file.
# JSON is a subset of YAML, so yaml.safe_load() handles both.
DATA_FILE_EXTENSIONS: tuple[str, ...] = (".yaml", ".yml", ".json")

# ─── Closed enumerations (schema validation) ─────────────────────────────────

VALID_SCOPES: frozenset[str] = frozenset({"bash", "read"})
VALID_TYPES: frozenset[str] = frozenset({"dangerous", "safe", "sensitive"})
VALID_MATCH_MODES: frozenset[str] = frozenset({"search", "fullmatch"})
VALID_PLATFORMS: frozenset[str] = frozenset({"linux", "macos", "windows"})

# Collection types whose patterns must carry message + severity.
TYPES_REQUIRING_MESSAGE: frozenset[str] = frozenset({"dangerous", "sensitive"})

# Sentinel option value meaning "detect the host platform".
PLATFORM_AUTO: str = "auto"

# ─── Timing ───────────────────────────────────────────────────────────────────

# preload() logs a WARNING instead of DEBUG when it takes longer than this.
PRELOAD_SLOW_THRESHOLD_MS: float = 250.0
