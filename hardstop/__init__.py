"""hardstop: security pattern evaluation for shell commands and file paths.

Classifies untrusted commands and paths against curated regex collections.
Each check returns a MatchResult; the tiered classify calls return a
Classification whose verdict is dangerous / sensitive / safe / unknown.

Module-level functions use a process-wide default Engine, created on first
use from load_config(). Build an ``Engine`` directly for isolated state.

    import hardstop

    await hardstop.preload()
    if hardstop.check_bash_dangerous(cmd).matched:
        ...  # block
    elif hardstop.check_bash_safe(cmd).matched:
        ...  # allow
    else:
        ...  # unknown: escalate
"""

from __future__ import annotations

import threading
from typing import Any, Optional

from hardstop.config import Config, load_config
from hardstop.constants import PLATFORM_AUTO
from hardstop.engine import Engine
from hardstop.errors import ConfigError, HardstopError, LoadError
from hardstop.models.pattern import (
    NO_MATCH,
    Classification,
    MatchResult,
    Pattern,
    PatternCollection,
    PatternMeta,
    Severity,
    Verdict,
)

__version__ = "1.4.0"

_default_engine: Optional[Engine] = None
_default_engine_lock = threading.Lock()


def get_default_engine() -> Engine:
    """Return the process-wide Engine, creating it from load_config() on first use.

    Building it also applies the config's logging section (level, JSON or
    console rendering) to structlog.

    Raises:
        ConfigError: the discovered config file is invalid.
    """
    global _default_engine
    if _default_engine is None:
        with _default_engine_lock:
            if _default_engine is None:
                config = load_config()
                config.apply_logging()
                _default_engine = Engine.from_config(config)
    return _default_engine


def set_default_engine(engine: Optional[Engine]) -> None:
    """Replace the process-wide Engine (None → rebuild lazily on next use)."""
    global _default_engine
    with _default_engine_lock:
        _default_engine = engine


# ─── Check API (default engine) ───────────────────────────────────────────────


def check_bash_dangerous(command: Any, *, platform: Optional[str] = PLATFORM_AUTO) -> MatchResult:
    if not isinstance(command, str):
        return NO_MATCH
    return get_default_engine().check_bash_dangerous(command, platform=platform)


def check_bash_safe(command: Any, *, platform: Optional[str] = PLATFORM_AUTO) -> MatchResult:
    if not isinstance(command, str):
        return NO_MATCH
    return get_default_engine().check_bash_safe(command, platform=platform)


def check_read_dangerous(file_path: Any, *, platform: Optional[str] = PLATFORM_AUTO) -> MatchResult:
    if not isinstance(file_path, str):
        return NO_MATCH
    return get_default_engine().check_read_dangerous(file_path, platform=platform)


def check_read_sensitive(file_path: Any, *, platform: Optional[str] = PLATFORM_AUTO) -> MatchResult:
    if not isinstance(file_path, str):
        return NO_MATCH
    return get_default_engine().check_read_sensitive(file_path, platform=platform)


def check_read_safe(file_path: Any, *, platform: Optional[str] = PLATFORM_AUTO) -> MatchResult:
    if not isinstance(file_path, str):
        return NO_MATCH
    return get_default_engine().check_read_safe(file_path, platform=platform)


def classify_command(command: Any, *, platform: Optional[str] = PLATFORM_AUTO) -> Classification:
    return get_default_engine().classify_command(command, platform=platform)


def classify_path(file_path: Any, *, platform: Optional[str] = PLATFORM_AUTO) -> Classification:
    return get_default_engine().classify_path(file_path, platform=platform)


async def preload() -> None:
    """Load and compile every collection in the default engine."""
    await get_default_engine().preload()


__all__ = [
    "NO_MATCH",
    "Classification",
    "Config",
    "ConfigError",
    "Engine",
    "HardstopError",
    "LoadError",
    "MatchResult",
    "Pattern",
    "PatternCollection",
    "PatternMeta",
    "Severity",
    "Verdict",
    "__version__",
    "check_bash_dangerous",
    "check_bash_safe",
    "check_read_dangerous",
    "check_read_safe",
    "check_read_sensitive",
    "classify_command",
    "classify_path",
    "get_default_engine",
    "load_config",
    "preload",
    "set_default_engine",
]
