"""Exception types for hardstop.

Only two conditions ever propagate to callers:

  - ``LoadError``   — a pattern collection (or meta.yaml) could not be read,
                      parsed, or failed schema validation.
  - ``ConfigError`` — the hardstop config file or an env override is invalid.

Per-pattern compile failures and non-string inputs are NOT errors: they
degrade toward "no match" (see hardstop/patterns/compiler.py and
hardstop/engine.py).
"""

from __future__ import annotations

from typing import Optional


class HardstopError(Exception):
    """Base class for every exception raised by hardstop."""


class LoadError(HardstopError):
    """A pattern data file could not be loaded.

    Fields:
        name:  Collection name (e.g. ``"bash-dangerous"``) or ``"meta"``.
        path:  Path of the data file that was attempted, if one was resolved.
        cause: The underlying exception (also chained as ``__cause__``).

    Not retried internally. Every check that needs the collection keeps
    failing until the data is fixed and the process restarts.
    """

    def __init__(
        self,
        name: str,
        reason: str,
        path: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        self.name = name
        self.path = path
        self.cause = cause
        super().__init__(f"hardstop: failed to load {name}: {reason}")


class ConfigError(HardstopError):
    """Invalid hardstop configuration (config.yaml or HARDSTOP_* env vars)."""
