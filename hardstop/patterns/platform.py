"""Platform filtering for pattern evaluation.

Every pattern carries a set of platform tags (``linux``, ``macos``,
``windows``). A check call requests a platform in one of three forms:

  - ``"auto"`` (default) — resolved to the host platform, detected once per
    process and memoized.
  - an explicit tag      — used verbatim.
  - ``None``             — disables filtering; every pattern applies.
"""

from __future__ import annotations

import sys
from functools import lru_cache
from typing import Optional

from hardstop.constants import PLATFORM_AUTO
from hardstop.models.pattern import Pattern


def _platform_from_sys(sys_platform: str) -> str:
    if sys_platform.startswith(("win32", "cygwin", "msys")):
        return "windows"
    if sys_platform == "darwin":
        return "macos"
    return "linux"


@lru_cache(maxsize=1)
def detect_platform() -> str:
    """Return the host platform tag. Computed once per process."""
    return _platform_from_sys(sys.platform)


def resolve_platform(requested: Optional[str] = PLATFORM_AUTO) -> Optional[str]:
    """Turn a ``platform`` option into the tag to filter on (or None).

    Explicit values are used verbatim. A tag outside VALID_PLATFORMS is not
    rejected; it simply matches no tagged pattern.
    """
    if requested == PLATFORM_AUTO:
        return detect_platform()
    return requested


def applies(pattern: Pattern, platform: Optional[str]) -> bool:
    """Return True if ``pattern`` is applicable under ``platform``.

    ``platform`` must already be resolved (see resolve_platform()).
    A pattern with no platform tags applies everywhere.
    """
    if platform is None:
        return True
    if not pattern.platforms:
        return True
    return platform in pattern.platforms
