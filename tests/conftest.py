"""Root test configuration for hardstop.

Clears every HARDSTOP_* environment variable for each test so a developer's
shell (or a stray ~/.hardstop/config.yaml override) cannot leak into config
or engine tests, and resets the process-wide default engine and the structlog
configuration afterwards.

Shared fixtures:
  engine         — Engine over the bundled data, platform filtering disabled.
  make_data_dir  — writes a throwaway data directory from Python dicts.
"""

from __future__ import annotations

import json
import os
from typing import Any, Callable, Optional

import pytest
import structlog
import yaml

import hardstop
from hardstop.constants import COLLECTION_NAMES
from hardstop.engine import Engine
from hardstop.patterns.store import PatternStore

_ENV_VARS = (
    "HARDSTOP_CONFIG",
    "HARDSTOP_PATTERNS_DIR",
    "HARDSTOP_PLATFORM",
    "HARDSTOP_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_hardstop_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture(autouse=True)
def reset_default_engine():
    yield
    hardstop.set_default_engine(None)


@pytest.fixture(autouse=True)
def reset_structlog():
    """Undo any structlog.configure() a test triggered (its stream may be a capture file)."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def engine() -> Engine:
    """Bundled data with platform filtering disabled (every pattern applies)."""
    return Engine(store=PatternStore(), default_platform=None)


def _collection_doc(
    patterns: list[dict[str, Any]],
    *,
    scope: str = "bash",
    type: str = "dangerous",
    match_mode: str = "search",
) -> dict[str, Any]:
    return {
        "version": "0.0.1",
        "scope": scope,
        "type": type,
        "match_mode": match_mode,
        "patterns": patterns,
    }


def _pattern_doc(pattern_id: str, pattern: str, **overrides: Any) -> dict[str, Any]:
    doc: dict[str, Any] = {
        "id": pattern_id,
        "pattern": pattern,
        "message": f"{pattern_id} message",
        "category": "test",
        "severity": "high",
        "platforms": ["linux", "macos", "windows"],
        "added": "0.0.1",
    }
    doc.update(overrides)
    return doc


_DEFAULT_DOCS: dict[str, dict[str, Any]] = {
    "bash-dangerous": _collection_doc([_pattern_doc("D-1", r"\brm\s+-rf\s+/")]),
    "bash-safe": _collection_doc(
        [{"id": "S-1", "pattern": "ls", "category": "ro", "platforms": ["linux", "macos", "windows"], "added": "0.0.1"}],
        type="safe",
        match_mode="fullmatch",
    ),
    "read-dangerous": _collection_doc([_pattern_doc("RD-1", r"\.ssh/id_rsa$")], scope="read"),
    "read-sensitive": _collection_doc([_pattern_doc("RS-1", r"secret")], scope="read", type="sensitive"),
    "read-safe": _collection_doc(
        [{"id": "RSAFE-1", "pattern": r"\.md$", "category": "doc", "platforms": ["linux", "macos", "windows"], "added": "0.0.1"}],
        scope="read",
        type="safe",
    ),
}


@pytest.fixture
def make_data_dir(tmp_path) -> Callable[..., str]:
    """Return a builder that writes a data directory and returns its path.

    make_data_dir(**{"bash-safe": doc_or_text}) overrides single collections;
    anything not passed gets a minimal valid default. A ``str`` value is
    written verbatim. ``meta`` is written unless ``meta=None``. Use
    ``extension=".json"`` to write JSON files instead of YAML.
    """

    def _make(extension: str = ".yaml", meta: Optional[Any] = "default", **docs: Any) -> str:
        data_dir = tmp_path / "data"
        data_dir.mkdir(exist_ok=True)
        for name in COLLECTION_NAMES:
            doc = docs.get(name, _DEFAULT_DOCS[name])
            if doc is None:
                continue
            _write(os.path.join(data_dir, name + extension), doc, extension)
        if meta == "default":
            meta = {
                "schema_version": "1",
                "patterns_version": "0.0.1",
                "stats": {name.replace("-", "_"): 1 for name in COLLECTION_NAMES},
                "total": len(COLLECTION_NAMES),
            }
        if meta is not None:
            _write(os.path.join(data_dir, "meta" + extension), meta, extension)
        return str(data_dir)

    return _make


def _write(path: str, doc: Any, extension: str) -> None:
    with open(path, "w", encoding="utf-8") as fh:
        if isinstance(doc, str):
            fh.write(doc)
        elif extension == ".json":
            json.dump(doc, fh)
        else:
            yaml.safe_dump(doc, fh, sort_keys=False)


@pytest.fixture
def collection_doc() -> Callable[..., dict[str, Any]]:
    """Builder for a collection document: collection_doc(patterns, scope=, type=, match_mode=)."""
    return _collection_doc


@pytest.fixture
def pattern_doc() -> Callable[..., dict[str, Any]]:
    """Builder for a dangerous-style pattern record: pattern_doc(id, regex, **overrides)."""
    return _pattern_doc
