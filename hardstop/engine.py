"""Pattern evaluation engine for hardstop.

Provides:
  - ``Engine``: owns a PatternStore and the compiled-pattern cache, and exposes
    the five check calls, the tiered classify calls, and ``preload()``.

Check calls (each binds one collection + one normalization step):

  check_bash_dangerous   bash-dangerous   no normalization          search
  check_bash_safe        bash-safe        leading/trailing trimmed  fullmatch
  check_read_dangerous   read-dangerous   ``\\`` → ``/``             search
  check_read_sensitive   read-sensitive   ``\\`` → ``/``             search
  check_read_safe        read-safe        ``\\`` → ``/``             search

INVARIANTS:
  - A non-str input returns NO_MATCH without touching the store or compiler.
  - Evaluation is a linear scan in collection order: platform filter first,
    then regex. The first entry passing both wins. Order is a priority
    contract and is never re-sorted or indexed.
  - The only error a check call propagates is LoadError.
  - Caches are write-once: loaded collections (PatternStore) and compiled
    tuples (keyed by collection identity). Racing writers converge via
    dict.setdefault(); values are pure functions of static data.

Consumer protocol (enforced by classify_command / classify_path):
  commands: dangerous → safe → unknown
  paths:    dangerous → sensitive → safe → unknown
  "unknown" must be escalated, never default-allowed.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, Optional

from hardstop.constants import (
    BASH_DANGEROUS,
    BASH_SAFE,
    COLLECTION_NAMES,
    PLATFORM_AUTO,
    PRELOAD_SLOW_THRESHOLD_MS,
    READ_DANGEROUS,
    READ_SAFE,
    READ_SENSITIVE,
)
from hardstop.models.pattern import (
    NO_MATCH,
    Classification,
    MatchResult,
    PatternCollection,
    PatternMeta,
    Verdict,
)
from hardstop.patterns.compiler import (
    CompileDiagnostic,
    CompiledPattern,
    DiagnosticHandler,
    compile_collection,
)
from hardstop.patterns.platform import applies, resolve_platform
from hardstop.patterns.store import PatternStore
from hardstop.utils.logger import PerformanceLogger, get_logger

if TYPE_CHECKING:
    from hardstop.config import Config

logger = get_logger(__name__)


# ─── Normalization ────────────────────────────────────────────────────────────


def normalize_command(command: str) -> str:
    """Normalization for the safe-command check: strip surrounding whitespace."""
    return command.strip()


def normalize_path(file_path: str) -> str:
    """Normalization for path checks: Windows separators become ``/``."""
    return file_path.replace("\\", "/")


# ─── Engine ───────────────────────────────────────────────────────────────────


class Engine:
    """Evaluates commands and paths against the curated pattern collections.

    Independent engines share nothing; tests build one per data directory.

    Usage:
        engine = Engine()
        await engine.preload()                      # optional warm-up
        result = engine.check_bash_dangerous("rm -rf ~/")
        if result.matched:
            print(result.pattern.id, result.pattern.message)
    """

    def __init__(
        self,
        store: Optional[PatternStore] = None,
        default_platform: Optional[str] = PLATFORM_AUTO,
        on_diagnostic: Optional[DiagnosticHandler] = None,
    ) -> None:
        self._store = store if store is not None else PatternStore()
        self._default_platform = default_platform
        self._on_diagnostic = on_diagnostic
        self._compiled: dict[PatternCollection, tuple[CompiledPattern, ...]] = {}
        self._diagnostics: list[CompileDiagnostic] = []

    @classmethod
    def from_config(cls, config: "Config", **kwargs: Any) -> "Engine":
        """Build an engine from a loaded Config (patterns dir + default platform)."""
        return cls(
            store=PatternStore(config.patterns.dir),
            default_platform=config.patterns.platform,
            **kwargs,
        )

    # ── Introspection ─────────────────────────────────────────────────────────

    @property
    def store(self) -> PatternStore:
        return self._store

    @property
    def diagnostics(self) -> list[CompileDiagnostic]:
        """Patterns dropped at compile time so far (snapshot copy)."""
        return list(self._diagnostics)

    def collection(self, name: str) -> PatternCollection:
        """Return the loaded collection ``name`` (loads on first access)."""
        return self._store.ensure_loaded(name)

    def meta(self) -> PatternMeta:
        return self._store.meta()

    # ── Compilation cache ─────────────────────────────────────────────────────

    def compiled(self, name: str) -> tuple[CompiledPattern, ...]:
        """Return the compiled tuple for collection ``name``.

        Compiled once per collection object; later calls return the same tuple.
        """
        collection = self._store.ensure_loaded(name)
        cached = self._compiled.get(collection)
        if cached is not None:
            return cached
        pending: list[CompileDiagnostic] = []
        compiled = compile_collection(collection, on_diagnostic=pending.append)
        winner = self._compiled.setdefault(collection, compiled)
        # Only the thread whose tuple was stored reports; racing losers stay silent.
        if winner is compiled:
            for diagnostic in pending:
                self._record_diagnostic(diagnostic)
        return winner

    def _record_diagnostic(self, diagnostic: CompileDiagnostic) -> None:
        self._diagnostics.append(diagnostic)
        if self._on_diagnostic is not None:
            self._on_diagnostic(diagnostic)

    # ── Evaluator ─────────────────────────────────────────────────────────────

    def evaluate(self, text: str, name: str, platform: Optional[str]) -> MatchResult:
        """First-match scan of already-normalized ``text`` over collection ``name``.

        ``platform`` must be resolved (a tag, or None to disable filtering).
        """
        for entry in self.compiled(name):
            if applies(entry.pattern, platform) and entry.matches(text):
                return MatchResult(matched=True, pattern=entry.pattern)
        return NO_MATCH

    def _resolve(self, platform: Optional[str]) -> Optional[str]:
        if platform == PLATFORM_AUTO:
            platform = self._default_platform
        return resolve_platform(platform)

    # ── Check API ─────────────────────────────────────────────────────────────

    def check_bash_dangerous(self, command: Any, *, platform: Optional[str] = PLATFORM_AUTO) -> MatchResult:
        """Check a shell command against bash-dangerous (substring search, no trim)."""
        if not isinstance(command, str):
            return NO_MATCH
        return self.evaluate(command, BASH_DANGEROUS, self._resolve(platform))

    def check_bash_safe(self, command: Any, *, platform: Optional[str] = PLATFORM_AUTO) -> MatchResult:
        """Check a shell command against bash-safe (full match on the trimmed command)."""
        if not isinstance(command, str):
            return NO_MATCH
        return self.evaluate(normalize_command(command), BASH_SAFE, self._resolve(platform))

    def check_read_dangerous(self, file_path: Any, *, platform: Optional[str] = PLATFORM_AUTO) -> MatchResult:
        """Check a file path against read-dangerous."""
        if not isinstance(file_path, str):
            return NO_MATCH
        return self.evaluate(normalize_path(file_path), READ_DANGEROUS, self._resolve(platform))

    def check_read_sensitive(self, file_path: Any, *, platform: Optional[str] = PLATFORM_AUTO) -> MatchResult:
        """Check a file path against read-sensitive."""
        if not isinstance(file_path, str):
            return NO_MATCH
        return self.evaluate(normalize_path(file_path), READ_SENSITIVE, self._resolve(platform))

    def check_read_safe(self, file_path: Any, *, platform: Optional[str] = PLATFORM_AUTO) -> MatchResult:
        """Check a file path against read-safe."""
        if not isinstance(file_path, str):
            return NO_MATCH
        return self.evaluate(normalize_path(file_path), READ_SAFE, self._resolve(platform))

    # ── Tiered classification ─────────────────────────────────────────────────

    def classify_command(self, command: Any, *, platform: Optional[str] = PLATFORM_AUTO) -> Classification:
        """Classify a command: dangerous → safe → unknown."""
        result = self.check_bash_dangerous(command, platform=platform)
        if result.matched:
            return Classification(Verdict.DANGEROUS, result.pattern)
        result = self.check_bash_safe(command, platform=platform)
        if result.matched:
            return Classification(Verdict.SAFE, result.pattern)
        return Classification(Verdict.UNKNOWN)

    def classify_path(self, file_path: Any, *, platform: Optional[str] = PLATFORM_AUTO) -> Classification:
        """Classify a path: dangerous → sensitive → safe → unknown."""
        for check, verdict in (
            (self.check_read_dangerous, Verdict.DANGEROUS),
            (self.check_read_sensitive, Verdict.SENSITIVE),
            (self.check_read_safe, Verdict.SAFE),
        ):
            result = check(file_path, platform=platform)
            if result.matched:
                return Classification(verdict, result.pattern)
        return Classification(Verdict.UNKNOWN)

    # ── Preload ───────────────────────────────────────────────────────────────

    def preload_sync(self) -> None:
        """Load meta.yaml and every collection, and compile every collection.

        Raises:
            LoadError: any data file fails to load.
        """
        with PerformanceLogger(
            "Pattern preload",
            logger=logger,
            slow_threshold_ms=PRELOAD_SLOW_THRESHOLD_MS,
            patterns_dir=self._store.patterns_dir,
        ):
            for name in COLLECTION_NAMES:
                self.compiled(name)
            self._store.meta()

    async def preload(self) -> None:
        """Warm every cache so the first real check pays no load/compile cost.

        Runs the file reads and compilation in the default executor so the
        event loop is not blocked. Idempotent; safe to run concurrently with
        check calls. Failures (LoadError) surface when the coroutine is awaited.
        """
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self.preload_sync)
