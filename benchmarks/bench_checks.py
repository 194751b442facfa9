"""Check-call benchmark.

Measures p99 latency of the five check calls and the tiered classify calls
against the bundled pattern data, after preload:

  1. Early hit (first entries in collection order) — expected < 0.1ms p99
  2. Late hit / no hit (full linear scan)           — expected < 0.5ms p99
  3. Long inputs (8 KB commands / deep paths)       — expected < 1ms p99

Usage (from project root, with .venv activated):
    python benchmarks/bench_checks.py
"""

from __future__ import annotations

import asyncio
import time
from typing import Any

from hardstop.engine import Engine
from hardstop.patterns.store import PatternStore
from hardstop.utils.logger import configure_logging

# ---------------------------------------------------------------------------
# Test inputs
# ---------------------------------------------------------------------------

EARLY_DANGEROUS = "rm -rf ~/"
LATE_DANGEROUS = "csrutil disable"
CLEAN_COMMAND = "some-random-tool --flag value"
SAFE_COMMAND = "git log --oneline -10"
CHAINED_COMMAND = "git status; " + "echo ok; " * 10

LONG_COMMAND = "echo " + "lorem ipsum dolor sit amet " * 300  # ~8 KB
DEEP_PATH = "/" + "nested/" * 1_000 + "file.bin"

SSH_KEY_PATH = "/home/user/.ssh/id_rsa"
WINDOWS_PATH = "C:\\Users\\dev\\project\\src\\main.py"
UNKNOWN_PATH = "/project/data.bin"

BUDGET_MS = 1.0


# ---------------------------------------------------------------------------
# Benchmark runner
# ---------------------------------------------------------------------------


def measure_p99(fn: Any, *args: Any, n: int = 1_000) -> tuple[float, float, float]:
    """Run fn(*args) n times and return (p50, p99, max) in milliseconds."""
    latencies: list[float] = []
    for _ in range(n):
        start = time.perf_counter()
        fn(*args)
        elapsed = (time.perf_counter() - start) * 1_000
        latencies.append(elapsed)
    latencies.sort()
    p50 = latencies[int(0.50 * n)]
    p99 = latencies[int(0.99 * n)]
    return p50, p99, latencies[-1]


def run_benchmarks() -> bool:
    """Run all benchmarks. Returns True if all pass."""
    WARMUP = 100
    N = 1_000

    configure_logging(log_level="WARNING", json_output=False)
    engine = Engine(store=PatternStore(), default_platform=None)
    preload_start = time.perf_counter()
    asyncio.run(engine.preload())
    preload_ms = (time.perf_counter() - preload_start) * 1_000

    print("=" * 70)
    print("hardstop check-call benchmark")
    print(f"Preload: {preload_ms:.1f}ms | Warmup: {WARMUP} calls | Measurement: {N} calls each")
    print("=" * 70)

    scenarios = [
        ("bash-dangerous early hit", engine.check_bash_dangerous, EARLY_DANGEROUS),
        ("bash-dangerous late hit", engine.check_bash_dangerous, LATE_DANGEROUS),
        ("bash-dangerous no hit", engine.check_bash_dangerous, CLEAN_COMMAND),
        ("bash-dangerous 8 KB", engine.check_bash_dangerous, LONG_COMMAND),
        ("bash-safe hit", engine.check_bash_safe, SAFE_COMMAND),
        ("bash-safe chained (reject)", engine.check_bash_safe, CHAINED_COMMAND),
        ("read-dangerous ssh key", engine.check_read_dangerous, SSH_KEY_PATH),
        ("read-safe windows path", engine.check_read_safe, WINDOWS_PATH),
        ("read-sensitive deep path", engine.check_read_sensitive, DEEP_PATH),
        ("classify_command unknown", engine.classify_command, CLEAN_COMMAND),
        ("classify_path unknown", engine.classify_path, UNKNOWN_PATH),
    ]

    all_pass = True

    for name, fn, text in scenarios:
        # Warmup
        for _ in range(WARMUP):
            fn(text)

        p50, p99, worst = measure_p99(fn, text, n=N)
        passed = p99 <= BUDGET_MS
        status = "✓ PASS" if passed else "✗ FAIL"
        if not passed:
            all_pass = False
        print(f"  [{status}] {name}")
        print(f"          p50={p50:.3f}ms  p99={p99:.3f}ms  worst={worst:.3f}ms")

    print("=" * 70)
    if all_pass:
        print(f"RESULT: ALL BENCHMARKS PASSED — p99 < {BUDGET_MS}ms ✓")
    else:
        print(f"RESULT: SOME BENCHMARKS FAILED — p99 exceeded {BUDGET_MS}ms ✗")
        print("        Investigate pattern complexity or CI runner contention.")
    print("=" * 70)

    return all_pass


if __name__ == "__main__":
    import sys

    passed = run_benchmarks()
    sys.exit(0 if passed else 1)
