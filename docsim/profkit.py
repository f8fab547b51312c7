# docsim/profkit.py : ultra-light phase timing for build / search runs
# Toggle via env var: set PROFKIT=1 to enable; otherwise it's no-op with near-zero overhead.
# The CLI also switches it on explicitly so run statistics can report timings.

import os
import time
from collections import defaultdict
from contextlib import contextmanager

ENABLED = os.getenv("PROFKIT", "0") == "1"
COUNTERS = defaultdict(float)  # str -> float (counts / milliseconds)


def enable(on: bool = True):
    global ENABLED
    ENABLED = on


def reset():
    COUNTERS.clear()


def tick(name: str, n: float = 1.0):
    if ENABLED:
        COUNTERS[name] += n


@contextmanager
def timeit(name: str):
    if not ENABLED:
        yield
        return
    t0 = time.perf_counter()
    try:
        yield
    finally:
        COUNTERS[name] += (time.perf_counter() - t0) * 1000.0  # ms


def report() -> list[str]:
    """Counters formatted one per line, sorted by name."""
    lines = []
    for name in sorted(COUNTERS):
        val = COUNTERS[name]
        if name.endswith("_ms"):
            lines.append(f"{name:<28} {val:12.2f}")
        else:
            lines.append(f"{name:<28} {val:12,.0f}")
    return lines
