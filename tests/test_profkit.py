# tests/test_profkit.py
import pytest

from docsim import profkit
from docsim.indexer import build_index


@pytest.fixture
def counters():
    was = profkit.ENABLED
    profkit.enable()
    profkit.reset()
    yield profkit.COUNTERS
    profkit.reset()
    profkit.enable(was)


def test_disabled_is_noop():
    was = profkit.ENABLED
    profkit.enable(False)
    profkit.reset()
    try:
        profkit.tick("x")
        with profkit.timeit("y_ms"):
            pass
        assert dict(profkit.COUNTERS) == {}
    finally:
        profkit.enable(was)


def test_build_records_phases(counters, toy_files):
    build_index(toy_files["corpus"], toy_files["postings"], toy_files["dictionary"], verbose=False)
    assert counters["documents"] == 5
    assert counters["build_index_ms"] >= 0
    assert "write_index_ms" in counters


def test_report_formats(counters):
    profkit.tick("queries", 3)
    counters["scoring_ms"] += 1.5
    assert profkit.report() == [
        f"{'queries':<28} {3:12,.0f}",
        f"{'scoring_ms':<28} {1.5:12.2f}",
    ]
