# tests/test_runio.py
import pytest

from docsim.errors import MalformedInputError
from docsim.runio import RunReader, RunWriter, format_line


def test_format_line():
    assert format_line(76, 1203, 1, 0.123456789, "myers") == "76 Q0 1203 1 0.123457 myers\n"
    assert format_line(3, 7, 12, 1.0, "x", decimals=3) == "3 Q0 7 12 1.000 x\n"


def test_rank_restarts_per_query_in_given_order(tmp_path):
    path = tmp_path / "out" / "run.txt"
    ranked = {
        76: [(5, 0.9), (2, 0.5)],
        3: [],
        50: [(8, 0.25)],
    }
    with RunWriter(str(path), tag="docsim", verbose=False) as w:
        w.write_run(ranked)
    assert w.lines == 3
    assert path.read_text().splitlines() == [
        "76 Q0 5 1 0.900000 docsim",
        "76 Q0 2 2 0.500000 docsim",
        "50 Q0 8 1 0.250000 docsim",
    ]


def test_reader_roundtrip(tmp_path):
    path = tmp_path / "run.txt"
    with RunWriter(str(path), tag="t1", verbose=False) as w:
        w.write_query(1, [(10, 0.75), (11, 0.5)])
    rows = list(RunReader(str(path)))
    assert rows == [(1, 10, 1, 0.75, "t1"), (1, 11, 2, 0.5, "t1")]


@pytest.mark.parametrize("line", [
    "1 Q0 10 1 0.5\n",
    "1 X0 10 1 0.5 t\n",
    "1 Q0 ten 1 0.5 t\n",
])
def test_reader_rejects_bad_lines(tmp_path, line):
    path = tmp_path / "run.txt"
    path.write_text(line, encoding="utf-8")
    with RunReader(str(path)) as r:
        with pytest.raises(MalformedInputError):
            next(r)


@pytest.mark.parametrize("tag", ["", "two words", "tab\there"])
def test_tag_must_be_one_word(tmp_path, tag):
    with pytest.raises(ValueError):
        RunWriter(str(tmp_path / "run.txt"), tag=tag, verbose=False)
