# docsim/runio.py
"""
Ranked-results ("run") files, one line per (query, document):

    <query_id> Q0 <docid> <rank> <score> <run_tag>

rank restarts at 1 for every query; scores use a fixed number of decimals.
Queries appear in query-file order, documents by rank within a query.
"""

import os
import sys
from typing import Dict, Iterator, List, Tuple

from docsim.errors import MalformedInputError, MissingResourceError
from docsim.paths import RUN_TAG, SCORE_DECIMALS

LITERAL = "Q0"


def format_line(query_id: int, docid: int, rank: int, score: float,
                tag: str = RUN_TAG, decimals: int = SCORE_DECIMALS) -> str:
    return f"{query_id} {LITERAL} {docid} {rank} {score:.{decimals}f} {tag}\n"


class RunWriter:
    """
    Writes ranked lists for a query batch.

    Input format:
        ranked: dict[int, list[(docid, score)]]  # query id -> ranked docs

    The dict's order is the output order, so pass queries in file order.
    """
    def __init__(self, path: str, tag: str = RUN_TAG, decimals: int = SCORE_DECIMALS, verbose: bool = True):
        if any(ch.isspace() for ch in tag) or not tag:
            raise ValueError(f"run tag must be a single non-empty word, got {tag!r}")
        self.path = path
        self.tag = tag
        self.decimals = decimals
        self.verbose = verbose
        self.lines = 0
        parent = os.path.dirname(path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        self._f = open(path, "w", encoding="utf-8")

    def write_query(self, query_id: int, ranked: List[Tuple[int, float]]):
        for rank, (docid, score) in enumerate(ranked, start=1):
            self._f.write(format_line(query_id, docid, rank, score, self.tag, self.decimals))
            self.lines += 1

    def write_run(self, ranked: Dict[int, List[Tuple[int, float]]]):
        for query_id, docs in ranked.items():
            self.write_query(query_id, docs)

    def close(self):
        if self._f.closed:
            return
        self._f.close()
        if self.verbose:
            print(f"[RunWriter] wrote {self.lines:,} lines to {self.path}", file=sys.stderr)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class RunReader:
    """
    Sequentially reads a run file produced by RunWriter.

    Yields tuples: (query_id: int, docid: int, rank: int, score: float, tag: str)
    """
    def __init__(self, path: str):
        if not os.path.exists(path):
            raise MissingResourceError("run file", path)
        self.path = path
        self._f = open(path, "r", encoding="utf-8")
        self._lineno = 0

    def __iter__(self) -> Iterator[Tuple[int, int, int, float, str]]:
        return self

    def __next__(self) -> Tuple[int, int, int, float, str]:
        line = self._f.readline()
        if not line:
            self._f.close()
            raise StopIteration
        self._lineno += 1
        parts = line.split()
        if len(parts) != 6 or parts[1] != LITERAL:
            raise MalformedInputError(f"not a run line: {line.rstrip()!r}", self.path, self._lineno)
        qid, _, docid, rank, score, tag = parts
        try:
            return int(qid), int(docid), int(rank), float(score), tag
        except ValueError:
            raise MalformedInputError(f"bad number in run line: {line.rstrip()!r}",
                                      self.path, self._lineno) from None

    def close(self):
        self._f.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
