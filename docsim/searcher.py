# docsim/searcher.py
"""
Scoring-phase entry point.

- Loads the dictionary file into memory and checks it against the
  postings file (same build, consistent offsets).
- Opens the postings file once and keeps it for the whole run.
- Tokenizes queries with the same tokenizer modes the index was built with
  (truncation, encoding repair).
- Computes document vector lengths once, then scores queries in file order,
  optionally across worker processes.
"""

from __future__ import annotations

import argparse
import sys
import time
from concurrent.futures import ProcessPoolExecutor
from typing import Dict, List, Tuple

from docsim import profkit
from docsim.errors import DocsimError
from docsim.lexicon import Lexicon
from docsim.listio import ListReader, Posting
from docsim.parser import Parser, Query
from docsim.paths import DICTIONARY_PATH, POSTINGS_PATH, QUERIES_PATH, RUN_PATH, RUN_TAG, TOP_K
from docsim.ranker import Ranker, rank_scores
from docsim.runio import RunWriter

Ranked = List[Tuple[int, float]]


class Searcher:
    """
    Read-only handle over one built index.

    Typical usage:
        with Searcher(dictionary_path, postings_path) as s:
            queries = s.parse_queries("data/queries.txt")
            ranked = s.search(queries, topk=50)   # qid -> [(docid, score)]
    """

    def __init__(self, lexicon_path: str = DICTIONARY_PATH, postings_path: str = POSTINGS_PATH,
                 verbose: bool = True):
        self.lexicon_path = lexicon_path
        self.postings_path = postings_path
        self.verbose = verbose
        self.lexicon = Lexicon.load(lexicon_path, verbose=verbose)
        self.reader = ListReader(postings_path)
        try:
            self.lexicon.validate(self.reader.size)
        except DocsimError:
            self.reader.close()
            raise
        self.parser = Parser(truncate=self.lexicon.truncate, fix_encoding=self.lexicon.fix_encoding)
        self.ranker = Ranker(self.lexicon, self.reader)

    @property
    def num_documents(self) -> int:
        return self.lexicon.num_documents

    def get_postings(self, term: str) -> List[Posting]:
        """A term's postings from disk; [] for a term not in the index."""
        return self.ranker.postings(term)

    def parse_queries(self, source) -> Dict[int, Query]:
        return self.parser.parse_queries(source)

    def document_lengths(self) -> Dict[int, float]:
        if self.ranker.doc_lengths is None:
            self.ranker.compute_document_lengths()
        return self.ranker.doc_lengths

    def search_text(self, text: str, topk: int | None = TOP_K) -> Ranked:
        """Rank documents for a single free-text query."""
        bag = self.parser.bag_of_words(text.splitlines() or [text])
        return self.ranker.rank(bag, topk)

    def search(self, queries: Dict[int, Query], topk: int | None = TOP_K, workers: int = 1) -> Dict[int, Ranked]:
        """
        Score every query and return qid -> ranked [(docid, score)], in the
        queries' own order. Each Query's .scores is filled in as a side effect.
        """
        doc_lengths = self.document_lengths()
        ranked: Dict[int, Ranked] = {}

        with profkit.timeit("scoring_ms"):
            if workers > 1 and len(queries) > 1:
                tasks = [(q.id, q.bag_of_words) for q in queries.values()]
                with ProcessPoolExecutor(max_workers=workers, initializer=_init_worker,
                                         initargs=(self.postings_path, self.lexicon, doc_lengths)) as ex:
                    for qid, scores in ex.map(_score_worker, tasks, chunksize=max(1, len(tasks) // (4 * workers))):
                        queries[qid].scores = scores
            else:
                for q in queries.values():
                    q.scores = self.ranker.score(q.bag_of_words)

            for q in queries.values():
                ranked[q.id] = rank_scores(q.scores, topk)

        profkit.tick("queries", len(queries))
        if self.verbose:
            print(f"[Searcher] scored {len(queries):,} queries against N={self.num_documents:,}", file=sys.stderr)
        return ranked

    def close(self):
        self.reader.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


# --------------------------
# Worker processes
# --------------------------

_WORKER_RANKER: Ranker | None = None


def _init_worker(postings_path: str, lexicon: Lexicon, doc_lengths: Dict[int, float]):
    # Each process gets its own read-only handle; closed when the process exits.
    global _WORKER_RANKER
    _WORKER_RANKER = Ranker(lexicon, ListReader(postings_path), doc_lengths=doc_lengths)


def _score_worker(task: Tuple[int, Dict[str, int]]) -> Tuple[int, Dict[int, float]]:
    qid, bag = task
    return qid, _WORKER_RANKER.score(bag)


# --------------------------
# Batch run + CLI
# --------------------------

def run_queries(queries_path: str, output_path: str, *, lexicon_path: str = DICTIONARY_PATH,
                postings_path: str = POSTINGS_PATH, topk: int = TOP_K, tag: str = RUN_TAG,
                workers: int = 1, verbose: bool = True) -> Dict[int, Query]:
    """
    Parse queries, score them, write the run file. Returns the scored queries.
    Queries are parsed before the run file is opened, so malformed queries
    leave no output behind.
    """
    with Searcher(lexicon_path, postings_path, verbose=verbose) as s:
        queries = s.parse_queries(queries_path)
        ranked = s.search(queries, topk=topk, workers=workers)
    with RunWriter(output_path, tag=tag, verbose=verbose) as w:
        w.write_run(ranked)
    return queries


def print_run_statistics(queries: Dict[int, Query], lexicon: Lexicon, runtime_s: float, show_query: int | None = None):
    if show_query is None and queries:
        show_query = next(iter(queries))
    if show_query is not None and show_query in queries:
        print(f"Terms and weights (counts) for query #{show_query}:")
        for term, count in queries[show_query].bag_of_words.items():
            print(f"\t{term}: {count}")
    print(f"Vocabulary size: {lexicon.vocabulary_size}")
    print(f"Number of documents indexed: {lexicon.num_documents}")
    print(f"Truncation mode: {'on' if lexicon.truncate else 'off'}")
    print(f"Encoding repair: {'on' if lexicon.fix_encoding else 'off'}")
    print(f"Run-time for cosine similarity: {runtime_s:.3f} s")


def main(argv=None):
    ap = argparse.ArgumentParser(description="Rank documents for a tagged query batch (TF-IDF cosine).")
    ap.add_argument("--queries", default=QUERIES_PATH, help="Queries with <Q ID=n> ... </Q> blocks.")
    ap.add_argument("--postings", default=POSTINGS_PATH, help="Postings path (binary).")
    ap.add_argument("--dictionary", default=DICTIONARY_PATH, help="Dictionary path.")
    ap.add_argument("--output", default=RUN_PATH, help="Run file to write.")
    ap.add_argument("--topk", type=int, default=TOP_K, help="Documents kept per query.")
    ap.add_argument("--tag", default=RUN_TAG, help="Run identifier written on every line.")
    ap.add_argument("--workers", type=int, default=1, help="#processes for scoring queries.")
    ap.add_argument("--show-query", type=int, default=None, help="Query id whose term weights are printed.")
    ap.add_argument("--quiet", action="store_true", help="Less logging.")
    args = ap.parse_args(argv)

    profkit.enable()
    t0 = time.perf_counter()
    try:
        with Searcher(args.dictionary, args.postings, verbose=not args.quiet) as s:
            queries = s.parse_queries(args.queries)
            ranked = s.search(queries, topk=args.topk, workers=args.workers)
            lexicon = s.lexicon
        with RunWriter(args.output, tag=args.tag, verbose=not args.quiet) as w:
            w.write_run(ranked)
    except (DocsimError, OSError) as e:
        print(f"[Searcher] run failed: {e}", file=sys.stderr)
        return 2
    runtime = time.perf_counter() - t0

    print_run_statistics(queries, lexicon, runtime, show_query=args.show_query)
    if not args.quiet:
        for line in profkit.report():
            print(line, file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
