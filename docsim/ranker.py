# docsim/ranker.py
import math
import sys
from collections import defaultdict
from typing import Dict, List, Tuple

from docsim import profkit
from docsim.lexicon import Lexicon
from docsim.listio import ListReader, Posting


def idf(num_documents: int, df: int) -> float:
    """log2(N / df); 0 for a term that no document contains."""
    if df <= 0 or num_documents <= 0:
        return 0.0
    return math.log2(num_documents / df)


def cosine(dot: float, doc_length: float, query_length: float) -> float:
    """dot / (|d| * |q|), with a zero denominator meaning score 0."""
    denominator = doc_length * query_length
    if denominator == 0:
        return 0.0
    return dot / denominator


def rank_scores(scores: Dict[int, float], topk: int | None = None) -> List[Tuple[int, float]]:
    """
    Order scored documents by score descending, ties by ascending docid.
    Zero scores are dropped; at most topk results are kept.
    """
    ranked = sorted(((d, s) for d, s in scores.items() if s > 0),
                    key=lambda x: (-x[1], x[0]))
    return ranked[:topk] if topk is not None else ranked


class Ranker:
    """
    TF-IDF cosine ranker over an on-disk index.

    Requirements / assumptions:
    - `lexicon` is a loaded Lexicon (term -> {df, cf, offset}, plus N)
    - `reader` is a ListReader opened on the matching postings file
    - `doc_lengths` may be passed in when already computed (worker
      processes get them from the parent); otherwise the first scoring call
      computes them with a full pass over the index.

    Weights: w(t, d) = tf(t, d) * idf(t), w(t, q) = count(t, q) * idf(t).
    """

    def __init__(self, lexicon: Lexicon, reader: ListReader, doc_lengths: Dict[int, float] | None = None):
        self.lexicon = lexicon
        self.reader = reader
        self.N = lexicon.num_documents
        self.doc_lengths = doc_lengths
        self._idf: Dict[str, float] = {}

    def idf(self, term: str) -> float:
        val = self._idf.get(term)
        if val is None:
            entry = self.lexicon.get(term)
            val = idf(self.N, entry["df"] if entry else 0)
            self._idf[term] = val
        return val

    def postings(self, term: str) -> List[Posting]:
        entry = self.lexicon.get(term)
        if entry is None:
            return []
        profkit.tick("postings_reads")
        return self.reader.read_postings(entry, term)

    def compute_document_lengths(self) -> Dict[int, float]:
        """
        Euclidean length of every document's TF-IDF vector.

        df is only final once the whole corpus is indexed, so this walks
        every term's postings once per run and accumulates squared weights
        per docid. Documents whose weights are all zero get length 0.0;
        documents with no postings at all are absent.
        """
        acc: defaultdict[int, float] = defaultdict(float)
        with profkit.timeit("doc_lengths_ms"):
            for term in self.lexicon:
                w_idf = self.idf(term)
                for docid, tf in self.postings(term):
                    w = tf * w_idf
                    acc[docid] += w * w
            self.doc_lengths = {d: math.sqrt(sq) for d, sq in acc.items()}
        return self.doc_lengths

    def query_length(self, bag_of_words: Dict[str, int]) -> float:
        total = 0.0
        for term, count in bag_of_words.items():
            w = count * self.idf(term)
            total += w * w
        return math.sqrt(total)

    def score(self, bag_of_words: Dict[str, int]) -> Dict[int, float]:
        """
        Cosine score for every document sharing at least one term with the
        query. Documents never touched by a postings lookup are not included.

        Returns:
            dict docid -> score, in the order documents were first seen
        """
        if self.doc_lengths is None:
            self.compute_document_lengths()

        q_len = self.query_length(bag_of_words)
        dots: defaultdict[int, float] = defaultdict(float)

        for term, count in bag_of_words.items():
            t_idf = self.idf(term)
            q_w = count * t_idf
            for docid, tf in self.postings(term):
                dots[docid] += q_w * (tf * t_idf)

        return {d: cosine(dot, self.doc_lengths.get(d, 0.0), q_len) for d, dot in dots.items()}

    def rank(self, bag_of_words: Dict[str, int], topk: int | None = None) -> List[Tuple[int, float]]:
        return rank_scores(self.score(bag_of_words), topk)


if __name__ == "__main__":
    # Smoke test: python -m docsim.ranker <dictionary> <postings> "query text"
    from docsim.parser import Parser

    if len(sys.argv) != 4:
        print("Usage: python -m docsim.ranker <dictionary> <postings> <query>")
        sys.exit(1)
    lex = Lexicon.load(sys.argv[1])
    with ListReader(sys.argv[2]) as reader:
        ranker = Ranker(lex, reader)
        bag = Parser(truncate=lex.truncate, fix_encoding=lex.fix_encoding).bag_of_words([sys.argv[3]])
        for docid, score in ranker.rank(bag, topk=10):
            print(f"  {docid}\t{score:.6f}")
