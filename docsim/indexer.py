"""
docsim/indexer.py

Builds an inverted index from a tagged corpus and writes it to disk.

Memory-based inversion: every document is scanned before a single posting
is written. Per document we count a local bag-of-words; when the document
closes, each distinct term gets df += 1 and one (docid, count) posting.

Output files:
    - postings file   : flat (docid, tf) int pairs, terms in ascending order
    - dictionary file : term -> (df, cf, offset) plus corpus metadata
"""

from __future__ import annotations

import argparse
import sys
from collections import defaultdict
from typing import Dict, Iterable, List

from docsim import profkit
from docsim.errors import DocsimError, MalformedInputError
from docsim.lexicon import Lexicon
from docsim.listio import ListWriter, Posting
from docsim.parser import Parser
from docsim.paths import CORPUS_PATH, DICTIONARY_PATH, POSTINGS_PATH


class Indexer:
    """
    In-memory inverted index builder.
    Maintains:
        lexicon: term -> {"df": int, "cf": int}
        index:   term -> [(docid, tf), ...] in document scan order

    After building, use save_to_disk() to write the postings file and the
    dictionary file that the Searcher reads.
    """

    def __init__(self, parser: Parser | None = None, verbose: bool = True, progress_every: int = 10_000):
        self.parser = parser or Parser()
        self.verbose = verbose
        self.progress_every = progress_every
        self.lexicon: Dict[str, dict] = {}
        self.index: Dict[str, List[Posting]] = {}
        self.num_documents = 0
        self.collection_size = 0  # total tokens seen
        self._docids = set()

    def add_document(self, docid: int, tokens: Iterable[str]):
        """Fold one document's tokens into the lexicon and postings."""
        if docid in self._docids:
            raise MalformedInputError(f"duplicate document id {docid}")
        self._docids.add(docid)
        self.num_documents += 1

        local: defaultdict[str, int] = defaultdict(int)
        for t in tokens:
            local[t] += 1
            self.collection_size += 1

        for term, count in local.items():
            meta = self.lexicon.get(term)
            if meta is None:
                meta = self.lexicon[term] = {"df": 0, "cf": 0}
                self.index[term] = []
            meta["df"] += 1
            meta["cf"] += count
            self.index[term].append((docid, count))

    def build_inverted_index(self, source) -> Dict[str, List[Posting]]:
        """
        Construct the inverted index from a tagged corpus.

        Args:
            source: path to the corpus file, or an iterable of its lines

        Returns:
            dict[str, list[(docid, tf)]]
        """
        with profkit.timeit("build_index_ms"):
            for docid, tokens in self.parser.iter_docs(source):
                self.add_document(docid, tokens)
                if self.verbose and self.progress_every and self.num_documents % self.progress_every == 0:
                    print(f"[Indexer] {self.num_documents:,} documents indexed", file=sys.stderr)
        profkit.tick("documents", self.num_documents)
        if self.verbose:
            print(f"[Indexer] N={self.num_documents:,}  vocabulary={len(self.lexicon):,}  "
                  f"tokens={self.collection_size:,}", file=sys.stderr)
        return self.index

    def get_postings(self, term: str) -> List[Posting]:
        """
        Posting list for a term from the in-memory index.
        Returns an empty list if the term was never seen.
        """
        return list(self.index.get(term, []))

    def save_to_disk(self, postings_path: str, lexicon_path: str) -> Lexicon:
        """
        Write postings (terms in ascending order), close the postings file,
        then write the dictionary with the offsets just assigned.

        Returns the Lexicon that was saved.
        """
        lex = Lexicon(num_documents=self.num_documents,
                      collection_size=self.collection_size,
                      truncate=self.parser.truncate,
                      fix_encoding=self.parser.fix_encoding)

        with profkit.timeit("write_index_ms"):
            with ListWriter(postings_path, verbose=self.verbose) as writer:
                for term in sorted(self.index):
                    entry = writer.add_term(term, self.index[term])
                    entry["cf"] = self.lexicon[term]["cf"]
                    lex.add(term, entry)
                lex.postings_bytes = writer.offset
            lex.save(lexicon_path, verbose=self.verbose)

        if self.verbose:
            print(f"[Indexer] Wrote postings → {postings_path}", file=sys.stderr)
            print(f"[Indexer] Wrote lexicon  → {lexicon_path}", file=sys.stderr)
        return lex


def build_index(corpus, postings_path: str, lexicon_path: str, *,
                truncate: bool = False, fix_encoding: bool = False, verbose: bool = True) -> Lexicon:
    """Parse, invert and persist in one call. Nothing is written if parsing fails."""
    indexer = Indexer(Parser(truncate=truncate, fix_encoding=fix_encoding), verbose=verbose)
    indexer.build_inverted_index(corpus)
    return indexer.save_to_disk(postings_path, lexicon_path)


def main(argv=None):
    ap = argparse.ArgumentParser(description="Build the postings and dictionary files from a tagged corpus.")
    ap.add_argument("--corpus", default=CORPUS_PATH, help="Corpus with <P ID=n> ... </P> blocks.")
    ap.add_argument("--postings", default=POSTINGS_PATH, help="Output postings path (binary).")
    ap.add_argument("--dictionary", default=DICTIONARY_PATH, help="Output dictionary path.")
    ap.add_argument("--truncate", action="store_true", help="Truncate terms to their first 5 characters.")
    ap.add_argument("--fix-encoding", action="store_true", help="Repair mojibake / HTML entities before tokenizing.")
    ap.add_argument("--quiet", action="store_true", help="Less logging.")
    args = ap.parse_args(argv)

    profkit.enable()
    try:
        lex = build_index(args.corpus, args.postings, args.dictionary,
                          truncate=args.truncate, fix_encoding=args.fix_encoding,
                          verbose=not args.quiet)
    except (DocsimError, OSError) as e:
        print(f"[Indexer] build failed: {e}", file=sys.stderr)
        return 2

    print(f"Number of documents indexed: {lex.num_documents}")
    print(f"Vocabulary size: {lex.vocabulary_size}")
    print(f"Collection size: {lex.collection_size}")
    if not args.quiet:
        for line in profkit.report():
            print(line, file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
