# docsim/inspect_index.py
"""
Print a summary of a built index and the postings of selected terms.

    python -m docsim.inspect_index --term study --term rome
    python -m docsim.inspect_index --corpus data/corpus.txt   # also compare sizes with the source text
"""

import argparse
import os
import sys

from docsim.errors import DocsimError
from docsim.paths import DICTIONARY_PATH, POSTINGS_PATH
from docsim.searcher import Searcher


def format_postings(postings, limit=None):
    """One line per posting, or '\\tnone' for an empty list."""
    if not postings:
        return ["\tnone"]
    shown = postings if limit is None else postings[:limit]
    lines = [f"\t(documentID: {d}, count: {tf})" for d, tf in shown]
    if limit is not None and len(postings) > limit:
        lines.append(f"\t... {len(postings) - limit} more")
    return lines


def size_report(dictionary_path, postings_path, corpus_path=None):
    dict_size = os.path.getsize(dictionary_path)
    post_size = os.path.getsize(postings_path)
    lines = [
        f"Dictionary file size in bytes: {dict_size}",
        f"Inverted file size in bytes: {post_size}",
    ]
    if corpus_path is not None:
        corpus_size = os.path.getsize(corpus_path)
        lines.append(f"Original text size in bytes: {corpus_size}")
        if corpus_size > dict_size + post_size:
            lines.append("The original text takes up more space than the index")
        else:
            lines.append("The index takes up more space than the original text")
    if post_size > dict_size:
        lines.append("The inverted file takes up more space than the dictionary file")
    else:
        lines.append("The dictionary file takes up more space than the inverted file")
    return lines


def inspect_index(dictionary_path, postings_path, terms=(), corpus_path=None, limit=20, out=None):
    out = out or sys.stdout
    with Searcher(dictionary_path, postings_path, verbose=False) as s:
        lex = s.lexicon
        print(f"Number of documents indexed: {lex.num_documents}", file=out)
        print(f"Vocabulary size: {lex.vocabulary_size}", file=out)
        print(f"Collection size: {lex.collection_size}", file=out)
        print(f"Truncation mode: {'on' if lex.truncate else 'off'}", file=out)
        print(f"Encoding repair: {'on' if lex.fix_encoding else 'off'}", file=out)
        for line in size_report(dictionary_path, postings_path, corpus_path):
            print(line, file=out)

        for raw in terms:
            # look terms up the way queries are tokenized
            toks = s.parser.tokenize(raw)
            term = toks[0] if toks else raw
            entry = lex.get(term) or {"df": 0, "cf": 0}
            print(f"  {term}  df={entry['df']}  cf={entry['cf']}", file=out)
            for line in format_postings(s.get_postings(term), limit=limit):
                print(line, file=out)


def main(argv=None):
    ap = argparse.ArgumentParser(description="Inspect a built index.")
    ap.add_argument("--postings", default=POSTINGS_PATH, help="Postings path (binary).")
    ap.add_argument("--dictionary", default=DICTIONARY_PATH, help="Dictionary path.")
    ap.add_argument("--corpus", default=None, help="Source corpus, for the size comparison.")
    ap.add_argument("--term", action="append", default=[], help="Term to show (repeatable).")
    ap.add_argument("--limit", type=int, default=20, help="Postings shown per term (0 = all).")
    args = ap.parse_args(argv)

    try:
        inspect_index(args.dictionary, args.postings, terms=args.term, corpus_path=args.corpus,
                      limit=args.limit or None)
    except (DocsimError, OSError) as e:
        print(f"[inspect] {e}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
