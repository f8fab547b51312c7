# docsim/parser.py
"""
Tokenizer, tagged-block reader and query processor.

Corpus and query files share one block convention:

    <P ID=12>            <Q ID=76>
    text line            text line
    ...                  ...
    </P>                 </Q>

Lines outside a block are ignored. Everything between the open and the
close line is tokenized and belongs to that block.

Tokenization rules:
  - split on whitespace runs
  - lower-case
  - strip leading, then trailing, characters that are not ASCII letters
  - drop tokens that end up empty
  - truncation mode: cut tokens longer than STEM_LENGTH to their prefix
"""

from __future__ import annotations

import html
import os
import re
from collections import defaultdict
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, List, Tuple

from ftfy import fix_text

from docsim.errors import MalformedInputError, MissingResourceError
from docsim.paths import STEM_LENGTH

DOC_TAGS = ("<P ID=", "</P>")
QUERY_TAGS = ("<Q ID=", "</Q>")

_LEADING = re.compile(r"^[^a-zA-Z]+")
_TRAILING = re.compile(r"[^a-zA-Z]+$")


def tokenize(line: str, truncate: bool = False) -> List[str]:
    """
    Normalize one line of text into terms.

    >>> tokenize('"Hello," said the 3rd-party.')
    ['hello', 'said', 'the', 'rd-party']
    >>> tokenize("information informational", truncate=True)
    ['infor', 'infor']
    """
    out: List[str] = []
    for piece in line.split():
        tok = _TRAILING.sub("", _LEADING.sub("", piece.lower()))
        if not tok:
            continue
        if truncate and len(tok) > STEM_LENGTH:
            tok = tok[:STEM_LENGTH]
        out.append(tok)
    return out


def iter_tagged_blocks(
    lines: Iterable[str],
    tags: Tuple[str, str] = DOC_TAGS,
    source: str = "<lines>",
) -> Iterator[Tuple[int, List[str]]]:
    """
    Split a stream of lines into (block_id, content_lines).

    Raises MalformedInputError for a close tag with no open block, an open
    tag inside an open block, an id that is not an integer, a repeated id,
    or input that ends inside a block.
    """
    open_prefix, close_prefix = tags
    block_id = None
    opened_at = 0
    content: List[str] = []
    seen = set()

    for lineno, raw in enumerate(lines, start=1):
        line = raw.rstrip("\r\n")
        if line.startswith(open_prefix):
            if block_id is not None:
                raise MalformedInputError(
                    f"{open_prefix!r} while block {block_id} (line {opened_at}) is still open",
                    source, lineno)
            id_text = line[len(open_prefix):].replace(">", "")
            try:
                new_id = int(id_text)
            except ValueError:
                raise MalformedInputError(f"unparseable id {id_text!r}", source, lineno) from None
            if new_id in seen:
                raise MalformedInputError(f"duplicate id {new_id}", source, lineno)
            seen.add(new_id)
            block_id = new_id
            opened_at = lineno
            content = []
        elif line.startswith(close_prefix):
            if block_id is None:
                raise MalformedInputError(f"{close_prefix!r} without a matching open tag", source, lineno)
            yield block_id, content
            block_id = None
        elif block_id is not None:
            content.append(line)

    if block_id is not None:
        raise MalformedInputError(f"block {block_id} is never closed", source, opened_at)


@contextmanager
def open_lines(source, what: str = "input file"):
    """
    Yield (lines, source_name) for a path or an already-iterable of lines.
    Paths are opened (and closed) here; a missing path is MissingResourceError.
    """
    if isinstance(source, (str, os.PathLike)):
        path = os.fspath(source)
        if not os.path.exists(path):
            raise MissingResourceError(what, path)
        with open(path, "r", encoding="utf-8", errors="ignore") as f:
            yield f, path
    else:
        yield source, "<lines>"


class Query:
    """
    One query block: its bag-of-words and, once scored, docid -> cosine score.
    """
    __slots__ = ("id", "bag_of_words", "scores")

    def __init__(self, query_id: int, bag_of_words: Dict[str, int] | None = None):
        self.id = query_id
        self.bag_of_words: Dict[str, int] = dict(bag_of_words or {})
        self.scores: Dict[int, float] = {}

    def __repr__(self):
        return f"Query(id={self.id}, terms={len(self.bag_of_words)}, scored={len(self.scores)})"


class Parser:
    """
    Tokenizes tagged corpus / query files.

    truncate:      apply the 5-character truncation to every token
    fix_encoding:  repair mojibake (ftfy) and HTML entities before tokenizing

    Methods:
        tokenize(text) -> list[str]
        bag_of_words(lines) -> dict[str, int]
        iter_docs(source) -> yields (docid, tokens)
        parse_queries(source) -> dict[int, Query] in file order
    """

    def __init__(self, truncate: bool = False, fix_encoding: bool = False):
        self.truncate = truncate
        self.fix_encoding = fix_encoding

    def tokenize(self, text: str) -> List[str]:
        if self.fix_encoding:
            text = fix_text(html.unescape(text))
        return tokenize(text, truncate=self.truncate)

    def bag_of_words(self, lines: Iterable[str]) -> Dict[str, int]:
        # term -> count, in first-seen order
        bag: defaultdict[str, int] = defaultdict(int)
        for line in lines:
            for tok in self.tokenize(line):
                bag[tok] += 1
        return dict(bag)

    def iter_docs(self, source) -> Iterator[Tuple[int, List[str]]]:
        """
        Stream (docid, tokens) from a tagged corpus, one document at a time.
        Documents with no tokens are still yielded (they count towards N).
        """
        with open_lines(source, "corpus file") as (lines, name):
            for docid, content in iter_tagged_blocks(lines, DOC_TAGS, name):
                tokens: List[str] = []
                for line in content:
                    tokens.extend(self.tokenize(line))
                yield docid, tokens

    def parse_queries(self, source) -> Dict[int, Query]:
        """
        Parse a tagged query batch. The returned dict keeps file order,
        which is the order queries are scored and written out.
        """
        queries: Dict[int, Query] = {}
        with open_lines(source, "query file") as (lines, name):
            for qid, content in iter_tagged_blocks(lines, QUERY_TAGS, name):
                queries[qid] = Query(qid, self.bag_of_words(content))
        return queries
