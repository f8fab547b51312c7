"""
docsim/lexicon.py

Lexicon maps each term to its on-disk postings metadata.

Each entry is a small dict:
    {
        "df": int,        # number of documents containing the term
        "cf": int,        # total occurrences of the term in the corpus
        "offset": int,    # byte offset of the term's run in the postings file
    }

Alongside the map the lexicon carries corpus-level facts the scorer
needs: number of documents N, collection size, the tokenizer modes the
index was built with (truncation, encoding repair), and the size of the postings file it was built
with.

On-disk format (all integers big-endian):

    magic "DLX1" | version u32 | flags u32 | num_documents u64
    | collection_size u64 | postings_bytes u64 | n_terms u32
    then n_terms records in ascending term order:
        term_len u16 | term utf-8 | df u32 | cf u64 | offset u64

flags bit 0 = truncation mode, bit 1 = encoding repair (ftfy + HTML entities).
"""

from __future__ import annotations

import os
import struct
import sys
from typing import Dict, Iterator, Optional

from docsim.errors import CorruptDictionaryError, FormatMismatchError, IndexLimitError, MissingResourceError
from docsim.listio import PAIR_SIZE

MAGIC = b"DLX1"
VERSION = 1
FLAG_TRUNCATE = 0x1
FLAG_FIX_ENCODING = 0x2

_HEADER = struct.Struct(">4sIIQQQI")
_TERM_LEN = struct.Struct(">H")
_RECORD = struct.Struct(">IQQ")  # df, cf, offset


class Lexicon:
    """
    Persistent mapping from term -> postings metadata.

    Typical usage:
        lex = Lexicon(num_documents=3)
        lex.add("hello", {"df": 2, "cf": 5, "offset": 0})
        lex.postings_bytes = 16
        lex.save("data/dictionary.lex")

        # Later:
        lex2 = Lexicon.load("data/dictionary.lex")
        entry = lex2.map["hello"]
    """
    def __init__(self, num_documents: int = 0, collection_size: int = 0,
                 truncate: bool = False, postings_bytes: int = 0,
                 fix_encoding: bool = False):
        self.map: Dict[str, dict] = {}
        self.num_documents = num_documents
        self.collection_size = collection_size
        self.truncate = truncate
        self.fix_encoding = fix_encoding
        self.postings_bytes = postings_bytes

    def add(self, term: str, entry: dict):
        self.map[term] = entry

    def get(self, term: str) -> Optional[dict]:
        return self.map.get(term)

    def __contains__(self, term):
        return term in self.map

    def __len__(self):
        return len(self.map)

    def __iter__(self) -> Iterator[str]:
        return iter(self.map)

    @property
    def vocabulary_size(self) -> int:
        return len(self.map)

    def validate(self, postings_bytes: int | None = None):
        """
        Check that offsets describe the contiguous, term-sorted layout the
        indexer writes, and that it ends exactly at postings_bytes.
        Pass the real postings file size to also check the pairing.
        """
        expected = 0
        for term in sorted(self.map):
            entry = self.map[term]
            if entry["offset"] != expected:
                raise FormatMismatchError(
                    f"term {term!r}: offset {entry['offset']} but layout expects {expected}")
            expected += entry["df"] * PAIR_SIZE
        if expected != self.postings_bytes:
            raise FormatMismatchError(
                f"lexicon describes {expected} postings bytes but records {self.postings_bytes}")
        if postings_bytes is not None and postings_bytes != self.postings_bytes:
            raise FormatMismatchError(
                f"postings file has {postings_bytes} bytes, lexicon was built "
                f"against {self.postings_bytes} (index files from different builds?)")

    def to_bytes(self) -> bytes:
        flags = (FLAG_TRUNCATE if self.truncate else 0) | (FLAG_FIX_ENCODING if self.fix_encoding else 0)
        out = bytearray(_HEADER.pack(MAGIC, VERSION, flags, self.num_documents,
                                     self.collection_size, self.postings_bytes, len(self.map)))
        for term in sorted(self.map):
            entry = self.map[term]
            term_b = term.encode("utf-8")
            if len(term_b) > 0xFFFF:
                raise IndexLimitError(f"term too long to store ({len(term_b)} bytes): {term[:32]!r}...")
            out += _TERM_LEN.pack(len(term_b))
            out += term_b
            out += _RECORD.pack(entry["df"], entry.get("cf", 0), entry["offset"])
        return bytes(out)

    @classmethod
    def from_bytes(cls, data: bytes, source: str = "<bytes>") -> "Lexicon":
        try:
            magic, version, flags, n_docs, coll_size, p_bytes, n_terms = _HEADER.unpack_from(data, 0)
        except struct.error:
            raise CorruptDictionaryError(f"{source}: truncated header") from None
        if magic != MAGIC:
            raise CorruptDictionaryError(f"{source}: bad magic {magic!r}, expected {MAGIC!r}")
        if version != VERSION:
            raise CorruptDictionaryError(f"{source}: unsupported version {version}, expected {VERSION}")

        lex = cls(num_documents=n_docs, collection_size=coll_size,
                  truncate=bool(flags & FLAG_TRUNCATE), postings_bytes=p_bytes,
                  fix_encoding=bool(flags & FLAG_FIX_ENCODING))
        pos = _HEADER.size
        try:
            for i in range(n_terms):
                (term_len,) = _TERM_LEN.unpack_from(data, pos)
                pos += _TERM_LEN.size
                term_b = data[pos:pos + term_len]
                if len(term_b) != term_len:
                    raise CorruptDictionaryError(f"{source}: truncated term bytes in record {i}")
                pos += term_len
                df, cf, offset = _RECORD.unpack_from(data, pos)
                pos += _RECORD.size
                term = term_b.decode("utf-8")
                if term in lex.map:
                    raise CorruptDictionaryError(f"{source}: duplicate term {term!r}")
                lex.map[term] = {"df": df, "cf": cf, "offset": offset}
        except struct.error:
            raise CorruptDictionaryError(f"{source}: truncated record {i} of {n_terms}") from None
        except UnicodeDecodeError:
            raise CorruptDictionaryError(f"{source}: record {i} is not valid utf-8") from None
        if pos != len(data):
            raise CorruptDictionaryError(f"{source}: {len(data) - pos} trailing bytes after {n_terms} records")
        return lex

    def save(self, path: str, verbose: bool = True):
        # write-then-rename so a failed save never leaves a half-written dictionary
        parent = os.path.dirname(path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        tmp = path + ".tmp"
        with open(tmp, "wb") as f:
            f.write(self.to_bytes())
        os.replace(tmp, path)
        if verbose:
            print(f"[Lexicon] saved {len(self.map):,} terms to {path}", file=sys.stderr)

    @classmethod
    def load(cls, path: str, verbose: bool = True) -> "Lexicon":
        if not os.path.exists(path):
            raise MissingResourceError("dictionary file", path)
        with open(path, "rb") as f:
            data = f.read()
        lex = cls.from_bytes(data, source=path)
        if verbose:
            print(f"[Lexicon] loaded {len(lex.map):,} terms, N={lex.num_documents:,} from {path}",
                  file=sys.stderr)
        return lex
