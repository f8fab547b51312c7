# docsim/listio.py
"""
Postings file I/O.

The postings file is a flat run of 4-byte big-endian signed integers with
no header. Each term owns one contiguous run of (docid, tf) pairs:

    [docid][tf][docid][tf] ...   <- term "aaron", df pairs
    [docid][tf] ...              <- term "abandon"
    ...

Terms are written in ascending order by the indexer; the byte offset of
each run and its df live in the lexicon. Without the matching lexicon the
file is meaningless.
"""

from __future__ import annotations

import os
import struct
import sys
from typing import List, Tuple

from docsim.errors import FormatMismatchError, IndexLimitError, MissingResourceError

Posting = Tuple[int, int]  # (docid, tf)

INT_SIZE = 4
_PAIR = struct.Struct(">ii")
PAIR_SIZE = _PAIR.size


class ListWriter:
    """
    Appends term postings to a new postings file.

    Usage:
        with ListWriter("data/inverted-file.bin") as w:
            entry = w.add_term("cat", [(1, 3), (4, 1)])
            # entry == {"offset": 0, "df": 2}
    """
    def __init__(self, filepath: str, verbose: bool = True):
        self.filepath = filepath
        self.verbose = verbose
        parent = os.path.dirname(filepath)
        if parent:
            os.makedirs(parent, exist_ok=True)
        self.file = open(filepath, "wb")
        self.offset = 0  # byte offset counter

    def add_term(self, term: str, postings: List[Posting]) -> dict:
        """
        Write one term's postings, in the order given.
        Returns the lexicon fields for the run: {"offset": int, "df": int}.
        """
        buf = bytearray()
        for docid, tf in postings:
            try:
                buf += _PAIR.pack(docid, tf)
            except struct.error:
                raise IndexLimitError(
                    f"posting ({docid}, {tf}) for term {term!r} does not fit in 4-byte ints") from None
        start_offset = self.offset
        self.file.write(buf)
        self.offset += len(buf)
        return {"offset": start_offset, "df": len(postings)}

    def close(self):
        if self.file.closed:
            return
        self.file.close()
        if self.verbose:
            print(f"[ListWriter] wrote {self.offset:,} bytes to {self.filepath}", file=sys.stderr)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class ListReader:
    """
    Random-access reader over a postings file.
    One handle is kept open; every read is an independent seek + read.
    """
    def __init__(self, filepath: str):
        if not os.path.exists(filepath):
            raise MissingResourceError("postings file", filepath)
        self.filepath = filepath
        self.file = open(filepath, "rb")
        self.size = os.fstat(self.file.fileno()).st_size

    def read_postings(self, entry: dict, term: str = "?") -> List[Posting]:
        """
        Return the term's postings as [(docid, tf), ...] in stored order.
        Reads exactly entry["df"] pairs starting at entry["offset"].
        """
        df = entry["df"]
        if df == 0:
            return []
        offset = entry["offset"]
        nbytes = df * PAIR_SIZE
        if offset < 0 or offset + nbytes > self.size:
            raise FormatMismatchError(
                f"term {term!r}: offset={offset} df={df} needs bytes "
                f"[{offset}, {offset + nbytes}) but {self.filepath} has {self.size}")
        self.file.seek(offset)
        buf = self.file.read(nbytes)
        if len(buf) != nbytes:
            raise FormatMismatchError(
                f"term {term!r}: short read at offset={offset}, wanted {nbytes} got {len(buf)}")
        return list(_PAIR.iter_unpack(buf))

    def close(self):
        self.file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
