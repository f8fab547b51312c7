# tests/test_lexicon.py
import struct

import pytest

from docsim.errors import CorruptDictionaryError, FormatMismatchError, IndexLimitError, MissingResourceError
from docsim.lexicon import MAGIC, Lexicon


def _sample():
    lex = Lexicon(num_documents=3, collection_size=9, truncate=True)
    lex.add("zeta", {"df": 1, "cf": 4, "offset": 24})
    lex.add("alpha", {"df": 2, "cf": 2, "offset": 0})
    lex.add("mid", {"df": 1, "cf": 3, "offset": 16})
    lex.postings_bytes = 32
    return lex


def test_save_load_roundtrip(tmp_path):
    path = str(tmp_path / "d.lex")
    _sample().save(path, verbose=False)
    lex = Lexicon.load(path, verbose=False)
    assert lex.map == _sample().map
    assert list(lex) == ["alpha", "mid", "zeta"]
    assert (lex.num_documents, lex.collection_size, lex.truncate, lex.postings_bytes) == (3, 9, True, 32)
    assert lex.vocabulary_size == 3
    assert "mid" in lex and lex.get("nope") is None


def test_bytes_are_deterministic_regardless_of_insert_order():
    a = _sample()
    b = Lexicon(num_documents=3, collection_size=9, truncate=True, postings_bytes=32)
    for term in sorted(a.map, reverse=True):
        b.add(term, dict(a.map[term]))
    assert a.to_bytes() == b.to_bytes()
    assert a.to_bytes().startswith(MAGIC)


def test_non_ascii_terms_roundtrip():
    lex = Lexicon(num_documents=1, postings_bytes=8)
    lex.add("naïve", {"df": 1, "cf": 1, "offset": 0})
    assert Lexicon.from_bytes(lex.to_bytes()).map == lex.map


def test_validate_accepts_contiguous_layout():
    _sample().validate(32)


def test_validate_rejects_gap():
    lex = _sample()
    lex.map["mid"]["offset"] = 20
    with pytest.raises(FormatMismatchError):
        lex.validate()


def test_validate_rejects_other_postings_file():
    with pytest.raises(FormatMismatchError) as ei:
        _sample().validate(40)
    assert "different builds" in str(ei.value)


def test_validate_rejects_wrong_total():
    lex = _sample()
    lex.postings_bytes = 48
    with pytest.raises(FormatMismatchError):
        lex.validate()


@pytest.mark.parametrize("mutate,fragment", [
    (lambda b: b"XXXX" + b[4:], "bad magic"),
    (lambda b: b[:4] + struct.pack(">I", 99) + b[8:], "unsupported version"),
    (lambda b: b[:10], "truncated header"),
    (lambda b: b[:-3], "truncated"),
    (lambda b: b + b"\x00", "trailing bytes"),
])
def test_corrupt_dictionary(mutate, fragment):
    data = mutate(_sample().to_bytes())
    with pytest.raises(CorruptDictionaryError) as ei:
        Lexicon.from_bytes(data, source="d.lex")
    assert fragment in str(ei.value)


def test_corrupt_is_a_format_mismatch():
    with pytest.raises(FormatMismatchError):
        Lexicon.from_bytes(b"")


def test_missing_dictionary(tmp_path):
    with pytest.raises(MissingResourceError) as ei:
        Lexicon.load(str(tmp_path / "nope.lex"))
    assert isinstance(ei.value, FileNotFoundError)


def test_save_leaves_no_temp_file(tmp_path):
    path = tmp_path / "sub" / "d.lex"
    _sample().save(str(path), verbose=False)
    assert path.exists()
    assert not (tmp_path / "sub" / "d.lex.tmp").exists()


@pytest.mark.parametrize("truncate,fix_encoding", [(False, False), (True, False), (False, True), (True, True)])
def test_tokenizer_modes_roundtrip(truncate, fix_encoding):
    lex = Lexicon(num_documents=1, postings_bytes=8, truncate=truncate, fix_encoding=fix_encoding)
    lex.add("word", {"df": 1, "cf": 1, "offset": 0})
    back = Lexicon.from_bytes(lex.to_bytes())
    assert (back.truncate, back.fix_encoding) == (truncate, fix_encoding)


def test_overlong_term_rejected():
    lex = Lexicon(num_documents=1, postings_bytes=8)
    lex.add("x" * 0x10000, {"df": 1, "cf": 1, "offset": 0})
    with pytest.raises(IndexLimitError):
        lex.to_bytes()
