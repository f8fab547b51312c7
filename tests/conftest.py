# tests/conftest.py
import pytest

from docsim.indexer import build_index

# N = 5.  df: apple 1, banana 2, cherry 2, date 1, egg 1, information 1, informational 1
# ("infor" with df 2 when truncated)
TOY_CORPUS = """\
<P ID=1>
Apple, banana... apple!
</P>
<P ID=2>
banana "cherry"
</P>
<P ID=3>
Cherry date.
</P>
<P ID=4>
egg 42
Information
</P>
<P ID=5>
informational
</P>
"""

TOY_QUERIES = """\
<Q ID=76>
apple cherry
</Q>
<Q ID=3>
zebra
</Q>
<Q ID=50>
Information retrieval
</Q>
"""


def write(path, text):
    path.write_text(text, encoding="utf-8")
    return str(path)


@pytest.fixture
def toy_files(tmp_path):
    """Corpus + queries on disk and output paths for one build."""
    return {
        "corpus": write(tmp_path / "corpus.txt", TOY_CORPUS),
        "queries": write(tmp_path / "queries.txt", TOY_QUERIES),
        "postings": str(tmp_path / "index" / "inverted-file.bin"),
        "dictionary": str(tmp_path / "index" / "dictionary.lex"),
        "run": str(tmp_path / "run.txt"),
    }


@pytest.fixture
def toy_index(toy_files):
    build_index(toy_files["corpus"], toy_files["postings"], toy_files["dictionary"], verbose=False)
    return toy_files
