# docsim/errors.py
"""
Exceptions raised by the build and scoring phases.

Degenerate numeric states (a term with df == 0, a zero-length vector) are
not errors: the ranker substitutes idf = 0 / score = 0 and carries on.
"""


class DocsimError(Exception):
    """Base class for every error this package raises on purpose."""


class MalformedInputError(DocsimError, ValueError):
    """Unmatched tags, unparseable or duplicate ids in a corpus / query file."""

    def __init__(self, message: str, source: str = "<lines>", lineno: int | None = None):
        self.message = message
        self.source = source
        self.lineno = lineno
        where = f"{source}:{lineno}" if lineno is not None else source
        super().__init__(f"{where}: {message}")

    def __reduce__(self):
        return type(self), (self.message, self.source, self.lineno)


class MissingResourceError(DocsimError, FileNotFoundError):
    """An expected input or index file does not exist."""

    def __init__(self, what: str, path: str):
        self.what = what
        self.path = path
        super().__init__(f"{what} not found: {path}")

    def __reduce__(self):
        return type(self), (self.what, self.path)


class FormatMismatchError(DocsimError, ValueError):
    """Dictionary offsets do not line up with the postings file."""


class CorruptDictionaryError(FormatMismatchError):
    """The dictionary file itself is unreadable (bad magic, version, truncation)."""


class IndexLimitError(DocsimError, ValueError):
    """A posting or term does not fit the fixed-width fields of the index files."""
