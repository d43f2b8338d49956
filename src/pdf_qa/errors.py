"""Error taxonomy shared by ingestion, storage and retrieval.

Every failure reaches the immediate caller as one of these kinds; only
the HTTP layer translates them into status codes.
"""

from __future__ import annotations


class PdfQaError(Exception):
    """Base class for all pdf-qa errors."""


class ModelUnavailableError(PdfQaError):
    """The embedding model could not be loaded or did not answer in time.

    Callers may retry; nothing is retried internally.
    """


class EmptyInputError(PdfQaError, ValueError):
    """Text to embed (or a question) is empty after trimming."""


class InvalidEmbeddingError(PdfQaError):
    """The model returned an empty vector or one containing NaN/Inf."""


class EmbeddingProviderError(PdfQaError):
    """An embedding failed while building a corpus; the build was aborted."""


class CorpusNotFoundError(PdfQaError, KeyError):
    """No corpus is stored under the requested key."""

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message.
        return str(self.args[0]) if self.args else ""


class CorpusCorruptError(PdfQaError):
    """A stored corpus cannot be parsed back into well-formed records."""


class DimensionMismatchError(PdfQaError, ValueError):
    """Query and corpus vectors have different dimensions."""


class DocumentExtractionError(PdfQaError):
    """The source document could not be read or parsed into text."""
