"""Paragraph chunking for extracted document text."""

from __future__ import annotations

import logging
import re

from pdf_qa.config import settings
from pdf_qa.retrieval.models import TextUnit

logger = logging.getLogger(__name__)

# A period followed by whitespace, or a blank line (spaces/tabs allowed on it).
_BOUNDARY_RE = re.compile(r"\n[^\S\n]*\n|\.\s")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_whitespace(text: str) -> str:
    """Collapse whitespace runs to single spaces and trim."""
    return _WHITESPACE_RE.sub(" ", text).strip()


class Chunker:
    """Split document text into paragraph-sized :class:`TextUnit` objects.

    Boundaries are detected before whitespace is collapsed so paragraph
    breaks survive normalisation.  Segments whose normalised length is
    not strictly greater than *min_chars* are dropped.

    Parameters
    ----------
    min_chars:
        Segments of this length or shorter are discarded.
    """

    def __init__(self, min_chars: int = settings.min_chunk_chars) -> None:
        if min_chars < 0:
            raise ValueError("min_chars must be >= 0")
        self.min_chars = min_chars

    def chunk(self, document_text: str) -> list[TextUnit]:
        """Return the surviving segments numbered ``1..N`` in document order."""
        text = document_text.replace("\r\n", "\n").replace("\r", "\n")

        segments = [normalize_whitespace(s) for s in _BOUNDARY_RE.split(text)]
        kept = [s for s in segments if len(s) > self.min_chars]

        logger.debug(
            "Chunked %d chars into %d units (%d short segments dropped)",
            len(text),
            len(kept),
            len(segments) - len(kept),
        )
        return [TextUnit(position=i, text=s) for i, s in enumerate(kept, start=1)]
