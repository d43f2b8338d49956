"""Document loading — PDF pages in, one plain-text string out."""

from __future__ import annotations

import logging
from pathlib import Path

from pdf_qa.errors import DocumentExtractionError

logger = logging.getLogger(__name__)

PAGE_SEPARATOR = "\n\n"


class TextBuffer:
    """Accumulates extracted text fragments for a single document.

    Owned by one extraction call; :meth:`text` hands the joined result
    to the chunker.  Fragments are separated by a blank line so page
    breaks count as paragraph breaks.
    """

    def __init__(self, separator: str = PAGE_SEPARATOR) -> None:
        self.separator = separator
        self._fragments: list[str] = []

    def append(self, fragment: str) -> None:
        fragment = fragment.strip()
        if fragment:
            self._fragments.append(fragment)

    def __len__(self) -> int:
        return len(self._fragments)

    def text(self) -> str:
        return self.separator.join(self._fragments)


def load_pdf_text(path: str | Path) -> str:
    """Extract the plain text of the PDF at *path*.

    Raises
    ------
    DocumentExtractionError
        The file is missing, unreadable, or not a parseable PDF.
    """
    from langchain_community.document_loaders import PyPDFLoader

    path = Path(path)
    if not path.is_file():
        raise DocumentExtractionError(f"Error reading file: {path}")

    try:
        pages = PyPDFLoader(str(path)).load()
    except Exception as exc:
        raise DocumentExtractionError(f"Failed to parse PDF {path}: {exc}") from exc

    buffer = TextBuffer()
    for page in pages:
        buffer.append(page.page_content)

    logger.info("Extracted %d pages of text from %s", len(buffer), path)
    return buffer.text()
