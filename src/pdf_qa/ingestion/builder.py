"""Corpus building — chunk, embed, and persist one document."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from pdf_qa.errors import EmbeddingProviderError
from pdf_qa.ingestion.chunker import Chunker
from pdf_qa.ingestion.embedder import EmbeddingProvider
from pdf_qa.retrieval.models import Corpus, CorpusRecord
from pdf_qa.retrieval.store import JsonCorpusStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IngestResult:
    """Outcome of :func:`ingest_document`."""

    key: str
    paragraphs: int


class CorpusBuilder:
    """Turn document text into a :class:`Corpus`.

    Units are embedded one after another in document order, so record
    ids always follow chunk positions.  The build is all-or-nothing:
    if any embedding fails no corpus is returned.

    Parameters
    ----------
    provider:
        Embedding provider shared with the query path.
    chunker:
        Paragraph chunker; a default :class:`Chunker` when *None*.
    """

    def __init__(self, provider: EmbeddingProvider, chunker: Chunker | None = None) -> None:
        self.provider = provider
        self.chunker = chunker or Chunker()

    async def build(self, document_text: str) -> Corpus:
        units = self.chunker.chunk(document_text)
        logger.info("Embedding %d paragraphs", len(units))

        records: list[CorpusRecord] = []
        for unit in units:
            try:
                embedding = await self.provider.embed(unit.text)
            except Exception as exc:
                raise EmbeddingProviderError(
                    f"Embedding paragraph {unit.position} of {len(units)} failed: {exc}"
                ) from exc
            records.append(CorpusRecord(id=unit.position, text=unit.text, embedding=embedding))

        return Corpus(records=tuple(records))


async def ingest_document(
    document_text: str,
    builder: CorpusBuilder,
    store: JsonCorpusStore,
) -> IngestResult:
    """Build a corpus from *document_text* and persist it.

    Nothing is written when the build fails.
    """
    corpus = await builder.build(document_text)
    key = await asyncio.to_thread(store.save, corpus)
    return IngestResult(key=key, paragraphs=len(corpus.records))
