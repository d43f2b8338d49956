"""
Ingestion — document loading, paragraph chunking, and embedding.

This module turns raw document text into an embedded corpus:
extracted text → :class:`Chunker` → :class:`EmbeddingProvider` →
:class:`CorpusBuilder` → corpus store.
"""

from pdf_qa.ingestion.builder import CorpusBuilder, IngestResult, ingest_document
from pdf_qa.ingestion.chunker import Chunker
from pdf_qa.ingestion.embedder import EmbeddingProvider

__all__ = [
    "Chunker",
    "CorpusBuilder",
    "EmbeddingProvider",
    "IngestResult",
    "ingest_document",
]
