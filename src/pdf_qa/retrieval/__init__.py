"""
Retrieval — corpus persistence and cosine-similarity ranking.

Public surface
--------------
- :class:`CorpusRetriever` — answer a question against a stored corpus.
- :class:`JsonCorpusStore` — one JSON file per corpus.
- :func:`rank` / :func:`cosine_similarity` — the scoring primitives.
- :class:`Corpus`, :class:`CorpusRecord`, :class:`RankedResult`,
  :class:`TextUnit` — data models.
"""

from pdf_qa.retrieval.models import Corpus, CorpusRecord, RankedResult, TextUnit
from pdf_qa.retrieval.ranker import cosine_similarity, rank
from pdf_qa.retrieval.retriever import CorpusRetriever
from pdf_qa.retrieval.store import JsonCorpusStore

__all__ = [
    "Corpus",
    "CorpusRecord",
    "CorpusRetriever",
    "JsonCorpusStore",
    "RankedResult",
    "TextUnit",
    "cosine_similarity",
    "rank",
]
