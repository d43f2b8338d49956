"""Corpus retriever — answer a question against one stored corpus.

Usage::

    from pdf_qa.ingestion.embedder import EmbeddingProvider
    from pdf_qa.retrieval.retriever import CorpusRetriever
    from pdf_qa.retrieval.store import JsonCorpusStore

    retriever = CorpusRetriever(JsonCorpusStore(), EmbeddingProvider())
    results = await retriever.ask("pdf_1718000000000", "How are retries bounded?")
    for r in results:
        print(r.id, round(r.score, 3), r.text[:80])
"""

from __future__ import annotations

import asyncio
import logging

from pdf_qa.config import settings
from pdf_qa.errors import EmptyInputError
from pdf_qa.ingestion.embedder import EmbeddingProvider
from pdf_qa.retrieval.models import RankedResult
from pdf_qa.retrieval.ranker import rank
from pdf_qa.retrieval.store import JsonCorpusStore

logger = logging.getLogger(__name__)


class CorpusRetriever:
    """Embed a question and rank the paragraphs of a stored corpus.

    Parameters
    ----------
    store:
        Store the corpora are loaded from.
    provider:
        Embedding provider; must use the model the corpus was built with.
    default_k:
        Number of results returned when :meth:`ask` gets no *k*.
    """

    def __init__(
        self,
        store: JsonCorpusStore,
        provider: EmbeddingProvider,
        *,
        default_k: int = settings.top_k,
    ) -> None:
        self._store = store
        self._provider = provider
        self.default_k = default_k

    async def ask(self, key: str, question: str, *, k: int | None = None) -> list[RankedResult]:
        """Return the top-*k* paragraphs of corpus *key* for *question*.

        Errors from the store, the provider and the ranker propagate
        unchanged.
        """
        if not question or not question.strip():
            raise EmptyInputError("Question must not be empty")
        k = self.default_k if k is None else k

        corpus = await asyncio.to_thread(self._store.load, key)
        query_vector = await self._provider.embed(question)
        results = rank(query_vector, corpus, k)

        logger.info(
            "Answered query on %s: %d of %d paragraphs returned",
            key,
            len(results),
            len(corpus.records),
        )
        return results
