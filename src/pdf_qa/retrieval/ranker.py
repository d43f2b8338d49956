"""Cosine-similarity ranking of corpus records against a query vector.

Two behaviours are chosen explicitly here:

* a zero-norm vector on either side scores ``0.0`` instead of NaN;
* records with equal scores are ordered by ascending ``id``.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from pdf_qa.errors import DimensionMismatchError
from pdf_qa.retrieval.models import Corpus, RankedResult


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Return ``dot(a, b) / (|a| * |b|)``, clipped to ``[-1, 1]``.

    Inputs are never assumed to be normalised.  Returns ``0.0`` when
    either vector has zero norm.
    """
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise DimensionMismatchError(f"Cannot compare vectors of dimension {va.size} and {vb.size}")

    denom = np.linalg.norm(va) * np.linalg.norm(vb)
    if denom == 0.0:
        return 0.0
    return float(np.clip(np.dot(va, vb) / denom, -1.0, 1.0))


def rank(query_vector: Sequence[float], corpus: Corpus, top_k: int) -> list[RankedResult]:
    """Score every record of *corpus* and return the best *top_k*.

    Parameters
    ----------
    query_vector:
        Embedding of the query.
    corpus:
        Loaded corpus; read only.
    top_k:
        Maximum number of results.

    Returns
    -------
    list[RankedResult]
        At most ``min(top_k, len(corpus.records))`` results, by descending
        score, ties broken by ascending id.  An empty corpus yields ``[]``.

    Raises
    ------
    DimensionMismatchError
        A record's embedding dimension differs from the query's.
    """
    if top_k < 0:
        raise ValueError("top_k must be >= 0")
    if not corpus.records:
        return []

    dimension = len(query_vector)
    for record in corpus.records:
        if len(record.embedding) != dimension:
            raise DimensionMismatchError(
                f"Query has dimension {dimension} but record {record.id} has "
                f"{len(record.embedding)}; was the corpus built with another model?"
            )

    scored = [
        RankedResult(
            id=record.id,
            text=record.text,
            score=cosine_similarity(query_vector, record.embedding),
        )
        for record in corpus.records
    ]
    scored.sort(key=lambda r: (-r.score, r.id))
    return scored[:top_k]
