"""Domain models for chunks, corpora and ranked answers."""

from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

EmbeddingVector = list[float]


class TextUnit(BaseModel):
    """A contiguous span of document text selected as one retrievable chunk.

    Attributes
    ----------
    position:
        1-based sequence position, assigned in document order.
    text:
        Whitespace-collapsed, trimmed chunk text.
    """

    model_config = ConfigDict(frozen=True)

    position: int = Field(ge=1)
    text: str


class CorpusRecord(BaseModel):
    """One chunk paired with its embedding.

    ``id`` equals the chunk's :attr:`TextUnit.position`.
    """

    model_config = ConfigDict(frozen=True)

    id: int = Field(ge=1)
    text: str
    embedding: EmbeddingVector = Field(min_length=1)

    @field_validator("embedding")
    @classmethod
    def _finite(cls, value: EmbeddingVector) -> EmbeddingVector:
        if not all(math.isfinite(v) for v in value):
            raise ValueError("embedding contains NaN or infinite values")
        return value


class Corpus(BaseModel):
    """The ordered set of embedded chunks for one ingested document.

    A corpus is immutable once built.  An empty corpus is valid.

    Attributes
    ----------
    records:
        Records ordered by id; ids are exactly ``1..N``.
    """

    model_config = ConfigDict(frozen=True)

    records: tuple[CorpusRecord, ...] = ()

    @model_validator(mode="after")
    def _check_records(self) -> Corpus:
        dimension: int | None = None
        for expected, record in enumerate(self.records, start=1):
            if record.id != expected:
                raise ValueError(
                    f"record ids must be 1..N in order; expected {expected}, got {record.id}"
                )
            if dimension is None:
                dimension = len(record.embedding)
            elif len(record.embedding) != dimension:
                raise ValueError(
                    f"record {record.id} has dimension {len(record.embedding)}, expected {dimension}"
                )
        return self

    @property
    def dimension(self) -> int | None:
        """Embedding dimension shared by all records (``None`` when empty)."""
        return len(self.records[0].embedding) if self.records else None


class RankedResult(BaseModel):
    """A corpus record scored against a query.  Never persisted."""

    id: int
    text: str
    score: float
