"""Shared pytest configuration and fixtures."""

from __future__ import annotations

import hashlib
import math
import re
from pathlib import Path

import pytest
from langchain_core.embeddings import Embeddings

from pdf_qa.ingestion.embedder import EmbeddingProvider
from pdf_qa.retrieval.models import Corpus, CorpusRecord
from pdf_qa.retrieval.store import JsonCorpusStore

FAKE_DIM = 16


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring the real embedding model")


class FakeEmbeddings(Embeddings):
    """Deterministic bag-of-words hashing embedder (unit-normalised)."""

    def __init__(self, dim: int = FAKE_DIM) -> None:
        self.dim = dim
        self.calls: list[str] = []

    def embed_query(self, text: str) -> list[float]:
        self.calls.append(text)
        vector = [0.0] * self.dim
        for token in re.findall(r"\w+", text.lower()):
            digest = hashlib.sha256(token.encode()).digest()
            vector[digest[0] % self.dim] += 1.0
        norm = math.sqrt(sum(v * v for v in vector)) or 1.0
        return [v / norm for v in vector]

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [self.embed_query(t) for t in texts]


@pytest.fixture()
def fake_model() -> FakeEmbeddings:
    return FakeEmbeddings()


@pytest.fixture()
def provider(fake_model: FakeEmbeddings) -> EmbeddingProvider:
    return EmbeddingProvider(model_name="fake", timeout=5.0, model_factory=lambda: fake_model)


@pytest.fixture()
def store(tmp_path: Path) -> JsonCorpusStore:
    return JsonCorpusStore(tmp_path / "pdf_data")


@pytest.fixture()
def sample_corpus() -> Corpus:
    return Corpus(
        records=(
            CorpusRecord(id=1, text="Kubeflow pipelines orchestrate machine learning workflows.", embedding=[1.0, 0.0, 0.0]),
            CorpusRecord(id=2, text="KServe provides serverless inference on Kubernetes clusters.", embedding=[0.0, 1.0, 0.0]),
            CorpusRecord(id=3, text="Vector databases index embeddings for similarity search.", embedding=[0.6, 0.8, 0.0]),
        )
    )
