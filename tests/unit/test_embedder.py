"""Unit tests for the embedding provider."""

from __future__ import annotations

import asyncio
import math
import threading
import time
from unittest.mock import patch

import pytest

from pdf_qa.errors import EmptyInputError, InvalidEmbeddingError, ModelUnavailableError
from pdf_qa.ingestion.embedder import EmbeddingProvider, get_embedding_function

FAKE_DIM = 16


class _StaticModel:
    def __init__(self, vector: list[float]) -> None:
        self.vector = vector

    def embed_query(self, text: str) -> list[float]:
        return self.vector


class _SlowModel:
    def embed_query(self, text: str) -> list[float]:
        time.sleep(0.5)
        return [1.0]


class _BrokenModel:
    def embed_query(self, text: str) -> list[float]:
        raise RuntimeError("CUDA out of memory")


def test_embed_returns_unit_vector(provider: EmbeddingProvider) -> None:
    vector = asyncio.run(provider.embed("Kubeflow pipelines orchestrate ML workflows."))
    assert len(vector) == FAKE_DIM
    assert math.isclose(math.sqrt(sum(v * v for v in vector)), 1.0, abs_tol=1e-9)
    assert provider.dimension == FAKE_DIM


def test_embed_is_deterministic(provider: EmbeddingProvider) -> None:
    async def _run() -> tuple[list[float], list[float]]:
        return await provider.embed("same text"), await provider.embed("same text")

    first, second = asyncio.run(_run())
    assert first == second


@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
def test_empty_text_rejected(provider: EmbeddingProvider, text: str) -> None:
    with pytest.raises(EmptyInputError):
        asyncio.run(provider.embed(text))
    assert not provider.is_loaded


def test_model_loaded_lazily_and_once(fake_model) -> None:
    calls = 0

    def factory():
        nonlocal calls
        calls += 1
        return fake_model

    provider = EmbeddingProvider(model_factory=factory)
    assert calls == 0

    async def _run() -> None:
        await provider.embed("first call")
        await provider.embed("second call")

    asyncio.run(_run())
    assert calls == 1
    assert provider.is_loaded


def test_concurrent_callers_share_one_load(fake_model) -> None:
    """Single-flight: a slow load started by one caller serves all of them."""
    calls = 0
    lock = threading.Lock()

    def slow_factory():
        nonlocal calls
        with lock:
            calls += 1
        time.sleep(0.1)
        return fake_model

    provider = EmbeddingProvider(model_factory=slow_factory)

    async def _run() -> list[list[float]]:
        return await asyncio.gather(*(provider.embed(f"text number {i}") for i in range(8)))

    vectors = asyncio.run(_run())
    assert calls == 1
    assert len(vectors) == 8
    assert len(fake_model.calls) == 8


def test_load_failure_raises_model_unavailable() -> None:
    def factory():
        raise OSError("model files not found")

    provider = EmbeddingProvider(model_factory=factory)
    with pytest.raises(ModelUnavailableError, match="model files not found") as excinfo:
        asyncio.run(provider.embed("hello"))
    assert isinstance(excinfo.value.__cause__, OSError)
    assert not provider.is_loaded


def test_failed_load_is_retried_on_next_call(fake_model) -> None:
    attempts = 0

    def flaky_factory():
        nonlocal attempts
        attempts += 1
        if attempts == 1:
            raise ConnectionError("hub unreachable")
        return fake_model

    provider = EmbeddingProvider(model_factory=flaky_factory)
    with pytest.raises(ModelUnavailableError):
        asyncio.run(provider.embed("hello"))
    assert len(asyncio.run(provider.embed("hello"))) == FAKE_DIM
    assert attempts == 2


def test_load_timeout_raises_model_unavailable(fake_model) -> None:
    def stalled_factory():
        time.sleep(0.5)
        return fake_model

    provider = EmbeddingProvider(timeout=0.05, model_factory=stalled_factory)
    with pytest.raises(ModelUnavailableError, match="timed out"):
        asyncio.run(provider.embed("hello"))


def test_call_after_load_timeout_reuses_running_load(fake_model) -> None:
    calls = []

    def slow_factory():
        calls.append(threading.current_thread().name)
        time.sleep(0.3)
        return fake_model

    provider = EmbeddingProvider(timeout=0.05, model_factory=slow_factory)
    with pytest.raises(ModelUnavailableError, match="timed out"):
        asyncio.run(provider.embed("hello"))

    time.sleep(0.4)
    assert len(asyncio.run(provider.embed("hello"))) == FAKE_DIM
    assert len(calls) == 1
    assert provider.is_loaded


def test_inference_timeout_raises_model_unavailable() -> None:
    provider = EmbeddingProvider(timeout=0.05, model_factory=_SlowModel)
    with pytest.raises(ModelUnavailableError, match="did not answer"):
        asyncio.run(provider.embed("hello"))


def test_inference_error_raises_model_unavailable() -> None:
    provider = EmbeddingProvider(model_factory=_BrokenModel)
    with pytest.raises(ModelUnavailableError, match="CUDA out of memory"):
        asyncio.run(provider.embed("hello"))


@pytest.mark.parametrize(
    "vector",
    [[0.5, float("nan")], [float("inf"), 0.0], [-float("inf")], []],
)
def test_non_finite_or_empty_output_rejected(vector: list[float]) -> None:
    provider = EmbeddingProvider(model_factory=lambda: _StaticModel(vector))
    with pytest.raises(InvalidEmbeddingError):
        asyncio.run(provider.embed("hello"))


def test_dimension_change_rejected() -> None:
    model = _StaticModel([1.0, 0.0])
    provider = EmbeddingProvider(model_factory=lambda: model)

    async def _run() -> None:
        await provider.embed("first")
        model.vector = [1.0, 0.0, 0.0]
        await provider.embed("second")

    with pytest.raises(InvalidEmbeddingError, match="dimension changed"):
        asyncio.run(_run())


def test_default_factory_requests_normalised_embeddings() -> None:
    with patch("langchain_huggingface.HuggingFaceEmbeddings") as hf:
        get_embedding_function("sentence-transformers/all-MiniLM-L6-v2", "cpu")

    hf.assert_called_once_with(
        model_name="sentence-transformers/all-MiniLM-L6-v2",
        model_kwargs={"device": "cpu"},
        encode_kwargs={"normalize_embeddings": True},
    )


@pytest.mark.integration
def test_real_model_produces_normalised_vectors() -> None:
    pytest.importorskip("sentence_transformers")
    provider = EmbeddingProvider()
    try:
        vector = asyncio.run(provider.embed("Cosine similarity ranks paragraphs."))
    except ModelUnavailableError:
        pytest.skip("embedding model not available offline")
    assert len(vector) == 384
    assert math.isclose(math.sqrt(sum(v * v for v in vector)), 1.0, abs_tol=1e-5)
