"""Embedding provider — lazily loaded sentence-transformer behind an async API."""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import TYPE_CHECKING, Callable

import numpy as np

from pdf_qa.config import settings
from pdf_qa.errors import EmptyInputError, InvalidEmbeddingError, ModelUnavailableError

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

logger = logging.getLogger(__name__)

ModelFactory = Callable[[], "Embeddings"]


def get_embedding_function(
    model_name: str = settings.embedding_model,
    device: str = settings.embedding_device,
) -> Embeddings:
    """Return the configured sentence-transformer embedding function.

    ``all-MiniLM-L6-v2`` mean-pools token representations; with
    ``normalize_embeddings`` every vector comes back L2-normalised.
    """
    from langchain_huggingface import HuggingFaceEmbeddings

    return HuggingFaceEmbeddings(
        model_name=model_name,
        model_kwargs={"device": device},
        encode_kwargs={"normalize_embeddings": True},
    )


class EmbeddingProvider:
    """Map text to a fixed-dimension, unit-normalised vector.

    The model is loaded on the first :meth:`embed` call and reused for
    the lifetime of the provider.  Loading is single-flight: concurrent
    callers wait on the one in-flight load instead of starting their own.
    A load that times out keeps running in its own thread; the next call
    waits on that same load rather than starting a second one.  A failed
    load is not remembered, so a later call tries again.

    Parameters
    ----------
    model_name:
        HuggingFace model id, forwarded to the default factory.
    device:
        Torch device for the default factory.
    timeout:
        Seconds allowed for model loading and for each inference call.
    model_factory:
        Zero-argument callable returning a LangChain ``Embeddings``
        object.  Defaults to :func:`get_embedding_function`.
    """

    def __init__(
        self,
        *,
        model_name: str | None = None,
        device: str | None = None,
        timeout: float | None = None,
        model_factory: ModelFactory | None = None,
    ) -> None:
        self.model_name = model_name or settings.embedding_model
        self.device = device or settings.embedding_device
        self.timeout = timeout or settings.embedding_timeout_seconds
        self._model_factory = model_factory or (
            lambda: get_embedding_function(self.model_name, self.device)
        )
        self._model: Embeddings | None = None
        self._init_lock = asyncio.Lock()
        self._pending_load: Future[Embeddings] | None = None
        self._dimension: int | None = None

    @property
    def is_loaded(self) -> bool:
        return self._model is not None

    @property
    def dimension(self) -> int | None:
        """Vector dimension, known once the first embedding was produced."""
        return self._dimension

    async def embed(self, text: str) -> list[float]:
        """Embed *text* and return its vector as a list of floats.

        Raises
        ------
        EmptyInputError
            *text* is empty after trimming.
        ModelUnavailableError
            The model failed to load, failed to answer, or timed out.
        InvalidEmbeddingError
            The model produced an empty or non-finite vector.
        """
        if not text or not text.strip():
            raise EmptyInputError("Cannot embed empty text")

        model = await self._get_model()
        try:
            raw = await asyncio.wait_for(
                asyncio.to_thread(model.embed_query, text), timeout=self.timeout
            )
        except asyncio.TimeoutError as exc:
            raise ModelUnavailableError(
                f"Embedding model {self.model_name!r} did not answer within {self.timeout}s"
            ) from exc
        except Exception as exc:
            raise ModelUnavailableError(
                f"Embedding model {self.model_name!r} failed: {exc}"
            ) from exc

        return self._validate(raw)

    async def _get_model(self) -> Embeddings:
        if self._model is not None:
            return self._model

        async with self._init_lock:
            # Another caller may have finished loading while we waited.
            if self._model is None:
                if self._pending_load is None:
                    logger.info("Loading embedding model %s", self.model_name)
                    self._pending_load = self._start_load()
                else:
                    logger.info("Waiting on earlier load of embedding model %s", self.model_name)
                try:
                    model = await asyncio.wait_for(
                        asyncio.shield(asyncio.wrap_future(self._pending_load)),
                        timeout=self.timeout,
                    )
                except asyncio.TimeoutError as exc:
                    # The load keeps running; the next call waits on it again.
                    raise ModelUnavailableError(
                        f"Loading embedding model {self.model_name!r} timed out after {self.timeout}s"
                    ) from exc
                except Exception as exc:
                    self._pending_load = None
                    raise ModelUnavailableError(
                        f"Could not load embedding model {self.model_name!r}: {exc}"
                    ) from exc
                self._pending_load = None
                self._model = model
                logger.info("Embedding model %s loaded", self.model_name)
        return self._model

    def _start_load(self) -> Future[Embeddings]:
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="embedding-model-load")
        try:
            return executor.submit(self._model_factory)
        finally:
            executor.shutdown(wait=False)

    def _validate(self, raw: list[float]) -> list[float]:
        try:
            vector = np.asarray(raw, dtype=np.float64)
        except (TypeError, ValueError) as exc:
            raise InvalidEmbeddingError(f"Embedding is not numeric: {exc}") from exc

        if vector.ndim != 1 or vector.size == 0:
            raise InvalidEmbeddingError(f"Expected a non-empty 1-d vector, got shape {vector.shape}")
        if not np.isfinite(vector).all():
            raise InvalidEmbeddingError("Embedding contains NaN or infinite values")

        if self._dimension is None:
            self._dimension = vector.size
        elif vector.size != self._dimension:
            raise InvalidEmbeddingError(
                f"Embedding dimension changed from {self._dimension} to {vector.size}"
            )
        return vector.tolist()
