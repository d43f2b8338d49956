"""FastAPI application exposing PDF ingestion and question answering."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from pdf_qa.config import settings
from pdf_qa.errors import (
    CorpusCorruptError,
    CorpusNotFoundError,
    DimensionMismatchError,
    DocumentExtractionError,
    EmbeddingProviderError,
    EmptyInputError,
    InvalidEmbeddingError,
    ModelUnavailableError,
)
from pdf_qa.ingestion.builder import CorpusBuilder, ingest_document
from pdf_qa.ingestion.embedder import EmbeddingProvider
from pdf_qa.ingestion.loader import load_pdf_text
from pdf_qa.retrieval.models import RankedResult
from pdf_qa.retrieval.retriever import CorpusRetriever
from pdf_qa.retrieval.store import JsonCorpusStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logging.basicConfig(level=settings.log_level)
    # One provider per process so the model is loaded once.
    app.state.provider = EmbeddingProvider()
    app.state.store = JsonCorpusStore(settings.data_dir)
    logger.info("Serving corpora from %s", settings.data_dir)
    yield


app = FastAPI(
    title="PDF QA API",
    version="0.1.0",
    description="Embed PDF paragraphs and answer questions by cosine similarity.",
    lifespan=lifespan,
)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies as 400, like the other client errors."""
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


# ── Dependencies ──────────────────────────────────────────────────────
def get_provider(request: Request) -> EmbeddingProvider:
    return request.app.state.provider


def get_store(request: Request) -> JsonCorpusStore:
    return request.app.state.store


# ── Request / Response schemas ────────────────────────────────────────
class ExtractRequest(BaseModel):
    """Path of a PDF readable by the server."""

    model_config = ConfigDict(populate_by_name=True)

    file_path: str = Field(alias="filePath", min_length=1)


class ExtractResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    file_id: str = Field(alias="fileId")
    paragraphs: int


class AskRequest(BaseModel):
    """A question about a previously extracted document."""

    model_config = ConfigDict(populate_by_name=True)

    file_id: str = Field(alias="fileId", min_length=1)
    question: str


class AskResponse(BaseModel):
    answer: list[RankedResult]


# ── Routes ────────────────────────────────────────────────────────────
@app.get("/health")
async def health() -> dict[str, str]:
    """Liveness check."""
    return {"status": "ok"}


@app.post("/extractPdf", response_model=ExtractResponse)
async def extract_pdf(
    request: ExtractRequest,
    provider: EmbeddingProvider = Depends(get_provider),
    store: JsonCorpusStore = Depends(get_store),
) -> ExtractResponse:
    """Extract, chunk and embed a PDF, then store it as a new corpus."""
    try:
        text = await asyncio.to_thread(load_pdf_text, request.file_path)
        result = await ingest_document(text, CorpusBuilder(provider), store)
    except DocumentExtractionError as exc:
        logger.error("PDF extraction failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except EmbeddingProviderError as exc:
        status = 503 if isinstance(exc.__cause__, ModelUnavailableError) else 500
        logger.error("Embedding failed during ingestion: %s", exc)
        raise HTTPException(status_code=status, detail=str(exc)) from exc

    return ExtractResponse(
        message="PDF extracted and embedded successfully",
        file_id=result.key,
        paragraphs=result.paragraphs,
    )


@app.post("/ask", response_model=AskResponse)
async def ask(
    request: AskRequest,
    provider: EmbeddingProvider = Depends(get_provider),
    store: JsonCorpusStore = Depends(get_store),
) -> AskResponse:
    """Return the paragraphs most similar to the question."""
    retriever = CorpusRetriever(store, provider)
    try:
        answer = await retriever.ask(request.file_id, request.question)
    except CorpusNotFoundError as exc:
        raise HTTPException(status_code=404, detail="File not found") from exc
    except EmptyInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ModelUnavailableError as exc:
        logger.error("Embedding model unavailable: %s", exc)
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except (CorpusCorruptError, DimensionMismatchError, InvalidEmbeddingError) as exc:
        logger.error("Error in ask API: %s", exc)
        raise HTTPException(status_code=500, detail="Error processing your request") from exc

    return AskResponse(answer=answer)
