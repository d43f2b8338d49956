"""JSON-file corpus store — one file per ingested document.

Each corpus is written as ``<key>.json`` inside the data directory: a
pretty-printed JSON array of ``{"id", "text", "embedding"}`` objects.
Keys are derived from the creation time (``pdf_<epoch-ms>``).

Concurrent writers to the same key are not supported.
"""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
import time
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from pdf_qa.config import settings
from pdf_qa.errors import CorpusCorruptError, CorpusNotFoundError
from pdf_qa.retrieval.models import Corpus, CorpusRecord

logger = logging.getLogger(__name__)

_KEY_RE = re.compile(r"[A-Za-z0-9][A-Za-z0-9_.-]*")
_SUFFIX = ".json"
_MAX_KEY_ATTEMPTS = 1000

_records_adapter = TypeAdapter(list[CorpusRecord])


class JsonCorpusStore:
    """Persist and load :class:`Corpus` objects as JSON files.

    Parameters
    ----------
    data_dir:
        Directory holding the corpus files; created when missing.
    """

    def __init__(self, data_dir: str | Path = settings.data_dir) -> None:
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    # -- public API -----------------------------------------------------------

    def save(self, corpus: Corpus) -> str:
        """Write *corpus* under a fresh key and return the key.

        The payload is written to a temporary file first and linked into
        place, so a failed save leaves no file behind.
        """
        payload = json.dumps(
            [record.model_dump() for record in corpus.records],
            indent=2,
            ensure_ascii=False,
        ).encode("utf-8")

        fd, tmp_name = tempfile.mkstemp(dir=self.data_dir, prefix=".pdf_", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(payload)

            base = f"pdf_{time.time_ns() // 1_000_000}"
            for attempt in range(_MAX_KEY_ATTEMPTS):
                key = base if attempt == 0 else f"{base}-{attempt}"
                try:
                    # link() fails instead of overwriting an existing corpus.
                    os.link(tmp_name, self._path(key))
                except FileExistsError:
                    continue
                logger.info("Saved corpus %s (%d records)", key, len(corpus.records))
                return key
        finally:
            os.unlink(tmp_name)

        raise FileExistsError(f"Could not allocate a free corpus key from {base!r}")

    def load(self, key: str) -> Corpus:
        """Load the corpus stored under *key*.

        Raises
        ------
        CorpusNotFoundError
            Nothing is stored under *key*, or *key* cannot name a corpus.
        CorpusCorruptError
            The stored data is not a well-formed corpus.
        """
        key = self._normalize_key(key)
        if not self.exists(key):
            raise CorpusNotFoundError(f"No corpus stored under key {key!r}")

        raw = self._path(key).read_bytes()
        try:
            records = _records_adapter.validate_json(raw, strict=True)
            return Corpus(records=tuple(records))
        except ValidationError as exc:
            raise CorpusCorruptError(f"Corpus {key!r} is malformed: {exc}") from exc

    def exists(self, key: str) -> bool:
        key = self._normalize_key(key)
        return self._is_valid_key(key) and self._path(key).is_file()

    def keys(self) -> list[str]:
        """Return every stored corpus key, sorted."""
        return sorted(
            p.name[: -len(_SUFFIX)]
            for p in self.data_dir.glob(f"*{_SUFFIX}")
            if p.is_file() and self._is_valid_key(p.name[: -len(_SUFFIX)])
        )

    # -- internals ------------------------------------------------------------

    @staticmethod
    def _normalize_key(key: str) -> str:
        # Accept file ids that still carry the ".json" suffix.
        return key[: -len(_SUFFIX)] if key.endswith(_SUFFIX) else key

    def _path(self, key: str) -> Path:
        return self.data_dir / f"{key}{_SUFFIX}"

    @staticmethod
    def _is_valid_key(key: str) -> bool:
        return bool(key) and ".." not in key and _KEY_RE.fullmatch(key) is not None
