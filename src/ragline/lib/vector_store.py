"""Corpus records, cosine similarity and simple corpus stores.

The retrieval layer only needs three things from a stored unit: an id, its
text and its embedding vector. ``CorpusUnit`` captures that shape as a
structural protocol so rankers accept any record type, while
``IndexedDocument`` is the concrete record written by ingestion.

Stores:
- InMemoryCorpusStore: process-local list, used by tests and one-shot runs
- JsonCorpusStore: versioned JSON snapshot on disk, upserting by unit id
"""

from __future__ import annotations

import json
import math
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ragline.lib.errors import CorpusError
from ragline.lib.logging_config import get_logger

logger = get_logger(__name__)

SNAPSHOT_VERSION = "1.0"


@runtime_checkable
class CorpusUnit(Protocol):
    """A retrievable unit of the corpus.

    Attributes:
        id: Unique identifier within the corpus.
        text: Chunk text handed to the generator as context.
        embedding: Embedding vector of ``text``.
    """

    @property
    def id(self) -> str: ...

    @property
    def text(self) -> str: ...

    @property
    def embedding(self) -> Sequence[float]: ...


def cosine_similarity(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    """Compute cosine similarity between two vectors.

    Args:
        vec_a: First embedding vector.
        vec_b: Second embedding vector.

    Returns:
        Cosine similarity between -1.0 and 1.0. Returns 0.0 for empty
        vectors, vectors of different lengths, or a zero-norm vector.

    Example:
        >>> cosine_similarity([1.0, 0.0], [1.0, 0.0])
        1.0
        >>> cosine_similarity([0.0, 0.0], [1.0, 0.0])
        0.0
    """
    if not vec_a or not vec_b:
        return 0.0
    if len(vec_a) != len(vec_b):
        logger.debug(
            f"Embedding length mismatch ({len(vec_a)} vs {len(vec_b)}), scoring 0.0"
        )
        return 0.0

    dot_product = sum(a * b for a, b in zip(vec_a, vec_b, strict=False))
    norm_a = math.sqrt(sum(a * a for a in vec_a))
    norm_b = math.sqrt(sum(b * b for b in vec_b))

    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0

    return dot_product / (norm_a * norm_b)


class IndexedDocument(BaseModel):
    """A chunk stored in the corpus together with its embedding.

    Attributes:
        id: Unique identifier (``{source}_chunk_{index}`` for ingested chunks)
        text: Chunk text
        embedding: Embedding vector of the chunk text
        source: Name of the document the chunk came from
        page: One-based chunk position within the source document
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    text: str
    embedding: list[float] = Field(default_factory=list)
    source: str = ""
    page: int | None = None

    @classmethod
    def from_chunk(
        cls,
        chunk: str,
        embedding: Sequence[float],
        source: str,
        index: int,
    ) -> IndexedDocument:
        """Build a corpus record for the chunk at ``index`` of a source.

        Args:
            chunk: Chunk text.
            embedding: Embedding vector of the chunk.
            source: Source document name.
            index: Zero-based chunk position in the source.

        Returns:
            IndexedDocument with deterministic id and one-based page.
        """
        return cls(
            id=f"{source}_chunk_{index}",
            text=chunk,
            embedding=list(embedding),
            source=source,
            page=index + 1,
        )

    def to_record_dict(self) -> dict[str, Any]:
        """Convert to a plain dict suitable for JSON storage."""
        return self.model_dump(mode="json")


class CorpusSnapshot(BaseModel):
    """On-disk layout of a JsonCorpusStore file."""

    version: str = SNAPSHOT_VERSION
    documents: list[IndexedDocument] = Field(default_factory=list)


def _upsert(
    existing: list[IndexedDocument], incoming: Iterable[IndexedDocument]
) -> list[IndexedDocument]:
    """Replace records with matching ids in place and append new ones."""
    merged = list(existing)
    positions = {doc.id: i for i, doc in enumerate(merged)}
    for doc in incoming:
        if doc.id in positions:
            merged[positions[doc.id]] = doc
        else:
            positions[doc.id] = len(merged)
            merged.append(doc)
    return merged


class InMemoryCorpusStore:
    """Process-local corpus store.

    Example:
        >>> store = InMemoryCorpusStore()
        >>> len(store)
        0
    """

    def __init__(self, documents: Iterable[IndexedDocument] | None = None) -> None:
        """Create a store, optionally pre-populated with documents."""
        self._documents: list[IndexedDocument] = _upsert([], documents or [])

    def __len__(self) -> int:
        return len(self._documents)

    async def load_all_units(self) -> list[IndexedDocument]:
        """Return every stored document in insertion order."""
        return list(self._documents)

    async def save_units(self, units: Sequence[IndexedDocument]) -> None:
        """Upsert documents by id."""
        self._documents = _upsert(self._documents, units)

    def clear(self) -> None:
        """Remove all documents."""
        self._documents = []


class JsonCorpusStore:
    """Corpus persisted as a single versioned JSON snapshot.

    The whole snapshot is rewritten on every save. A missing or empty file
    reads as an empty corpus.

    Attributes:
        path: Location of the snapshot file.
    """

    def __init__(self, path: Path | str) -> None:
        """Create a store backed by ``path``."""
        self.path = Path(path)

    def _read(self) -> CorpusSnapshot:
        if not self.path.exists():
            return CorpusSnapshot()

        try:
            content = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise CorpusError(str(self.path), f"Failed to read corpus: {exc}") from exc

        if not content.strip():
            return CorpusSnapshot()

        try:
            return CorpusSnapshot.model_validate_json(content)
        except ValidationError as exc:
            raise CorpusError(
                str(self.path), f"Invalid corpus snapshot format: {exc}"
            ) from exc

    def _write(self, snapshot: CorpusSnapshot) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            payload = json.dumps(
                snapshot.model_dump(mode="json"), ensure_ascii=False, indent=2
            )
            self.path.write_text(payload, encoding="utf-8")
        except OSError as exc:
            raise CorpusError(str(self.path), f"Failed to write corpus: {exc}") from exc

    async def load_all_units(self) -> list[IndexedDocument]:
        """Load every document from the snapshot.

        Raises:
            CorpusError: If the file cannot be read or is not a valid snapshot.
        """
        snapshot = self._read()
        logger.debug(f"Loaded {len(snapshot.documents)} documents from {self.path}")
        return snapshot.documents

    async def save_units(self, units: Sequence[IndexedDocument]) -> None:
        """Upsert documents by id and rewrite the snapshot.

        Raises:
            CorpusError: If the snapshot cannot be read or written.
        """
        snapshot = self._read()
        documents = _upsert(snapshot.documents, units)
        self._write(CorpusSnapshot(version=SNAPSHOT_VERSION, documents=documents))
        logger.debug(f"Saved {len(units)} documents to {self.path}")
