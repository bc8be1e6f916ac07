"""Document ingestion: chunk, embed and store.

Markdown is split with the hierarchical chunker; HTML and PDF are reduced to
plain text and split by size with overlap. Every chunk is embedded and the
resulting records are handed to a corpus sink in a single call, so a failed
embedding leaves the store untouched.
"""

import asyncio
import logging
from pathlib import Path

from pypdf.errors import PyPdfError

from ragline.lib.errors import IngestionError
from ragline.lib.html_extractor import extract_text_from_html
from ragline.lib.pdf_extractor import extract_text_from_pdf
from ragline.lib.providers import CorpusSink, EmbeddingProvider
from ragline.lib.structured_chunker import HierarchicalChunker
from ragline.lib.vector_store import IndexedDocument
from ragline.models.config import ChunkingConfig

logger = logging.getLogger(__name__)

DEFAULT_EMBED_CONCURRENCY = 4

MARKDOWN_SUFFIXES = (".md", ".markdown", ".txt")
HTML_SUFFIXES = (".html", ".htm")
PDF_SUFFIXES = (".pdf",)
SUPPORTED_SUFFIXES = MARKDOWN_SUFFIXES + HTML_SUFFIXES + PDF_SUFFIXES


async def embed_chunks(
    chunks: list[str],
    embedder: EmbeddingProvider,
    source: str,
    concurrency: int = DEFAULT_EMBED_CONCURRENCY,
) -> list[IndexedDocument]:
    """Embed chunks concurrently and build corpus records in chunk order.

    Args:
        chunks: Chunk texts in document order.
        embedder: Embedding provider.
        source: Source document name used for ids.
        concurrency: Maximum embedding calls in flight.

    Returns:
        One IndexedDocument per chunk.

    Raises:
        EmbeddingUnavailable: If any chunk fails to embed.
    """
    if not chunks:
        return []

    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def process_chunk(index: int, chunk: str) -> IndexedDocument:
        async with semaphore:
            embedding = await embedder.embed(chunk)
        return IndexedDocument.from_chunk(chunk, embedding, source, index)

    # Use gather to maintain order
    tasks = [process_chunk(i, chunk) for i, chunk in enumerate(chunks)]
    return list(await asyncio.gather(*tasks))


async def ingest_chunks(
    chunks: list[str],
    embedder: EmbeddingProvider,
    sink: CorpusSink,
    source: str = "",
    concurrency: int = DEFAULT_EMBED_CONCURRENCY,
) -> int:
    """Embed pre-split chunks and save them.

    Returns:
        Number of chunks stored.
    """
    documents = await embed_chunks(chunks, embedder, source, concurrency)
    if not documents:
        logger.info(f"No chunks to ingest for '{source}'")
        return 0

    await sink.save_units(documents)
    logger.info(f"Ingested {len(documents)} chunks from '{source}'")
    return len(documents)


async def ingest_markdown(
    text: str,
    embedder: EmbeddingProvider,
    sink: CorpusSink,
    source: str = "",
    chunking: ChunkingConfig | None = None,
    concurrency: int = DEFAULT_EMBED_CONCURRENCY,
) -> int:
    """Split markdown, embed every chunk and save the records.

    Args:
        text: Markdown document.
        embedder: Embedding provider.
        sink: Corpus sink receiving the records.
        source: Source document name.
        chunking: Chunking settings. Defaults to ChunkingConfig().
        concurrency: Maximum embedding calls in flight.

    Returns:
        Number of chunks stored; 0 for a blank document.

    Raises:
        EmbeddingUnavailable: If any chunk fails to embed. Nothing is saved.
    """
    config = chunking or ChunkingConfig()
    chunker = HierarchicalChunker.from_config(config)
    chunks = chunker.chunk(text, config.mode)
    logger.debug(f"Split '{source}' into {len(chunks)} chunks ({config.mode.value})")
    return await ingest_chunks(chunks, embedder, sink, source, concurrency)


async def ingest_html(
    html: str,
    embedder: EmbeddingProvider,
    sink: CorpusSink,
    source: str = "",
    chunking: ChunkingConfig | None = None,
    concurrency: int = DEFAULT_EMBED_CONCURRENCY,
) -> int:
    """Extract text from HTML, split it by size, embed and save.

    Returns:
        Number of chunks stored.
    """
    config = chunking or ChunkingConfig()
    chunker = HierarchicalChunker.from_config(config)
    chunks = chunker.split_flat_text(extract_text_from_html(html))
    return await ingest_chunks(chunks, embedder, sink, source, concurrency)


async def ingest_pdf(
    path: Path | str,
    embedder: EmbeddingProvider,
    sink: CorpusSink,
    source: str | None = None,
    chunking: ChunkingConfig | None = None,
    concurrency: int = DEFAULT_EMBED_CONCURRENCY,
) -> int:
    """Extract text from a PDF file, split it by size, embed and save.

    Each chunk is stored with its position in the document as page number.

    Returns:
        Number of chunks stored.

    Raises:
        IngestionError: If the file cannot be opened or is not a readable PDF.
        EmbeddingUnavailable: If any chunk fails to embed.
    """
    file_path = Path(path)
    source_name = source or file_path.name
    try:
        text = extract_text_from_pdf(file_path)
    except (OSError, PyPdfError) as e:
        raise IngestionError(source_name, f"Cannot read PDF {file_path}: {e}") from e

    config = chunking or ChunkingConfig()
    chunker = HierarchicalChunker.from_config(config)
    chunks = chunker.split_flat_text(text)
    logger.debug(f"Split PDF '{source_name}' into {len(chunks)} chunks")
    return await ingest_chunks(chunks, embedder, sink, source_name, concurrency)


async def ingest_file(
    path: Path | str,
    embedder: EmbeddingProvider,
    sink: CorpusSink,
    source: str | None = None,
    chunking: ChunkingConfig | None = None,
    concurrency: int = DEFAULT_EMBED_CONCURRENCY,
) -> int:
    """Ingest a markdown, text, HTML or PDF file.

    Args:
        path: File to ingest.
        embedder: Embedding provider.
        sink: Corpus sink receiving the records.
        source: Source name. Defaults to the file name.
        chunking: Chunking settings.
        concurrency: Maximum embedding calls in flight.

    Returns:
        Number of chunks stored.

    Raises:
        IngestionError: If the file cannot be read, is not valid UTF-8 text or
            has an unsupported type.
        EmbeddingUnavailable: If any chunk fails to embed.
    """
    file_path = Path(path)
    source_name = source or file_path.name
    suffix = file_path.suffix.lower()

    if suffix not in SUPPORTED_SUFFIXES:
        raise IngestionError(
            source_name,
            f"Unsupported file type '{suffix or file_path.name}'. "
            f"Supported: {', '.join(SUPPORTED_SUFFIXES)}",
        )

    if suffix in PDF_SUFFIXES:
        return await ingest_pdf(
            file_path, embedder, sink, source_name, chunking, concurrency
        )

    try:
        content = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise IngestionError(source_name, f"Cannot read {file_path}: {e}") from e

    if suffix in HTML_SUFFIXES:
        return await ingest_html(
            content, embedder, sink, source_name, chunking, concurrency
        )
    return await ingest_markdown(
        content, embedder, sink, source_name, chunking, concurrency
    )
