"""CLI command for previewing how a document is chunked.

Implements 'ragline chunk', which runs the hierarchical chunker on a local
file and prints every chunk. No provider is contacted.
"""

import sys
from pathlib import Path

import click
from pypdf.errors import PyPdfError

from ragline.lib.html_extractor import extract_text_from_html
from ragline.lib.logging_config import get_logger
from ragline.lib.pdf_extractor import extract_text_from_pdf
from ragline.lib.structured_chunker import ChunkingMode, HierarchicalChunker

logger = get_logger(__name__)


@click.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--mode",
    type=click.Choice([m.value for m in ChunkingMode]),
    default=ChunkingMode.FINE.value,
    show_default=True,
    help="Split strategy",
)
@click.option(
    "--max-chunk-size",
    type=click.IntRange(min=1),
    default=HierarchicalChunker.DEFAULT_MAX_CHUNK_SIZE,
    show_default=True,
    help="Maximum characters per chunk",
)
def chunk(file: Path, mode: str, max_chunk_size: int) -> None:
    """Print the chunks produced for FILE.

    Example:

        ragline chunk docs/guide.md --mode coarse --max-chunk-size 800
    """
    suffix = file.suffix.lower()
    try:
        if suffix == ".pdf":
            text = extract_text_from_pdf(file)
        else:
            text = file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError, PyPdfError) as e:
        click.secho(f"Error: Cannot read {file}: {e}", fg="red", err=True)
        sys.exit(1)

    chunker = HierarchicalChunker(max_chunk_size=max_chunk_size)
    if suffix in (".html", ".htm"):
        chunks = chunker.split_flat_text(extract_text_from_html(text))
    elif suffix == ".pdf":
        chunks = chunker.split_flat_text(text)
    else:
        chunks = chunker.chunk(text, ChunkingMode(mode))

    logger.debug(f"{file}: {len(chunks)} chunks in {mode} mode")
    for i, content in enumerate(chunks, start=1):
        click.secho(f"--- chunk {i}/{len(chunks)} ({len(content)} chars) ---", fg="cyan")
        click.echo(content)
