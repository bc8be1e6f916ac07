"""CLI command for ingesting documents into the corpus.

Implements 'ragline ingest': chunk a markdown, text, HTML or PDF file, embed
every chunk with the configured provider and upsert the records into the
JSON corpus store.
"""

import asyncio
import sys
from pathlib import Path

import click

from ragline.config.loader import ConfigLoader
from ragline.lib.errors import (
    ConfigError,
    CorpusError,
    EmbeddingUnavailable,
    FileNotFoundError,
    IngestionError,
)
from ragline.lib.logging_config import get_logger
from ragline.lib.providers import create_embedding_provider
from ragline.lib.vector_store import JsonCorpusStore
from ragline.rag.ingest import ingest_file

logger = get_logger(__name__)


@click.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to ragline.yaml (defaults to ./ragline.yaml if present)",
)
@click.option("--source", default=None, help="Source name (defaults to the file name)")
def ingest(file: Path, config_path: str | None, source: str | None) -> None:
    """Chunk, embed and store FILE.

    Example:

        ragline ingest docs/guide.md --source guide
    """
    try:
        config = ConfigLoader().load_config(config_path)
        embedder = create_embedding_provider(config.model)
        store = JsonCorpusStore(config.corpus.path)

        count = asyncio.run(
            ingest_file(
                file,
                embedder,
                store,
                source=source,
                chunking=config.chunking,
            )
        )
    except (ConfigError, FileNotFoundError) as e:
        logger.error(f"Configuration error: {e}", exc_info=True)
        click.secho("Error: Failed to load configuration", fg="red", err=True)
        click.echo(f"  {str(e)}", err=True)
        sys.exit(1)
    except (IngestionError, CorpusError) as e:
        logger.error(f"Ingestion error: {e}", exc_info=True)
        click.secho(f"Error: {str(e)}", fg="red", err=True)
        sys.exit(1)
    except EmbeddingUnavailable as e:
        logger.error(f"Embedding provider error: {e}", exc_info=True)
        click.secho(f"Error: {e.message}", fg="red", err=True)
        sys.exit(2)

    click.secho(f"Ingested {count} chunks into {config.corpus.path}", fg="green")
