"""CLI command for inspecting retrieval results.

Implements 'ragline query', which prints the ranked corpus units for a
question together with their vector, keyword and hybrid scores.
"""

import asyncio
import sys
from typing import Any

import click

from ragline.config.loader import ConfigLoader
from ragline.lib.errors import ConfigError, CorpusError, EmbeddingUnavailable, FileNotFoundError
from ragline.lib.logging_config import get_logger
from ragline.rag.answerer import create_answerer

logger = get_logger(__name__)

PREVIEW_LENGTH = 80


def _preview(text: str) -> str:
    flat = " ".join(text.split())
    if len(flat) <= PREVIEW_LENGTH:
        return flat
    return flat[: PREVIEW_LENGTH - 1] + "…"


@click.command()
@click.argument("question")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to ragline.yaml (defaults to ./ragline.yaml if present)",
)
@click.option("--top-k", type=click.IntRange(min=0), default=None, help="Result limit")
@click.option("--no-hybrid", is_flag=True, help="Rank by vector similarity only")
def query(question: str, config_path: str | None, top_k: int | None, no_hybrid: bool) -> None:
    """Show the corpus units ranked for QUESTION.

    Example:

        ragline query "投稿時間はいつがいい？" --top-k 3
    """
    overrides: dict[str, Any] = {"retrieval": {}}
    if top_k is not None:
        overrides["retrieval"]["top_k"] = top_k
    if no_hybrid:
        overrides["retrieval"]["use_hybrid_search"] = False

    try:
        config = ConfigLoader().load_config(config_path, overrides=overrides)
        answerer = create_answerer(config)
        results = asyncio.run(answerer.retrieve(question))
    except (ConfigError, FileNotFoundError, CorpusError) as e:
        logger.error(f"Configuration error: {e}", exc_info=True)
        click.secho(f"Error: {str(e)}", fg="red", err=True)
        sys.exit(1)
    except EmbeddingUnavailable as e:
        logger.error(f"Embedding provider error: {e}", exc_info=True)
        click.secho(f"Error: {e.message}", fg="red", err=True)
        sys.exit(2)

    if not results:
        click.secho("No matching chunks.", fg="yellow")
        return

    for rank, candidate in enumerate(results, start=1):
        click.echo(
            f"{rank}. [{candidate.id}] hybrid={candidate.hybrid_score:.3f} "
            f"vector={candidate.vector_score:.3f} keyword={candidate.keyword_score:.3f}"
        )
        click.echo(f"   {_preview(candidate.text)}")
