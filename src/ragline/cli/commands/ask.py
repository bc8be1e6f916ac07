"""CLI command for answering a question from the corpus."""

import asyncio
import sys

import click

from ragline.config.loader import ConfigLoader
from ragline.lib.errors import ConfigError, CorpusError, FileNotFoundError
from ragline.lib.logging_config import get_logger
from ragline.rag.answerer import create_answerer

logger = get_logger(__name__)


@click.command()
@click.argument("question")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to ragline.yaml (defaults to ./ragline.yaml if present)",
)
def ask(question: str, config_path: str | None) -> None:
    """Answer QUESTION using the indexed corpus.

    Provider outages produce the configured fallback reply rather than an
    error exit.
    """
    try:
        config = ConfigLoader().load_config(config_path)
        answerer = create_answerer(config)
        answer = asyncio.run(answerer.answer(question))
    except (ConfigError, FileNotFoundError, CorpusError) as e:
        logger.error(f"Configuration error: {e}", exc_info=True)
        click.secho(f"Error: {str(e)}", fg="red", err=True)
        sys.exit(1)
    except ValueError as e:
        click.secho(f"Error: {str(e)}", fg="red", err=True)
        sys.exit(1)

    click.echo(answer)
