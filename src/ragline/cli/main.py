"""ragline command line entry point."""

import click

from ragline import __version__
from ragline.cli.commands.ask import ask
from ragline.cli.commands.chunk import chunk
from ragline.cli.commands.ingest import ingest
from ragline.cli.commands.query import query
from ragline.config.env_loader import load_env_file
from ragline.lib.logging_config import setup_logging


@click.group(name="ragline")
@click.version_option(__version__, prog_name="ragline")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option("--quiet", "-q", is_flag=True, help="Only show warnings and errors")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool) -> None:
    """Chunk markdown, build a retrieval corpus and answer questions from it."""
    setup_logging(verbose=verbose, quiet=quiet)
    load_env_file()
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet


cli.add_command(chunk)
cli.add_command(ingest)
cli.add_command(query)
cli.add_command(ask)


def main() -> None:
    """Run the ragline CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
