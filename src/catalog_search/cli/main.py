"""Main CLI entry point for catalog-search."""

import click

from catalog_search import __version__
from catalog_search.config import settings
from catalog_search.utils.logger import setup_logger
from .commands.index import index_commands


@click.group()
@click.version_option(version=__version__)
@click.option("--log-level", default=None, help="Override LOG_LEVEL (DEBUG, INFO, ...)")
def cli(log_level):
    """Catalog search index synchronization and query tool."""
    setup_logger(level=log_level or settings.log_level)


# Register commands
for command in index_commands:
    cli.add_command(command)


if __name__ == "__main__":
    cli()
