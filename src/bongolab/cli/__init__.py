"""CLI module for BongoLab commands.

Commands live in separate modules and are registered on the ``main`` group
here, which is also the console-script entry point.
"""

import click

from .. import __version__
from ..io import setup_logging
from .inspect_cmd import inspect
from .render_cmd import render
from .serve_cmd import serve


@click.group()
@click.version_option(version=__version__, prog_name="bongolab")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    help="Logging verbosity",
)
def main(log_level: str) -> None:
    """🥁 BongoLab: turn photos into drumming bongo cat GIFs."""
    setup_logging(log_level=log_level)


main.add_command(render)
main.add_command(inspect)
main.add_command(serve)

__all__ = [
    "inspect",
    "main",
    "render",
    "serve",
]
