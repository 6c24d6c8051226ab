"""Command line entry points for datemapper utilities."""

import logging

from typer import Option, Typer

from .date import date_app


cli = Typer(help="datemapper command line tools")
cli.add_typer(date_app, name="date")


@cli.callback()
def main(verbose: bool = Option(False, "--verbose", "-v", help="Enable debug logging")) -> None:
    """Date field mapping tools."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )


__all__ = ["cli", "date_app"]
