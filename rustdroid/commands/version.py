import click
import importlib.metadata
from ..cli_logger import logger

@click.command()
def version():
    """Print the version of rustdroid."""
    try:
        ver = importlib.metadata.version("rustdroid")
        click.echo(f"rustdroid version {ver}")
    except importlib.metadata.PackageNotFoundError:
        logger.error("Error: Could not determine the version of rustdroid. Is it installed correctly?")
