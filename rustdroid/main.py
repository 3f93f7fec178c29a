import click
from .cli_logger import logger
from .commands import *


@click.group()
@click.option("--path", "-p", default=".", help="Path to the project directory.")
@click.option("--info", "log_level", flag_value="info", help="Show info messages (also makes cargo verbose).")
@click.option("--debug", "log_level", flag_value="debug", help="Show debug messages and tracebacks.")
@click.pass_context
def cli(ctx, path, log_level):
    """Build Rust libraries with cargo for Android and desktop targets."""
    if log_level:
        logger.set_level(log_level)
    ctx.obj = {"path": path}

cli.add_command(build)
cli.add_command(generate_toolchains)
cli.add_command(generate_linker_wrapper)
cli.add_command(targets)
cli.add_command(config)
cli.add_command(doctor)
cli.add_command(clean)
cli.add_command(log)
cli.add_command(version)

if __name__ == '__main__':
    cli()
