import click
from .. import config as config_module
from .. import environment
from ..cli_logger import logger
from ..decorators import handle_exceptions

@click.command()
@click.pass_context
@handle_exceptions
def doctor(ctx):
    """Check that cargo, rustc, the NDK and the Rust targets needed by rustdroid.toml are available."""
    logger.info("Running environment check...")
    conf = config_module.load_build_config(path=ctx.obj["path"])
    if environment.check_environment(conf):
        logger.success("Environment check completed successfully.")
    else:
        logger.error("Environment check found issues. Please review the warnings above.")
