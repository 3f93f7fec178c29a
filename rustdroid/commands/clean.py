import click
import shutil
import os
from .. import config as config_module
from ..builder import JNI_LIBS_DIR
from ..cli_logger import logger
from ..decorators import handle_exceptions
from ..linker_wrapper import WRAPPER_DIR

@click.command()
@click.pass_context
@handle_exceptions
def clean(ctx):
    """Remove copied Rust libraries and the generated linker wrapper."""
    conf = config_module.load_build_config(path=ctx.obj["path"])
    logger.info(f"Cleaning rustdroid outputs in {conf.build_directory}...")

    items_removed = 0
    for name in (JNI_LIBS_DIR, WRAPPER_DIR):
        path = os.path.join(conf.build_directory, name)
        if not os.path.isdir(path):
            continue
        logger.info(f"Attempting to remove directory {path}...")
        try:
            shutil.rmtree(path)
            logger.success(f"Removed directory {path}")
            items_removed += 1
        except OSError as e:
            logger.error(f"Error removing directory {path}: {e}")
            logger.info("Please check file permissions and ensure the directory is not in use.")

    if items_removed > 0:
        logger.success(f"Cleaning complete. Removed {items_removed} items.")
    else:
        logger.success("Project is already clean.")
