import functools
import click
import sys # Import sys for sys.exc_info()
from .cli_logger import logger
from .exceptions import ExternalProcessFailure, RustDroidError

def handle_exceptions(func):
    """A decorator to handle common exceptions for CLI commands.

    rustdroid failures are logged and turned into a non-zero exit status.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except click.Abort:
            logger.warning("\nCommand aborted by user.")
            raise
        except ExternalProcessFailure as e:
            logger.error(e.format_message())
            if e.stdout:
                logger.step_info(e.stdout, indent=2)
            logger.exception(*sys.exc_info())
            sys.exit(e.exit_code)
        except RustDroidError as e:
            logger.error(f"Error: {e.format_message()}")
            logger.exception(*sys.exc_info())
            sys.exit(e.exit_code)
        except FileNotFoundError as e:
            logger.error(f"Error: File not found - {e}")
            logger.exception(*sys.exc_info())
            sys.exit(1)
    return wrapper
