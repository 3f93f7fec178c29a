from .cli_logger import logger
from .utils.command_executor import run_shell_command

HOST_PREFIX = "host: "

def get_default_target_triple(rustc_command="rustc"):
    """Return the triple rustc compiles for by default, or None if it cannot be told.

    ``rustc --version --verbose`` prints ``key: value`` lines; ``host`` is the
    default target. Not cached: a toolchain switch between builds is picked up.
    """
    stdout, stderr, returncode = run_shell_command([rustc_command, "--version", "--verbose"])
    if returncode != 0:
        logger.warning(f"Failed to get default target triple from rustc (exit code: {returncode})")
        if stderr:
            logger.debug(stderr)
        return None

    triple = None
    for line in stdout.split("\n"):
        if line.startswith(HOST_PREFIX):
            triple = line[len(HOST_PREFIX):].strip() or None
            break

    if triple is None:
        logger.warning("Failed to parse `rustc -Vv` output! (Please report a rustdroid bug)")
    else:
        logger.info(f"Default rust target triple: {triple}")
    return triple
