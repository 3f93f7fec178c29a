import os
from importlib import resources

from .cli_logger import logger
from .toolchains import is_windows
from .utils.file_manager import extract_resources

WRAPPER_DIR = "linker-wrapper"
RESOURCE_PREFIX = "resources/"

def wrapper_directory(build_directory):
    return os.path.join(build_directory, WRAPPER_DIR)

def linker_wrapper_path(build_directory, windows=None):
    """The script cargo is told to use as linker on this host."""
    if windows is None:
        windows = is_windows()
    name = "linker-wrapper.bat" if windows else "linker-wrapper.sh"
    return os.path.join(wrapper_directory(build_directory), name)

def linker_wrapper_driver_path(build_directory):
    return os.path.join(wrapper_directory(build_directory), "linker-wrapper.py")

def generate_linker_wrapper(build_directory):
    """(Re)write the linker wrapper scripts into ``<build>/linker-wrapper``."""
    dest_dir = wrapper_directory(build_directory)
    logger.info(f"Generating linker wrapper in {dest_dir}...")
    written = extract_resources(
        resources.files("rustdroid"),
        dest_dir,
        include="linker-wrapper*",
        strip_prefix=RESOURCE_PREFIX,
        mode=0o755,
        log_each=False,
    )
    logger.info(f"Linker wrapper ready ({len(written)} files).")
    return written
