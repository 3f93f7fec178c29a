from .build import build
from .clean import clean
from .config import config
from .doctor import doctor
from .generate import generate_linker_wrapper, generate_toolchains
from .log import log
from .targets import targets
from .version import version

__all__ = [
    "build",
    "clean",
    "config",
    "doctor",
    "generate_linker_wrapper",
    "generate_toolchains",
    "log",
    "targets",
    "version",
]
