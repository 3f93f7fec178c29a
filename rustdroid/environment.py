import os
import shutil

from packaging.version import InvalidVersion, parse as parse_version

from . import builder
from .cli_logger import logger
from .exceptions import ConfigurationError
from .invocation import toolchain_directory
from .toolchains import ToolchainKind, find_toolchain
from .utils.command_executor import run_shell_command

# Older rustc links Android binaries against libgcc, which NDK r23 removed.
RUSTC_WITHOUT_LIBGCC = parse_version("1.68.0")


def tool_version(command):
    """First line of ``<command> --version``, or None when it cannot be run."""
    stdout, _, returncode = run_shell_command([command, "--version"])
    if returncode != 0 or not stdout.strip():
        return None
    return stdout.strip().splitlines()[0]


def parse_tool_version(version_line):
    """``rustc 1.75.0 (82e1608df 2023-12-21)`` -> Version('1.75.0')."""
    parts = (version_line or "").split()
    if len(parts) < 2:
        return None
    try:
        return parse_version(parts[1].split("-")[0])
    except InvalidVersion:
        return None


def installed_rust_targets():
    stdout, _, returncode = run_shell_command(["rustup", "target", "list", "--installed"])
    if returncode != 0:
        return None
    return {line.strip() for line in stdout.splitlines() if line.strip()}


def check_environment(conf):
    """Check the tools a build of ``conf`` needs. Problems are logged as warnings."""
    logger.info("Checking rustdroid environment...")
    all_ok = True

    for label, command in (("cargo", conf.cargo_command), ("rustc", conf.rustc_command)):
        version = tool_version(command)
        if version is None:
            logger.warning(f"{label} ('{command}') could not be run. Install Rust from https://rustup.rs.")
            all_ok = False
        else:
            logger.step_info(f"{label}: {version}", indent=2)

    if shutil.which(conf.python_command) is None:
        logger.warning(f"Python command '{conf.python_command}' used by the linker wrapper was not found on PATH.")
        all_ok = False

    ndk = None
    try:
        ndk = builder.locate_ndk(conf)
    except ConfigurationError as e:
        logger.warning(e.format_message())
        all_ok = False

    if ndk is not None:
        logger.step_info(f"Android NDK: {ndk.version} ({ndk.path})", indent=2)
        use_prebuilt = builder.use_prebuilt_toolchains(conf, ndk)
        android = [t for t in (find_toolchain(p, use_prebuilt) for p in conf.targets)
                   if t.kind == ToolchainKind.ANDROID_PREBUILT]
        if android:
            directory = toolchain_directory(android[0], ndk, conf)
            if not os.path.isdir(directory):
                logger.warning(f"NDK prebuilt toolchain not found at {directory}.")
                all_ok = False

        rustc = parse_tool_version(tool_version(conf.rustc_command))
        if rustc is not None and ndk.version_major >= 23 and rustc < RUSTC_WITHOUT_LIBGCC:
            logger.step_info(
                f"rustc {rustc} still links against libgcc; the linker wrapper substitutes libunwind for NDK r{ndk.version_major}.",
                indent=2,
            )

    installed = installed_rust_targets()
    if installed is None:
        logger.warning("Could not list installed Rust targets (is rustup installed?).")
    else:
        for platform_id in conf.targets:
            triple = find_toolchain(platform_id).target
            if triple not in installed:
                logger.warning(f"Rust target {triple} ({platform_id}) is not installed. Run 'rustup target add {triple}'.")
                all_ok = False

    return all_ok
